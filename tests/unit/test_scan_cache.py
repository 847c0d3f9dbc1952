"""Tests for ScanCache — TTL expiry, lazy removal and expired-only pruning."""

from __future__ import annotations

from quarantine.models.scan import ScanMatch, ScanResult, Severity
from quarantine.scanner.cache import ScanCache, fingerprint


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _result(severity: Severity = Severity.MED) -> ScanResult:
    return ScanResult(
        severity=severity,
        categories=("injection",),
        indicators=("you are now a pirate",),
        matches=(ScanMatch("injection", severity, "you are now a pirate"),),
    )


class TestFingerprint:
    def test_stable_and_distinct(self) -> None:
        assert fingerprint("abc") == fingerprint("abc")
        assert fingerprint("abc") != fingerprint("abd")


class TestLookupStore:
    def test_miss_on_empty(self) -> None:
        assert ScanCache().lookup("anything") is None

    def test_hit_returns_aggregates_without_matches(self) -> None:
        cache = ScanCache(clock=FakeClock())
        cache.store("payload", _result())
        hit = cache.lookup("payload")
        assert hit is not None
        assert hit.severity is Severity.MED
        assert hit.categories == ("injection",)
        assert hit.indicators == ("you are now a pirate",)
        assert hit.matches == ()
        assert hit.cached is True

    def test_valid_up_to_ttl_inclusive(self) -> None:
        clock = FakeClock()
        cache = ScanCache(ttl_s=300, clock=clock)
        cache.store("payload", _result())
        clock.now += 300
        assert cache.lookup("payload") is not None

    def test_expired_entry_is_miss_and_removed(self) -> None:
        clock = FakeClock()
        cache = ScanCache(ttl_s=300, clock=clock)
        cache.store("payload", _result())
        clock.now += 300.5
        assert cache.lookup("payload") is None
        assert len(cache) == 0

    def test_clear(self) -> None:
        cache = ScanCache()
        cache.store("payload", _result())
        cache.clear()
        assert len(cache) == 0


class TestPrune:
    def test_prune_removes_only_expired(self) -> None:
        clock = FakeClock()
        cache = ScanCache(ttl_s=10, max_entries=3, clock=clock)
        cache.store("old-1", _result())
        cache.store("old-2", _result())
        clock.now += 20
        cache.store("new-1", _result())
        assert len(cache) == 3
        cache.store("new-2", _result())
        assert len(cache) == 2
        assert cache.lookup("new-1") is not None
        assert cache.lookup("new-2") is not None

    def test_can_exceed_ceiling_when_nothing_expired(self) -> None:
        cache = ScanCache(ttl_s=300, max_entries=3, clock=FakeClock())
        for i in range(6):
            cache.store(f"payload-{i}", _result())
        assert len(cache) == 6

    def test_default_ceiling(self) -> None:
        assert ScanCache().max_entries == 1000
