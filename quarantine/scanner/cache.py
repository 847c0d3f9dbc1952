"""Scan result cache — TTL memoization keyed by content fingerprint.

INVARIANTS:
  - An entry is valid only while ``now - created_at <= ttl``; expired entries
    are misses and are removed when looked up.
  - When the entry count exceeds ``max_entries`` after a store, a prune pass
    removes every expired entry. Live entries are never evicted, so the cache
    may stay above the ceiling.
  - Entries hold only severity/categories/indicators and the confirmed-threat
    id, never match spans. Callers that need redaction targets rescan.
"""

from __future__ import annotations

import hashlib
import threading
import time
from typing import Callable, Optional

from quarantine.constants import CACHE_MAX_ENTRIES, DEFAULT_CACHE_TTL_S
from quarantine.models.scan import ScanCacheEntry, ScanResult
from quarantine.utils.logger import get_logger

logger = get_logger(__name__)


def fingerprint(content: str) -> str:
    """Content key for the cache (SHA-256 hex digest)."""
    return hashlib.sha256(content.encode("utf-8", errors="surrogatepass")).hexdigest()


class ScanCache:
    def __init__(
        self,
        ttl_s: float = DEFAULT_CACHE_TTL_S,
        max_entries: int = CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_s = ttl_s
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, ScanCacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, content: str) -> Optional[ScanResult]:
        key = fingerprint(content)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry, self._clock()):
                del self._entries[key]
                return None
        return entry.to_result()

    def store(self, content: str, result: ScanResult) -> None:
        now = self._clock()
        entry = ScanCacheEntry(
            severity=result.severity,
            categories=result.categories,
            indicators=result.indicators,
            created_at=now,
            confirmed_match=result.confirmed_match,
        )
        with self._lock:
            self._entries[fingerprint(content)] = entry
            if len(self._entries) > self.max_entries:
                self._prune(now)

    def clear(self) -> None:
        with self._lock:
            self._entries = {}

    def _expired(self, entry: ScanCacheEntry, now: float) -> bool:
        return now - entry.created_at > self.ttl_s

    def _prune(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if self._expired(e, now)]
        for key in expired:
            del self._entries[key]
        logger.debug("Scan cache pruned", removed=len(expired), remaining=len(self._entries))
