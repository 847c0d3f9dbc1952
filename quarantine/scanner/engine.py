"""Scanner — classifies content into a threat severity.

Pipeline, in order:
  1. Scan cache lookup by content fingerprint — return on hit.
  2. Confirmed-threat check — on a hit, return a fixed HIGH result in the
     ``confirmed_threat`` category. Pattern evaluation is skipped entirely.
  3. Pattern matching — every loaded pattern is searched against the full
     content; each match records category, severity and up to 80 chars of
     matched text.
  4. Aggregation — max severity (NONE < LOW < MED < HIGH), order-preserving
     category set, ordered indicator list.
  5. Store in the scan cache and return.

INVARIANT: ``scan()`` and ``rescan()`` NEVER raise. Loader failures already
degrade to empty pattern/threat sets; anything unexpected is logged and
yields a clean result.
"""

from __future__ import annotations

from typing import Optional

from quarantine.constants import CONFIRMED_THREAT_CATEGORY, MAX_INDICATOR_CHARS
from quarantine.models.scan import (
    PatternEntry,
    ScanMatch,
    ScanResult,
    Severity,
    ThreatMatch,
)
from quarantine.store import PolicyStore
from quarantine.utils.logger import get_logger

logger = get_logger(__name__)


def confirmed_threat_result(match: ThreatMatch) -> ScanResult:
    indicator = match.indicator[:MAX_INDICATOR_CHARS]
    return ScanResult(
        severity=Severity.HIGH,
        categories=(CONFIRMED_THREAT_CATEGORY,),
        indicators=(f"matched confirmed threat {match.threat_id}",),
        matches=(
            ScanMatch(
                category=CONFIRMED_THREAT_CATEGORY,
                severity=Severity.HIGH,
                matched_text=indicator,
            ),
        ),
        confirmed_match=match.threat_id,
    )


def match_patterns(content: str, patterns: list[PatternEntry]) -> ScanResult:
    """Search every pattern against ``content`` and aggregate the matches."""
    max_severity = Severity.NONE
    categories: dict[str, None] = {}
    indicators: list[str] = []
    matches: list[ScanMatch] = []

    for entry in patterns:
        try:
            m = entry.matcher.search(content)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Pattern search failed — skipping pattern",
                category=entry.category,
                pattern=entry.source_pattern,
                error=str(exc),
            )
            continue
        if not m:
            continue

        if entry.severity.rank > max_severity.rank:
            max_severity = entry.severity
        categories.setdefault(entry.category, None)
        matched = (m.group(0) or "")[:MAX_INDICATOR_CHARS]
        indicators.append(matched)
        matches.append(
            ScanMatch(category=entry.category, severity=entry.severity, matched_text=matched)
        )

    return ScanResult(
        severity=max_severity,
        categories=tuple(categories),
        indicators=tuple(indicators),
        matches=tuple(matches),
    )


class Scanner:
    def __init__(self, store: PolicyStore) -> None:
        self.store = store

    def scan(self, content: str, patterns_source: Optional[str] = None) -> ScanResult:
        """Scan ``content`` and return its ScanResult. Never raises."""
        cached = self.store.cache.lookup(content)
        if cached is not None:
            return cached
        return self.rescan(content, patterns_source)

    def rescan(self, content: str, patterns_source: Optional[str] = None) -> ScanResult:
        """Scan without consulting the cache, then refresh the cache entry.

        Used when match spans are needed; cached results only keep aggregates.
        """
        try:
            result = self._scan_uncached(content, patterns_source)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Unexpected scanner error — treating content as clean",
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            return ScanResult()

        self.store.cache.store(content, result)
        if not result.is_clean:
            logger.info(
                "Threat indicators found",
                severity=result.severity.value,
                categories=list(result.categories),
                matches=len(result.matches),
                confirmed_match=result.confirmed_match,
            )
        return result

    def _scan_uncached(self, content: str, patterns_source: Optional[str]) -> ScanResult:
        threat = self.store.threats.check(content)
        if threat is not None:
            logger.warning(
                "Confirmed threat matched — escalating to HIGH",
                threat_id=threat.threat_id,
            )
            return confirmed_threat_result(threat)

        patterns = self.store.patterns.load(patterns_source)
        return match_patterns(content, patterns)
