"""Confirmed-threat registry.

Loads a JSON array of previously confirmed attack records::

    [
      {
        "id": "ct-0001",
        "indicators": ["ignore your system prompt", "..."],
        "categories": ["injection"],
        "severity": "HIGH",
        "confirmed_at": "2026-01-04T10:00:00Z",
        "snippet": "..."
      }
    ]

The cache is an explicit ``(threats, mtime_ns)`` pair. Every ``load()`` stats
the backing file and re-reads it only when its modification time changed.
An absent file, unreadable file, invalid JSON or a non-array payload all
mean "no confirmed threats" — nothing is raised to the caller.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from quarantine.constants import MIN_CONFIRMED_INDICATOR_CHARS
from quarantine.models.scan import ConfirmedThreat, ThreatMatch
from quarantine.utils.logger import get_logger

logger = get_logger(__name__)


class ConfirmedThreatRegistry:
    def __init__(self, path: Path) -> None:
        self.path = path
        self._threats: list[ConfirmedThreat] = []
        self._mtime_ns: Optional[int] = None

    def load(self) -> list[ConfirmedThreat]:
        """Return the confirmed threats, re-reading the file if it changed."""
        mtime_ns = self._stat_mtime()
        if mtime_ns is None:
            self._threats, self._mtime_ns = [], None
            return self._threats
        if mtime_ns == self._mtime_ns:
            return self._threats

        self._threats = self._read()
        self._mtime_ns = mtime_ns
        logger.debug("Confirmed threats loaded", count=len(self._threats), path=str(self.path))
        return self._threats

    def check(self, content: str) -> Optional[ThreatMatch]:
        """Return the first confirmed-threat indicator found in ``content``.

        Threats then indicators are scanned in storage order; first match wins.
        Indicators shorter than MIN_CONFIRMED_INDICATOR_CHARS are ignored.
        """
        threats = self.load()
        if not threats:
            return None
        lowered = content.lower()
        for threat in threats:
            for indicator in threat.indicators:
                if len(indicator) < MIN_CONFIRMED_INDICATOR_CHARS:
                    continue
                if indicator.lower() in lowered:
                    return ThreatMatch(threat_id=threat.id, indicator=indicator)
        return None

    def reset(self) -> None:
        self._threats = []
        self._mtime_ns = None

    # ── Internals ─────────────────────────────────────────────────────────────

    def _stat_mtime(self) -> Optional[int]:
        if not self.path.is_file():
            return None
        try:
            return self.path.stat().st_mtime_ns
        except OSError as exc:
            logger.warning("Could not stat confirmed threats file", path=str(self.path), error=str(exc))
            return None

    def _read(self) -> list[ConfirmedThreat]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning(
                "Could not parse confirmed threats file — no confirmed threats",
                path=str(self.path),
                error=str(exc),
            )
            return []

        if not isinstance(raw, list):
            logger.warning(
                "Confirmed threats file is not a JSON array — no confirmed threats",
                path=str(self.path),
                actual_type=type(raw).__name__,
            )
            return []

        return parse_threats(raw)


def parse_threats(raw_list: list) -> list[ConfirmedThreat]:
    """Convert raw JSON records into ConfirmedThreat objects, skipping invalid ones."""
    threats: list[ConfirmedThreat] = []
    for index, item in enumerate(raw_list):
        if not isinstance(item, dict) or item.get("id") is None:
            logger.warning("Confirmed threat record invalid — skipping", index=index)
            continue
        indicators = item.get("indicators") or []
        categories = item.get("categories") or []
        if not isinstance(indicators, list):
            indicators = []
        if not isinstance(categories, list):
            categories = []
        threats.append(
            ConfirmedThreat(
                id=str(item["id"]),
                indicators=tuple(str(i) for i in indicators if isinstance(i, str)),
                categories=frozenset(str(c) for c in categories),
                severity=str(item.get("severity", "HIGH")),
                confirmed_at=item.get("confirmed_at"),
                snippet=str(item.get("snippet", "")),
            )
        )
    return threats
