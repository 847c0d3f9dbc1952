"""Scan and sanitize data contracts.

These types are the single source of truth for what flows between the
pattern store, the scanner and the sanitizer:

  - Severity, Strategy, CategoryAction, Mode — policy enums
  - PatternEntry, PatternOverride            — pattern store records
  - ConfirmedThreat, ThreatMatch             — confirmed-threat registry records
  - ScanMatch, ScanResult, ScanCacheEntry    — scanner output
  - SanitizeResult                           — sanitizer output
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Severity(str, Enum):
    """Threat level. Totally ordered NONE < LOW < MED < HIGH."""

    NONE = "NONE"
    LOW = "LOW"
    MED = "MED"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, token: str) -> Optional["Severity"]:
        """Parse a stored severity token. NONE is never a stored severity."""
        try:
            severity = cls(token.strip().upper())
        except ValueError:
            return None
        return None if severity is cls.NONE else severity


_SEVERITY_RANK = {
    Severity.NONE: 0,
    Severity.LOW: 1,
    Severity.MED: 2,
    Severity.HIGH: 3,
}


class Strategy(str, Enum):
    PASSTHROUGH = "passthrough"
    ANNOTATE = "annotate"
    REDACT = "redact"
    QUARANTINE = "quarantine"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Strategy"]:
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


# Restrictiveness used when several category overrides apply.
# QUARANTINE is deliberately absent: category actions never select it.
STRATEGY_RESTRICTIVENESS = {
    Strategy.PASSTHROUGH: 0,
    Strategy.ANNOTATE: 1,
    Strategy.REDACT: 2,
}


class CategoryAction(str, Enum):
    """Per-category override configured by the operator."""

    BLOCK = "block"
    WARN = "warn"
    SILENT = "silent"

    @property
    def strategy(self) -> Strategy:
        return _ACTION_STRATEGY[self]


_ACTION_STRATEGY = {
    CategoryAction.BLOCK: Strategy.REDACT,
    CategoryAction.WARN: Strategy.ANNOTATE,
    CategoryAction.SILENT: Strategy.PASSTHROUGH,
}


class Mode(str, Enum):
    ENFORCE = "enforce"
    AUDIT = "audit"


# ─── Pattern store records ───────────────────────────────────────────────────


@dataclass(frozen=True)
class PatternEntry:
    """A single compiled threat pattern.

    Fields:
        category:       Free-form category tag (e.g. ``"injection"``).
        severity:       HIGH, MED or LOW. NONE is never stored.
        matcher:        Pre-compiled re2 pattern object (case-insensitive).
        source_pattern: Regex body as written in the pattern file.
    """

    category: str
    severity: Severity
    matcher: Any           # re2._Regexp
    source_pattern: str

    @property
    def key(self) -> str:
        """Identity used for deduplication across merged sources."""
        return f"{self.category}:{self.severity.value}:{self.source_pattern}"


@dataclass(frozen=True)
class PatternOverride:
    """Reassigns the severity of any pattern line containing ``substring``."""

    substring: str
    severity: Severity


# ─── Confirmed-threat records ────────────────────────────────────────────────


@dataclass(frozen=True)
class ConfirmedThreat:
    id: str
    indicators: tuple[str, ...] = ()
    categories: frozenset[str] = frozenset()
    severity: str = "HIGH"
    confirmed_at: Optional[str] = None
    snippet: str = ""


@dataclass(frozen=True)
class ThreatMatch:
    threat_id: str
    indicator: str


# ─── Scanner output ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ScanMatch:
    category: str
    severity: Severity
    matched_text: str


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one scan. Immutable once produced.

    INVARIANTS:
      - ``severity`` is the maximum severity among ``matches``.
      - When ``confirmed_match`` is set, ``severity`` is HIGH and the only
        category is ``confirmed_threat``.
      - Results served from the scan cache carry no ``matches``
        (``cached=True``); they are not a source for redaction targets.
    """

    severity: Severity = Severity.NONE
    categories: tuple[str, ...] = ()
    indicators: tuple[str, ...] = ()
    matches: tuple[ScanMatch, ...] = ()
    confirmed_match: Optional[str] = None
    cached: bool = False

    @property
    def is_clean(self) -> bool:
        return self.severity is Severity.NONE

    def summary(self) -> dict[str, Any]:
        """Severity + category summary returned to collaborators for display."""
        return {
            "severity": self.severity.value,
            "categories": list(self.categories),
        }


@dataclass(frozen=True)
class ScanCacheEntry:
    severity: Severity
    categories: tuple[str, ...]
    indicators: tuple[str, ...]
    created_at: float
    confirmed_match: Optional[str] = None

    def to_result(self) -> ScanResult:
        return ScanResult(
            severity=self.severity,
            categories=self.categories,
            indicators=self.indicators,
            confirmed_match=self.confirmed_match,
            cached=True,
        )


# ─── Sanitizer output ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SanitizeResult:
    content: str
    scan: ScanResult
    modified: bool
    strategy: Strategy = Strategy.PASSTHROUGH
    quarantine_file: Optional[str] = None
    notes: tuple[str, ...] = field(default=())
