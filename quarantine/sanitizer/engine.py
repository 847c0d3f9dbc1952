"""Sanitization strategy engine.

``resolve_strategy()`` picks the strategy for a scan result; the first
applicable tier wins:

  1. Mode      — ``audit`` always annotates HIGH/MED content.
  2. Category  — if any category in the result has a configured action
                 (block → redact, warn → annotate, silent → passthrough),
                 the most restrictive of those actions is final.
  3. Severity  — HIGH → ``policy.high_strategy`` (default redact),
                 MED  → ``policy.med_strategy`` (default annotate).
                 An unrecognized strategy string falls back to
                 HIGH → redact, otherwise annotate.

NONE and LOW results are never modified.

``Sanitizer.apply()`` executes the strategy. A quarantine whose directory or
file cannot be written falls back to redact.
"""

from __future__ import annotations

from typing import Optional

from quarantine.config import Config, PolicyConfig
from quarantine.models.scan import (
    STRATEGY_RESTRICTIVENESS,
    Mode,
    SanitizeResult,
    ScanResult,
    Severity,
    Strategy,
)
from quarantine.sanitizer.quarantine import QuarantineWriter
from quarantine.sanitizer.strategies import annotate, categories_label, passthrough, redact
from quarantine.utils.logger import get_logger

logger = get_logger(__name__)


def category_strategy(scan: ScanResult, policy: PolicyConfig) -> Optional[Strategy]:
    """Most restrictive strategy among configured category actions, if any apply."""
    candidates = [
        policy.category_actions[c].strategy
        for c in scan.categories
        if c in policy.category_actions
    ]
    if not candidates:
        return None
    return max(candidates, key=STRATEGY_RESTRICTIVENESS.__getitem__)


def severity_strategy(severity: Severity, policy: PolicyConfig) -> Strategy:
    configured = policy.high_strategy if severity is Severity.HIGH else policy.med_strategy
    strategy = Strategy.parse(configured)
    if strategy is None:
        strategy = Strategy.REDACT if severity is Severity.HIGH else Strategy.ANNOTATE
        logger.warning(
            "Unrecognized default strategy — using severity fallback",
            configured=configured,
            severity=severity.value,
            fallback=strategy.value,
        )
    return strategy


def resolve_strategy(scan: ScanResult, policy: PolicyConfig) -> Strategy:
    if scan.severity.rank <= Severity.LOW.rank:
        return Strategy.PASSTHROUGH
    if policy.mode is Mode.AUDIT:
        return Strategy.ANNOTATE
    override = category_strategy(scan, policy)
    if override is not None:
        return override
    return severity_strategy(scan.severity, policy)


class Sanitizer:
    def __init__(self, config: Config, writer: Optional[QuarantineWriter] = None) -> None:
        self.policy = config.policy
        self.writer = writer or QuarantineWriter(config.quarantine_dir)

    def apply(self, content: str, scan: ScanResult, source: str = "unknown") -> SanitizeResult:
        strategy = resolve_strategy(scan, self.policy)

        if strategy is Strategy.PASSTHROUGH:
            return passthrough(content, scan)
        if strategy is Strategy.ANNOTATE:
            return annotate(content, scan)
        if strategy is Strategy.QUARANTINE:
            return self.quarantine(content, scan, source)
        return redact(content, scan)

    def quarantine(self, content: str, scan: ScanResult, source: str = "unknown") -> SanitizeResult:
        path = self.writer.write(content, scan, source)
        if path is None:
            logger.warning("Quarantine failed — falling back to redact", source=source)
            fallback = redact(content, scan)
            return SanitizeResult(
                content=fallback.content,
                scan=scan,
                modified=True,
                strategy=Strategy.REDACT,
                notes=("quarantine unavailable; content redacted instead",),
            )

        placeholder = (
            f"[QUARANTINED — content saved to {path}. "
            f"{len(content)} characters withheld. "
            f"Severity: {scan.severity.value}. "
            f"Categories: {categories_label(scan)}]"
        )
        return SanitizeResult(
            content=placeholder,
            scan=scan,
            modified=True,
            strategy=Strategy.QUARANTINE,
            quarantine_file=str(path),
        )
