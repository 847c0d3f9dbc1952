"""ContentGuard — the single entry point collaborators call.

Wires one PolicyStore, Scanner and Sanitizer together:

    guard = ContentGuard.from_config(load_config())
    result = guard.sanitize(raw_text, source="https://example.com")
    summary = guard.scan_summary(result)   # None when nothing changed

``sanitize()`` never raises: scanning degrades to "clean" and quarantine
degrades to redact on failure. A flagged cache hit is rescanned so the same
payload is sanitized identically every time.
"""

from __future__ import annotations

from typing import Any, Optional

from quarantine.config import Config
from quarantine.models.scan import SanitizeResult, ScanResult
from quarantine.sanitizer import Sanitizer
from quarantine.scanner.engine import Scanner
from quarantine.store import PolicyStore
from quarantine.utils.logger import clear_source, get_logger, set_source

logger = get_logger(__name__)


class ContentGuard:
    def __init__(
        self,
        config: Config,
        store: Optional[PolicyStore] = None,
        sanitizer: Optional[Sanitizer] = None,
    ) -> None:
        self.config = config
        self.store = store or PolicyStore.from_config(config)
        self.scanner = Scanner(self.store)
        self.sanitizer = sanitizer or Sanitizer(config)

    @classmethod
    def from_config(cls, config: Config) -> "ContentGuard":
        return cls(config)

    def scan(self, content: str, patterns_source: Optional[str] = None) -> ScanResult:
        return self.scanner.scan(content, patterns_source)

    def sanitize(
        self,
        content: str,
        source: str = "unknown",
        patterns_source: Optional[str] = None,
    ) -> SanitizeResult:
        set_source(source)
        try:
            scan = self.scanner.scan(content, patterns_source)
            if scan.cached and not scan.is_clean:
                # redaction and annotation target match spans, which the cache drops
                scan = self.scanner.rescan(content, patterns_source)
            result = self.sanitizer.apply(content, scan, source=source)
        finally:
            clear_source()
        if result.modified:
            logger.info(
                "Content sanitized",
                source=source,
                strategy=result.strategy.value,
                severity=scan.severity.value,
                categories=list(scan.categories),
            )
        return result

    def is_allowlisted(self, url: str) -> bool:
        return self.store.allowlist.is_allowlisted(url)

    def reset(self) -> None:
        self.store.reset()

    @staticmethod
    def scan_summary(result: SanitizeResult) -> Optional[dict[str, Any]]:
        """Severity/category summary for display, only when content was modified."""
        if not result.modified:
            return None
        summary = result.scan.summary()
        summary["strategy"] = result.strategy.value
        if result.quarantine_file:
            summary["quarantine_file"] = result.quarantine_file
        return summary
