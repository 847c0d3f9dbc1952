"""Allowlist loader — host/URL exemption patterns.

File format, one pattern per line; ``#`` starts a comment (whole-line or
trailing); blank lines are ignored::

    # docs we trust
    https://docs.python.org/3/library/index.html   # exact URL
    api.github.com                                 # exact host
    *.example.com                                  # domain and its subdomains
    localhost:*                                    # host on any port

The loaded list is memoized until ``reset()``. A missing file is an empty
allowlist, not an error.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from quarantine.allowlist.matcher import match_url
from quarantine.utils.logger import get_logger

logger = get_logger(__name__)


class Allowlist:
    """Memoized allowlist.

    Consulted by the fetch collaborator before content reaches the scanner.
    """

    def __init__(self, path: Optional[Path]) -> None:
        self.path = path
        self._patterns: Optional[list[str]] = None

    def load(self) -> list[str]:
        """Return the allowlist patterns (memoized)."""
        if self._patterns is not None:
            return self._patterns
        self._patterns = self._read()
        return self._patterns

    def is_allowlisted(self, url: str) -> bool:
        patterns = self.load()
        if not patterns:
            return False
        matched = match_url(url, patterns)
        if matched is not None:
            logger.info("URL allowlisted — scan skipped", url=url, pattern=matched)
            return True
        return False

    def reset(self) -> None:
        self._patterns = None

    def _read(self) -> list[str]:
        if self.path is None:
            return []
        if not self.path.is_file():
            logger.debug("Allowlist file not found — empty allowlist", path=str(self.path))
            return []
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read allowlist — empty allowlist", path=str(self.path), error=str(exc))
            return []
        patterns = parse_allowlist(text)
        logger.debug("Allowlist loaded", count=len(patterns), path=str(self.path))
        return patterns


def parse_allowlist(text: str) -> list[str]:
    patterns: list[str] = []
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if line:
            patterns.append(line)
    return patterns
