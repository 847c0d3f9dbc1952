"""Pattern store — loads and merges regex threat-pattern files.

Pattern file format, one record per line::

    # comment
    category:SEVERITY:regex body (may itself contain colons)

Severity override file format, one record per line::

    # comment
    substring:SEVERITY

An override whose substring (case-insensitive) occurs in a pattern line
replaces that line's declared severity. The first matching override wins and
is applied before deduplication.

Merging rules:
  - Sources are processed in order; the first occurrence of a
    ``category:severity:pattern`` key wins, later duplicates are dropped.
  - Missing files are skipped individually.
  - Malformed lines and invalid regexes are skipped with a warning.
  - An empty merged result records a warning; it is never fatal.

IMPORT RULES:
  - ``import re2`` ONLY — ``import re`` is PROHIBITED in this file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import re2  # google-re2 — NOT stdlib re

from quarantine.config import split_locations
from quarantine.models.scan import PatternEntry, PatternOverride, Severity
from quarantine.utils.logger import get_logger

logger = get_logger(__name__)

# Default pattern pack shipped with the package; `quarantine init` copies it
# into the config directory.
BUNDLED_PATTERNS_PATH = Path(__file__).resolve().parent.parent / "data" / "injection-patterns.conf"


def compile_pattern(body: str):
    """Compile a pattern body case-insensitively with re2.

    Raises:
        re2.error: If the body is not a valid re2 pattern.
    """
    return re2.compile("(?i)" + body)


def read_lines(path: Path) -> Optional[list[str]]:
    """Return the lines of ``path``, or None if it is absent or unreadable."""
    if not path.is_file():
        logger.debug("Pattern source not found — skipping", path=str(path))
        return None
    try:
        return path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read pattern source — skipping", path=str(path), error=str(exc))
        return None


def parse_pattern_line(line: str) -> Optional[tuple[str, str, str]]:
    """Split ``category:severity:body`` into its parts, or None if malformed.

    Only the first two colons separate fields; the body keeps any colons.
    """
    first = line.find(":")
    if first <= 0:
        return None
    second = line.find(":", first + 1)
    if second == -1:
        return None
    category = line[:first].strip()
    severity = line[first + 1:second].strip()
    body = line[second + 1:]
    if not category or not body:
        return None
    return category, severity, body


def parse_overrides(lines: list[str], path: str = "<memory>") -> list[PatternOverride]:
    overrides: list[PatternOverride] = []
    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        substring, sep, token = line.rpartition(":")
        severity = Severity.parse(token) if sep else None
        if not substring or severity is None:
            logger.warning("Malformed severity override — skipping", path=path, line=lineno)
            continue
        overrides.append(PatternOverride(substring=substring, severity=severity))
    return overrides


def apply_override(line: str, overrides: list[PatternOverride]) -> Optional[Severity]:
    """Return the severity of the first override contained in ``line``."""
    lowered = line.lower()
    for override in overrides:
        if override.substring.lower() in lowered:
            return override.severity
    return None


class PatternStore:
    """Memoized pattern loader.

    ``load()`` results are cached per resolved source spec until ``reset()``.

    Args:
        default_spec: Colon-separated pattern file list used when ``load()``
                      is called without an explicit spec.
        resolve:      Maps a location string to a Path (tilde and relative
                      path expansion against the config directory).
        overrides_location: Optional severity override file location.
    """

    def __init__(
        self,
        default_spec: str,
        resolve: Callable[[str], Path],
        overrides_location: Optional[str] = None,
    ) -> None:
        self._default_spec = default_spec
        self._resolve = resolve
        self._overrides_location = overrides_location
        self._cache: dict[str, list[PatternEntry]] = {}
        self._overrides: Optional[list[PatternOverride]] = None
        self.warnings: list[str] = []

    # ── Public API ────────────────────────────────────────────────────────────

    def load(self, source_spec: Optional[str] = None) -> list[PatternEntry]:
        """Return the merged, deduplicated pattern list for ``source_spec``."""
        spec = source_spec or self._default_spec
        cached = self._cache.get(spec)
        if cached is not None:
            return cached

        overrides = self.load_overrides()
        entries: list[PatternEntry] = []
        seen: set[str] = set()

        for location in split_locations(spec):
            path = self._resolve(location)
            lines = read_lines(path)
            if lines is None:
                continue
            for entry in self._parse_lines(lines, overrides, str(path)):
                if entry.key in seen:
                    continue
                seen.add(entry.key)
                entries.append(entry)

        if not entries:
            message = f"No threat patterns loaded from {spec!r}"
            self.warnings.append(message)
            logger.warning("No threat patterns loaded — scanning is pattern-blind", spec=spec)
        else:
            logger.debug("Patterns loaded", count=len(entries), spec=spec)

        self._cache[spec] = entries
        return entries

    def load_overrides(self) -> list[PatternOverride]:
        if self._overrides is not None:
            return self._overrides
        overrides: list[PatternOverride] = []
        if self._overrides_location:
            path = self._resolve(self._overrides_location)
            lines = read_lines(path)
            if lines is not None:
                overrides = parse_overrides(lines, str(path))
        self._overrides = overrides
        return overrides

    def reset(self) -> None:
        self._cache = {}
        self._overrides = None
        self.warnings = []

    # ── Parsing ───────────────────────────────────────────────────────────────

    def _parse_lines(
        self,
        lines: list[str],
        overrides: list[PatternOverride],
        path: str,
    ) -> list[PatternEntry]:
        entries: list[PatternEntry] = []
        for lineno, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue

            parts = parse_pattern_line(line)
            if parts is None:
                logger.warning("Malformed pattern line — skipping", path=path, line=lineno)
                continue
            category, token, body = parts

            severity = Severity.parse(token)
            if severity is None:
                logger.warning(
                    "Unknown severity in pattern line — skipping",
                    path=path,
                    line=lineno,
                    severity=token,
                )
                continue

            severity = apply_override(line, overrides) or severity

            try:
                matcher = compile_pattern(body)
            except re2.error as exc:
                logger.warning(
                    "Invalid regex in pattern line — skipping",
                    path=path,
                    line=lineno,
                    error=str(exc),
                )
                continue

            entries.append(
                PatternEntry(
                    category=category,
                    severity=severity,
                    matcher=matcher,
                    source_pattern=body,
                )
            )
        return entries
