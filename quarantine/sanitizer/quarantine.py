"""Quarantine writer — persists flagged payloads to side files.

Each quarantined payload gets its own file under the quarantine directory::

    # quarantined payload
    # source: https://example.com/page
    # timestamp: 2026-10-18T09:12:44.123456+00:00
    # severity: HIGH
    # categories: injection, exfiltration
    # indicators: ignore all previous instructions | send the api key
    ----- BEGIN QUARANTINED CONTENT -----
    <original content, unmodified>

Filenames are the ISO timestamp with ``:`` and ``.`` replaced, plus a short
ULID-derived suffix so concurrent writes never collide.

``write()`` returns the file path, or None when the directory cannot be
created or the file cannot be written. Failures are logged here; the
sanitizer decides the fallback.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from quarantine.constants import QUARANTINE_SEPARATOR
from quarantine.models.scan import ScanResult
from quarantine.utils.logger import get_logger
from quarantine.utils.ulid import short_suffix

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def quarantine_filename(timestamp: datetime, suffix: str) -> str:
    stamp = timestamp.isoformat().replace(":", "-").replace(".", "-")
    return f"{stamp}-{suffix}.txt"


def render_header(source: str, timestamp: datetime, scan: ScanResult) -> str:
    # one header line per field; multi-line values are flattened
    source = " ".join(source.splitlines())
    indicators = " | ".join(" ".join(i.splitlines()) for i in scan.indicators)
    return "\n".join([
        "# quarantined payload",
        f"# source: {source}",
        f"# timestamp: {timestamp.isoformat()}",
        f"# severity: {scan.severity.value}",
        f"# categories: {', '.join(scan.categories)}",
        f"# indicators: {indicators}",
        QUARANTINE_SEPARATOR,
    ]) + "\n"


def read_quarantined(path: Path) -> str:
    """Return the original payload stored in a quarantine file."""
    text = path.read_text(encoding="utf-8")
    _, _, payload = text.partition(QUARANTINE_SEPARATOR + "\n")
    return payload


class QuarantineWriter:
    def __init__(
        self,
        directory: Path,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.directory = directory
        self._clock = clock

    def ensure_directory(self) -> bool:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error(
                "Could not create quarantine directory",
                directory=str(self.directory),
                error=str(exc),
            )
            return False
        return True

    def write(self, content: str, scan: ScanResult, source: str = "unknown") -> Optional[Path]:
        if not self.ensure_directory():
            return None

        timestamp = self._clock()
        path = self.directory / quarantine_filename(timestamp, short_suffix())
        try:
            with open(path, "x", encoding="utf-8") as fh:
                fh.write(render_header(source, timestamp, scan))
                fh.write(content)
        except OSError as exc:
            logger.error(
                "Could not write quarantine file",
                path=str(path),
                error=str(exc),
            )
            return None

        logger.info(
            "Content quarantined",
            path=str(path),
            chars=len(content),
            severity=scan.severity.value,
            source=source,
        )
        return path
