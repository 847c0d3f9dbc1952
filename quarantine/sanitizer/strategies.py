"""Text transformations applied to flagged content.

  - ``redact()``   — replace every line containing a HIGH/MED matched text
                     with REDACTED_LINE_MARKER and prepend a summary header.
                     With no usable matched text (confirmed-threat results,
                     cached results) the whole content becomes one placeholder.
  - ``annotate()`` — wrap contiguous runs of matching lines in SEC-WARNING
                     markers; line text is kept verbatim.

Matched texts are regex-escaped and joined into one case-insensitive
alternation. A matched text spanning several lines contributes each of its
lines as a separate alternative.

IMPORT RULES:
  - ``import re2`` ONLY — ``import re`` is PROHIBITED in this file.
"""

from __future__ import annotations

from typing import Iterable

import re2  # google-re2 — NOT stdlib re

from quarantine.constants import (
    REDACTED_LINE_MARKER,
    SEC_WARNING_CLOSE,
    SEC_WARNING_OPEN,
)
from quarantine.models.scan import SanitizeResult, ScanResult, Severity, Strategy


def build_alternation(texts: Iterable[str]):
    """Compile matched texts into one case-insensitive re2 alternation.

    Returns None when no non-blank text remains.
    """
    alternatives: dict[str, None] = {}
    for text in texts:
        for piece in text.splitlines():
            piece = piece.strip()
            if piece:
                alternatives.setdefault(re2.escape(piece), None)
    if not alternatives:
        return None
    return re2.compile("(?i)" + "|".join(f"(?:{a})" for a in alternatives))


def categories_label(scan: ScanResult) -> str:
    return ", ".join(scan.categories) or "unknown"


def redact_all(content: str, scan: ScanResult) -> SanitizeResult:
    placeholder = (
        f"[REDACTED — potential prompt injection detected. "
        f"{len(content)} characters removed. "
        f"Threat indicators: {categories_label(scan)}]"
    )
    return SanitizeResult(
        content=placeholder,
        scan=scan,
        modified=True,
        strategy=Strategy.REDACT,
    )


def redact(content: str, scan: ScanResult) -> SanitizeResult:
    targets = [
        m.matched_text
        for m in scan.matches
        if m.severity in (Severity.HIGH, Severity.MED)
    ]
    matcher = None if scan.confirmed_match else build_alternation(targets)
    if matcher is None:
        return redact_all(content, scan)

    redacted_chars = 0
    lines: list[str] = []
    for line in content.split("\n"):
        if matcher.search(line):
            redacted_chars += len(line)
            lines.append(REDACTED_LINE_MARKER)
        else:
            lines.append(line)

    header = (
        f"[SECURITY NOTICE: {redacted_chars} characters redacted from "
        f"{len(scan.matches)} suspicious sections. "
        f"Categories: {categories_label(scan)}]\n\n"
    )
    return SanitizeResult(
        content=header + "\n".join(lines),
        scan=scan,
        modified=True,
        strategy=Strategy.REDACT,
    )


def annotate(content: str, scan: ScanResult) -> SanitizeResult:
    matcher = build_alternation(m.matched_text for m in scan.matches)
    if matcher is None:
        return SanitizeResult(content=content, scan=scan, modified=False, strategy=Strategy.ANNOTATE)

    out: list[str] = []
    in_block = False
    for line in content.split("\n"):
        if matcher.search(line):
            if not in_block:
                out.append(SEC_WARNING_OPEN)
                in_block = True
        elif in_block:
            out.append(SEC_WARNING_CLOSE)
            in_block = False
        out.append(line)
    if in_block:
        out.append(SEC_WARNING_CLOSE)

    return SanitizeResult(
        content="\n".join(out),
        scan=scan,
        modified=True,
        strategy=Strategy.ANNOTATE,
    )


def passthrough(content: str, scan: ScanResult) -> SanitizeResult:
    return SanitizeResult(
        content=content,
        scan=scan,
        modified=False,
        strategy=Strategy.PASSTHROUGH,
    )
