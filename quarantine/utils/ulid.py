"""ULID helpers for quarantine file naming.

Uses the `python-ulid` library (see pyproject.toml) — do NOT hand-roll
random identifiers.
"""

from __future__ import annotations

from ulid import ULID

#: Length of the random suffix appended to quarantine filenames.
SUFFIX_LENGTH: int = 8


def generate_ulid() -> str:
    """Generate a new ULID as a 26-character uppercase string."""
    return str(ULID())


def short_suffix(length: int = SUFFIX_LENGTH) -> str:
    """Return a short lowercase suffix taken from the random part of a ULID.

    The last characters of a ULID come from its 80-bit random component, so
    two files written in the same millisecond still get distinct names.
    """
    return generate_ulid()[-length:].lower()
