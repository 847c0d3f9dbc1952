"""Allowlist URL matching.

A URL is allowlisted when any pattern matches it in one of four forms:

  1. exact URL        — the pattern equals the URL string
  2. exact host       — the pattern equals the URL's host
  3. ``*.domain``     — the host ends with ``.domain``, or is ``domain`` itself
  4. ``host:*``       — the host equals ``host``, whatever the port

Hosts compare case-insensitively. Unparseable URLs and URLs without a host
are never allowlisted.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit


def extract_host(url: str) -> Optional[str]:
    """Return the lowercase host of ``url``, or None if it cannot be parsed."""
    try:
        host = urlsplit(url.strip()).hostname
    except ValueError:
        return None
    return host or None


def pattern_matches(pattern: str, url: str, host: str) -> bool:
    if pattern == url:
        return True
    lowered = pattern.lower()
    if lowered == host:
        return True
    if lowered.startswith("*."):
        suffix = lowered[1:]
        return host.endswith(suffix) or host == suffix[1:]
    if lowered.endswith(":*"):
        return lowered[:-2] == host
    return False


def match_url(url: str, patterns: list[str]) -> Optional[str]:
    """Return the first pattern that allowlists ``url``, or None."""
    host = extract_host(url)
    if host is None:
        return None
    for pattern in patterns:
        if pattern_matches(pattern, url, host):
            return pattern
    return None
