"""Host/URL allowlist.

Public API:
    Allowlist — memoized loader answering ``is_allowlisted(url)``
    match_url — pure matcher over a list of patterns
"""
from quarantine.allowlist.loader import Allowlist
from quarantine.allowlist.matcher import match_url

__all__ = ["Allowlist", "match_url"]
