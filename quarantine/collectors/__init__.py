"""Content collaborators that feed untrusted text through the guard.

Public API:
    secure_fetch — httpx fetch + allowlist + sanitize
    secure_shell — allowed-command runner + sanitize
"""
from quarantine.collectors.fetch import FetchResult, secure_fetch
from quarantine.collectors.shell import ShellResult, secure_shell

__all__ = ["FetchResult", "ShellResult", "secure_fetch", "secure_shell"]
