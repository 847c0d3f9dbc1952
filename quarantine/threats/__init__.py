"""Confirmed-threat registry.

Public API:
    ConfirmedThreatRegistry — mtime-checked loader + indicator matcher
"""
from quarantine.threats.registry import ConfirmedThreatRegistry

__all__ = ["ConfirmedThreatRegistry"]
