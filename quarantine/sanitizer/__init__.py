"""Sanitization strategy engine.

Public API:
    Sanitizer        — applies the resolved strategy to content
    resolve_strategy — mode → category → severity policy resolution
    QuarantineWriter — persists payloads to the quarantine directory
"""
from quarantine.sanitizer.engine import Sanitizer, resolve_strategy
from quarantine.sanitizer.quarantine import QuarantineWriter

__all__ = ["QuarantineWriter", "Sanitizer", "resolve_strategy"]
