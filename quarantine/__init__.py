"""Quarantine — content-security policy engine for untrusted agent input."""

__version__ = "0.1.0"
