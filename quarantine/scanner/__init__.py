"""Quarantine scanner package.

Sub-modules:
  cache.py  — ScanCache (TTL memoization keyed by content fingerprint)
  engine.py — Scanner (cache → confirmed threat → patterns → aggregate)
"""
