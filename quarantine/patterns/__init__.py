"""Threat pattern store.

Public API:
    PatternStore          — loads, merges and memoizes pattern files
    BUNDLED_PATTERNS_PATH — default pattern pack shipped with the package
"""
from quarantine.patterns.loader import BUNDLED_PATTERNS_PATH, PatternStore

__all__ = ["BUNDLED_PATTERNS_PATH", "PatternStore"]
