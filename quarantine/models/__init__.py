"""Quarantine models package.

Defines the shared data contracts used across the scan and sanitize pipeline:

  - scan.py — Severity, Strategy, PatternEntry, ConfirmedThreat, ScanResult,
              SanitizeResult and friends

These models are the single source of truth for the scanner/sanitizer API.
"""
