"""Shared constants for the quarantine engine.

All size limits, thresholds and marker strings used across modules are
defined here. No magic numbers in other modules — import from here.
"""

# ─── Scanner ─────────────────────────────────────────────────────────────────

# Matched text recorded per indicator is truncated to this many characters.
MAX_INDICATOR_CHARS: int = 80

# Confirmed-threat indicators shorter than this are ignored (false-positive prone).
MIN_CONFIRMED_INDICATOR_CHARS: int = 8

# Category assigned to every confirmed-threat escalation.
CONFIRMED_THREAT_CATEGORY: str = "confirmed_threat"

# ─── Scan cache ──────────────────────────────────────────────────────────────

# Default time-to-live of a cached scan result (seconds).
DEFAULT_CACHE_TTL_S: float = 300.0

# Above this many entries, a store() call triggers a prune of expired entries.
# Not a hard cap: live entries are never evicted.
CACHE_MAX_ENTRIES: int = 1000

# ─── Sanitizer markers ───────────────────────────────────────────────────────

REDACTED_LINE_MARKER: str = "[REDACTED — line removed]"

SEC_WARNING_OPEN: str = "[SEC-WARNING: the following content contains suspicious directives]"
SEC_WARNING_CLOSE: str = "[/SEC-WARNING]"

# Separates the metadata header from the original payload in quarantine files.
QUARANTINE_SEPARATOR: str = "----- BEGIN QUARANTINED CONTENT -----"

# ─── Collaborators ───────────────────────────────────────────────────────────

# Timeout for the fetch collaborator (seconds).
FETCH_TIMEOUT_S: float = 30.0

# Default timeout for the shell collaborator (seconds).
SHELL_TIMEOUT_S: float = 30.0

# Exit code reported when a shell command is killed on timeout (coreutils convention).
SHELL_TIMEOUT_EXIT_CODE: int = 124

# Commands the shell collaborator is allowed to run.
ALLOWED_COMMANDS: tuple[str, ...] = ("gh", "curl")
