"""Config loading for the quarantine engine.

Reads `.quarantine/config.yaml` (or `~/.quarantine/config.yaml`).
Raises SystemExit on YAML parse errors or a missing/unsupported `version`
field. If no config file is found, returns default values (safe to run
without config).

Config search order:
  1. `config_path` argument (if provided — for testing or explicit override)
  2. GUARD_CONFIG environment variable (if set)
  3. `.quarantine/config.yaml` (working directory)
  4. `~/.quarantine/config.yaml` (home directory)

Environment variable overrides (applied after the file, always win):
  GUARD_CONFIG_DIR       — base directory for relative source paths
  GUARD_PATTERNS         — colon-separated pattern file list
  GUARD_OVERRIDES        — severity override file
  GUARD_CONFIRMED        — confirmed-threats JSON file
  GUARD_ALLOWLIST        — allowlist file
  GUARD_MODE             — enforce | audit
  GUARD_STRATEGY_HIGH    — default strategy for HIGH severity
  GUARD_STRATEGY_MED     — default strategy for MED severity
  GUARD_QUARANTINE_DIR   — quarantine output directory
  GUARD_CACHE_TTL        — scan cache TTL in seconds
  GUARD_ACTION_<category> — block | warn | silent

Policy values are never fatal: an unknown mode or category action is logged
and replaced by its default. Strategy strings are stored as written; the
sanitizer falls back to the severity default for unknown ones.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import NoReturn, Optional

import yaml

from quarantine.constants import DEFAULT_CACHE_TTL_S
from quarantine.models.scan import CategoryAction, Mode
from quarantine.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

DEFAULT_CONFIG_DIR = "~/.quarantine"

DEFAULT_CONFIG_PATHS = [
    ".quarantine/config.yaml",
    os.path.expanduser("~/.quarantine/config.yaml"),
]

ACTION_ENV_PREFIX = "GUARD_ACTION_"


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class SourcesConfig:
    """Filesystem locations of the policy sources.

    Relative locations resolve against ``config_dir``; ``~`` expands to home.
    ``patterns`` is a colon-separated list merged in order (first wins).
    ``overrides`` and ``allowlist`` may be None to disable the feature.
    """

    config_dir: str = DEFAULT_CONFIG_DIR
    patterns: str = "injection-patterns.conf"
    overrides: Optional[str] = "severity-overrides.conf"
    confirmed_threats: str = "confirmed-threats.json"
    allowlist: Optional[str] = "allowlist.conf"

    @property
    def base_dir(self) -> Path:
        return Path(os.path.expanduser(self.config_dir))

    def resolve(self, location: str) -> Path:
        return resolve_location(location, self.base_dir)


@dataclass
class PolicyConfig:
    """Sanitization policy: mode, per-category actions and severity defaults."""

    mode: Mode = Mode.ENFORCE
    high_strategy: str = "redact"
    med_strategy: str = "annotate"
    category_actions: dict[str, CategoryAction] = field(default_factory=dict)


@dataclass
class QuarantineConfig:
    directory: str = "quarantine"


@dataclass
class CacheConfig:
    ttl_s: float = DEFAULT_CACHE_TTL_S


@dataclass
class Config:
    """Root configuration object populated from config.yaml + environment.

    All fields have safe defaults — the engine can start without any config file.
    """

    version: int = SUPPORTED_CONFIG_VERSION
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    quarantine: QuarantineConfig = field(default_factory=QuarantineConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    path: Optional[str] = None  # Path to the loaded config file

    @property
    def quarantine_dir(self) -> Path:
        return self.sources.resolve(self.quarantine.directory)

    @classmethod
    def defaults(cls) -> "Config":
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "Config":
        """Construct Config from a parsed YAML dict.

        Merges user-supplied values onto defaults; unknown keys are silently ignored.
        """
        # ── Sources ───────────────────────────────────────────────────────────
        sources_raw = raw.get("sources") or {}
        defaults = SourcesConfig()
        sources = SourcesConfig(
            config_dir=sources_raw.get("config_dir", defaults.config_dir),
            patterns=_join_locations(sources_raw.get("patterns", defaults.patterns)),
            overrides=sources_raw.get("overrides", defaults.overrides),
            confirmed_threats=sources_raw.get("confirmed_threats", defaults.confirmed_threats),
            allowlist=sources_raw.get("allowlist", defaults.allowlist),
        )

        # ── Policy ────────────────────────────────────────────────────────────
        policy_raw = raw.get("policy") or {}
        policy = PolicyConfig(
            mode=parse_mode(policy_raw.get("mode")),
            high_strategy=str(policy_raw.get("high_strategy", "redact")),
            med_strategy=str(policy_raw.get("med_strategy", "annotate")),
            category_actions=parse_category_actions(policy_raw.get("categories") or {}),
        )

        # ── Quarantine / cache ────────────────────────────────────────────────
        quarantine_raw = raw.get("quarantine") or {}
        cache_raw = raw.get("cache") or {}

        return cls(
            version=raw.get("version", SUPPORTED_CONFIG_VERSION),
            sources=sources,
            policy=policy,
            quarantine=QuarantineConfig(
                directory=quarantine_raw.get("directory", "quarantine"),
            ),
            cache=CacheConfig(
                ttl_s=parse_ttl(cache_raw.get("ttl_s"), DEFAULT_CACHE_TTL_S),
            ),
            path=path,
        )


# ─── Value helpers ────────────────────────────────────────────────────────────


def resolve_location(location: str, base_dir: Path) -> Path:
    """Expand ``~`` and resolve relative locations against ``base_dir``."""
    expanded = Path(os.path.expanduser(location.strip()))
    if expanded.is_absolute():
        return expanded
    return base_dir / expanded


def split_locations(source_spec: str) -> list[str]:
    """Split a colon-separated location list, dropping empty items."""
    return [part.strip() for part in source_spec.split(":") if part.strip()]


def _join_locations(value: object) -> str:
    # YAML may give the pattern list as a sequence instead of a colon string
    if isinstance(value, (list, tuple)):
        return ":".join(str(v) for v in value)
    return str(value)


def parse_mode(value: object) -> Mode:
    if value is None:
        return Mode.ENFORCE
    try:
        return Mode(str(value).strip().lower())
    except ValueError:
        logger.warning("Unknown operating mode — using enforce", mode=value)
        return Mode.ENFORCE


def parse_category_actions(raw: dict) -> dict[str, CategoryAction]:
    """Type a ``{category: action}`` mapping; unknown actions are dropped."""
    actions: dict[str, CategoryAction] = {}
    for category, value in raw.items():
        action = parse_action(value)
        if action is None:
            logger.warning(
                "Unknown category action — ignoring",
                category=category,
                action=value,
            )
            continue
        actions[str(category)] = action
    return actions


def parse_action(value: object) -> Optional[CategoryAction]:
    try:
        return CategoryAction(str(value).strip().lower())
    except ValueError:
        return None


def parse_ttl(value: object, default: float) -> float:
    if value is None:
        return default
    try:
        ttl = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        logger.warning("Invalid cache TTL — using default", ttl=value, default=default)
        return default
    if ttl < 0:
        logger.warning("Negative cache TTL — using default", ttl=ttl, default=default)
        return default
    return ttl


# ─── Config loading ───────────────────────────────────────────────────────────


def config_search_paths(config_path: Optional[str] = None) -> list[str]:
    """Candidate config files, highest priority first."""
    paths = [p for p in (config_path, os.environ.get("GUARD_CONFIG")) if p]
    return paths + list(DEFAULT_CONFIG_PATHS)


def find_config_file(search_paths: list[str]) -> Optional[str]:
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            return expanded
    return None


def _config_error(path: str, problem: str, hint: str = "") -> NoReturn:
    print(f"CONFIG ERROR: {path}: {problem}" + (f"\n{hint}" if hint else ""), file=sys.stderr)
    raise SystemExit(1)


def read_config_file(path: str) -> dict:
    """Parse ``path`` and check its version, exiting on any problem."""
    try:
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        _config_error(path, f"invalid YAML ({exc})", "Fix the syntax and try again.")
    except OSError as exc:
        _config_error(path, f"unreadable ({exc})")

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        _config_error(path, "top level must be a mapping")

    version = raw.get("version")
    if version is None:
        _config_error(path, "no 'version' field", "Add 'version: 1' at the top of the file.")
    if version not in SUPPORTED_VERSIONS:
        _config_error(
            path,
            f"unsupported version {version!r}",
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}.",
        )
    return raw


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate the engine configuration.

    If no file is found at any search path, returns default Config (not an error).
    If a file is found but invalid, writes an error to stderr and raises SystemExit(1).
    Environment overrides are applied in both cases.

    Raises:
        SystemExit(1): On YAML parse error, unreadable file, non-mapping root,
                       missing ``version`` field or unsupported version.
    """
    search_paths = config_search_paths(config_path)
    found_path = find_config_file(search_paths)

    if found_path is None:
        logger.debug("No config file found — using defaults", searched=search_paths)
        config = Config.defaults()
    else:
        logger.debug("Loading config", path=found_path)
        config = Config.from_dict(read_config_file(found_path), path=found_path)

    apply_env_overrides(config)

    if config.policy.mode is Mode.AUDIT:
        logger.warning("Audit mode active — flagged content is annotated, never removed")

    logger.debug(
        "Config ready",
        path=found_path,
        version=config.version,
        mode=config.policy.mode.value,
    )
    return config


def apply_env_overrides(config: Config, environ: Optional[dict[str, str]] = None) -> None:
    """Apply ``GUARD_*`` environment variable overrides to a Config in-place.

    Called for both file-loaded and default configs so env vars always take
    precedence over any file value. Never raises.
    """
    env = os.environ if environ is None else environ

    sources = config.sources
    if env.get("GUARD_CONFIG_DIR"):
        sources.config_dir = env["GUARD_CONFIG_DIR"]
    if env.get("GUARD_PATTERNS"):
        sources.patterns = env["GUARD_PATTERNS"]
    if env.get("GUARD_OVERRIDES"):
        sources.overrides = env["GUARD_OVERRIDES"]
    if env.get("GUARD_CONFIRMED"):
        sources.confirmed_threats = env["GUARD_CONFIRMED"]
    if env.get("GUARD_ALLOWLIST"):
        sources.allowlist = env["GUARD_ALLOWLIST"]

    policy = config.policy
    if env.get("GUARD_MODE"):
        policy.mode = parse_mode(env["GUARD_MODE"])
    if env.get("GUARD_STRATEGY_HIGH"):
        policy.high_strategy = env["GUARD_STRATEGY_HIGH"]
    if env.get("GUARD_STRATEGY_MED"):
        policy.med_strategy = env["GUARD_STRATEGY_MED"]

    if env.get("GUARD_QUARANTINE_DIR"):
        config.quarantine.directory = env["GUARD_QUARANTINE_DIR"]
    if env.get("GUARD_CACHE_TTL"):
        config.cache.ttl_s = parse_ttl(env["GUARD_CACHE_TTL"], config.cache.ttl_s)

    for key, value in env.items():
        if not key.startswith(ACTION_ENV_PREFIX):
            continue
        category = key[len(ACTION_ENV_PREFIX):]
        if not category:
            continue
        action = parse_action(value)
        if action is None:
            logger.warning(
                "Unknown category action in environment — ignoring",
                variable=key,
                action=value,
            )
            continue
        policy.category_actions[category] = action
