"""Policy store — owns the engine's four read-mostly caches.

Usage:
    store = PolicyStore.from_config(config)
    scanner = Scanner(store)
    sanitizer = Sanitizer(config)

One store is built per process (or per test) and shared through the guard;
there is no module-level cache state. ``reset()`` clears the
pattern store, confirmed-threat registry, allowlist and scan cache together.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from quarantine.allowlist import Allowlist
from quarantine.config import Config
from quarantine.patterns import PatternStore
from quarantine.scanner.cache import ScanCache
from quarantine.threats import ConfirmedThreatRegistry
from quarantine.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class PolicyStore:
    patterns: PatternStore
    threats: ConfirmedThreatRegistry
    allowlist: Allowlist
    cache: ScanCache

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Config) -> "PolicyStore":
        sources = config.sources
        return cls(
            patterns=PatternStore(
                default_spec=sources.patterns,
                resolve=sources.resolve,
                overrides_location=sources.overrides,
            ),
            threats=ConfirmedThreatRegistry(sources.resolve(sources.confirmed_threats)),
            allowlist=Allowlist(sources.resolve(sources.allowlist) if sources.allowlist else None),
            cache=ScanCache(ttl_s=config.cache.ttl_s),
        )

    def reset(self) -> None:
        """Drop every cached pattern, threat, allowlist entry and scan result."""
        with self._lock:
            self.patterns.reset()
            self.threats.reset()
            self.allowlist.reset()
            self.cache.clear()
        logger.info("Policy caches reset")
