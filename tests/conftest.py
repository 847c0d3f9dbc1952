"""Root test configuration for the quarantine engine.

Every test runs with GUARD_* environment variables removed and HOME pointed
at a temporary directory, so a developer's real ~/.quarantine policy never
leaks into the suite.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Callable

import pytest

from quarantine.config import Config, SourcesConfig


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for key in list(os.environ):
        if key.startswith("GUARD_"):
            monkeypatch.delenv(key, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    path = tmp_path / "policy"
    path.mkdir()
    return path


@pytest.fixture
def write_file(config_dir: Path) -> Callable[[str, str], Path]:
    """Write ``text`` to ``name`` inside the policy directory."""

    def _write(name: str, text: str) -> Path:
        path = config_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_threats(write_file: Callable[[str, str], Path]) -> Callable[[list], Path]:
    def _write(records: list) -> Path:
        return write_file("confirmed-threats.json", json.dumps(records))

    return _write


@pytest.fixture
def make_config(config_dir: Path) -> Callable[..., Config]:
    """Build a Config whose sources all live in the temporary policy directory."""

    def _make(**sources: str) -> Config:
        config = Config.defaults()
        config.sources = SourcesConfig(config_dir=str(config_dir), **sources)
        return config

    return _make


INJECTION_PATTERNS = """\
# prompt injection patterns
injection:HIGH:ignore (all )?(previous|prior) instructions
injection:MED:you are now (a|an) [a-z]+
exfiltration:HIGH:send (the|your) (api key|password)s?
roleplay:LOW:pretend to be
"""


@pytest.fixture
def injection_patterns(write_file: Callable[[str, str], Path]) -> Path:
    return write_file("injection-patterns.conf", INJECTION_PATTERNS)
