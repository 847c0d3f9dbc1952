"""Tests for PatternStore — pattern file parsing, merging, overrides and memoization."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from quarantine.models.scan import Severity
from quarantine.patterns import PatternStore
from quarantine.patterns.loader import (
    apply_override,
    parse_overrides,
    parse_pattern_line,
)


def _store(config_dir: Path, spec: str, overrides: str | None = None) -> PatternStore:
    return PatternStore(
        default_spec=spec,
        resolve=lambda loc: config_dir / loc if not loc.startswith("/") else Path(loc),
        overrides_location=overrides,
    )


class TestParsePatternLine:
    def test_three_fields(self) -> None:
        assert parse_pattern_line("injection:HIGH:ignore (previous|prior)") == (
            "injection",
            "HIGH",
            "ignore (previous|prior)",
        )

    def test_body_keeps_colons(self) -> None:
        assert parse_pattern_line("url:MED:https?://evil") == ("url", "MED", "https?://evil")

    @pytest.mark.parametrize("line", ["nocolons", "cat:HIGH", ":HIGH:body", "cat:HIGH:"])
    def test_malformed(self, line: str) -> None:
        assert parse_pattern_line(line) is None


class TestOverrides:
    def test_parse_splits_on_last_colon(self) -> None:
        overrides = parse_overrides(["# comment", "", "previous|prior:LOW", "bad line", "x:CRITICAL"])
        assert len(overrides) == 1
        assert overrides[0].substring == "previous|prior"
        assert overrides[0].severity is Severity.LOW

    def test_first_matching_override_wins(self) -> None:
        overrides = parse_overrides(["IGNORE:LOW", "ignore:MED"])
        assert apply_override("injection:HIGH:ignore all", overrides) is Severity.LOW

    def test_no_match(self) -> None:
        overrides = parse_overrides(["pretend:LOW"])
        assert apply_override("injection:HIGH:ignore all", overrides) is None


class TestLoad:
    def test_parses_records_and_skips_noise(
        self, config_dir: Path, write_file: Callable[[str, str], Path]
    ) -> None:
        write_file("p.conf", "\n".join([
            "# header comment",
            "",
            "injection:HIGH:ignore (all )?previous instructions",
            "broken line without fields",
            "injection:CRITICAL:unknown severity",
            "bad:HIGH:(unclosed",
            "roleplay:LOW:pretend to be",
        ]))
        entries = _store(config_dir, "p.conf").load()
        assert [(e.category, e.severity) for e in entries] == [
            ("injection", Severity.HIGH),
            ("roleplay", Severity.LOW),
        ]

    def test_matching_is_case_insensitive(
        self, config_dir: Path, write_file: Callable[[str, str], Path]
    ) -> None:
        write_file("p.conf", "injection:HIGH:ignore previous instructions\n")
        entry = _store(config_dir, "p.conf").load()[0]
        assert entry.matcher.search("IGNORE PREVIOUS INSTRUCTIONS now")

    def test_duplicate_across_files_kept_once(
        self, config_dir: Path, write_file: Callable[[str, str], Path]
    ) -> None:
        write_file("a.conf", "cat:LOW:foo\nother:MED:bar\n")
        write_file("b.conf", "cat:LOW:foo\ncat:MED:foo\n")
        entries = _store(config_dir, "a.conf:b.conf").load()
        keys = [e.key for e in entries]
        assert keys.count("cat:LOW:foo") == 1
        assert keys == ["cat:LOW:foo", "other:MED:bar", "cat:MED:foo"]

    def test_missing_files_skipped_individually(
        self, config_dir: Path, write_file: Callable[[str, str], Path]
    ) -> None:
        write_file("b.conf", "cat:LOW:foo\n")
        entries = _store(config_dir, "missing.conf:b.conf").load()
        assert len(entries) == 1

    def test_empty_result_records_warning(self, config_dir: Path) -> None:
        store = _store(config_dir, "missing.conf")
        assert store.load() == []
        assert len(store.warnings) == 1

    def test_override_applied_before_dedup(
        self, config_dir: Path, write_file: Callable[[str, str], Path]
    ) -> None:
        write_file("overrides.conf", "pretend:HIGH\n")
        write_file("a.conf", "roleplay:LOW:pretend to be\n")
        write_file("b.conf", "roleplay:HIGH:pretend to be\n")
        entries = _store(config_dir, "a.conf:b.conf", overrides="overrides.conf").load()
        assert len(entries) == 1
        assert entries[0].severity is Severity.HIGH

    def test_memoized_until_reset(
        self, config_dir: Path, write_file: Callable[[str, str], Path]
    ) -> None:
        path = write_file("p.conf", "cat:LOW:foo\n")
        store = _store(config_dir, "p.conf")
        first = store.load()
        path.write_text("cat:LOW:foo\ncat:HIGH:bar\n")
        assert store.load() is first
        store.reset()
        assert len(store.load()) == 2

    def test_explicit_spec_loaded_separately(
        self, config_dir: Path, write_file: Callable[[str, str], Path]
    ) -> None:
        write_file("a.conf", "cat:LOW:foo\n")
        write_file("b.conf", "cat:HIGH:bar\n")
        store = _store(config_dir, "a.conf")
        assert [e.source_pattern for e in store.load()] == ["foo"]
        assert [e.source_pattern for e in store.load("b.conf")] == ["bar"]
