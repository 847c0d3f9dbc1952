"""Tests for the Allowlist loader — file parsing, memoization and membership."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from quarantine.allowlist import Allowlist
from quarantine.allowlist.loader import parse_allowlist


class TestParseAllowlist:
    def test_strips_comments_and_blanks(self) -> None:
        text = "\n".join([
            "# trusted hosts",
            "",
            "api.github.com   # gh api",
            "   *.example.com",
            "#localhost:*",
        ])
        assert parse_allowlist(text) == ["api.github.com", "*.example.com"]

    def test_empty(self) -> None:
        assert parse_allowlist("") == []


class TestAllowlist:
    def test_no_path_is_empty(self) -> None:
        allowlist = Allowlist(None)
        assert allowlist.load() == []
        assert allowlist.is_allowlisted("https://example.com") is False

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert Allowlist(tmp_path / "absent.conf").load() == []

    def test_is_allowlisted(self, write_file: Callable[[str, str], Path]) -> None:
        path = write_file("allowlist.conf", "*.example.com\nlocalhost:*\n")
        allowlist = Allowlist(path)
        assert allowlist.is_allowlisted("https://api.example.com/x")
        assert allowlist.is_allowlisted("https://example.com")
        assert allowlist.is_allowlisted("http://localhost:3000/")
        assert not allowlist.is_allowlisted("https://notexample.com")
        assert not allowlist.is_allowlisted("::::")

    def test_memoized_until_reset(self, write_file: Callable[[str, str], Path]) -> None:
        path = write_file("allowlist.conf", "api.github.com\n")
        allowlist = Allowlist(path)
        first = allowlist.load()
        path.write_text("api.github.com\nexample.com\n")
        assert allowlist.load() is first
        allowlist.reset()
        assert allowlist.load() == ["api.github.com", "example.com"]
