"""Command-line entry point for the quarantine engine.

Usage:
    quarantine scan [FILE]                 # scan FILE (or stdin), print JSON result
    quarantine sanitize [FILE] [--source]  # print sanitized content to stdout
    quarantine check-url URL               # exit 0 if URL is allowlisted, 1 otherwise
    quarantine fetch URL                   # fetch, sanitize, print content
    quarantine init [--force]              # install the bundled pattern pack
    python -m quarantine.run ...           # same, without the console script

Configuration comes from ``load_config()`` (config.yaml + GUARD_* env vars).
Logs go to stderr; stdout carries only results.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import shutil
import sys
from typing import Optional, Sequence

import httpx

from quarantine.collectors.fetch import secure_fetch
from quarantine.config import Config, load_config, split_locations
from quarantine.guard import ContentGuard
from quarantine.patterns import BUNDLED_PATTERNS_PATH
from quarantine.utils.logger import configure_logging


def _read_input(path: Optional[str]) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8", errors="replace") as fh:
        return fh.read()


def _install_patterns(config: Config, force: bool = False) -> int:
    sources = config.sources
    locations = split_locations(sources.patterns)
    if not locations:
        print("No pattern location configured", file=sys.stderr)
        return 1
    target = sources.resolve(locations[0])
    if target.exists() and not force:
        print(f"{target} already exists (use --force to overwrite)", file=sys.stderr)
        return 1
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(BUNDLED_PATTERNS_PATH, target)
    print(f"Installed bundled patterns to {target}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quarantine",
        description="Scan and sanitize untrusted text for prompt-injection attempts",
    )
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    parser.add_argument("--console-logs", action="store_true", help="Human-readable logs instead of JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan content and print the result as JSON")
    scan.add_argument("file", nargs="?", help="Input file (default: stdin)")
    scan.add_argument("--patterns", help="Colon-separated pattern files (overrides config)")

    sanitize = sub.add_parser("sanitize", help="Print sanitized content")
    sanitize.add_argument("file", nargs="?", help="Input file (default: stdin)")
    sanitize.add_argument("--source", default="cli", help="Source tag recorded in quarantine files")
    sanitize.add_argument("--patterns", help="Colon-separated pattern files (overrides config)")

    check = sub.add_parser("check-url", help="Exit 0 if the URL is allowlisted")
    check.add_argument("url")

    fetch = sub.add_parser("fetch", help="Fetch a URL and print sanitized content")
    fetch.add_argument("url")
    fetch.add_argument("--method", default="GET", choices=["GET", "POST", "PUT", "DELETE"])

    init = sub.add_parser("init", help="Copy the bundled pattern pack into the config directory")
    init.add_argument("--force", action="store_true", help="Overwrite an existing pattern file")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, json_output=not args.console_logs)

    config = load_config(args.config)

    if args.command == "init":
        return _install_patterns(config, force=args.force)

    guard = ContentGuard.from_config(config)

    if args.command == "scan":
        result = guard.scan(_read_input(args.file), args.patterns)
        payload = {
            **result.summary(),
            "indicators": list(result.indicators),
            "matches": [
                {"category": m.category, "severity": m.severity.value, "match": m.matched_text}
                for m in result.matches
            ],
            "confirmed_match": result.confirmed_match,
        }
        print(json.dumps(payload, indent=2))
        return 0

    if args.command == "sanitize":
        result = guard.sanitize(_read_input(args.file), source=args.source, patterns_source=args.patterns)
        summary = guard.scan_summary(result)
        if summary is not None:
            print(json.dumps(summary), file=sys.stderr)
        sys.stdout.write(result.content)
        return 0

    if args.command == "check-url":
        allowed = guard.is_allowlisted(args.url)
        print("allowlisted" if allowed else "not allowlisted")
        return 0 if allowed else 1

    if args.command == "fetch":
        try:
            fetched = asyncio.run(secure_fetch(guard, args.url, method=args.method))
        except httpx.HTTPError as exc:
            print(f"Fetch error: {exc}", file=sys.stderr)
            return 1
        print(f"Status: {fetched.status}")
        if fetched.sanitized and fetched.scan_summary:
            print(
                f"Security: Content was sanitized ({fetched.scan_summary['severity']} threat "
                f"detected in categories: {', '.join(fetched.scan_summary['categories'])})"
            )
        print()
        sys.stdout.write(fetched.content)
        return 0

    return 2


if __name__ == "__main__":
    sys.exit(main())
