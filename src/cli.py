"""Command-line interface for callmap."""

from __future__ import annotations

import argparse
import logging
import shlex
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from correlate.matcher import ReferenceMatcher
from errors import CallmapError
from render.jsonl import write_jsonl
from render.pretty import print_entries
from settings.config import CallmapConfig, ConfigError, load_config

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="callmap")
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Print debug output to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    refs_parser = subparsers.add_parser(
        "refs",
        help="Find call sites of functions in a package",
        description=(
            "Find every call site in the workspace of the exported functions "
            "or methods of PACKAGE whose names match PATTERN. A pattern is a "
            "glob on the function name (fetch_*) or on Class.method (Client.get*)."
        ),
    )
    refs_parser.add_argument("package", help="Dotted package or module name")
    refs_parser.add_argument("patterns", nargs="+", metavar="pattern")
    refs_parser.add_argument(
        "-f",
        "--fmt",
        choices=("print", "json"),
        default=None,
        help="Output format (default: config format, print)",
    )
    refs_parser.add_argument(
        "-s",
        "--style",
        default=None,
        help="Pygments color style, or 'none' (default: config style, github-dark)",
    )
    refs_parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Print debug output to stderr",
    )
    refs_parser.add_argument(
        "--root",
        default=".",
        help="Workspace root (default: .)",
    )
    refs_parser.add_argument(
        "--server-cmd",
        default=None,
        help="Language server command line (default: config server_command, pylsp)",
    )

    return parser


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="[debug] %(message)s" if debug else "%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _apply_overrides(config: CallmapConfig, args: argparse.Namespace) -> CallmapConfig:
    overrides: dict[str, Any] = {}
    if args.fmt is not None:
        overrides["format"] = args.fmt
    if args.style is not None:
        overrides["style"] = args.style
    if args.server_cmd is not None:
        overrides["server_command"] = shlex.split(args.server_cmd)
    if not overrides:
        return config

    try:
        return CallmapConfig.model_validate({**config.model_dump(), **overrides})
    except ValidationError as exc:
        msg = f"Invalid command-line option: {exc}"
        raise ConfigError(msg) from exc


def _handle_refs(args: argparse.Namespace) -> int:
    root = Path(args.root).expanduser().resolve()
    config = _apply_overrides(load_config(root), args)

    with ReferenceMatcher(root, config) as matcher:
        matcher.find_references(args.package, *args.patterns)
        matcher.sort()
        entries = matcher.entries
    logger.debug("%d call sites found", len(entries))

    if config.format == "json":
        write_jsonl(sys.stdout, entries)
    else:
        print_entries(sys.stdout, entries, config.style)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.debug)

    if args.command != "refs":
        parser.error(f"unknown command: {args.command}")

    try:
        return _handle_refs(args)
    except ConfigError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2
    except CallmapError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
