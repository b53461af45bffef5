"""
Command-line interface for collecting the globals of extension API scripts.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

from analyzer import UnsupportedPatternError
from collector import (
    DEFAULT_GROUPS,
    ConfigError,
    GlobalsIndex,
    OriginTags,
    collect_globals,
    filter_collisions,
    load_groups,
    search_globals,
)
from emitter import EmitOptions, emit_dump, emit_report, load_dump, write_output
from frontend import run_frontend
from log_config import configure_logging
from parser import ParseError

DEFAULT_BASEPATH = Path("..") / "mozilla-central"
DEFAULT_OUTPUT = Path("public") / "latest-dump.json"


def _format_location(line: int | None, column: int | None) -> str:
    if line is None:
        return ""
    if column is None:
        return f":{line}"
    return f":{line}:{column}"


def _report_error(exc: Exception) -> None:
    if isinstance(exc, ParseError):
        loc = _format_location(exc.line, exc.column)
        sys.stderr.write(f"ERROR {exc.source_name}{loc}: {exc.description}\n")
    elif isinstance(exc, UnsupportedPatternError):
        sys.stderr.write(f"ERROR Unsupported global declaration: {exc}\n")
    else:
        sys.stderr.write(f"ERROR: {exc}\n")


def scan_command(args: argparse.Namespace) -> int:
    input_path = Path(args.input).resolve()
    if not input_path.exists():
        sys.stderr.write(f"ERROR: Input file not found: {input_path}\n")
        return 1

    try:
        source = input_path.read_text(encoding="utf-8")
    except OSError as exc:
        sys.stderr.write(f"ERROR: Failed to read {input_path}: {exc}\n")
        return 1
    except UnicodeDecodeError as exc:
        sys.stderr.write(f"ERROR {args.input}: File is not valid UTF-8 (byte offset {exc.start}).\n")
        return 1

    try:
        result = run_frontend(source, source_name=args.input, tolerant=args.tolerant)
    except (ParseError, UnsupportedPatternError) as exc:
        _report_error(exc)
        return 1

    index = GlobalsIndex()
    index.extend(result.globals, metadata=OriginTags())
    sys.stdout.write(emit_report(index.as_dict()).source)
    return 0


def collect_command(args: argparse.Namespace) -> int:
    basepath = Path(args.basepath)
    if not basepath.is_dir():
        sys.stderr.write(f"ERROR: Source tree not found: {basepath}\n")
        return 1

    try:
        groups = load_groups(args.groups) if args.groups else DEFAULT_GROUPS
        index = collect_globals(
            basepath,
            groups,
            workers=args.workers,
            tolerant=args.tolerant,
            cache_dir=args.cache_dir,
        )
    except (ConfigError, ParseError, UnsupportedPatternError) as exc:
        _report_error(exc)
        return 1
    except OSError as exc:
        sys.stderr.write(f"ERROR: Failed to read source file: {exc}\n")
        return 1

    emit_result = emit_dump(index.as_dict(), EmitOptions(indent=args.indent))
    output_path = write_output(emit_result, args.out)
    sys.stderr.write(f"INFO wrote {emit_result.entries} globals to {output_path}\n")
    return 0


def report_command(args: argparse.Namespace) -> int:
    try:
        data = load_dump(args.dump)
        index = GlobalsIndex.from_dump(data)
    except (OSError, ValueError, KeyError) as exc:
        sys.stderr.write(f"ERROR: Failed to load {args.dump}: {exc}\n")
        return 1

    globals_map = index.as_dict()
    if not args.all:
        globals_map = filter_collisions(globals_map)
    globals_map = search_globals(globals_map, args.search)

    sys.stdout.write(emit_report(globals_map).source)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webext-globals",
        description="List the top-level globals declared by WebExtension API scripts",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every detected global.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors.")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file.")
    subparsers = parser.add_subparsers(dest="command")

    scan_parser = subparsers.add_parser("scan", help="Print the globals declared by one script")
    scan_parser.add_argument("input", help="Path to the JavaScript file")
    scan_parser.add_argument(
        "--tolerant",
        action="store_true",
        help="Let the parser recover from minor syntax errors (reported as warnings).",
    )
    scan_parser.set_defaults(func=scan_command)

    collect_parser = subparsers.add_parser(
        "collect", help="Scan a source tree and write the JSON dump used by the viewer"
    )
    collect_parser.add_argument(
        "basepath",
        nargs="?",
        default=str(DEFAULT_BASEPATH),
        help="Root of the source checkout (defaults to ../mozilla-central)",
    )
    collect_parser.add_argument(
        "out",
        nargs="?",
        default=str(DEFAULT_OUTPUT),
        help="Output JSON path (defaults to public/latest-dump.json)",
    )
    collect_parser.add_argument("--groups", help="YAML file mapping side -> platform -> glob pattern.")
    collect_parser.add_argument("--workers", type=int, default=None, help="Number of scan threads.")
    collect_parser.add_argument("--indent", type=int, default=None, help="Pretty-print the JSON dump.")
    collect_parser.add_argument("--cache-dir", help="Directory to store parse artefacts in.")
    collect_parser.add_argument(
        "--tolerant",
        action="store_true",
        help="Let the parser recover from minor syntax errors (reported as warnings).",
    )
    collect_parser.set_defaults(func=collect_command)

    report_parser = subparsers.add_parser(
        "report", help="Print globals declared by more than one script, as YAML"
    )
    report_parser.add_argument(
        "dump",
        nargs="?",
        default=str(DEFAULT_OUTPUT),
        help="JSON dump written by `collect`",
    )
    report_parser.add_argument("--search", help="Only show entries whose name, path or code contain this text.")
    report_parser.add_argument("--all", action="store_true", help="Include names declared only once.")
    report_parser.set_defaults(func=report_command)

    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1
    configure_logging(verbose=args.verbose, quiet=args.quiet, log_file=args.log_file)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
