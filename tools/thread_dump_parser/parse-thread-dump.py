#!/usr/bin/env python3
"""
Thread Dump Parser - split a log or jstack capture into thread dumps.

Usage:
    python parse-thread-dump.py threads.log
    python parse-thread-dump.py threads.log --format json --raw
    jstack <pid> | python parse-thread-dump.py -
"""
import argparse
import logging
import sys
from datetime import timezone
from pathlib import Path

from thread_dump_parser.driver import ParseResult, parse_thread_dumps, validate_thread_dump
from thread_dump_parser.errors import ThreadDumpError
from thread_dump_parser.reporter import FORMATS, generate_report

# Exit codes
EXIT_CLEAN = 0      # Dumps parsed, nothing to report
EXIT_DEGRADED = 1   # Dumps parsed, some lines or fields had to be skipped
EXIT_NO_DUMPS = 2   # Nothing parsed: invalid input or fatal error

EXIT_LABELS = {EXIT_CLEAN: "CLEAN", EXIT_DEGRADED: "DEGRADED", EXIT_NO_DUMPS: "NO_DUMPS"}


def compute_exit_code(result: ParseResult) -> int:
    """
    EXIT_NO_DUMPS (2): no thread dump found
    EXIT_DEGRADED (1): dumps found, diagnostics recorded
    EXIT_CLEAN (0): dumps found, no diagnostics
    """
    if not result.dumps:
        return EXIT_NO_DUMPS
    if result.diagnostics:
        return EXIT_DEGRADED
    return EXIT_CLEAN


def main():
    parser = argparse.ArgumentParser(
        description="Thread Dump Parser: extract HotSpot thread dumps and their stack traces",
        epilog="Example: jstack -l <pid> | python parse-thread-dump.py -"
    )
    parser.add_argument(
        "dump_file",
        type=str,
        help="Path to a log or thread dump file, or '-' to read from stdin"
    )
    parser.add_argument(
        "--format",
        choices=FORMATS,
        default="txt",
        help="Output format (default: txt)"
    )
    parser.add_argument(
        "--utc",
        action="store_true",
        help="Interpret dump timestamps as UTC instead of local time"
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Include the raw text of every dump in the output"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log parser activity to stderr"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    # Read input
    if args.dump_file == "-":
        content = sys.stdin.read()
    else:
        dump_path = Path(args.dump_file)
        if not dump_path.is_file():
            print(f"Error: file not found: {dump_path}", file=sys.stderr)
            sys.exit(EXIT_NO_DUMPS)
        try:
            content = dump_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            print(f"Error reading file: {e}", file=sys.stderr)
            sys.exit(EXIT_NO_DUMPS)

    # Validate
    if not validate_thread_dump(content):
        print("Error: Invalid format - expected a timestamp line followed by 'Full thread dump'",
              file=sys.stderr)
        sys.exit(EXIT_NO_DUMPS)

    # Parse
    try:
        result = parse_thread_dumps(content, tz=timezone.utc if args.utc else None)
    except ThreadDumpError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_NO_DUMPS)

    if not result.dumps:
        print("Warning: No thread dumps found", file=sys.stderr)

    print(generate_report(result, format=args.format, raw=args.raw))

    exit_code = compute_exit_code(result)
    if args.format != "json":
        print(f"Exit code: {exit_code} ({EXIT_LABELS[exit_code]})")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
