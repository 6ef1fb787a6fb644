# thread_dump_parser/reporter.py

import json
from collections import Counter
from typing import Dict, List

from .driver import ParseResult
from .events import ThreadDumpEvent
from .thread_state import ThreadState

FORMATS = ("txt", "md", "json")

# Shown when the header carried no (or an unknown) state phrase
NO_STATE = "(none)"


def compute_dump_stats(dump: ThreadDumpEvent) -> Dict:
    """Counts per thread state, in ThreadState order, plus totals."""
    states = Counter(
        e.thread_state.name if e.thread_state else NO_STATE
        for e in dump.get_stack_trace_events()
    )
    ordered = {s.name: states[s.name] for s in ThreadState if states[s.name]}
    if states[NO_STATE]:
        ordered[NO_STATE] = states[NO_STATE]

    return {
        "total_threads": dump.thread_count(),
        "daemon_threads": sum(1 for e in dump.get_stack_trace_events() if e.daemon),
        "states": ordered,
    }


def generate_summary_line(result: ParseResult) -> str:
    """One-liner: how many dumps, threads and diagnostics."""
    dumps = len(result.dumps)
    line = f"{dumps} thread dump{'s' if dumps != 1 else ''}, {result.thread_count()} threads"
    if result.diagnostics:
        line += f", {len(result.diagnostics)} diagnostics"
    return line


def generate_json(result: ParseResult, raw: bool = False) -> str:
    payload = {
        "summary": generate_summary_line(result),
        "dumps": [d.to_dict(raw=raw) for d in result.dumps],
        "diagnostics": [d.to_dict() for d in result.diagnostics],
    }
    return json.dumps(payload, indent=2)


def generate_report(result: ParseResult, format: str = "txt", raw: bool = False) -> str:
    """Generate the report for everything parsed from one input."""
    if format not in FORMATS:
        raise ValueError(f"unknown report format: {format}")
    if format == "json":
        return generate_json(result, raw=raw)

    lines: List[str] = []
    summary_line = generate_summary_line(result)

    # Header
    if format == "md":
        lines.append("# Thread Dump Report")
        lines.append("")
        lines.append(f"**Summary:** {summary_line}")
        lines.append("")
    else:
        lines.append("=== Thread Dump Report ===")
        lines.append(f"Summary: {summary_line}")
        lines.append("")

    for index, dump in enumerate(result.dumps, start=1):
        stats = compute_dump_stats(dump)
        when = dump.get_datetime().strftime("%Y-%m-%d %H:%M:%S")

        if format == "md":
            lines.append(f"## Thread dump {index} - {when} (line {dump.line_number})")
            lines.append(f"**Total threads:** {stats['total_threads']}")
            lines.append(f"**Daemon threads:** {stats['daemon_threads']}")
            lines.append("")
            if stats["states"]:
                lines.append("| State | Count |")
                lines.append("|-------|-------|")
                for state, count in stats["states"].items():
                    lines.append(f"| {state} | {count} |")
                lines.append("")
        else:
            lines.append(f"Thread dump {index}: {when} (line {dump.line_number})")
            lines.append(f"  Total:  {stats['total_threads']}")
            lines.append(f"  Daemon: {stats['daemon_threads']}")
            for state, count in stats["states"].items():
                lines.append(f"  {state + ':':<27}{count}")
            lines.append("")

        if raw:
            if format == "md":
                lines.append("```")
                lines.append(dump.get_raw_representation())
                lines.append("```")
            else:
                lines.append(dump.get_raw_representation())
            lines.append("")

    # Diagnostics
    if result.diagnostics:
        if format == "md":
            lines.append("## Diagnostics")
        else:
            lines.append("Diagnostics")
        for d in result.diagnostics:
            lines.append(f"  - {d}")
        lines.append("")

    return "\n".join(lines)
