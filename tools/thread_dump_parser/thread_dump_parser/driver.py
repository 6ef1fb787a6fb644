# thread_dump_parser/driver.py

import io
import logging
from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .diagnostics import Diagnostic
from .events import ThreadDumpEvent
from .parser import THREAD_DUMP_HEADER_PATTERN, THREAD_DUMP_TIMESTAMP_PATTERN, ThreadDumpParser

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    """Thread dumps found in one input, in order, plus what went wrong along the way."""
    dumps: List[ThreadDumpEvent] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def thread_count(self) -> int:
        return sum(d.thread_count() for d in self.dumps)


def parse_lines(lines: Iterable[str], tz: Optional[tzinfo] = None) -> ParseResult:
    """
    Feed numbered lines to a ThreadDumpParser and close it.

    Args:
        lines: Lines with or without their line terminators
        tz: Time zone of the dump timestamps; local time if None

    Returns:
        ParseResult with every thread dump completed, in order
    """
    parser = ThreadDumpParser(tz=tz)
    result = ParseResult(diagnostics=parser.diagnostics)

    line_number = 0
    for line_number, line in enumerate(lines, start=1):
        result.dumps.extend(parser.parse(line_number, line.rstrip("\r\n")))
    result.dumps.extend(parser.close(line_number))

    logger.debug("%d line(s), %d thread dump(s), %d diagnostic(s)",
                 line_number, len(result.dumps), len(result.diagnostics))
    return result


def _iter_lines(content: str) -> Iterable[str]:
    # Same line breaks as a file opened in text mode: \n, \r and \r\n only.
    # str.splitlines() would also break on \x0c, \x85, \u2028 and others
    return io.StringIO(content, newline=None)


def parse_thread_dumps(content: str, tz: Optional[tzinfo] = None) -> ParseResult:
    """Parse thread dumps from a string (a log file or a jstack capture)."""
    return parse_lines(_iter_lines(content), tz=tz)


def parse_thread_dump_file(path: Union[str, Path], tz: Optional[tzinfo] = None) -> ParseResult:
    """
    Parse a file line by line without loading it whole.

    Raises:
        OSError: the file cannot be read.
    """
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return parse_lines(f, tz=tz)


def validate_thread_dump(content: str) -> bool:
    """
    Check if content looks like it holds at least one thread dump: a
    timestamp line directly followed by a "Full thread dump" header.
    """
    if not content:
        return False

    previous_is_timestamp = False
    for line in _iter_lines(content):
        line = line.rstrip("\r\n")
        if previous_is_timestamp and THREAD_DUMP_HEADER_PATTERN.match(line):
            return True
        previous_is_timestamp = THREAD_DUMP_TIMESTAMP_PATTERN.match(line) is not None

    return False
