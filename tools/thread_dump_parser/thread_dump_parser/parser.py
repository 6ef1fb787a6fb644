# thread_dump_parser/parser.py

import logging
import re
from datetime import datetime, tzinfo
from enum import Enum
from typing import List, Optional, Tuple

from .diagnostics import Diagnostic, DiagnosticKind, record
from .errors import InternalConsistencyFault, ParsingException
from .events import ThreadDumpEvent
from .stack_trace_parser import StackTraceParser, is_thread_header

logger = logging.getLogger(__name__)

# Timestamp line that precedes a thread dump
# Example: 2016-08-13 17:42:10
THREAD_DUMP_TIMESTAMP_PATTERN = re.compile(
    r'^[1-3]\d\d\d-[0-1]\d-[0-3]\d [0-2]\d:[0-5]\d:[0-5]\d *$'
)

# strptime() format paired with THREAD_DUMP_TIMESTAMP_PATTERN; change both together
THREAD_DUMP_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Example: Full thread dump Java HotSpot(TM) 64-Bit Server VM (25.51-b03 mixed mode):
THREAD_DUMP_HEADER_PATTERN = re.compile(r'^Full thread dump.*$')


class State(Enum):
    SCANNING = "scanning"
    GOT_TIMESTAMP = "got-timestamp"
    EXPECT_BLANK_AFTER_HEADER = "expect-blank-after-header"


def parse_timestamp(text: str, tz: Optional[tzinfo] = None) -> int:
    """
    Convert a thread dump timestamp ("2016-08-13 17:42:10") to milliseconds
    since the epoch. Without tz the timestamp is local time.

    Raises:
        ValueError: text does not follow THREAD_DUMP_TIMESTAMP_FORMAT.
    """
    dt = datetime.strptime(text.strip(), THREAD_DUMP_TIMESTAMP_FORMAT)
    if tz is not None:
        dt = dt.replace(tzinfo=tz)
    return int(dt.timestamp()) * 1000


class ThreadDumpParser:
    """
    Turns a stream of lines into ThreadDumpEvents.

    A thread dump starts with a timestamp line, immediately followed by a
    "Full thread dump" header and an empty line. Everything up to the next
    timestamp line (or the end of input) is the body, which is split into
    StackTraceEvents by a StackTraceParser. A dump is returned from parse()
    when the next one starts, and the last one from close().

    Anything that breaks the timestamp/header/blank sequence drops that dump
    and is recorded in diagnostics; parsing continues with the next line.

    The implementation is NOT thread safe; use one instance per input.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz
        self.diagnostics: List[Diagnostic] = []
        self.state = State.SCANNING
        self._stack_trace_parser = StackTraceParser(self.diagnostics)
        self._timestamp_text: Optional[str] = None
        self._timestamp_line: Optional[str] = None
        self._timestamp_line_number: Optional[int] = None
        self._current: Optional[ThreadDumpEvent] = None
        self._last_line_number: Optional[int] = None
        # first line and length of the current run of lines outside any dump
        self._unattributed_start: Optional[Tuple[int, str]] = None
        self._unattributed_count = 0
        self._closed = False

    @property
    def current_dump(self) -> Optional[ThreadDumpEvent]:
        return self._current

    def parse(self, line_number: int, line: str) -> List[ThreadDumpEvent]:
        """
        Feed one line. Line numbers are 1-based and must increase.

        Returns:
            The thread dumps completed by this line (zero or one).

        Raises:
            InternalConsistencyFault: a timestamp matched the pattern but not
                the paired format.
            ParsingException: the parser is closed or line numbers went back.
        """
        if self._closed:
            raise ParsingException("parser already closed", line_number)
        if self._last_line_number is not None and line_number <= self._last_line_number:
            raise ParsingException(f"line numbers must increase, previous was {self._last_line_number}",
                                   line_number)
        self._last_line_number = line_number

        logger.debug("parsing line %s: %s", line_number, line)

        completed: List[ThreadDumpEvent] = []
        self._dispatch(line_number, line, completed)
        return completed

    def close(self, line_number: Optional[int] = None) -> List[ThreadDumpEvent]:
        """End of input. Returns the last thread dump, if one is open."""
        if self._closed:
            raise ParsingException("parser already closed", line_number)
        self._closed = True
        self._end_unattributed_run()

        if self.state is State.GOT_TIMESTAMP:
            record(self.diagnostics, logger, self._timestamp_line_number, DiagnosticKind.MALFORMED_DUMP_STRUCTURE,
                   "input ends after a thread dump timestamp, thread dump header missing")
            self._forget_timestamp()

        if self._current is None:
            return []

        dump = self._current
        self._current = None
        dump.add_stack_traces(self._stack_trace_parser.close())
        dump.set_raw_epilogue(self._stack_trace_parser.take_residue())
        logger.debug("%s parsing complete", dump)
        return [dump]

    # state handlers ----------------------------------------------------------

    def _dispatch(self, line_number: int, line: str, completed: List[ThreadDumpEvent]) -> None:
        if self.state is State.EXPECT_BLANK_AFTER_HEADER:
            self._on_expect_blank(line_number, line, completed)
        elif self.state is State.GOT_TIMESTAMP:
            self._on_got_timestamp(line_number, line, completed)
        else:
            self._on_scanning(line_number, line, completed)

    def _on_expect_blank(self, line_number: int, line: str, completed: List[ThreadDumpEvent]) -> None:
        self.state = State.SCANNING

        if not line.strip():
            logger.debug("discarded empty line %s", line_number)
            self._current.append_raw_line(line)
            return

        record(self.diagnostics, logger, line_number, DiagnosticKind.MALFORMED_DUMP_STRUCTURE,
               f"expecting an empty line after the thread dump header but got: {line}; "
               f"dropping {self._current}")
        self._current = None
        self._dispatch(line_number, line, completed)

    def _on_got_timestamp(self, line_number: int, line: str, completed: List[ThreadDumpEvent]) -> None:
        self.state = State.SCANNING

        if not THREAD_DUMP_HEADER_PATTERN.match(line):
            record(self.diagnostics, logger, line_number, DiagnosticKind.MALFORMED_DUMP_STRUCTURE,
                   f"skipping thread dump started at line {self._timestamp_line_number} "
                   f"because the thread dump header is missing: {line}")
            self._forget_timestamp()
            self._dispatch(line_number, line, completed)
            return

        logger.debug("thread dump header found, building the thread dump event ...")

        try:
            timestamp = parse_timestamp(self._timestamp_text, self.tz)
        except ValueError as e:
            raise InternalConsistencyFault(
                f"mismatch between thread dump timestamp pattern and format: \"{self._timestamp_text}\"",
                line_number) from e

        dump = ThreadDumpEvent(self._timestamp_line_number, timestamp, tz=self.tz)
        dump.append_raw_line(self._timestamp_line)
        dump.append_raw_line(line)
        self._forget_timestamp()
        self._current = dump
        self.state = State.EXPECT_BLANK_AFTER_HEADER

    def _on_scanning(self, line_number: int, line: str, completed: List[ThreadDumpEvent]) -> None:
        if THREAD_DUMP_TIMESTAMP_PATTERN.match(line):
            self._end_unattributed_run()
            if self._current is not None:
                # another thread dump starts; wrap up the current one but keep
                # the stack trace parser, it is needed for the next dump
                dump = self._current
                self._current = None
                dump.add_stack_traces(self._stack_trace_parser.flush())
                dump.set_raw_epilogue(self._stack_trace_parser.take_residue())
                logger.debug("%s parsing complete", dump)
                completed.append(dump)

            self._timestamp_text = line.strip()
            self._timestamp_line = line
            self._timestamp_line_number = line_number
            self.state = State.GOT_TIMESTAMP
            logger.debug("thread dump timestamp found: %s", self._timestamp_text)
            return

        if self._current is None:
            logger.debug("discarding line %s outside any thread dump: %s", line_number, line)
            if self._unattributed_start is None:
                self._unattributed_start = (line_number, line)
            self._unattributed_count += 1
            return

        if (self._stack_trace_parser.in_progress is None and self._current.thread_count() == 0
                and not is_thread_header(line)):
            # before the first stack trace
            self._current.append_raw_line(line)
            return

        self._current.add_stack_traces(self._stack_trace_parser.parse(line_number, line))

    def _end_unattributed_run(self) -> None:
        """One diagnostic per run of consecutive lines outside any thread dump."""
        if self._unattributed_start is None:
            return
        first_line_number, first_line = self._unattributed_start
        record(self.diagnostics, logger, first_line_number, DiagnosticKind.UNATTRIBUTED_LINE,
               f"discarded {self._unattributed_count} line(s) outside any thread dump, "
               f"starting with: {first_line}")
        self._unattributed_start = None
        self._unattributed_count = 0

    def _forget_timestamp(self) -> None:
        self._timestamp_text = None
        self._timestamp_line = None
        self._timestamp_line_number = None
