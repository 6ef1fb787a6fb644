# thread_dump_parser/events.py

import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .diagnostics import Diagnostic, DiagnosticKind, record
from .errors import ParsingException
from .hexcodec import parse_unsigned_int, parse_unsigned_long
from .thread_state import ThreadState, classify

logger = logging.getLogger(__name__)

THREAD_STATE_LINE_PREFIX = "java.lang.Thread.State"

TIMESTAMP_DISPLAY_FORMAT = "%m/%d/%y %H:%M:%S"


class Mode(Enum):
    """Where a StackTraceEvent is in its line sequence. Only moves forward."""
    THREAD_STATE = 0
    STACK = 1
    LOCKING_INFO = 2
    CLOSED = 3


@dataclass
class StackTraceEvent:
    """
    One thread's snapshot within a thread dump.

    The header fields are filled in by the StackTraceParser. The lines that
    follow the header (thread state, stack frames, locking info) are fed
    through update(). tid and nid are kept as the hexadecimal strings found
    in the dump; they are validated when written.
    """
    line_number: int
    thread_name: Optional[str] = None
    prio: Optional[int] = None
    os_prio: Optional[int] = None
    daemon: bool = False
    tid: Optional[str] = None
    nid: Optional[str] = None
    thread_state: Optional[ThreadState] = None
    monitor: Optional[str] = None
    stack: Optional[str] = None
    mode: Mode = Mode.THREAD_STATE
    raw_lines: List[str] = field(default_factory=list, repr=False)
    diagnostics: Optional[List[Diagnostic]] = field(default=None, repr=False, compare=False)
    _stack_lines: List[str] = field(default_factory=list, repr=False, compare=False)

    # header fields -----------------------------------------------------------

    def set_tid(self, hex_string: str) -> None:
        """
        Raises InvalidHexFormat, leaving tid untouched, if the value is not a
        valid u64. Header fields are frozen once the event is closed.
        """
        self._check_open("tid")
        parse_unsigned_long(hex_string)
        logger.debug("%s setting tid to %s", self, hex_string)
        self.tid = hex_string

    def get_tid_as_long(self) -> Optional[int]:
        if self.tid is None:
            return None
        return parse_unsigned_long(self.tid)

    def set_nid(self, hex_string: str) -> None:
        """Raises InvalidHexFormat, leaving nid untouched, if the value is not a valid u32."""
        self._check_open("nid")
        parse_unsigned_int(hex_string)
        logger.debug("%s setting nid to %s", self, hex_string)
        self.nid = hex_string

    def get_nid_as_int(self) -> Optional[int]:
        if self.nid is None:
            return None
        return parse_unsigned_int(self.nid)

    def set_thread_state(self, phrase: str) -> None:
        """
        Update the state, and the monitor if the phrase carries one, from a
        header state phrase such as "runnable" or "in Object.wait() [0x...]".

        Raises UnknownThreadState, leaving both fields untouched.
        """
        self._check_open("thread state")
        state, monitor = classify(phrase)
        logger.debug("%s setting thread state to %s", self, state.name)
        self.thread_state = state
        self.monitor = monitor

    def set_daemon(self, is_daemon: bool) -> None:
        self._check_open("daemon flag")
        self.daemon = bool(is_daemon)

    def _check_open(self, what: str) -> None:
        if self.mode is Mode.CLOSED:
            raise ParsingException(f"{self} is closed, cannot set its {what}", self.line_number)

    # line state machine ------------------------------------------------------

    def append_raw_line(self, line: str) -> None:
        self.raw_lines.append(line)

    def get_raw_representation(self) -> str:
        return "\n".join(self.raw_lines)

    def is_closed(self) -> bool:
        return self.mode is Mode.CLOSED

    def update(self, line_number: int, line: str) -> bool:
        """
        Interpret one line that follows the header: the thread state line, a
        stack frame, locking info or an empty separator.

        Returns:
            True if the line belongs to this event, False if the event is
            closed and the line must be routed elsewhere.

        Raises:
            ParsingException: the event is in an illegal mode.
        """
        if self.mode is Mode.CLOSED:
            return False

        handler = self._HANDLERS.get(self.mode)
        if handler is None:
            raise ParsingException(f"illegal mode: {self.mode}", line_number)

        self.append_raw_line(line)
        handler(self, line_number, line)
        return True

    def close(self) -> None:
        """Force the event closed, committing whatever stack was accumulated."""
        if self.mode is Mode.STACK:
            self._commit_stack()
        self._advance(Mode.CLOSED)

    def _on_thread_state(self, line_number: int, line: str) -> None:
        line = line.strip()
        if not line:
            # header-only snapshot
            self._advance(Mode.CLOSED)
            return

        if not line.startswith(THREAD_STATE_LINE_PREFIX):
            record(self.diagnostics, logger, line_number, DiagnosticKind.UNEXPECTED_STATE_LINE,
                   f"expecting thread state information but got \"{line}\"")

        self._advance(Mode.STACK)

    def _on_stack(self, line_number: int, line: str) -> None:
        if line.strip():
            self._stack_lines.append(line)
            return
        self._commit_stack()
        self._advance(Mode.LOCKING_INFO)

    def _on_locking_info(self, line_number: int, line: str) -> None:
        logger.debug("discarding locking information on line %s", line_number)

    _HANDLERS = {
        Mode.THREAD_STATE: _on_thread_state,
        Mode.STACK: _on_stack,
        Mode.LOCKING_INFO: _on_locking_info,
    }

    def _commit_stack(self) -> None:
        if self._stack_lines:
            self.stack = "\n".join(self._stack_lines)

    def _advance(self, mode: Mode) -> None:
        if mode.value < self.mode.value:
            raise ParsingException(f"{self} cannot go back from {self.mode.name} to {mode.name}")
        self.mode = mode

    # -------------------------------------------------------------------------

    def to_dict(self, raw: bool = False) -> Dict:
        d = {
            'line_number': self.line_number,
            'thread_name': self.thread_name,
            'daemon': self.daemon,
            'prio': self.prio,
            'os_prio': self.os_prio,
            'tid': self.tid,
            'nid': self.nid,
            'thread_state': self.thread_state.name if self.thread_state else None,
            'monitor': self.monitor,
            'stack': self.stack,
        }
        if raw:
            d['raw'] = self.get_raw_representation()
        return d

    def __str__(self) -> str:
        return f"StackTraceEvent[{self.thread_name}, line {self.line_number}]"


class ThreadDumpEvent:
    """
    An individual thread dump: the snapshots of all threads in the JVM at one
    moment. A log file may contain several of them.

    The raw text is kept in three parts so the dump can be reassembled in
    order: the lines that come before the first stack trace, the raw text of
    each StackTraceEvent, and the epilogue that follows the last one.
    """

    def __init__(self, line_number: Optional[int], timestamp: int, tz: Optional[tzinfo] = None):
        self.line_number = line_number
        self._timestamp = timestamp
        self._tz = tz
        self._stack_traces: List[StackTraceEvent] = []
        self._raw_lines: List[str] = []
        self.raw_epilogue: Optional[str] = None
        logger.debug("%s constructed", self)

    @property
    def timestamp(self) -> int:
        """Milliseconds since the epoch."""
        return self._timestamp

    def get_datetime(self) -> datetime:
        return datetime.fromtimestamp(self._timestamp / 1000, tz=self._tz)

    # stack traces ------------------------------------------------------------

    def add_stack_trace(self, stack_trace: StackTraceEvent) -> None:
        """Append, preserving arrival order. Duplicate tids are kept as separate entries."""
        if stack_trace is None:
            raise ValueError("null stack trace")
        if not isinstance(stack_trace, StackTraceEvent):
            raise TypeError(f"not a StackTraceEvent: {stack_trace!r}")
        self._stack_traces.append(stack_trace)

    def add_stack_traces(self, stack_traces: Iterable[StackTraceEvent]) -> None:
        if stack_traces is None:
            raise ValueError("null stack trace list")
        for e in stack_traces:
            self.add_stack_trace(e)

    def get_stack_trace_events(self) -> List[StackTraceEvent]:
        return list(self._stack_traces)

    def get_stack_trace_event(self, index: int) -> Optional[StackTraceEvent]:
        """
        Index 0 is the first stack trace in the dump. Returns None past the
        end; a negative index is a caller error.
        """
        if index < 0:
            raise ValueError(f"invalid index: {index}")
        if index >= len(self._stack_traces):
            return None
        return self._stack_traces[index]

    def thread_count(self) -> int:
        return len(self._stack_traces)

    # raw representation ------------------------------------------------------

    def append_raw_line(self, line: str) -> None:
        self._raw_lines.append(line)

    def set_raw_epilogue(self, epilogue: Optional[str]) -> None:
        self.raw_epilogue = epilogue

    def get_raw_representation(self) -> str:
        s = "\n".join(self._raw_lines)
        for e in self._stack_traces:
            s += "\n" + e.get_raw_representation()
        if self.raw_epilogue is not None:
            s += "\n" + self.raw_epilogue
        return s

    def get_preferred_representation(self) -> Optional[str]:
        """An empty dump displays nothing; otherwise None, meaning "use the raw representation"."""
        if self.thread_count() == 0:
            return ""
        return None

    # -------------------------------------------------------------------------

    def to_dict(self, raw: bool = False) -> Dict:
        d = {
            'line_number': self.line_number,
            'timestamp': self._timestamp,
            'time': self.get_datetime().isoformat(),
            'thread_count': self.thread_count(),
            'threads': [e.to_dict(raw=raw) for e in self._stack_traces],
        }
        if raw:
            d['raw'] = self.get_raw_representation()
        return d

    def __str__(self) -> str:
        where = f"line {self.line_number}, " if self.line_number is not None else ""
        return f"ThreadDump[{where}{self.get_datetime().strftime(TIMESTAMP_DISPLAY_FORMAT)}]"

    __repr__ = __str__
