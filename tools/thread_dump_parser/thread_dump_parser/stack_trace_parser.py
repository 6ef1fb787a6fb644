# thread_dump_parser/stack_trace_parser.py

import logging
import re
from typing import List, Optional, Tuple

from .diagnostics import Diagnostic, DiagnosticKind, record
from .errors import InvalidHexFormat, UnknownThreadState
from .events import StackTraceEvent

logger = logging.getLogger(__name__)

# Thread snapshot header, one line. Examples:
# "Reference Handler" #2 daemon prio=10 os_prio=0 tid=0x00007f6220025000 nid=0x1829 in Object.wait() [0x00007f6209147000]
# "VM Thread" os_prio=0 tid=0x00007f622006e800 nid=0x1826 runnable
# "main" #1 [4242] prio=5 os_prio=0 cpu=120.52ms elapsed=31.20s tid=0x00007f1234 nid=0x1092 waiting on condition  [0x00007f12]
THREAD_HEADER_PATTERN = re.compile(
    r'^"(?P<name>.*)"'                      # thread name in quotes
    r'(?:\s+#(?P<number>\d+))?'             # optional thread number
    r'(?:\s+\[\d+\])?'                      # optional OS thread id (JDK 19+)
    r'(?:\s+(?P<daemon>daemon))?'           # optional daemon flag
    r'(?:\s+prio=(?P<prio>-?\d+))?'         # optional priority
    r'(?:\s+os_prio=(?P<os_prio>-?\d+))?'   # optional OS priority
    r'(?:\s+\w+=\S+)*?'                     # cpu=, elapsed=, and friends
    r'\s+tid=(?P<tid>\S+)'                  # thread id, validated later
    r'\s+nid=(?P<nid>\S+)'                  # native id, validated later
    r'(?:\s+(?P<state>.*?))?\s*$'           # state phrase, may be absent
)


def is_thread_header(line: str) -> bool:
    return THREAD_HEADER_PATTERN.match(line) is not None


class StackTraceParser:
    """
    Splits the body of one thread dump into StackTraceEvents.

    A header line starts a new event; every following line is sent to that
    event's update() until the next header. Lines the event refuses (it is
    already closed) are held as residue: the dump epilogue if nothing else
    follows, or leading raw lines of the next event otherwise.

    Not thread safe.
    """

    def __init__(self, diagnostics: Optional[List[Diagnostic]] = None):
        self.diagnostics: List[Diagnostic] = diagnostics if diagnostics is not None else []
        self._current: Optional[StackTraceEvent] = None
        self._residue: List[Tuple[int, str]] = []

    @property
    def in_progress(self) -> Optional[StackTraceEvent]:
        return self._current

    def parse(self, line_number: int, line: str) -> List[StackTraceEvent]:
        """
        Returns the events completed by this line: the previous one when the
        line is a new header, otherwise nothing.
        """
        m = THREAD_HEADER_PATTERN.match(line)
        if m:
            completed = self._complete_current()
            self._current = self._start_event(line_number, line, m)
            return completed

        if self._current is None or not self._current.update(line_number, line):
            self._residue.append((line_number, line))

        return []

    def flush(self) -> List[StackTraceEvent]:
        """Close and return the in-progress event. The parser can be reused afterwards."""
        return self._complete_current()

    def close(self) -> List[StackTraceEvent]:
        """End of input. An event that never reached CLOSED is closed here."""
        completed = self._complete_current()
        logger.debug("stack trace parser closed, %d event(s) returned", len(completed))
        return completed

    def take_residue(self) -> Optional[str]:
        """Return and forget the lines that followed the last event."""
        if not self._residue:
            return None
        s = "\n".join(line for _, line in self._residue)
        self._residue = []
        return s

    def _complete_current(self) -> List[StackTraceEvent]:
        if self._current is None:
            return []
        e = self._current
        self._current = None
        if not e.is_closed():
            e.close()
        logger.debug("%s complete", e)
        return [e]

    def _start_event(self, line_number: int, line: str, m) -> StackTraceEvent:
        e = StackTraceEvent(line_number, diagnostics=self.diagnostics)

        # lines stranded between two events stay with the one that follows
        for residue_line_number, residue_line in self._residue:
            record(self.diagnostics, logger, residue_line_number, DiagnosticKind.UNATTRIBUTED_LINE,
                   f"line does not belong to any stack trace: {residue_line}")
            e.append_raw_line(residue_line)
        self._residue = []

        e.append_raw_line(line)
        e.thread_name = m.group('name')
        e.set_daemon(m.group('daemon') is not None)
        if m.group('prio') is not None:
            e.prio = int(m.group('prio'))
        if m.group('os_prio') is not None:
            e.os_prio = int(m.group('os_prio'))

        try:
            e.set_tid(m.group('tid'))
        except InvalidHexFormat as ex:
            record(self.diagnostics, logger, line_number, DiagnosticKind.INVALID_HEX_FORMAT, f"tid: {ex}")

        try:
            e.set_nid(m.group('nid'))
        except InvalidHexFormat as ex:
            record(self.diagnostics, logger, line_number, DiagnosticKind.INVALID_HEX_FORMAT, f"nid: {ex}")

        state = m.group('state')
        if state:
            try:
                e.set_thread_state(state)
            except UnknownThreadState as ex:
                record(self.diagnostics, logger, line_number, DiagnosticKind.UNKNOWN_THREAD_STATE, str(ex))

        logger.debug("%s started", e)
        return e
