# thread_dump_parser/thread_state.py

import re
from enum import Enum
from typing import List, Optional, Tuple

from .errors import UnknownThreadState


class ThreadState(Enum):
    """State of a thread as printed on its snapshot header, after the nid."""
    NEW = "NEW"
    RUNNABLE = "RUNNABLE"
    SLEEPING = "SLEEPING"
    IN_OBJECT_WAIT = "IN_OBJECT_WAIT"
    WAITING_FOR_MONITOR_ENTRY = "WAITING_FOR_MONITOR_ENTRY"
    WAITING_ON_CONDITION = "WAITING_ON_CONDITION"
    TIMED_WAITING = "TIMED_WAITING"
    BLOCKED = "BLOCKED"
    TERMINATED = "TERMINATED"
    ALLOCATED = "ALLOCATED"
    INITIALIZED = "INITIALIZED"
    AT_BREAKPOINT = "AT_BREAKPOINT"
    ZOMBIE = "ZOMBIE"
    UNKNOWN = "UNKNOWN"


# Optional monitor address: "[0x00007f6209147000]", with or without a leading space
_ADDRESS = r'(?:\s*\[(?P<address>0[xX][0-9a-fA-F]+)\])?'

# Order matters: the first full match wins.
THREAD_STATE_PATTERNS: List[Tuple[ThreadState, re.Pattern]] = [
    (ThreadState.RUNNABLE, re.compile(r'^runnable' + _ADDRESS + r'$', re.IGNORECASE)),
    (ThreadState.SLEEPING, re.compile(r'^sleeping' + _ADDRESS + r'$', re.IGNORECASE)),
    (ThreadState.IN_OBJECT_WAIT, re.compile(r'^in Object\.wait\(\)' + _ADDRESS + r'$', re.IGNORECASE)),
    (ThreadState.WAITING_FOR_MONITOR_ENTRY,
     re.compile(r'^waiting for monitor entry' + _ADDRESS + r'$', re.IGNORECASE)),
    (ThreadState.WAITING_ON_CONDITION, re.compile(r'^waiting on condition' + _ADDRESS + r'$', re.IGNORECASE)),
    (ThreadState.TIMED_WAITING, re.compile(r'^timed[ _]waiting\b.*?' + _ADDRESS + r'$', re.IGNORECASE)),
    (ThreadState.BLOCKED, re.compile(r'^blocked\b.*?' + _ADDRESS + r'$', re.IGNORECASE)),
    (ThreadState.NEW, re.compile(r'^new' + _ADDRESS + r'$', re.IGNORECASE)),
    (ThreadState.TERMINATED, re.compile(r'^terminated' + _ADDRESS + r'$', re.IGNORECASE)),
    (ThreadState.ALLOCATED, re.compile(r'^allocated' + _ADDRESS + r'$', re.IGNORECASE)),
    (ThreadState.INITIALIZED, re.compile(r'^initialized' + _ADDRESS + r'$', re.IGNORECASE)),
    (ThreadState.AT_BREAKPOINT, re.compile(r'^at breakpoint' + _ADDRESS + r'$', re.IGNORECASE)),
    (ThreadState.ZOMBIE, re.compile(r'^zombie' + _ADDRESS + r'$', re.IGNORECASE)),
    (ThreadState.UNKNOWN, re.compile(r'^unknown state' + _ADDRESS + r'$', re.IGNORECASE)),
]


def classify(phrase: str) -> Tuple[ThreadState, Optional[str]]:
    """
    Map a raw VM state phrase to a ThreadState and the monitor address
    embedded in it, if any.

    Examples:
        "runnable"                                    -> (RUNNABLE, None)
        "in Object.wait() [0x00007f6209147000]"       -> (IN_OBJECT_WAIT, "0x00007f6209147000")
        "waiting for monitor entry [0x00007f013b5f4000]"

    Raises:
        UnknownThreadState: no pattern matches.
    """
    if phrase is None:
        raise UnknownThreadState("unknown thread state: None")

    text = phrase.strip()
    for state, pattern in THREAD_STATE_PATTERNS:
        m = pattern.match(text)
        if m:
            return state, m.group('address')

    raise UnknownThreadState(f"unknown thread state: {text}")
