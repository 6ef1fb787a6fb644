# thread_dump_parser/errors.py

from typing import Optional


class ThreadDumpError(Exception):
    """Base class for everything this package raises."""


class InvalidHexFormat(ThreadDumpError, ValueError):
    """A tid/nid value is not a valid unsigned hexadecimal number."""


class UnknownThreadState(ThreadDumpError, ValueError):
    """A VM thread state phrase does not match any known state."""


class ParsingException(ThreadDumpError):
    """Unrecoverable parser inconsistency."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class InternalConsistencyFault(ParsingException):
    """
    A timestamp line matched the detection pattern but could not be parsed
    with the paired format. The pattern and format tables are out of sync,
    so the parse run is aborted.
    """
