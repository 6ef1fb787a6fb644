# thread_dump_parser/diagnostics.py

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class DiagnosticKind(Enum):
    INVALID_HEX_FORMAT = "invalid-hex-format"
    UNKNOWN_THREAD_STATE = "unknown-thread-state"
    MALFORMED_DUMP_STRUCTURE = "malformed-dump-structure"
    UNEXPECTED_STATE_LINE = "unexpected-state-line"
    UNATTRIBUTED_LINE = "unattributed-line"


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal anomaly found while parsing. The parse still produced output."""
    line_number: Optional[int]
    kind: DiagnosticKind
    message: str

    def __str__(self) -> str:
        where = f"line {self.line_number}" if self.line_number is not None else "end of input"
        return f"{where}: [{self.kind.value}] {self.message}"

    def to_dict(self) -> Dict:
        return {
            'line_number': self.line_number,
            'kind': self.kind.value,
            'message': self.message,
        }


def record(diagnostics: Optional[List[Diagnostic]], log: logging.Logger,
           line_number: Optional[int], kind: DiagnosticKind, message: str) -> Diagnostic:
    """Log a warning and append it to the diagnostics list, if one is attached."""
    d = Diagnostic(line_number=line_number, kind=kind, message=message)
    log.warning("%s", d)
    if diagnostics is not None:
        diagnostics.append(d)
    return d
