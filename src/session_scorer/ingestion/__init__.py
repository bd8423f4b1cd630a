"""Session log ingestion: line parsing and per-session metric folding."""

from .events import SKIP, EventKind, SessionEvent, parse_line
from .metrics import MetricsAccumulator, parse_session_file

__all__ = [
    "SKIP",
    "EventKind",
    "SessionEvent",
    "parse_line",
    "MetricsAccumulator",
    "parse_session_file",
]
