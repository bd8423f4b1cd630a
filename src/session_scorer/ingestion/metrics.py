"""Metrics accumulator: fold a session log into a SessionMetrics value.

Files are streamed line by line, so transcript size is bounded by disk, not
memory. Identical bytes always produce identical metrics.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..exceptions import FileAccessError
from ..models import SessionMetrics
from .events import SKIP, EventKind, parse_line

logger = logging.getLogger(__name__)


class MetricsAccumulator:
    """Incrementally folds parsed lines into counts and a timestamp range.

    Attributes:
        skipped: Lines that parsed to SKIP (blank, malformed, untyped).
    """

    def __init__(self) -> None:
        self.skipped = 0
        self._metrics = SessionMetrics()
        self._first: Optional[datetime] = None
        self._last: Optional[datetime] = None

    def feed(self, line: str) -> None:
        event = parse_line(line)
        if event is SKIP:
            self.skipped += 1
            return

        m = self._metrics
        m.total_events += 1

        if event.timestamp is not None:
            if self._first is None or event.timestamp < self._first:
                self._first = event.timestamp
            if self._last is None or event.timestamp > self._last:
                self._last = event.timestamp

        kind = event.kind
        if kind is EventKind.TOOL_CALL:
            m.tool_calls += 1
            m.tool_breakdown[event.tool_name] = m.tool_breakdown.get(event.tool_name, 0) + 1
        elif kind is EventKind.REASONING:
            m.reasoning_events += 1
        elif kind is EventKind.USER_MESSAGE:
            m.user_messages += 1
        elif kind is EventKind.ASSISTANT_MESSAGE:
            m.assistant_messages += 1
        elif kind is EventKind.ERROR:
            m.errors += 1

    def feed_all(self, lines: Iterable[str]) -> MetricsAccumulator:
        for line in lines:
            self.feed(line)
        return self

    @property
    def metrics(self) -> SessionMetrics:
        """Snapshot of the folded metrics, with duration in milliseconds."""
        m = self._metrics
        duration = None
        if self._first is not None and self._last is not None:
            duration = (self._last - self._first).total_seconds() * 1000.0
        return SessionMetrics(
            total_events=m.total_events,
            tool_calls=m.tool_calls,
            tool_breakdown=dict(m.tool_breakdown),
            errors=m.errors,
            duration=duration,
            user_messages=m.user_messages,
            assistant_messages=m.assistant_messages,
            reasoning_events=m.reasoning_events,
        )


def parse_session_file(filepath: Union[str, Path]) -> SessionMetrics:
    """Stream a session log from disk into metrics.

    Raises:
        FileAccessError: If the file is missing, unreadable, or not a
            regular file (a FIFO or device could block the read forever).
    """
    path = Path(filepath)
    if path.exists() and not path.is_file():
        raise FileAccessError(filepath, "not a regular file")

    accumulator = MetricsAccumulator()
    try:
        with open(filepath, encoding="utf-8", errors="replace") as f:
            accumulator.feed_all(f)
    except OSError as e:
        raise FileAccessError(filepath, str(e)) from e

    if accumulator.skipped:
        logger.debug("Skipped %d unparseable line(s) in %s", accumulator.skipped, filepath)

    return accumulator.metrics
