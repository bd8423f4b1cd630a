"""Event parser: one raw session-log line in, one classified event (or SKIP) out.

Recognised shapes::

    {"type": "response_item", "payload": {"type": "function_call", "name": ...}}
    {"type": "response_item", "payload": {"type": "reasoning"}}
    {"type": "response_item", "payload": {"type": "message", "role": ...}}
    {"type": "event_msg", "payload": {"event_type": "error" | "tool_error"}}

Any other object with a string ``type`` is an OTHER event: it still counts
towards the event total and its ``timestamp`` still feeds duration tracking.
Blank lines, malformed JSON, non-object JSON and objects without a ``type``
come back as :data:`SKIP`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union


class EventKind(Enum):
    TOOL_CALL = "tool_call"
    REASONING = "reasoning"
    USER_MESSAGE = "user_message"
    ASSISTANT_MESSAGE = "assistant_message"
    ERROR = "error"
    OTHER = "other"


class _Skip:
    """Outcome for a line that contributes nothing to the session."""

    _instance: Optional[_Skip] = None

    def __new__(cls) -> _Skip:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SKIP"

    def __bool__(self) -> bool:
        return False


SKIP = _Skip()

ASSISTANT_ROLES = frozenset({"assistant", "developer"})
ERROR_EVENT_TYPES = frozenset({"error", "tool_error"})


@dataclass(frozen=True)
class SessionEvent:
    kind: EventKind
    timestamp: Optional[datetime] = None
    tool_name: Optional[str] = None


ParseResult = Union[SessionEvent, _Skip]


def parse_line(line: str) -> ParseResult:
    """Classify one log line. Never raises on bad input."""
    if not line or not line.strip():
        return SKIP

    try:
        obj = json.loads(line)
    except ValueError:
        return SKIP

    if not isinstance(obj, dict):
        return SKIP

    event_type = obj.get("type")
    if not isinstance(event_type, str) or not event_type:
        return SKIP

    timestamp = parse_timestamp(obj.get("timestamp"))
    payload = obj.get("payload")
    if not isinstance(payload, dict):
        payload = {}

    if event_type == "response_item":
        return _classify_response_item(payload, timestamp)

    if event_type == "event_msg" and payload.get("event_type") in ERROR_EVENT_TYPES:
        return SessionEvent(EventKind.ERROR, timestamp)

    return SessionEvent(EventKind.OTHER, timestamp)


def _classify_response_item(payload: dict[str, Any], timestamp: Optional[datetime]) -> SessionEvent:
    item_type = payload.get("type")

    if item_type == "function_call":
        name = payload.get("name") or "unknown"
        return SessionEvent(EventKind.TOOL_CALL, timestamp, tool_name=str(name))

    if item_type == "reasoning":
        return SessionEvent(EventKind.REASONING, timestamp)

    if item_type == "message":
        role = payload.get("role")
        if role == "user":
            return SessionEvent(EventKind.USER_MESSAGE, timestamp)
        if role in ASSISTANT_ROLES:
            return SessionEvent(EventKind.ASSISTANT_MESSAGE, timestamp)

    return SessionEvent(EventKind.OTHER, timestamp)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch-milliseconds number to an aware datetime.

    Returns None for missing or unparseable values.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        ts = datetime.fromisoformat(text)
    except ValueError:
        return None

    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts
