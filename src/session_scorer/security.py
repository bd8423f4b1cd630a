"""
Input validation for the direct-scoring entry point.

Rejects bad session ids and transcripts before any rule is evaluated, so a
rejected request never produces a partial score.
"""

import re

from .exceptions import ValidationError

# Maximum transcript size in bytes (default 10MB)
DEFAULT_MAX_TRANSCRIPT_BYTES = 10 * 1024 * 1024

MAX_SESSION_ID_LENGTH = 256

SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_session_id(session_id: str) -> str:
    """
    Check that a session id is 1-256 characters of letters, digits, '-' or '_'.

    Raises:
        ValidationError: If the id is empty, too long or has other characters
    """
    if not session_id:
        raise ValidationError("session id", "must not be empty")
    if len(session_id) > MAX_SESSION_ID_LENGTH:
        raise ValidationError(
            "session id", f"longer than {MAX_SESSION_ID_LENGTH} characters"
        )
    if not SESSION_ID_PATTERN.match(session_id):
        raise ValidationError(
            "session id", "only letters, digits, '-' and '_' are allowed"
        )
    return session_id


def validate_transcript(
    transcript: str, max_bytes: int = DEFAULT_MAX_TRANSCRIPT_BYTES
) -> str:
    """
    Check transcript content before rule evaluation.

    Raises:
        ValidationError: If the transcript is blank, oversized or holds NUL bytes
    """
    if not transcript or not transcript.strip():
        raise ValidationError("transcript", "must not be empty")
    size = len(transcript.encode("utf-8", errors="replace"))
    if size > max_bytes:
        raise ValidationError(
            "transcript", f"{size} bytes exceeds the maximum of {max_bytes} bytes"
        )
    if "\0" in transcript:
        raise ValidationError("transcript", "contains NUL characters")
    return transcript
