"""Direct-scoring entry points: score transcripts with the rule set.

``score_transcript`` scores one in-memory transcript; ``score_directory``
batch-scores the transcript files of a directory. Neither touches the score
store; the caller decides whether to persist the returned scores.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Optional, Union

from ..exceptions import InvalidPathError, ValidationError
from ..models import SessionScore, utc_now_iso
from ..security import DEFAULT_MAX_TRANSCRIPT_BYTES, validate_session_id, validate_transcript
from .calculator import score_rule_checks
from .rules import RuleEvaluator

logger = logging.getLogger(__name__)

# Transcript files picked up by score_directory
TRANSCRIPT_EXTENSIONS = (".md", ".json")

# Files directly in the directory plus one level of subdirectories
DIRECTORY_MAX_DEPTH = 2

_default_evaluator: Optional[RuleEvaluator] = None


def _evaluator() -> RuleEvaluator:
    global _default_evaluator
    if _default_evaluator is None:
        _default_evaluator = RuleEvaluator()
    return _default_evaluator


def score_transcript(
    session_id: str,
    transcript: str,
    *,
    evaluator: Optional[RuleEvaluator] = None,
    summary: Optional[str] = None,
    file_path: Optional[str] = None,
    max_bytes: int = DEFAULT_MAX_TRANSCRIPT_BYTES,
) -> SessionScore:
    """Validate input, evaluate every rule and build a rule-based SessionScore.

    Args:
        session_id: Caller-supplied identifier (letters, digits, '-', '_').
        transcript: Raw transcript text.
        evaluator: Rule evaluator to use; defaults to the built-in catalog.
        summary: Summary to record instead of the derived one.
        file_path: Source path to record, when the transcript came from disk.
        max_bytes: Largest accepted transcript, in UTF-8 bytes.

    Raises:
        ValidationError: If the session id or transcript is rejected.
    """
    validate_session_id(session_id)
    validate_transcript(transcript, max_bytes=max_bytes)

    evaluator = evaluator or _evaluator()
    checks = evaluator.evaluate(transcript)
    result = score_rule_checks(checks, summary=summary)

    return SessionScore(
        session_id=session_id,
        file_path=file_path,
        timestamp=utc_now_iso(),
        score=result.score,
        grade=result.grade,
        summary=result.summary,
        rules=checks,
        total_rules=len(checks),
        passed_rules=sum(1 for c in checks if c.passed),
        weighted_percentage=evaluator.weighted_percentage(checks),
    )


def score_directory(
    directory: Union[str, Path],
    *,
    extensions: Iterable[str] = TRANSCRIPT_EXTENSIONS,
    max_depth: int = DIRECTORY_MAX_DEPTH,
    max_bytes: int = DEFAULT_MAX_TRANSCRIPT_BYTES,
    evaluator: Optional[RuleEvaluator] = None,
) -> list[SessionScore]:
    """Rule-score every transcript file under ``directory``.

    Walks at most ``max_depth`` levels (1 = files directly in the directory).
    Files over ``max_bytes`` are skipped; files that cannot be read or fail
    validation are logged and skipped. The session id is the file stem.

    Raises:
        InvalidPathError: If ``directory`` is not a directory.
    """
    root = Path(directory).expanduser()
    if not root.is_dir():
        raise InvalidPathError(root, "not a directory")

    suffixes = {ext.lower() for ext in extensions}
    evaluator = evaluator or _evaluator()
    scores = []

    for path in _walk(root, max_depth):
        if path.suffix.lower() not in suffixes:
            continue
        try:
            size = path.stat().st_size
        except OSError as e:
            logger.warning("Skipping %s: %s", path, e)
            continue
        if size > max_bytes:
            logger.warning("Skipping large file: %s (%d bytes)", path, size)
            continue

        try:
            text = path.read_text(encoding="utf-8", errors="replace")
            scores.append(
                score_transcript(
                    path.stem,
                    text,
                    evaluator=evaluator,
                    file_path=os.path.abspath(path),
                    max_bytes=max_bytes,
                )
            )
        except OSError as e:
            logger.warning("Skipping %s: %s", path, e)
        except ValidationError as e:
            logger.warning("Failed to score %s: %s", path, e)

    return scores


def _walk(root: Path, max_depth: int) -> Iterator[Path]:
    """Regular files under ``root`` in sorted order, down to ``max_depth`` levels."""
    try:
        entries = sorted(root.iterdir())
    except OSError as e:
        logger.warning("Cannot list %s: %s", root, e)
        return
    for entry in entries:
        if entry.is_file():
            yield entry
        elif entry.is_dir() and max_depth > 1:
            yield from _walk(entry, max_depth - 1)
