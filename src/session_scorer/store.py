"""ScoreStore - durable, deduplicated mapping from session files to scores.

The store is a single JSON document (``lastScan``, ``totalSessions``,
``scores``). Every writer goes through one ``ScoreStore`` handle, whose lock
serialises the load -> check -> process -> append -> save critical section
shared by the scan orchestrator and the watcher.

Usage:
    store = ScoreStore("session-scores.json")

    with store.transaction() as report:
        if not report.contains(path):
            report.add(score)
            store.save(report)

    report = store.load_all()
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Union

from .exceptions import StoreError
from .models import ScoreReport, SessionScore

logger = logging.getLogger(__name__)


class ScoreStore:
    """Score report persisted as JSON with atomic replace-on-save.

    Attributes:
        path: Location of the JSON document.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[ScoreReport]:
        """Hold the store lock and yield a freshly loaded report.

        Changes are only persisted when the caller calls :meth:`save`.
        """
        with self._lock:
            yield self.load_all()

    def exists(self, file_path: str) -> bool:
        """Whether a score for ``file_path`` is already recorded."""
        return self.load_all().contains(file_path)

    def append(self, score: SessionScore) -> ScoreReport:
        """Append one score and persist.

        Does not check for duplicates; callers check :meth:`exists` (or
        ``report.contains``) first.

        Raises:
            StoreError: If the report cannot be read or written.
        """
        with self._lock:
            report = self.load_all()
            report.add(score)
            self.save(report)
            return report

    def load_all(self) -> ScoreReport:
        """Load the persisted report.

        A missing or empty file yields a fresh, empty report.

        Raises:
            StoreError: If the file is unreadable or not a valid report.
        """
        with self._lock:
            try:
                text = self.path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return ScoreReport()
            except OSError as e:
                raise StoreError(self.path, str(e)) from e

            if not text.strip():
                return ScoreReport()

            try:
                data = json.loads(text)
                if not isinstance(data, dict):
                    raise ValueError("top-level value is not an object")
                return ScoreReport.from_dict(data)
            except (ValueError, KeyError, TypeError) as e:
                raise StoreError(self.path, f"corrupt score report: {e}") from e

    def save(self, report: ScoreReport) -> None:
        """Persist the report via temp file + ``os.replace``.

        Readers see either the previous document or the new one, never a
        partial write.

        Raises:
            StoreError: If the report cannot be written.
        """
        report.total_sessions = len(report.scores)
        payload = json.dumps(report.to_dict(), indent=2)

        with self._lock:
            tmp_path = None
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(
                    prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
                )
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
                tmp_path = None
            except OSError as e:
                raise StoreError(self.path, str(e)) from e
            finally:
                if tmp_path is not None and os.path.exists(tmp_path):
                    os.unlink(tmp_path)

        logger.debug("Saved %d score(s) to %s", report.total_sessions, self.path)
