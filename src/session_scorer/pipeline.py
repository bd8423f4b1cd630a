"""Ingestion pipeline and scan orchestrator.

One session file flows: path -> metrics (streamed parse) -> metrics-based
score -> store. ``ingest_file`` runs that flow for one path; the parse happens
outside the store lock and only the re-check -> append -> save step runs in
the store transaction. ``ScanOrchestrator`` runs it for every unseen file
under the sessions root.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Optional, Union

from .config import ScorerConfig
from .exceptions import IngestionError, InvalidPathError
from .ingestion.metrics import parse_session_file
from .models import SessionScore, utc_now_iso
from .scoring.calculator import score_metrics
from .store import ScoreStore

logger = logging.getLogger(__name__)

ScoredCallback = Callable[[SessionScore], None]


def normalize_path(path: Union[str, Path]) -> str:
    """Absolute path string used as the store's dedup key."""
    return os.path.abspath(os.fspath(path))


def session_id_from_path(path: Union[str, Path], prefix: str = "rollout-", extension: str = ".jsonl") -> str:
    """``rollout-2025-01-01-abc.jsonl`` -> ``2025-01-01-abc``."""
    name = Path(path).name
    if extension and name.endswith(extension):
        name = name[: -len(extension)]
    if prefix and name.startswith(prefix):
        name = name[len(prefix) :]
    return name


def score_session_file(path: Union[str, Path], config: Optional[ScorerConfig] = None) -> SessionScore:
    """Parse one session log and score it with the metrics-based strategy.

    Raises:
        FileAccessError: If the file cannot be read.
    """
    config = config or ScorerConfig()
    file_path = normalize_path(path)
    metrics = parse_session_file(file_path)
    result = score_metrics(metrics)
    return SessionScore(
        session_id=session_id_from_path(file_path, config.session_id_prefix, config.transcript_extension),
        file_path=file_path,
        timestamp=utc_now_iso(),
        score=result.score,
        grade=result.grade,
        summary=result.summary,
        metrics=metrics,
    )


def ingest_file(store: ScoreStore, path: Union[str, Path], config: ScorerConfig) -> Optional[SessionScore]:
    """Score ``path`` and append it to the store unless already present.

    The file is parsed outside the store lock, so a slow or stuck read only
    delays this session. The dedup check is repeated on the freshly loaded
    report before append -> save.

    Returns:
        The new score, or None when the path was already scored.

    Raises:
        FileAccessError: If the file cannot be read.
        StoreError: If the report cannot be loaded or saved.
    """
    file_path = normalize_path(path)
    if store.exists(file_path):
        return None

    score = score_session_file(file_path, config)
    return _append_unless_present(store, score)


def _append_unless_present(store: ScoreStore, score: SessionScore) -> Optional[SessionScore]:
    with store.transaction() as report:
        if report.contains(score.file_path):
            return None
        report.add(score)
        store.save(report)
    return score


class ScanOrchestrator:
    """Full enumeration of the sessions root, feeding unseen files to the pipeline.

    Used for the cold-start scan before watching and for on-demand rescans.
    A scan only ever appends; existing entries are never touched.
    """

    def __init__(
        self,
        config: ScorerConfig,
        store: ScoreStore,
        on_scored: Optional[ScoredCallback] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.on_scored = on_scored
        self.root_dir = config.sessions_path.resolve()

    def discover(self) -> list[str]:
        """All transcript files under the root, recursively, in sorted order.

        Raises:
            InvalidPathError: If the root is missing or not a directory.
        """
        if not self.root_dir.is_dir():
            raise InvalidPathError(self.root_dir, "sessions directory does not exist")
        pattern = f"*{self.config.transcript_extension}"
        return sorted(normalize_path(p) for p in self.root_dir.rglob(pattern) if p.is_file())

    def scan(self) -> int:
        """Score every unseen file, persisting after each success.

        Each file is parsed without holding the store lock; the lock is
        taken only to re-check, append and save. Unreadable files are logged
        and skipped. A store failure aborts the scan; scores saved before it
        are kept.

        Returns:
            Number of newly scored sessions.

        Raises:
            InvalidPathError: If the root is missing.
            StoreError: If the report cannot be loaded or saved.
        """
        files = self.discover()
        logger.info("Scanning %d session file(s) under %s", len(files), self.root_dir)

        known = {s.file_path for s in self.store.load_all().scores}
        new_count = 0
        for file_path in files:
            if file_path in known:
                continue
            try:
                score = score_session_file(file_path, self.config)
            except IngestionError as e:
                logger.warning("Skipping %s: %s", file_path, e)
                continue
            known.add(file_path)
            if _append_unless_present(self.store, score) is None:
                continue
            new_count += 1
            if self.on_scored is not None:
                self.on_scored(score)

        logger.info("Scan complete: %d new session(s)", new_count)
        return new_count
