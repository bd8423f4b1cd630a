"""Directory watcher that scores new session logs as they are written.

Lifecycle::

    IDLE -> SCANNING -> WATCHING -> (event) DEBOUNCING -> PROCESSING -> WATCHING
    WATCHING -> FAILED  (the filesystem watch itself died)
    any state -> STOPPED

The initial scan finishes before the live watch is registered. Each
notification gets its own fixed quiet period on a ``threading.Timer``, so
events for different files never wait on each other or on the worker pool;
only the processing step runs on the pool. The dedup check on the reloaded
report absorbs repeated notifications for the same file.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Optional

from watchfiles import Change, watch

from .config import ScorerConfig
from .models import SessionScore
from .pipeline import ScanOrchestrator, ScoredCallback, ingest_file, normalize_path
from .store import ScoreStore

logger = logging.getLogger(__name__)

# watchfiles groups raw notifications for this long before yielding a batch
WATCH_BATCH_MS = 50

# Seconds to wait for the watch thread on stop
STOP_TIMEOUT_SECONDS = 5


class WatcherState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    WATCHING = "watching"
    DEBOUNCING = "debouncing"
    PROCESSING = "processing"
    FAILED = "failed"
    STOPPED = "stopped"


class SessionWatcher:
    """Watches the sessions root and feeds new transcripts to the pipeline.

    Uses ``watchfiles`` (Rust-backed) in a background thread. Debounce delays
    run on per-event timers; processing runs on a small thread pool.

    Attributes:
        failure: The exception that ended the watch loop, once ``state`` is
            FAILED.
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
        self.root_dir = str(config.sessions_path.resolve())
        self.debounce_seconds = config.debounce_seconds
        self.failure: Optional[BaseException] = None

        self._scanner = ScanOrchestrator(config, store, on_scored=on_scored)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._executor: Optional[ThreadPoolExecutor] = None

        self._state_lock = threading.Lock()
        self._phase = WatcherState.IDLE
        self._pending: dict[Future, threading.Timer] = {}
        self._processing = 0

    @property
    def state(self) -> WatcherState:
        with self._state_lock:
            if self._phase is not WatcherState.WATCHING:
                return self._phase
            if self._processing:
                return WatcherState.PROCESSING
            if self._pending:
                return WatcherState.DEBOUNCING
            return WatcherState.WATCHING

    def start(self) -> int:
        """Run the initial scan, then start watching.

        Returns:
            Number of sessions scored by the initial scan.

        Raises:
            RuntimeError: If the watcher was already started.
            InvalidPathError: If the sessions root does not exist.
            StoreError: If the store cannot be read or written.
        """
        with self._state_lock:
            if self._phase is not WatcherState.IDLE:
                raise RuntimeError(f"Watcher cannot start from state {self._phase.value}")
            self._phase = WatcherState.SCANNING

        try:
            new_count = self._scanner.scan()
        except BaseException:
            with self._state_lock:
                self._phase = WatcherState.IDLE
            raise

        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="session-scorer-worker",
        )
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="session-scorer-watcher",
            daemon=True,
        )
        with self._state_lock:
            self._phase = WatcherState.WATCHING
        self._thread.start()
        return new_count

    def stop(self) -> None:
        """Stop watching. Safe to call more than once.

        Pending debounces are cancelled and resolve to None; a file already
        being processed is finished and saved before this returns.
        """
        with self._state_lock:
            if self._phase is WatcherState.STOPPED:
                return
            self._phase = WatcherState.STOPPED
            pending = list(self._pending.items())
            self._pending.clear()

        logger.debug("Stopping session watcher...")
        self._stop_event.set()

        for future, timer in pending:
            timer.cancel()
            future.set_result(None)
        if pending:
            logger.debug("Dropped %d pending notification(s)", len(pending))

        if self._thread is not None:
            self._thread.join(timeout=STOP_TIMEOUT_SECONDS)
            if self._thread.is_alive():
                logger.warning(
                    "Watcher thread did not exit within %d seconds", STOP_TIMEOUT_SECONDS
                )

        if self._executor is not None:
            self._executor.shutdown(wait=True)

        logger.debug("Session watcher stopped")

    def notify(self, path: str) -> Optional[Future]:
        """Handle one filesystem notification for ``path``.

        Returns:
            Future resolving to the new SessionScore (or None when skipped),
            or None when the notification was ignored outright.
        """
        if not path.endswith(self.config.transcript_extension):
            return None

        future: Future = Future()
        with self._state_lock:
            if self._phase is not WatcherState.WATCHING:
                return None
            timer = threading.Timer(
                self.debounce_seconds,
                self._debounce_elapsed,
                args=(normalize_path(path), future),
            )
            timer.daemon = True
            self._pending[future] = timer
            timer.start()
        return future

    def _debounce_elapsed(self, path: str, future: Future) -> None:
        with self._state_lock:
            if self._pending.pop(future, None) is None:
                # Cancelled by stop()
                return
            executor = self._executor
            self._processing += 1

        try:
            executor.submit(self._run, path, future)
        except RuntimeError:
            # Executor already shut down by a concurrent stop()
            with self._state_lock:
                self._processing -= 1
            logger.debug("Dropping %s: watcher stopped during debounce", path)
            future.set_result(None)

    def _run(self, path: str, future: Future) -> None:
        try:
            future.set_result(self._process(path))
        finally:
            with self._state_lock:
                self._processing -= 1

    def _process(self, path: str) -> Optional[SessionScore]:
        """Ingest one file; failures are logged and never stop the watcher."""
        try:
            score = ingest_file(self.store, path, self.config)
        except Exception:
            logger.exception("Failed to score %s", path)
            return None

        if score is None:
            logger.debug("Already scored: %s", path)
            return None

        logger.info("Scored session %s: %s (%s)", score.session_id, score.grade, score.score)
        if self.on_scored is not None:
            try:
                self.on_scored(score)
            except Exception:
                logger.exception("on_scored callback failed for %s", path)
        return score

    def _watch_loop(self) -> None:
        """Background thread: forward matching notifications to :meth:`notify`.

        If the watch itself raises (for example the root was removed) the
        watcher moves to FAILED and records the error in ``failure``.
        """
        logger.info("Watching %s for new sessions", self.root_dir)
        try:
            for changes in watch(
                self.root_dir,
                watch_filter=_TranscriptFilter(self.config.transcript_extension),
                stop_event=self._stop_event,
                debounce=WATCH_BATCH_MS,
                recursive=True,
            ):
                if self._stop_event.is_set():
                    break
                for _change, path in sorted(changes):
                    self.notify(path)
        except Exception as e:
            logger.exception("File watching stopped unexpectedly")
            with self._state_lock:
                self.failure = e
                if self._phase is WatcherState.WATCHING:
                    self._phase = WatcherState.FAILED


class _TranscriptFilter:
    """watchfiles filter: created or modified files with the transcript extension."""

    def __init__(self, extension: str) -> None:
        self.extension = extension

    def __call__(self, change: Change, path: str) -> bool:
        if change not in (Change.added, Change.modified):
            return False
        return path.endswith(self.extension)
