"""
Session Scorer - behavioral-adherence scoring for recorded agent sessions.

Parses newline-delimited session logs into metrics, turns metrics (or rule
checks against a transcript) into a bounded score and letter grade, and keeps
a deduplicated score store in sync with a live-written sessions directory.
"""

__version__ = "0.1.0"

from .models import RuleCheck, ScoreReport, SessionMetrics, SessionScore
from .pipeline import ScanOrchestrator, score_session_file
from .scoring.direct import score_directory, score_transcript
from .store import ScoreStore
from .watcher import SessionWatcher, WatcherState

__all__ = [
    "ScanOrchestrator",  # Cold start / manual rescan
    "SessionWatcher",  # Long-running watch mode
    "WatcherState",
    "ScoreStore",
    "score_session_file",
    "score_transcript",  # Direct (rule-based) scoring
    "score_directory",
    "SessionMetrics",
    "SessionScore",
    "ScoreReport",
    "RuleCheck",
]
