"""Shared test fixtures for Session Scorer tests."""

import json
from types import SimpleNamespace

import pytest

from session_scorer.config import ScorerConfig
from session_scorer.store import ScoreStore


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def tool_call(name="shell", ts=None):
    event = {"type": "response_item", "payload": {"type": "function_call", "name": name}}
    if ts is not None:
        event["timestamp"] = ts
    return event


def reasoning(ts=None):
    event = {"type": "response_item", "payload": {"type": "reasoning"}}
    if ts is not None:
        event["timestamp"] = ts
    return event


def message(role, ts=None):
    event = {"type": "response_item", "payload": {"type": "message", "role": role}}
    if ts is not None:
        event["timestamp"] = ts
    return event


def error_event(kind="error", ts=None):
    event = {"type": "event_msg", "payload": {"event_type": kind}}
    if ts is not None:
        event["timestamp"] = ts
    return event


@pytest.fixture
def sessions_dir(tmp_path):
    """Empty sessions root."""
    root = tmp_path / "sessions"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def scores_file(tmp_path):
    return tmp_path / "state" / "session-scores.json"


@pytest.fixture
def config(sessions_dir, scores_file):
    """Config pointing at the temp sessions root and store."""
    return ScorerConfig(
        sessions_dir=str(sessions_dir),
        scores_file=str(scores_file),
        debounce_seconds=0.05,
        max_workers=2,
    )


@pytest.fixture
def store(scores_file):
    return ScoreStore(scores_file)


@pytest.fixture
def write_session(sessions_dir):
    """Factory: write a .jsonl session under the sessions root.

    Lines may be dicts (JSON-encoded) or raw strings (written verbatim).
    """

    def _write(name, lines, subdir=None):
        parent = sessions_dir / subdir if subdir else sessions_dir
        parent.mkdir(parents=True, exist_ok=True)
        path = parent / name
        with open(path, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line if isinstance(line, str) else json.dumps(line))
                f.write("\n")
        return path

    return _write


@pytest.fixture
def events():
    """Event builders, so tests can write ``events.tool_call("shell")``."""
    return SimpleNamespace(
        tool_call=tool_call, reasoning=reasoning, message=message, error=error_event
    )
