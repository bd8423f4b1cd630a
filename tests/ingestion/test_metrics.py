"""Tests for the metrics accumulator and file streaming."""

import os

import pytest

from session_scorer.exceptions import FileAccessError
from session_scorer.ingestion.metrics import MetricsAccumulator, parse_session_file


class TestMetricsAccumulator:
    def test_counts_by_category(self, write_session, events):
        path = write_session(
            "rollout-a.jsonl",
            [
                events.message("user"),
                events.message("assistant"),
                events.message("developer"),
                events.reasoning(),
                events.tool_call("shell"),
                events.tool_call("shell"),
                events.tool_call("apply_patch"),
                events.error("tool_error"),
                {"type": "session_meta"},
            ],
        )
        metrics = parse_session_file(path)

        assert metrics.total_events == 9
        assert metrics.tool_calls == 3
        assert metrics.tool_breakdown == {"shell": 2, "apply_patch": 1}
        assert metrics.errors == 1
        assert metrics.user_messages == 1
        assert metrics.assistant_messages == 2
        assert metrics.reasoning_events == 1

    def test_skips_are_counted(self):
        acc = MetricsAccumulator().feed_all(
            ["", "garbage", '{"no_type": 1}', '{"type": "event_msg"}']
        )
        assert acc.skipped == 3
        assert acc.metrics.total_events == 1

    def test_malformed_line_does_not_change_metrics(self, write_session, events):
        """One corrupt line among valid ones yields the same metrics as without it."""
        good = [
            events.tool_call("shell", ts="2025-01-01T00:00:00Z"),
            events.reasoning(ts="2025-01-01T00:00:05Z"),
            events.error(ts="2025-01-01T00:00:09Z"),
        ]
        clean = write_session("clean.jsonl", good)
        corrupt = write_session("corrupt.jsonl", good[:2] + ['{"type": "response_it'] + good[2:])

        assert parse_session_file(corrupt) == parse_session_file(clean)

    def test_empty_file(self, write_session):
        metrics = parse_session_file(write_session("empty.jsonl", []))
        assert metrics.total_events == 0
        assert metrics.duration is None

    def test_deterministic(self, write_session, events):
        path = write_session(
            "same.jsonl",
            [events.tool_call("b"), events.tool_call("a"), events.reasoning(ts=5)],
        )
        assert parse_session_file(path) == parse_session_file(path)


class TestDuration:
    def test_no_timestamps_is_unknown(self, write_session, events):
        path = write_session("none.jsonl", [events.tool_call(), events.reasoning()])
        assert parse_session_file(path).duration is None

    def test_single_timestamp_is_zero(self, write_session, events):
        path = write_session(
            "one.jsonl", [events.tool_call(ts="2025-01-01T00:00:00Z"), events.reasoning()]
        )
        assert parse_session_file(path).duration == 0

    def test_span_uses_min_and_max(self, write_session, events):
        """Out-of-order timestamps still give max - min, in milliseconds."""
        path = write_session(
            "span.jsonl",
            [
                events.reasoning(ts="2025-01-01T00:00:10Z"),
                events.tool_call(ts="2025-01-01T00:00:00.500Z"),
                {"type": "session_meta", "timestamp": "2025-01-01T00:01:00Z"},
                events.error(ts="2025-01-01T00:00:30Z"),
            ],
        )
        assert parse_session_file(path).duration == pytest.approx(59_500)


class TestFileAccess:
    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileAccessError) as exc_info:
            parse_session_file(tmp_path / "missing.jsonl")
        assert "missing.jsonl" in str(exc_info.value)

    def test_directory_is_refused(self, tmp_path):
        target = tmp_path / "dir.jsonl"
        target.mkdir()
        with pytest.raises(FileAccessError, match="not a regular file"):
            parse_session_file(target)

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs os.mkfifo")
    def test_fifo_is_refused_without_blocking(self, tmp_path):
        fifo = tmp_path / "rollout-pipe.jsonl"
        os.mkfifo(fifo)
        with pytest.raises(FileAccessError, match="not a regular file"):
            parse_session_file(fifo)

    def test_invalid_utf8_is_tolerated(self, sessions_dir):
        path = sessions_dir / "bytes.jsonl"
        path.write_bytes(
            b'{"type": "response_item", "payload": {"type": "reasoning"}}\n\xff\xfe garbage\n'
        )
        metrics = parse_session_file(path)
        assert metrics.reasoning_events == 1
        assert metrics.total_events == 1

    @pytest.mark.slow
    def test_large_file_streams(self, sessions_dir):
        path = sessions_dir / "large.jsonl"
        line = '{"type": "response_item", "payload": {"type": "function_call", "name": "shell"}}\n'
        with open(path, "w", encoding="utf-8") as f:
            for _ in range(200_000):
                f.write(line)
        metrics = parse_session_file(path)
        assert metrics.tool_calls == 200_000
