"""Tests for single-file ingestion and the scan orchestrator."""

import os
import threading

import pytest

from session_scorer.exceptions import FileAccessError, InvalidPathError, StoreError
from session_scorer.pipeline import (
    ScanOrchestrator,
    ingest_file,
    normalize_path,
    score_session_file,
    session_id_from_path,
)


class TestSessionId:
    def test_prefix_and_extension_stripped(self):
        assert session_id_from_path("/x/rollout-2025-01-01T10-00-00-abc.jsonl") == (
            "2025-01-01T10-00-00-abc"
        )

    def test_without_prefix(self):
        assert session_id_from_path("/x/plain.jsonl") == "plain"

    def test_custom_prefix(self):
        assert session_id_from_path("run_7.log", prefix="run_", extension=".log") == "7"


class TestScoreSessionFile:
    def test_varied_tools(self, write_session, events, config):
        """10 tool calls over 3 tools and no errors scores 100 / A."""
        names = ["shell"] * 4 + ["read_file"] * 3 + ["apply_patch"] * 3
        path = write_session("rollout-abc.jsonl", [events.tool_call(n) for n in names])

        score = score_session_file(path, config)

        assert score.session_id == "abc"
        assert score.file_path == normalize_path(path)
        assert score.score == 100
        assert score.grade == "A"
        assert score.summary == "10 events, 10 tool calls"
        assert score.metrics.tool_breakdown == {"shell": 4, "read_file": 3, "apply_patch": 3}

    def test_tool_errors_without_tool_calls(self, write_session, events, config):
        path = write_session(
            "rollout-err.jsonl",
            [
                events.message("user"),
                events.message("assistant"),
                events.message("user"),
                events.error("tool_error"),
                events.error("tool_error"),
            ],
        )
        score = score_session_file(path, config)
        assert score.score == 65
        assert score.grade == "D"
        assert score.summary == "5 events, 0 tool calls, 2 errors"


class TestIngestFile:
    def test_idempotent(self, write_session, events, store, config):
        path = write_session("rollout-a.jsonl", [events.tool_call()] * 5)

        first = ingest_file(store, path, config)
        second = ingest_file(store, path, config)

        assert first is not None
        assert second is None
        report = store.load_all()
        assert report.total_sessions == 1
        assert [s.file_path for s in report.scores] == [normalize_path(path)]

    def test_missing_file_writes_nothing(self, sessions_dir, store, config):
        with pytest.raises(FileAccessError):
            ingest_file(store, sessions_dir / "gone.jsonl", config)
        assert not store.path.exists()

    def test_store_usable_while_file_is_read(self, write_session, events, store, config, monkeypatch):
        """Other threads can read the store while a session file is being parsed."""
        path = write_session("rollout-slow.jsonl", [events.tool_call()] * 5)

        import session_scorer.pipeline as pipeline

        real_parse = pipeline.parse_session_file
        reader_done = {}

        def _parse(p):
            reader = threading.Thread(
                target=lambda: reader_done.setdefault("total", store.load_all().total_sessions)
            )
            reader.start()
            reader.join(timeout=5)
            reader_done["finished"] = not reader.is_alive()
            return real_parse(p)

        monkeypatch.setattr(pipeline, "parse_session_file", _parse)

        assert ingest_file(store, path, config) is not None
        assert reader_done == {"total": 0, "finished": True}

    def test_recheck_after_parse(self, write_session, events, store, config, monkeypatch):
        """A path scored by someone else while this parse ran is not appended twice."""
        path = write_session("rollout-race.jsonl", [events.tool_call()] * 5)

        import session_scorer.pipeline as pipeline

        real_score = pipeline.score_session_file

        def _score(p, cfg):
            score = real_score(p, cfg)
            store.append(real_score(p, cfg))
            return score

        monkeypatch.setattr(pipeline, "score_session_file", _score)

        assert ingest_file(store, path, config) is None
        assert store.load_all().total_sessions == 1


class TestScanOrchestrator:
    def test_appends_only_unseen(self, write_session, events, store, config):
        old = [write_session(f"rollout-old{i}.jsonl", [events.tool_call()]) for i in range(2)]
        for path in old:
            ingest_file(store, path, config)
        before = store.load_all()

        for i in range(3):
            write_session(f"rollout-new{i}.jsonl", [events.reasoning()], subdir=f"2025/01/0{i + 1}")

        new_count = ScanOrchestrator(config, store).scan()

        after = store.load_all()
        assert new_count == 3
        assert after.total_sessions == before.total_sessions + 3
        # Existing entries untouched and still first
        assert [s.to_dict() for s in after.scores[:2]] == [s.to_dict() for s in before.scores]

    def test_rescan_is_noop(self, write_session, events, store, config):
        write_session("rollout-a.jsonl", [events.tool_call()])
        orchestrator = ScanOrchestrator(config, store)
        assert orchestrator.scan() == 1
        assert orchestrator.scan() == 0
        assert store.load_all().total_sessions == 1

    def test_rescan_loads_store_once(self, write_session, events, store, config, monkeypatch):
        """Already-scored files are skipped from one snapshot, without re-parsing."""
        for i in range(5):
            write_session(f"rollout-{i}.jsonl", [events.tool_call()])
        orchestrator = ScanOrchestrator(config, store)
        assert orchestrator.scan() == 5

        import session_scorer.pipeline as pipeline

        loads = {"n": 0}
        real_load = store.load_all

        def _load():
            loads["n"] += 1
            return real_load()

        def _parse(path):
            raise AssertionError(f"re-parsed {path}")

        monkeypatch.setattr(store, "load_all", _load)
        monkeypatch.setattr(pipeline, "parse_session_file", _parse)

        assert orchestrator.scan() == 0
        assert loads["n"] == 1

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs os.mkfifo")
    def test_fifo_is_not_discovered(self, write_session, events, sessions_dir, store, config):
        os.mkfifo(sessions_dir / "rollout-pipe.jsonl")
        write_session("rollout-a.jsonl", [events.tool_call()])
        assert ScanOrchestrator(config, store).scan() == 1

    def test_ignores_other_extensions(self, write_session, events, sessions_dir, store, config):
        write_session("rollout-a.jsonl", [events.tool_call()])
        (sessions_dir / "notes.txt").write_text("hello")
        (sessions_dir / "dir.jsonl").mkdir()
        assert ScanOrchestrator(config, store).discover() == [
            normalize_path(sessions_dir / "rollout-a.jsonl")
        ]

    def test_unreadable_file_is_skipped(self, write_session, events, store, config, monkeypatch):
        good = write_session("rollout-good.jsonl", [events.tool_call()])
        bad = write_session("rollout-bad.jsonl", [events.tool_call()])

        import session_scorer.pipeline as pipeline

        real_parse = pipeline.parse_session_file

        def _parse(path):
            if path == normalize_path(bad):
                return real_parse(path + ".missing")
            return real_parse(path)

        monkeypatch.setattr(pipeline, "parse_session_file", _parse)

        assert ScanOrchestrator(config, store).scan() == 1
        assert [s.file_path for s in store.load_all().scores] == [normalize_path(good)]

    def test_progress_persisted_before_store_failure(self, write_session, events, store, config, monkeypatch):
        """A failing save aborts the scan but earlier saves survive."""
        for name in ("a", "b", "c"):
            write_session(f"rollout-{name}.jsonl", [events.tool_call()])

        real_save = store.save
        calls = {"n": 0}

        def _save(report):
            calls["n"] += 1
            if calls["n"] == 2:
                raise StoreError(store.path, "disk full")
            real_save(report)

        monkeypatch.setattr(store, "save", _save)

        with pytest.raises(StoreError):
            ScanOrchestrator(config, store).scan()

        assert store.load_all().total_sessions == 1

    def test_on_scored_callback(self, write_session, events, store, config):
        write_session("rollout-a.jsonl", [events.tool_call()])
        seen = []
        ScanOrchestrator(config, store, on_scored=seen.append).scan()
        assert [s.session_id for s in seen] == ["a"]

    def test_missing_root(self, tmp_path, store):
        from session_scorer.config import ScorerConfig

        config = ScorerConfig(sessions_dir=str(tmp_path / "nope"), scores_file=str(store.path))
        with pytest.raises(InvalidPathError):
            ScanOrchestrator(config, store).scan()
