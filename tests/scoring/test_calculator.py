"""Tests for the metrics-based and rule-based score strategies."""

import itertools

import pytest

from session_scorer.models import RuleCheck, SessionMetrics
from session_scorer.scoring.calculator import (
    grade_for,
    metrics_summary,
    score_metrics,
    score_rule_checks,
)


def _checks(passed, total):
    return [
        RuleCheck(
            rule_id=f"r{i}",
            rule_name=f"Rule {i}",
            passed=i < passed,
            suggestion=None if i < passed else f"Consider: fix r{i}",
        )
        for i in range(total)
    ]


class TestGrades:
    @pytest.mark.parametrize(
        "score,grade",
        [
            (100, "A"),
            (90, "A"),
            (89.999, "B"),
            (80, "B"),
            (79.99, "C"),
            (70, "C"),
            (69.5, "D"),
            (60, "D"),
            (59.999, "F"),
            (0, "F"),
        ],
    )
    def test_threshold_boundaries(self, score, grade):
        assert grade_for(score) == grade


class TestMetricsScore:
    def test_varied_tools_no_errors(self):
        """10 tool calls across 3 tools: 100 + 9, clamped to 100."""
        metrics = SessionMetrics(
            total_events=10,
            tool_calls=10,
            tool_breakdown={"shell": 4, "read": 3, "apply_patch": 3},
        )
        result = score_metrics(metrics)
        assert result.score == 100
        assert result.grade == "A"

    def test_tool_errors_without_tools(self):
        """2 errors, no tool calls, short session: 100 - 20 - 20 - 15."""
        metrics = SessionMetrics(total_events=2, errors=2)
        result = score_metrics(metrics)
        assert result.score == 45
        assert result.grade == "F"

    def test_two_errors_no_tools_long_session(self):
        metrics = SessionMetrics(total_events=6, errors=2, user_messages=4)
        result = score_metrics(metrics)
        assert result.score == 65
        assert result.grade == "D"

    def test_tool_variety_is_capped(self):
        breakdown = {f"tool{i}": 1 for i in range(10)}
        metrics = SessionMetrics(total_events=20, tool_calls=10, tool_breakdown=breakdown, errors=3)
        # 100 - 30 + 15
        assert score_metrics(metrics).score == 85

    def test_reasoning_is_capped(self):
        metrics = SessionMetrics(
            total_events=20, tool_calls=1, tool_breakdown={"shell": 1}, reasoning_events=7, errors=4
        )
        # 100 - 40 + 3 + 10
        assert score_metrics(metrics).score == 73

    def test_clamped_at_zero(self):
        metrics = SessionMetrics(total_events=1, errors=50)
        result = score_metrics(metrics)
        assert result.score == 0
        assert result.grade == "F"

    def test_always_bounded(self):
        for errors, tools, reasoning, total in itertools.product(
            range(0, 15), [0, 1, 3, 8], [0, 1, 4], [0, 4, 5, 50]
        ):
            metrics = SessionMetrics(
                total_events=total,
                tool_calls=tools,
                tool_breakdown={f"t{i}": 1 for i in range(tools)},
                errors=errors,
                reasoning_events=reasoning,
            )
            result = score_metrics(metrics)
            assert 0 <= result.score <= 100
            assert result.grade == grade_for(result.score)


class TestMetricsSummary:
    def test_minimal(self):
        assert metrics_summary(SessionMetrics(total_events=3, tool_calls=1)) == "3 events, 1 tool calls"

    def test_all_parts_in_order(self):
        metrics = SessionMetrics(total_events=12, tool_calls=4, errors=2, reasoning_events=3)
        assert metrics_summary(metrics) == "12 events, 4 tool calls, 2 errors, 3 reasoning"

    def test_zero_errors_omitted(self):
        metrics = SessionMetrics(total_events=12, tool_calls=4, reasoning_events=1)
        assert metrics_summary(metrics) == "12 events, 4 tool calls, 1 reasoning"


class TestRuleScore:
    def test_six_of_eight(self):
        result = score_rule_checks(_checks(6, 8))
        assert result.score == 75.0
        assert result.grade == "C"

    def test_all_passed(self):
        result = score_rule_checks(_checks(8, 8))
        assert result.score == 100.0
        assert result.summary == "Excellent adherence (100%). All critical rules followed."

    def test_empty_rule_set(self):
        result = score_rule_checks([])
        assert result.score == 0.0
        assert result.grade == "F"

    def test_caller_summary_wins(self):
        result = score_rule_checks(_checks(1, 2), summary="reviewed by hand")
        assert result.summary == "reviewed by hand"

    @pytest.mark.parametrize(
        "passed,prefix",
        [
            (6, "Good adherence (75%). 2 minor improvements possible."),
            (4, "Moderate adherence (50%). 4 rules need attention."),
            (1, "Needs improvement (12%). 7 critical rules missed."),
        ],
    )
    def test_derived_summary(self, passed, prefix):
        result = score_rule_checks(_checks(passed, 8))
        assert result.summary.startswith(prefix)
        assert result.summary.endswith(f"Next: Consider: fix r{passed}")
