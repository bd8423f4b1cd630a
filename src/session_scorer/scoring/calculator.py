"""Score calculator: metrics or rule checks in, bounded score + grade + summary out.

Both strategies are pure. Which one runs depends on the entry point: file
discovery scores metrics, direct transcript submission scores rule checks.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from ..models import RuleCheck, SessionMetrics

# (minimum score, grade), checked top-down
GRADE_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (90.0, "A"),
    (80.0, "B"),
    (70.0, "C"),
    (60.0, "D"),
)

MIN_SCORE = 0.0
MAX_SCORE = 100.0

# Metrics-based weights
ERROR_PENALTY = 10
TOOL_VARIETY_POINTS = 3
TOOL_VARIETY_CAP = 15
REASONING_POINTS = 5
REASONING_CAP = 10
SHORT_SESSION_EVENTS = 5
SHORT_SESSION_PENALTY = 20
NO_TOOLS_PENALTY = 15


@dataclass(frozen=True)
class ScoreResult:
    score: float
    grade: str
    summary: str


def grade_for(score: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "F"


def clamp(score: float) -> float:
    return float(max(MIN_SCORE, min(MAX_SCORE, score)))


def score_metrics(metrics: SessionMetrics) -> ScoreResult:
    """Metrics-based strategy.

    Starts at 100, subtracts 10 per error, rewards tool variety (3 per
    distinct tool, max 15) and reasoning (5 per event, max 10), penalises
    sessions under 5 events (-20) and sessions with no tool calls (-15),
    then clamps to [0, 100].
    """
    score = 100
    score -= metrics.errors * ERROR_PENALTY
    score += min(metrics.distinct_tools * TOOL_VARIETY_POINTS, TOOL_VARIETY_CAP)
    score += min(metrics.reasoning_events * REASONING_POINTS, REASONING_CAP)
    if metrics.total_events < SHORT_SESSION_EVENTS:
        score -= SHORT_SESSION_PENALTY
    if metrics.tool_calls == 0:
        score -= NO_TOOLS_PENALTY

    bounded = clamp(score)
    return ScoreResult(score=bounded, grade=grade_for(bounded), summary=metrics_summary(metrics))


def metrics_summary(metrics: SessionMetrics) -> str:
    parts = [f"{metrics.total_events} events", f"{metrics.tool_calls} tool calls"]
    if metrics.errors > 0:
        parts.append(f"{metrics.errors} errors")
    if metrics.reasoning_events > 0:
        parts.append(f"{metrics.reasoning_events} reasoning")
    return ", ".join(parts)


def score_rule_checks(checks: Sequence[RuleCheck], summary: Optional[str] = None) -> ScoreResult:
    """Rule-based strategy: ``100 * passed / total`` (0 for an empty rule set)."""
    total = len(checks)
    passed = sum(1 for c in checks if c.passed)
    score = clamp(100.0 * passed / total) if total else 0.0
    if summary is None:
        summary = rules_summary(checks, score)
    return ScoreResult(score=score, grade=grade_for(score), summary=summary)


def rules_summary(checks: Sequence[RuleCheck], score: float) -> str:
    failed = [c for c in checks if not c.passed]
    pct = int(score)

    if score >= 90:
        text = f"Excellent adherence ({pct}%). All critical rules followed."
    elif score >= 75:
        text = f"Good adherence ({pct}%). {len(failed)} minor improvements possible."
    elif score >= 50:
        text = f"Moderate adherence ({pct}%). {len(failed)} rules need attention."
    else:
        text = f"Needs improvement ({pct}%). {len(failed)} critical rules missed."

    suggestion = next((c.suggestion for c in failed if c.suggestion), None)
    if suggestion:
        text = f"{text} Next: {suggestion}"
    return text
