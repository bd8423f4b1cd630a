"""Data models for session scores and the persisted score report.

All records serialise to the camelCase JSON shape of the score store
document (``lastScan``, ``totalSessions``, ``scores``) and load back
losslessly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

GRADES = ("A", "B", "C", "D", "F")


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class SessionMetrics:
    """Aggregate counts for one session log.

    ``duration`` is in milliseconds and stays ``None`` when the file carried
    no timestamps, so "unknown" is distinguishable from a zero-length session.
    """

    total_events: int = 0
    tool_calls: int = 0
    tool_breakdown: dict[str, int] = field(default_factory=dict)
    errors: int = 0
    duration: Optional[float] = None
    user_messages: int = 0
    assistant_messages: int = 0
    reasoning_events: int = 0

    @property
    def distinct_tools(self) -> int:
        return len(self.tool_breakdown)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "totalEvents": self.total_events,
            "toolCalls": self.tool_calls,
            "toolBreakdown": dict(self.tool_breakdown),
            "errors": self.errors,
            "userMessages": self.user_messages,
            "assistantMessages": self.assistant_messages,
            "reasoningEvents": self.reasoning_events,
        }
        if self.duration is not None:
            data["duration"] = self.duration
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionMetrics:
        return cls(
            total_events=data.get("totalEvents", 0),
            tool_calls=data.get("toolCalls", 0),
            tool_breakdown=dict(data.get("toolBreakdown", {})),
            errors=data.get("errors", 0),
            duration=data.get("duration"),
            user_messages=data.get("userMessages", 0),
            assistant_messages=data.get("assistantMessages", 0),
            reasoning_events=data.get("reasoningEvents", 0),
        )


@dataclass
class RuleCheck:
    """Outcome of one behavioral rule against a transcript."""

    rule_id: str
    rule_name: str
    passed: bool
    description: str = ""
    confidence: float = 0.0  # 1.0 when passed
    evidence: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ruleId": self.rule_id,
            "ruleName": self.rule_name,
            "description": self.description,
            "passed": self.passed,
            "confidence": self.confidence,
            "evidence": self.evidence,
            "suggestion": self.suggestion,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RuleCheck:
        return cls(
            rule_id=data["ruleId"],
            rule_name=data.get("ruleName", ""),
            passed=bool(data.get("passed", False)),
            description=data.get("description", ""),
            confidence=data.get("confidence", 0.0),
            evidence=data.get("evidence"),
            suggestion=data.get("suggestion"),
        )


@dataclass
class SessionScore:
    """Score record for one session.

    Identity is ``(session_id, file_path)``. Metrics-based scores carry
    ``metrics``; rule-based scores carry ``rules`` and the rule counters.
    ``file_path`` is ``None`` for a transcript scored directly from memory.
    """

    session_id: str
    file_path: Optional[str]
    timestamp: str
    score: float
    grade: str
    summary: str
    metrics: Optional[SessionMetrics] = None
    rules: Optional[list[RuleCheck]] = None
    total_rules: Optional[int] = None
    passed_rules: Optional[int] = None
    weighted_percentage: Optional[float] = None

    @property
    def is_rule_based(self) -> bool:
        return self.rules is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "sessionId": self.session_id,
            "filePath": self.file_path,
            "timestamp": self.timestamp,
            "score": self.score,
            "grade": self.grade,
            "summary": self.summary,
        }
        if self.metrics is not None:
            data["metrics"] = self.metrics.to_dict()
        if self.rules is not None:
            data["rules"] = [r.to_dict() for r in self.rules]
            data["totalRules"] = self.total_rules
            data["passedRules"] = self.passed_rules
            data["weightedPercentage"] = self.weighted_percentage
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionScore:
        metrics = data.get("metrics")
        rules = data.get("rules")
        return cls(
            session_id=data["sessionId"],
            file_path=data.get("filePath"),
            timestamp=data.get("timestamp", ""),
            score=data["score"],
            grade=data["grade"],
            summary=data.get("summary", ""),
            metrics=SessionMetrics.from_dict(metrics) if metrics is not None else None,
            rules=[RuleCheck.from_dict(r) for r in rules] if rules is not None else None,
            total_rules=data.get("totalRules"),
            passed_rules=data.get("passedRules"),
            weighted_percentage=data.get("weightedPercentage"),
        )


@dataclass
class ScoreReport:
    """Process-wide score snapshot; ``scores`` is in processing order."""

    last_scan: str = field(default_factory=utc_now_iso)
    total_sessions: int = 0
    scores: list[SessionScore] = field(default_factory=list)

    def contains(self, file_path: str) -> bool:
        return any(s.file_path == file_path for s in self.scores)

    def add(self, score: SessionScore) -> None:
        """Append a score and keep ``total_sessions`` in step with ``scores``."""
        self.scores.append(score)
        self.total_sessions = len(self.scores)
        self.last_scan = utc_now_iso()

    def grade_distribution(self) -> dict[str, int]:
        counts = {grade: 0 for grade in GRADES}
        for s in self.scores:
            counts[s.grade] = counts.get(s.grade, 0) + 1
        return counts

    def average_score(self) -> Optional[float]:
        if not self.scores:
            return None
        return sum(s.score for s in self.scores) / len(self.scores)

    def recent(self, n: int) -> list[SessionScore]:
        """Last ``n`` scores, newest first."""
        if n <= 0:
            return []
        return list(reversed(self.scores[-n:]))

    def to_dict(self) -> dict[str, Any]:
        return {
            "lastScan": self.last_scan,
            "totalSessions": self.total_sessions,
            "scores": [s.to_dict() for s in self.scores],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScoreReport:
        scores = [SessionScore.from_dict(s) for s in data.get("scores", [])]
        return cls(
            last_scan=data.get("lastScan") or utc_now_iso(),
            total_sessions=data.get("totalSessions", len(scores)),
            scores=scores,
        )
