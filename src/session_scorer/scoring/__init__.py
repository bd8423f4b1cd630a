"""Scoring: rule evaluation and the two score strategies."""

from .calculator import ScoreResult, grade_for, score_metrics, score_rule_checks
from .rules import DEFAULT_RULES, RuleCategory, RuleDefinition, RuleEvaluator

__all__ = [
    "ScoreResult",
    "grade_for",
    "score_metrics",
    "score_rule_checks",
    "DEFAULT_RULES",
    "RuleCategory",
    "RuleDefinition",
    "RuleEvaluator",
]
