"""
FlowScribe - Scoring

Weighted health scoring of validation results, with category
breakdowns, recommendations and historical trends.
"""

from flowscribe.scoring.engine import ALL_VALID_MESSAGE, HEALTH_THRESHOLDS, ScoringEngine
from flowscribe.scoring.history import InMemoryScoreHistory, ScoreHistory
from flowscribe.scoring.weights import ComponentWeights

__all__ = [
    "ALL_VALID_MESSAGE",
    "ComponentWeights",
    "HEALTH_THRESHOLDS",
    "InMemoryScoreHistory",
    "ScoreHistory",
    "ScoringEngine",
]
