"""
Scoring Engine.

Aggregates validation results for a diagram into:
- A weighted overall score (0-100) and a health band
- Per-category breakdown scores
- Rule-based recommendations
- Per-component scores, score deltas and historical trends

All functions are total: empty input and unknown discrepancy or
component types produce neutral values, never exceptions.
"""

import logging
import math
from collections import Counter
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Optional

from flowscribe.config.models import ScoringConfig
from flowscribe.models.base import (
    DiscrepancyType,
    HealthStatus,
    ValidationStatus,
    utc_now,
)
from flowscribe.models.validation import (
    STATUS_SCORES,
    ScoreBreakdown,
    ScoringReport,
    TrendDataPoint,
    ValidationResult,
    create_validation_summary,
)
from flowscribe.scoring.history import ScoreHistory
from flowscribe.scoring.weights import ComponentWeights

logger = logging.getLogger(__name__)

# Lower bound (inclusive) of each health band, best first
HEALTH_THRESHOLDS: tuple[tuple[float, HealthStatus], ...] = (
    (90, HealthStatus.EXCELLENT),
    (75, HealthStatus.GOOD),
    (60, HealthStatus.FAIR),
    (40, HealthStatus.POOR),
)

ALL_VALID_MESSAGE = (
    "All components are valid. Consider scheduling regular validation runs to maintain quality."
)

_FRESHNESS_TYPES = frozenset(
    {DiscrepancyType.OUTDATED_REFERENCE, DiscrepancyType.SCHEMA_VIOLATION}
)


def _round_score(value: float) -> int:
    """Round half up and clamp to 0..100."""
    return max(0, min(100, int(math.floor(value + 0.5))))


class ScoringEngine:
    """Scores validation results against a component weight table.

    Usage:
        engine = ScoringEngine()
        score = engine.calculate_weighted_score(results, diagram.component_types())
        report = engine.generate_scoring_report(results)
    """

    def __init__(
        self,
        weights: Optional[ComponentWeights] = None,
        history: Optional[ScoreHistory] = None,
        trend_limit: int = 10,
    ) -> None:
        """Initialize the engine.

        Args:
            weights: Component type weight table (defaults when omitted)
            history: Store of past validation runs, used for trends
            trend_limit: Number of runs included in report trends
        """
        self._weights = weights or ComponentWeights()
        self._history = history
        self._trend_limit = trend_limit

    @classmethod
    def from_config(
        cls,
        config: ScoringConfig,
        history: Optional[ScoreHistory] = None,
    ) -> "ScoringEngine":
        return cls(
            weights=ComponentWeights(config.component_weights),
            history=history,
            trend_limit=config.trend_limit,
        )

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def calculate_weighted_score(
        self,
        results: Iterable[ValidationResult],
        component_types: Optional[Mapping[str, str | Enum]] = None,
    ) -> int:
        """Weighted average of status scores.

        Each result counts with its confidence times the weight of its
        component's type. Components missing from ``component_types``
        use the default weight.

        Args:
            results: Validation results
            component_types: Component id to component type

        Returns:
            Integer score between 0 and 100; 0 for empty input
        """
        component_types = component_types or {}
        total_score = 0.0
        total_weight = 0.0

        for result in results:
            type_weight = self._weights.weight_for(component_types.get(result.component_id))
            total_score += STATUS_SCORES[result.status] * result.confidence * type_weight
            total_weight += result.confidence * type_weight

        if total_weight <= 0:
            return 0
        score = total_score / total_weight
        if not math.isfinite(score):
            logger.warning("Weighted score is not finite (total weight %s), reporting 0", total_weight)
            return 0
        return _round_score(score)

    def calculate_score_breakdown(self, results: list[ValidationResult]) -> ScoreBreakdown:
        """Category scores from discrepancy types and statuses.

        Each category loses ``issues / len(results) * 100`` points,
        floored at 0.
        """
        if not results:
            return ScoreBreakdown()

        issues: Counter[str] = Counter()
        for result in results:
            for discrepancy in result.discrepancies:
                known = discrepancy.known_type
                if known == DiscrepancyType.CONTENT_MISMATCH:
                    issues["content_accuracy"] += 1
                elif known == DiscrepancyType.MISSING_DATA:
                    issues["data_completeness"] += 1
                elif known == DiscrepancyType.CONFLICTING_SOURCES:
                    issues["source_consistency"] += 1
                elif known in _FRESHNESS_TYPES:
                    issues["freshness"] += 1

            if result.status == ValidationStatus.STALE:
                issues["freshness"] += 1
            elif result.status == ValidationStatus.UNVERIFIABLE:
                issues["data_completeness"] += 1

        def category(name: str) -> float:
            return max(0.0, 100.0 - issues[name] / len(results) * 100.0)

        return ScoreBreakdown(
            content_accuracy=category("content_accuracy"),
            data_completeness=category("data_completeness"),
            source_consistency=category("source_consistency"),
            freshness=category("freshness"),
        )

    def get_health_status(self, score: float) -> HealthStatus:
        for threshold, status in HEALTH_THRESHOLDS:
            if score >= threshold:
                return status
        return HealthStatus.CRITICAL

    def get_component_scores(self, results: Iterable[ValidationResult]) -> dict[str, float]:
        """Status score times confidence per component; later results win."""
        return {r.component_id: STATUS_SCORES[r.status] * r.confidence for r in results}

    def calculate_score_delta(
        self,
        current: list[ValidationResult],
        previous: list[ValidationResult],
    ) -> int:
        """Change in score between two result sets, both with default weighting."""
        return self.calculate_weighted_score(current) - self.calculate_weighted_score(previous)

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------

    def generate_recommendations(self, results: list[ValidationResult]) -> list[str]:
        """Actionable messages, most severe first.

        Counts are numbers of affected components.
        """
        status_counts = Counter(r.status for r in results)
        discrepancy_counts: Counter[DiscrepancyType] = Counter()
        for result in results:
            types = {d.known_type for d in result.discrepancies} - {None}
            discrepancy_counts.update(types)

        recommendations = []
        invalid = status_counts[ValidationStatus.INVALID]
        if invalid:
            recommendations.append(
                f"Prioritize fixing {invalid} invalid component(s) with critical issues."
            )
        conflicting = discrepancy_counts[DiscrepancyType.CONFLICTING_SOURCES]
        if conflicting:
            recommendations.append(
                f"Prioritize fixing conflicting information in {conflicting} component(s) "
                "by updating source documents."
            )
        mismatched = discrepancy_counts[DiscrepancyType.CONTENT_MISMATCH]
        if mismatched:
            recommendations.append(
                f"Review {mismatched} component(s) with content mismatches against source documents."
            )
        missing = discrepancy_counts[DiscrepancyType.MISSING_DATA]
        if missing:
            recommendations.append(
                f"Add descriptions or source links to {missing} component(s) with missing data."
            )
        stale = status_counts[ValidationStatus.STALE]
        if stale:
            recommendations.append(
                f"Update {stale} component(s) that reference outdated source documents."
            )
        unverifiable = status_counts[ValidationStatus.UNVERIFIABLE]
        if unverifiable:
            recommendations.append(
                f"Link {unverifiable} component(s) to source documents for verification."
            )

        if not recommendations:
            recommendations.append(ALL_VALID_MESSAGE)
        return recommendations

    # ------------------------------------------------------------------
    # Trends and reports
    # ------------------------------------------------------------------

    def get_validation_trends(self, diagram_id: str, limit: int = 10) -> list[TrendDataPoint]:
        """Scores of past runs for a diagram, oldest first.

        Returns an empty list when no history store is configured.
        """
        if self._history is None or limit <= 0:
            return []

        runs = [r for r in self._history.list_completed_runs(diagram_id, limit) if r.score is not None]
        points = [
            TrendDataPoint(
                date=run.completed_at,
                score=run.score,
                component_count=run.validated_components,
            )
            for run in runs[:limit]
        ]
        points.reverse()
        return points

    def generate_scoring_report(
        self,
        results: list[ValidationResult],
        diagram_id: Optional[str] = None,
        include_trends: bool = False,
    ) -> ScoringReport:
        """Bundle score, health, breakdown, summary and recommendations.

        Trends are included only when requested and a diagram id is given.
        """
        overall = self.calculate_weighted_score(results)
        report = ScoringReport(
            overall_score=overall,
            health_status=self.get_health_status(overall),
            breakdown=self.calculate_score_breakdown(results),
            summary=create_validation_summary(results, last_validated_at=utc_now()),
            recommendations=self.generate_recommendations(results),
        )
        if include_trends and diagram_id:
            report.trends = self.get_validation_trends(diagram_id, self._trend_limit)

        logger.debug(
            "Scoring report: %d results, score %d (%s)",
            len(results),
            overall,
            report.health_status.value,
        )
        return report

    # ------------------------------------------------------------------
    # Weights
    # ------------------------------------------------------------------

    def get_component_weights(self) -> dict[str, float]:
        return self._weights.snapshot()

    def set_component_weights(self, weights: Mapping[str, float]) -> dict[str, float]:
        """Merge weights into the table; unspecified types keep their weight."""
        return self._weights.update(weights)
