"""
Validation result and scoring report models.

Validation results are produced by an external validation pass and fed
into the scoring engine. The helper functions here implement the plain,
unweighted aggregation shared by summaries and reports.
"""

from datetime import datetime
from typing import Iterable, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from flowscribe.models.base import (
    DiscrepancySeverity,
    DiscrepancyType,
    HealthStatus,
    ValidationStatus,
    utc_now,
)
from flowscribe.models.diagram import new_id

# Base score per validation status, 0 to 100
STATUS_SCORES: dict[ValidationStatus, float] = {
    ValidationStatus.VALID: 100.0,
    ValidationStatus.WARNING: 70.0,
    ValidationStatus.STALE: 50.0,
    ValidationStatus.UNVERIFIABLE: 30.0,
    ValidationStatus.INVALID: 0.0,
}

_SEVERITY_BY_TYPE: dict[DiscrepancyType, DiscrepancySeverity] = {
    DiscrepancyType.CONTENT_MISMATCH: DiscrepancySeverity.HIGH,
    DiscrepancyType.MISSING_DATA: DiscrepancySeverity.MEDIUM,
    DiscrepancyType.CONFLICTING_SOURCES: DiscrepancySeverity.CRITICAL,
    DiscrepancyType.OUTDATED_REFERENCE: DiscrepancySeverity.LOW,
    DiscrepancyType.SCHEMA_VIOLATION: DiscrepancySeverity.HIGH,
}


class Discrepancy(BaseModel):
    """A typed finding attached to a validation result.

    ``type`` is a free string; values outside ``DiscrepancyType`` are
    accepted and ignored by category scoring.
    """

    type: str = Field(..., description="Discrepancy type", examples=["CONTENT_MISMATCH"])
    severity: DiscrepancySeverity = DiscrepancySeverity.MEDIUM
    message: str = ""
    expected_value: Optional[str] = None
    actual_value: Optional[str] = None
    source_document_id: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v: object) -> str:
        if isinstance(v, DiscrepancyType):
            return v.value
        return str(v).strip().upper()

    @property
    def known_type(self) -> Optional[DiscrepancyType]:
        """The matching ``DiscrepancyType``, or None for unknown types."""
        try:
            return DiscrepancyType(self.type)
        except ValueError:
            return None


class ValidationResult(BaseModel):
    """Outcome of validating one diagram component.

    Attributes:
        id: Result identifier
        validation_run_id: Run this result belongs to
        component_id: Validated component
        status: Overall verdict
        discrepancies: Findings for the component
        confidence: Confidence in the verdict, 0.0 to 1.0
        created_at: When the result was recorded
    """

    id: str = Field(default_factory=new_id)
    validation_run_id: str = ""
    component_id: str
    status: ValidationStatus
    discrepancies: list[Discrepancy] = Field(default_factory=list)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    created_at: datetime = Field(default_factory=utc_now)


class ValidationRun(BaseModel):
    """A completed (or in progress) validation pass over a diagram."""

    id: str = Field(default_factory=new_id)
    diagram_id: str
    status: str = "COMPLETED"
    score: Optional[float] = None
    total_components: int = 0
    validated_components: int = 0
    started_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None


class ValidationSummary(BaseModel):
    """Per-status counts and the unweighted score of a result set."""

    total_components: int = 0
    valid_count: int = 0
    warning_count: int = 0
    invalid_count: int = 0
    unverifiable_count: int = 0
    stale_count: int = 0
    overall_score: float = 0.0
    last_validated_at: Optional[datetime] = None


class ScoreBreakdown(BaseModel):
    """Category scores, each 0 to 100."""

    content_accuracy: float = Field(default=100.0, ge=0.0, le=100.0)
    data_completeness: float = Field(default=100.0, ge=0.0, le=100.0)
    source_consistency: float = Field(default=100.0, ge=0.0, le=100.0)
    freshness: float = Field(default=100.0, ge=0.0, le=100.0)

    @computed_field
    @property
    def weakest_category(self) -> str:
        scores = {
            "content_accuracy": self.content_accuracy,
            "data_completeness": self.data_completeness,
            "source_consistency": self.source_consistency,
            "freshness": self.freshness,
        }
        return min(scores, key=lambda k: scores[k])


class TrendDataPoint(BaseModel):
    """Score of one historical validation run."""

    date: Optional[datetime] = None
    score: float
    component_count: int = 0


class ScoringReport(BaseModel):
    """Full scoring output for a set of validation results."""

    overall_score: int = Field(..., ge=0, le=100)
    health_status: HealthStatus
    breakdown: ScoreBreakdown
    summary: ValidationSummary
    recommendations: list[str] = Field(default_factory=list)
    trends: Optional[list[TrendDataPoint]] = None


def calculate_validation_score(results: Iterable[ValidationResult]) -> float:
    """Unweighted, confidence-normalized score of a result set.

    Returns:
        Float between 0.0 and 100.0; 0.0 for empty input or zero confidence.
    """
    total = 0.0
    max_score = 0.0
    for result in results:
        total += STATUS_SCORES[result.status] * result.confidence
        max_score += result.confidence
    return total / max_score if max_score > 0 else 0.0


def get_discrepancy_severity(discrepancy_type: str) -> DiscrepancySeverity:
    """Default severity for a discrepancy type (medium when unknown)."""
    try:
        return _SEVERITY_BY_TYPE[DiscrepancyType(discrepancy_type)]
    except ValueError:
        return DiscrepancySeverity.MEDIUM


def determine_validation_status(discrepancies: Iterable[Discrepancy]) -> ValidationStatus:
    """Derive a verdict from the severities of the findings."""
    severities = {d.severity for d in discrepancies}
    if DiscrepancySeverity.CRITICAL in severities:
        return ValidationStatus.INVALID
    if severities & {DiscrepancySeverity.HIGH, DiscrepancySeverity.MEDIUM}:
        return ValidationStatus.WARNING
    return ValidationStatus.VALID


def create_validation_summary(
    results: list[ValidationResult],
    last_validated_at: Optional[datetime] = None,
) -> ValidationSummary:
    """Count results per status and attach the unweighted score."""
    counts = {status: 0 for status in ValidationStatus}
    for result in results:
        counts[result.status] += 1

    return ValidationSummary(
        total_components=len(results),
        valid_count=counts[ValidationStatus.VALID],
        warning_count=counts[ValidationStatus.WARNING],
        invalid_count=counts[ValidationStatus.INVALID],
        unverifiable_count=counts[ValidationStatus.UNVERIFIABLE],
        stale_count=counts[ValidationStatus.STALE],
        overall_score=calculate_validation_score(results),
        last_validated_at=last_validated_at,
    )
