"""
FlowScribe - Core Data Models

This module provides Pydantic models for documents, extraction results,
diagrams, generation jobs, exports and validation scoring. All models
support JSON serialization and validate their ranges.
"""

from flowscribe.models.base import (
    COMPONENT_TYPES,
    MAIN_FLOW_TYPES,
    ArchitectureComponentType,
    ComponentStatus,
    DiagramStatus,
    DiscrepancySeverity,
    DiscrepancyType,
    EdgeType,
    ExportFormat,
    HealthStatus,
    JobStatus,
    ValidationStatus,
)
from flowscribe.models.diagram import (
    ComponentContent,
    ComponentOverride,
    Diagram,
    DiagramComponent,
    DiagramEdge,
    DiagramGenerationJob,
    JobResult,
    Position,
    ViewportState,
)
from flowscribe.models.documents import (
    NO_DATA_DESCRIPTION,
    ComponentDetection,
    Document,
    ExtractionResult,
    OperationInfo,
)
from flowscribe.models.export import (
    ExportedComponent,
    ExportedDiagram,
    ExportedEdge,
    ExportPayload,
)
from flowscribe.models.validation import (
    STATUS_SCORES,
    Discrepancy,
    ScoreBreakdown,
    ScoringReport,
    TrendDataPoint,
    ValidationResult,
    ValidationRun,
    ValidationSummary,
    calculate_validation_score,
    create_validation_summary,
    determine_validation_status,
    get_discrepancy_severity,
)

__all__ = [
    # Base enums
    "ArchitectureComponentType",
    "COMPONENT_TYPES",
    "MAIN_FLOW_TYPES",
    "ComponentStatus",
    "DiagramStatus",
    "DiscrepancySeverity",
    "DiscrepancyType",
    "EdgeType",
    "ExportFormat",
    "HealthStatus",
    "JobStatus",
    "ValidationStatus",
    # Input and extraction models
    "Document",
    "OperationInfo",
    "ComponentDetection",
    "ExtractionResult",
    "NO_DATA_DESCRIPTION",
    # Diagram models
    "Position",
    "ViewportState",
    "ComponentContent",
    "ComponentOverride",
    "DiagramComponent",
    "DiagramEdge",
    "Diagram",
    "DiagramGenerationJob",
    "JobResult",
    # Export models
    "ExportPayload",
    "ExportedDiagram",
    "ExportedComponent",
    "ExportedEdge",
    # Validation models
    "Discrepancy",
    "ValidationResult",
    "ValidationRun",
    "ValidationSummary",
    "ScoreBreakdown",
    "TrendDataPoint",
    "ScoringReport",
    "STATUS_SCORES",
    "calculate_validation_score",
    "create_validation_summary",
    "determine_validation_status",
    "get_discrepancy_severity",
]
