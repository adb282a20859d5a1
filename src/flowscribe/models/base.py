"""
Base enumerations and constants used throughout the data models.

These enums provide type-safe values for the closed variant sets of the
system (component slots, edge kinds, lifecycle states) and ensure
consistency across extraction, assembly, orchestration and scoring.
"""

from datetime import UTC, datetime
from enum import Enum


class ArchitectureComponentType(str, Enum):
    """Fixed architecture role a diagram component occupies.

    Member order is the canonical diagram order.
    """

    USER_ACTION = "USER_ACTION"
    CLIENT_CODE = "CLIENT_CODE"
    FIREWALL = "FIREWALL"
    WAF = "WAF"
    LOAD_BALANCER = "LOAD_BALANCER"
    API_GATEWAY = "API_GATEWAY"
    API_ENDPOINT = "API_ENDPOINT"
    BACKEND_LOGIC = "BACKEND_LOGIC"
    DATABASE = "DATABASE"
    EVENT_HANDLER = "EVENT_HANDLER"
    VIEW_UPDATE = "VIEW_UPDATE"

    @property
    def label(self) -> str:
        """Lowercase, space separated name (e.g. ``load balancer``)."""
        return self.value.lower().replace("_", " ")


# Canonical order of every component slot
COMPONENT_TYPES: tuple[ArchitectureComponentType, ...] = tuple(ArchitectureComponentType)

# Request path from the user down to storage
MAIN_FLOW_TYPES: tuple[ArchitectureComponentType, ...] = (
    ArchitectureComponentType.USER_ACTION,
    ArchitectureComponentType.CLIENT_CODE,
    ArchitectureComponentType.FIREWALL,
    ArchitectureComponentType.WAF,
    ArchitectureComponentType.LOAD_BALANCER,
    ArchitectureComponentType.API_GATEWAY,
    ArchitectureComponentType.API_ENDPOINT,
    ArchitectureComponentType.BACKEND_LOGIC,
    ArchitectureComponentType.DATABASE,
)


class EdgeType(str, Enum):
    """Direction of traffic an edge represents."""

    REQUEST = "REQUEST"
    RESPONSE = "RESPONSE"


class ComponentStatus(str, Enum):
    """Display status of a diagram component."""

    POPULATED = "POPULATED"  # Evidence found in documents
    GREYED_OUT = "GREYED_OUT"  # No evidence found
    USER_MODIFIED = "USER_MODIFIED"  # Text overridden by a user edit


class DiagramStatus(str, Enum):
    """Lifecycle of a generated diagram."""

    PENDING = "PENDING"
    GENERATING = "GENERATING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class JobStatus(str, Enum):
    """Lifecycle of a diagram generation job."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class ValidationStatus(str, Enum):
    """Verdict of a validation run for one component."""

    VALID = "VALID"
    WARNING = "WARNING"
    INVALID = "INVALID"
    STALE = "STALE"
    UNVERIFIABLE = "UNVERIFIABLE"


class DiscrepancyType(str, Enum):
    """Known categories of validation findings.

    Discrepancies carry their type as a plain string so that types
    outside this set are still accepted and handled neutrally.
    """

    CONTENT_MISMATCH = "CONTENT_MISMATCH"
    MISSING_DATA = "MISSING_DATA"
    CONFLICTING_SOURCES = "CONFLICTING_SOURCES"
    OUTDATED_REFERENCE = "OUTDATED_REFERENCE"
    SCHEMA_VIOLATION = "SCHEMA_VIOLATION"


class DiscrepancySeverity(str, Enum):
    """How serious a discrepancy is."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class HealthStatus(str, Enum):
    """Banded label derived from a weighted score."""

    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
    CRITICAL = "CRITICAL"


class ExportFormat(str, Enum):
    """Diagram export formats supported by the core."""

    JSON = "json"


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(UTC)
