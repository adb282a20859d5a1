"""
FlowScribe - Orchestrator

Background diagram generation jobs, the in-memory diagram registry and
the operation sources jobs read from.
"""

from flowscribe.orchestrator.orchestrator import (
    PROGRESS_CAP,
    PROGRESS_DONE,
    PROGRESS_PER_COMPONENT,
    PROGRESS_STARTED,
    DiagramJobOrchestrator,
    OrchestratorConfig,
)
from flowscribe.orchestrator.sources import InMemoryOperationSource, OperationSource

__all__ = [
    "DiagramJobOrchestrator",
    "InMemoryOperationSource",
    "OperationSource",
    "OrchestratorConfig",
    "PROGRESS_CAP",
    "PROGRESS_DONE",
    "PROGRESS_PER_COMPONENT",
    "PROGRESS_STARTED",
]
