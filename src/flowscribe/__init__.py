"""
FlowScribe: Architecture Diagram Synthesis and Scoring.

Builds a fixed-topology architecture diagram for a documented operation
from a corpus of text documents, and scores how well a diagram's
components are supported by validation evidence.

Key Features:
- Keyword evidence extraction with optional LLM phrasing
- Canonical 11-component layout with request and response edges
- Asynchronous generation jobs with progress polling
- User edits layered over extracted content, resettable at any time
- Weighted health scoring with breakdowns, trends and recommendations

Example:
    from flowscribe.orchestrator import DiagramJobOrchestrator, InMemoryOperationSource

    source = InMemoryOperationSource()
    source.add_operation(OperationInfo(id="op-1", name="User Login"))
    orchestrator = DiagramJobOrchestrator(source)
    job = await orchestrator.start_diagram_generation("op-1")
"""

from flowscribe.version import __version__

__all__ = [
    "__version__",
]
