"""
Diagram export payload models.

Serialized with camelCase keys (``model_dump(by_alias=True)``) to match the
JSON export format consumed by diagram tooling.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from flowscribe.models.base import (
    ArchitectureComponentType,
    ComponentStatus,
    DiagramStatus,
    EdgeType,
    utc_now,
)
from flowscribe.models.diagram import Diagram, Position, ViewportState


class _ExportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExportedDiagram(_ExportModel):
    id: str
    name: str
    operation_id: str
    status: DiagramStatus
    viewport_state: Optional[ViewportState] = None
    created_at: datetime
    updated_at: datetime


class ExportedComponent(_ExportModel):
    id: str
    type: ArchitectureComponentType
    title: str
    description: str
    status: ComponentStatus
    confidence: float
    position: Position
    is_user_modified: bool
    source_excerpt: Optional[str] = None
    source_document_id: Optional[str] = None


class ExportedEdge(_ExportModel):
    id: str
    source: str
    target: str
    type: EdgeType
    label: Optional[str] = None


class ExportPayload(_ExportModel):
    """Complete JSON export of a diagram."""

    diagram: ExportedDiagram
    components: list[ExportedComponent] = Field(default_factory=list)
    edges: list[ExportedEdge] = Field(default_factory=list)
    exported_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_diagram(cls, diagram: Diagram) -> "ExportPayload":
        """Build the export payload for a diagram."""
        return cls(
            diagram=ExportedDiagram(
                id=diagram.id,
                name=diagram.name,
                operation_id=diagram.operation_id,
                status=diagram.status,
                viewport_state=diagram.viewport_state,
                created_at=diagram.created_at,
                updated_at=diagram.updated_at,
            ),
            components=[
                ExportedComponent(
                    id=c.id,
                    type=c.component_type,
                    title=c.title,
                    description=c.description,
                    status=c.status,
                    confidence=c.confidence,
                    position=c.position,
                    is_user_modified=c.is_user_modified,
                    source_excerpt=c.source_excerpt,
                    source_document_id=c.source_document_id,
                )
                for c in diagram.components
            ],
            edges=[
                ExportedEdge(
                    id=e.id,
                    source=e.source_component_id,
                    target=e.target_component_id,
                    type=e.edge_type,
                    label=e.label,
                )
                for e in diagram.edges
            ],
        )

    def to_json_dict(self) -> dict[str, Any]:
        """JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
