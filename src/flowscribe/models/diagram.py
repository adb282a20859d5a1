"""
Diagram, component, edge and generation job models.

A component keeps the machine-derived content it was created with in an
immutable ``original`` record. User edits are layered on top as an
optional ``override``; the visible title, description and status are
derived from the two. Resetting a component drops the override.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field

from flowscribe.models.base import (
    ArchitectureComponentType,
    ComponentStatus,
    DiagramStatus,
    EdgeType,
    JobStatus,
    utc_now,
)


def new_id() -> str:
    """Generate a new record identifier."""
    return str(uuid4())


class Position(BaseModel):
    """Canvas coordinates of a component."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class ViewportState(BaseModel):
    """Saved pan/zoom state of a diagram canvas."""

    x: float = 0.0
    y: float = 0.0
    zoom: float = Field(default=1.0, gt=0.0)


class ComponentContent(BaseModel):
    """Machine-derived text of a component."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str


class ComponentOverride(BaseModel):
    """User supplied replacement text.

    Unset fields fall through to the original content.
    """

    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    description: Optional[str] = None

    def merge(
        self,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> "ComponentOverride":
        """Return a new override with the given fields replaced."""
        return ComponentOverride(
            title=title if title is not None else self.title,
            description=description if description is not None else self.description,
        )


class DiagramComponent(BaseModel):
    """One architecture slot of a diagram.

    Attributes:
        id: Component identifier
        diagram_id: Owning diagram
        component_type: Architecture slot this component fills
        original: Content derived from extraction, never mutated
        override: User edit layered over the original, if any
        has_data: Whether extraction found evidence for this slot
        confidence: Extraction confidence, 0.0 to 1.0
        position: Canvas position
        source_excerpt: Evidence excerpt from the source document
        source_document_id: Source document of the evidence
    """

    id: str = Field(default_factory=new_id)
    diagram_id: str
    component_type: ArchitectureComponentType
    original: ComponentContent
    override: Optional[ComponentOverride] = None
    has_data: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    position: Position
    source_excerpt: Optional[str] = None
    source_document_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @computed_field
    @property
    def is_user_modified(self) -> bool:
        """True while a user edit is applied."""
        return self.override is not None

    @computed_field
    @property
    def title(self) -> str:
        if self.override is not None and self.override.title is not None:
            return self.override.title
        return self.original.title

    @computed_field
    @property
    def description(self) -> str:
        if self.override is not None and self.override.description is not None:
            return self.override.description
        return self.original.description

    @computed_field
    @property
    def status(self) -> ComponentStatus:
        if self.override is not None:
            return ComponentStatus.USER_MODIFIED
        return self.extraction_status

    @computed_field
    @property
    def original_title(self) -> Optional[str]:
        """Pre-edit title, only present while modified."""
        return self.original.title if self.override is not None else None

    @computed_field
    @property
    def original_description(self) -> Optional[str]:
        """Pre-edit description, only present while modified."""
        return self.original.description if self.override is not None else None

    @property
    def extraction_status(self) -> ComponentStatus:
        """Status implied by the extraction outcome alone."""
        return ComponentStatus.POPULATED if self.has_data else ComponentStatus.GREYED_OUT

    def with_edit(
        self,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> "DiagramComponent":
        """Return a copy with the edit layered over any existing override."""
        base = self.override or ComponentOverride()
        return self.model_copy(
            update={
                "override": base.merge(title=title, description=description),
                "updated_at": utc_now(),
            }
        )

    def reverted(self) -> "DiagramComponent":
        """Return a copy with the user override removed.

        An unmodified component is returned unchanged.
        """
        if self.override is None:
            return self
        return self.model_copy(update={"override": None, "updated_at": utc_now()})


class DiagramEdge(BaseModel):
    """Directed, typed connection between two components."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    diagram_id: str
    source_component_id: str
    target_component_id: str
    edge_type: EdgeType
    label: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class Diagram(BaseModel):
    """Positioned graph generated for one operation.

    Attributes:
        id: Diagram identifier
        operation_id: Operation the diagram documents
        name: Display name
        status: Generation status
        components: Components in canonical order
        edges: Typed edges between components
        viewport_state: Saved canvas viewport
    """

    id: str = Field(default_factory=new_id)
    operation_id: str
    name: str
    status: DiagramStatus = DiagramStatus.PENDING
    components: list[DiagramComponent] = Field(default_factory=list)
    edges: list[DiagramEdge] = Field(default_factory=list)
    viewport_state: Optional[ViewportState] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def find_component_index(self, component_id: str) -> Optional[int]:
        """Position of a component in ``components``, or None."""
        for index, component in enumerate(self.components):
            if component.id == component_id:
                return index
        return None

    def get_component(self, component_id: str) -> Optional[DiagramComponent]:
        index = self.find_component_index(component_id)
        return self.components[index] if index is not None else None

    def get_component_by_type(
        self, component_type: ArchitectureComponentType
    ) -> Optional[DiagramComponent]:
        for component in self.components:
            if component.component_type == component_type:
                return component
        return None

    def component_types(self) -> dict[str, str]:
        """Map of component id to component type value, for scoring."""
        return {c.id: c.component_type.value for c in self.components}


class JobResult(BaseModel):
    """Summary attached to a completed generation job."""

    diagram_id: str
    component_count: int = 0
    edge_count: int = 0


class DiagramGenerationJob(BaseModel):
    """Asynchronous diagram generation job.

    Attributes:
        id: Job identifier
        operation_id: Operation being diagrammed
        diagram_id: Diagram the job populates (assigned at creation)
        status: Job state
        progress: Percent complete, 0 to 100
        error: Failure message when FAILED
        result: Summary when COMPLETED
    """

    id: str = Field(default_factory=new_id)
    operation_id: str
    diagram_id: str
    status: JobStatus = JobStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    error: Optional[str] = None
    result: Optional[JobResult] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
