"""
Diagram Assembler.

Turns per-slot extraction results into positioned components and wires
them with the fixed request/response topology.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from flowscribe.diagram.layout import CANONICAL_POSITIONS, EDGE_TEMPLATES
from flowscribe.extraction.engine import ExtractionEngine
from flowscribe.models.base import COMPONENT_TYPES, ArchitectureComponentType
from flowscribe.models.diagram import ComponentContent, DiagramComponent, DiagramEdge
from flowscribe.models.documents import ExtractionResult

logger = logging.getLogger(__name__)

ComponentCallback = Callable[[DiagramComponent], Awaitable[None]]


@dataclass
class AssembledDiagram:
    """Components and edges produced for one diagram.

    Attributes:
        components: One component per type, in canonical order
        edges: Request and response edges between the components
        extraction_results: Raw extraction result per type
    """

    components: list[DiagramComponent] = field(default_factory=list)
    edges: list[DiagramEdge] = field(default_factory=list)
    extraction_results: dict[ArchitectureComponentType, ExtractionResult] = field(
        default_factory=dict
    )

    @property
    def populated_count(self) -> int:
        return sum(1 for c in self.components if c.has_data)


class DiagramAssembler:
    """Builds diagram components and edges from document evidence."""

    def __init__(self, engine: Optional[ExtractionEngine] = None) -> None:
        self._engine = engine or ExtractionEngine()

    @property
    def engine(self) -> ExtractionEngine:
        return self._engine

    def build_component(
        self,
        diagram_id: str,
        component_type: ArchitectureComponentType,
        extraction: ExtractionResult,
    ) -> DiagramComponent:
        """Create the component for one slot at its canonical position."""
        return DiagramComponent(
            diagram_id=diagram_id,
            component_type=component_type,
            original=ComponentContent(title=extraction.title, description=extraction.description),
            has_data=extraction.has_data,
            confidence=extraction.confidence,
            position=CANONICAL_POSITIONS[component_type],
            source_excerpt=extraction.source_excerpt,
            source_document_id=extraction.source_document_id,
        )

    def build_components(
        self,
        diagram_id: str,
        results: Mapping[ArchitectureComponentType, ExtractionResult],
    ) -> list[DiagramComponent]:
        """Create one component per type, in canonical order.

        Raises:
            KeyError: If a component type has no extraction result
        """
        return [self.build_component(diagram_id, t, results[t]) for t in COMPONENT_TYPES]

    def build_edges(
        self,
        diagram_id: str,
        components: Iterable[DiagramComponent],
    ) -> list[DiagramEdge]:
        """Wire components with the fixed topology.

        Edges whose endpoints are not both present are skipped.
        """
        by_type = {c.component_type: c for c in components}
        edges = []
        for template in EDGE_TEMPLATES:
            source = by_type.get(template.source)
            target = by_type.get(template.target)
            if source is None or target is None:
                continue
            edges.append(
                DiagramEdge(
                    diagram_id=diagram_id,
                    source_component_id=source.id,
                    target_component_id=target.id,
                    edge_type=template.edge_type,
                    label=template.label,
                )
            )
        return edges

    async def assemble(
        self,
        diagram_id: str,
        operation_name: str,
        operation_description: str,
        documents: Optional[Iterable[Any]],
        on_component: Optional[ComponentCallback] = None,
    ) -> AssembledDiagram:
        """Extract every slot and build the full component graph.

        Args:
            diagram_id: Diagram the records belong to
            operation_name: Name of the documented operation
            operation_description: Description of the operation
            documents: Evidence corpus
            on_component: Awaited after each component is built

        Returns:
            AssembledDiagram with 11 components and the wired edges
        """
        results = await self._engine.extract_all_components(
            operation_name, operation_description, documents
        )

        components = []
        for component_type in COMPONENT_TYPES:
            component = self.build_component(diagram_id, component_type, results[component_type])
            components.append(component)
            if on_component is not None:
                await on_component(component)

        edges = self.build_edges(diagram_id, components)
        logger.debug(
            "Assembled diagram %s: %d components, %d edges",
            diagram_id,
            len(components),
            len(edges),
        )
        return AssembledDiagram(components=components, edges=edges, extraction_results=results)
