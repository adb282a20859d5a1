"""
Diagram Job Orchestrator.

Runs diagram generation as background jobs and owns the in-memory
registries of jobs and diagrams:
- Job creation with in-flight deduplication per operation
- Per-component progress reporting, polled through ``get_job``
- Diagram and component edits layered over the generated content
- JSON export of a diagram

Each job is one ``asyncio.Task``. Registry updates are synchronous
record replacements, so a poller never observes a half-applied change.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Optional

from flowscribe.config.models import OrchestratorSettings
from flowscribe.diagram.assembler import DiagramAssembler
from flowscribe.errors import InvalidExportFormatError, OperationNotFoundError
from flowscribe.models.base import DiagramStatus, ExportFormat, JobStatus, utc_now
from flowscribe.models.diagram import (
    Diagram,
    DiagramComponent,
    DiagramGenerationJob,
    JobResult,
    ViewportState,
)
from flowscribe.models.documents import OperationInfo
from flowscribe.models.export import ExportPayload
from flowscribe.orchestrator.sources import OperationSource

logger = logging.getLogger(__name__)

OrchestratorConfig = OrchestratorSettings

# Job progress milestones, in percent
PROGRESS_STARTED = 10
PROGRESS_PER_COMPONENT = 7
PROGRESS_CAP = 90
PROGRESS_DONE = 100


class DiagramJobOrchestrator:
    """Coordinates diagram generation jobs and diagram edits.

    Usage:
        orchestrator = DiagramJobOrchestrator(source)
        job = await orchestrator.start_diagram_generation("op-1")
        while not orchestrator.get_job(job.id).status.is_terminal:
            await asyncio.sleep(0.1)
        diagram = orchestrator.get_diagram(job.diagram_id)
    """

    def __init__(
        self,
        source: OperationSource,
        assembler: Optional[DiagramAssembler] = None,
        config: Optional[OrchestratorConfig] = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            source: Provider of operations and their documents
            assembler: Diagram assembler (default uses a keyword-only engine)
            config: Job settings
        """
        self._source = source
        self._assembler = assembler or DiagramAssembler()
        self._config = config or OrchestratorConfig()

        self._jobs: dict[str, DiagramGenerationJob] = {}
        self._diagrams: dict[str, Diagram] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def running_job_ids(self) -> list[str]:
        """IDs of jobs whose task has not finished."""
        return list(self._tasks)

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    async def start_diagram_generation(self, operation_id: str) -> DiagramGenerationJob:
        """Start generating a diagram for an operation.

        A request for an operation that already has a pending or
        processing job returns that job instead of starting another.

        Args:
            operation_id: Operation to diagram

        Returns:
            The new (or in-flight) job

        Raises:
            OperationNotFoundError: If the source does not know the operation
        """
        operation = await self._source.get_operation(operation_id)
        if operation is None:
            raise OperationNotFoundError(operation_id)

        in_flight = self._find_in_flight_job(operation_id)
        if in_flight is not None:
            logger.info(
                "Generation already in progress for operation %s (job %s)",
                operation_id,
                in_flight.id,
            )
            return in_flight.model_copy(deep=True)

        diagram = Diagram(operation_id=operation_id, name=f"Diagram for {operation.name}")
        job = DiagramGenerationJob(operation_id=operation_id, diagram_id=diagram.id)
        self._diagrams[diagram.id] = diagram
        self._jobs[job.id] = job

        task = asyncio.create_task(self._run_job(job.id, operation), name=f"diagram-job-{job.id}")
        self._tasks[job.id] = task
        task.add_done_callback(lambda _t, job_id=job.id: self._tasks.pop(job_id, None))

        logger.info(
            "Started diagram job %s for operation %s (diagram %s)",
            job.id,
            operation_id,
            diagram.id,
        )
        return job.model_copy(deep=True)

    def get_job(self, job_id: str) -> Optional[DiagramGenerationJob]:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job is not None else None

    async def shutdown(self) -> None:
        """Cancel running jobs and wait for their tasks to finish."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _find_in_flight_job(self, operation_id: str) -> Optional[DiagramGenerationJob]:
        for job in self._jobs.values():
            if job.operation_id == operation_id and not job.status.is_terminal:
                return job
        return None

    async def _run_job(self, job_id: str, operation: OperationInfo) -> None:
        """Drive one job to COMPLETED or FAILED."""
        diagram_id = self._jobs[job_id].diagram_id
        try:
            self._set_job(job_id, status=JobStatus.PROCESSING, progress=PROGRESS_STARTED)
            self._set_diagram(diagram_id, status=DiagramStatus.GENERATING)

            documents = await self._source.get_documents(operation.id)
            logger.debug("Job %s: %d documents for %s", job_id, len(documents), operation.name)

            async def on_component(component: DiagramComponent) -> None:
                progress = min(PROGRESS_CAP, self._jobs[job_id].progress + PROGRESS_PER_COMPONENT)
                self._set_job(job_id, progress=progress)
                await asyncio.sleep(self._config.step_delay)

            assembled = await self._assembler.assemble(
                diagram_id,
                operation.name,
                operation.description,
                documents,
                on_component=on_component,
            )

            self._set_diagram(
                diagram_id,
                components=assembled.components,
                edges=assembled.edges,
                status=DiagramStatus.COMPLETED,
            )
            self._set_job(
                job_id,
                status=JobStatus.COMPLETED,
                progress=PROGRESS_DONE,
                result=JobResult(
                    diagram_id=diagram_id,
                    component_count=len(assembled.components),
                    edge_count=len(assembled.edges),
                ),
            )
            logger.info(
                "Diagram job %s completed: %d/%d components populated",
                job_id,
                assembled.populated_count,
                len(assembled.components),
            )
        except asyncio.CancelledError:
            self._fail_job(job_id, diagram_id, "Job cancelled")
            raise
        except Exception as e:
            logger.error("Diagram job %s failed: %s", job_id, e, exc_info=True)
            self._fail_job(job_id, diagram_id, str(e) or type(e).__name__)

    def _fail_job(self, job_id: str, diagram_id: str, error: str) -> None:
        self._set_job(job_id, status=JobStatus.FAILED, error=error)
        self._set_diagram(diagram_id, status=DiagramStatus.FAILED)

    def _set_job(self, job_id: str, **changes: Any) -> None:
        job = self._jobs[job_id]
        self._jobs[job_id] = job.model_copy(update={**changes, "updated_at": utc_now()})

    def _set_diagram(self, diagram_id: str, **changes: Any) -> Diagram:
        diagram = self._diagrams[diagram_id].model_copy(update={**changes, "updated_at": utc_now()})
        self._diagrams[diagram_id] = diagram
        return diagram

    # ------------------------------------------------------------------
    # Diagrams
    # ------------------------------------------------------------------

    def get_diagram(self, diagram_id: str) -> Optional[Diagram]:
        diagram = self._diagrams.get(diagram_id)
        return diagram.model_copy(deep=True) if diagram is not None else None

    def get_diagrams_for_operation(self, operation_id: str) -> list[Diagram]:
        """All diagrams of an operation, oldest first."""
        return [
            d.model_copy(deep=True) for d in self._diagrams.values() if d.operation_id == operation_id
        ]

    def get_latest_diagram_for_operation(self, operation_id: str) -> Optional[Diagram]:
        diagrams = self.get_diagrams_for_operation(operation_id)
        return diagrams[-1] if diagrams else None

    def update_diagram(
        self,
        diagram_id: str,
        name: Optional[str] = None,
        viewport_state: Optional[ViewportState | Mapping[str, Any]] = None,
    ) -> Optional[Diagram]:
        """Rename a diagram and/or save its viewport.

        Returns:
            The updated diagram, or None if it does not exist
        """
        if diagram_id not in self._diagrams:
            return None

        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if viewport_state is not None:
            changes["viewport_state"] = ViewportState.model_validate(
                viewport_state if isinstance(viewport_state, Mapping) else viewport_state.model_dump()
            )
        return self._set_diagram(diagram_id, **changes).model_copy(deep=True)

    def update_component(
        self,
        diagram_id: str,
        component_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[DiagramComponent]:
        """Apply a user edit to a component.

        The extracted content stays untouched underneath the edit, so
        repeated edits always revert to the same original.

        Returns:
            The edited component, or None if the diagram or component
            does not exist
        """
        diagram = self._diagrams.get(diagram_id)
        if diagram is None:
            return None
        index = diagram.find_component_index(component_id)
        if index is None:
            return None

        component = diagram.components[index]
        if title is None and description is None:
            return component.model_copy(deep=True)

        edited = component.with_edit(title=title, description=description)
        self._replace_component(diagram, index, edited)
        logger.debug("Component %s of diagram %s edited", component_id, diagram_id)
        return edited.model_copy(deep=True)

    def reset_component(self, diagram_id: str, component_id: str) -> Optional[DiagramComponent]:
        """Drop a user edit and restore the extracted content.

        Resetting a component that was never edited changes nothing.

        Returns:
            The component, or None if the diagram or component does not exist
        """
        diagram = self._diagrams.get(diagram_id)
        if diagram is None:
            return None
        index = diagram.find_component_index(component_id)
        if index is None:
            return None

        component = diagram.components[index]
        if not component.is_user_modified:
            return component.model_copy(deep=True)

        restored = component.reverted()
        self._replace_component(diagram, index, restored)
        logger.debug("Component %s of diagram %s reset", component_id, diagram_id)
        return restored.model_copy(deep=True)

    def _replace_component(self, diagram: Diagram, index: int, component: DiagramComponent) -> None:
        components = list(diagram.components)
        components[index] = component
        self._set_diagram(diagram.id, components=components)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_diagram(
        self,
        diagram_id: str,
        format: ExportFormat | str = ExportFormat.JSON,
    ) -> Optional[ExportPayload]:
        """Export a diagram with its current (edited) content.

        Raises:
            InvalidExportFormatError: If the format is not supported
        """
        try:
            ExportFormat(format)
        except ValueError as e:
            raise InvalidExportFormatError(str(format)) from e

        diagram = self._diagrams.get(diagram_id)
        if diagram is None:
            return None
        return ExportPayload.from_diagram(diagram)
