"""
FlowScribe Test Configuration and Fixtures

This module provides pytest fixtures for testing the diagram pipeline.
All fixtures are deterministic and avoid real API calls.

Fixture Categories:
- Documents: Small evidence corpora with known keyword content
- Orchestration: In-memory operation sources and orchestrators without delays
- Validation: Sample validation results for scoring
"""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest

from flowscribe.models import (
    DiagramGenerationJob,
    Discrepancy,
    Document,
    OperationInfo,
    ValidationResult,
    ValidationStatus,
)
from flowscribe.orchestrator import (
    DiagramJobOrchestrator,
    InMemoryOperationSource,
    OrchestratorConfig,
)

LOGIN_OPERATION_ID = "op-login"
EMPTY_OPERATION_ID = "op-empty"


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


# =============================================================================
# Document Fixtures
# =============================================================================


@pytest.fixture
def login_documents() -> list[Document]:
    """Two documents describing a login flow."""
    return [
        Document(
            id="doc-flow",
            filename="login-flow.md",
            content=(
                "Login flow\n"
                "The user presses the Sign In button on the login form.\n"
                "The React frontend sends a fetch request to the REST endpoint POST /api/login.\n"
                "Traffic passes the nginx load balancer before reaching the api gateway.\n"
                "The auth service will validate the credentials in the controller.\n"
            ),
        ),
        Document(
            id="doc-storage",
            filename="storage.md",
            content=(
                "Storage\n"
                "Sessions are kept in a Postgres database.\n"
                "The service runs an SQL insert into the sessions table.\n"
            ),
        ),
    ]


@pytest.fixture
def database_document() -> Document:
    """A document mentioning only database vocabulary."""
    return Document(
        id="doc-db",
        filename="db.md",
        content="We use a relational database and plain SQL for persistence.",
    )


# =============================================================================
# Orchestration Fixtures
# =============================================================================


@pytest.fixture
def operation_source(login_documents: list[Document]) -> InMemoryOperationSource:
    """Source with a documented login operation and an undocumented one."""
    source = InMemoryOperationSource()
    source.add_operation(
        OperationInfo(
            id=LOGIN_OPERATION_ID,
            name="User Login",
            description="Authenticate a user with email and password",
        ),
        login_documents,
    )
    source.add_operation(OperationInfo(id=EMPTY_OPERATION_ID, name="Password Reset"))
    return source


@pytest.fixture
def orchestrator(operation_source: InMemoryOperationSource) -> DiagramJobOrchestrator:
    """Orchestrator without artificial per-component delay."""
    return DiagramJobOrchestrator(operation_source, config=OrchestratorConfig(step_delay=0))


@pytest.fixture
def wait_for_job() -> Callable[..., Awaitable[DiagramGenerationJob]]:
    """Poll a job until it reaches a terminal state."""

    async def _wait(
        orchestrator: DiagramJobOrchestrator,
        job_id: str,
        timeout: float = 5.0,
    ) -> DiagramGenerationJob:
        async def _poll() -> DiagramGenerationJob:
            while True:
                job = orchestrator.get_job(job_id)
                assert job is not None
                if job.status.is_terminal:
                    return job
                await asyncio.sleep(0.005)

        return await asyncio.wait_for(_poll(), timeout)

    return _wait


# =============================================================================
# Validation Fixtures
# =============================================================================


@pytest.fixture
def mixed_results() -> list[ValidationResult]:
    """Validation results covering every status."""
    return [
        ValidationResult(component_id="c-1", status=ValidationStatus.VALID),
        ValidationResult(
            component_id="c-2",
            status=ValidationStatus.WARNING,
            discrepancies=[Discrepancy(type="CONTENT_MISMATCH", message="Title differs")],
        ),
        ValidationResult(
            component_id="c-3",
            status=ValidationStatus.INVALID,
            discrepancies=[Discrepancy(type="CONFLICTING_SOURCES", message="Two sources disagree")],
        ),
        ValidationResult(component_id="c-4", status=ValidationStatus.STALE),
        ValidationResult(component_id="c-5", status=ValidationStatus.UNVERIFIABLE),
    ]
