"""
Operation sources.

The orchestrator reads operation metadata and evidence documents through
an ``OperationSource``. ``InMemoryOperationSource`` serves both from
dictionaries and backs the CLI and the tests.
"""

import logging
from collections.abc import Iterable
from typing import Optional, Protocol, runtime_checkable

from flowscribe.models.documents import Document, OperationInfo

logger = logging.getLogger(__name__)


@runtime_checkable
class OperationSource(Protocol):
    """Read access to operations and their documents."""

    async def get_operation(self, operation_id: str) -> Optional[OperationInfo]:
        """Operation metadata, or None if unknown."""
        ...

    async def get_documents(self, operation_id: str) -> list[Document]:
        """Documents attached to an operation, empty if none."""
        ...


class InMemoryOperationSource:
    """Dictionary backed operation source."""

    def __init__(self) -> None:
        self._operations: dict[str, OperationInfo] = {}
        self._documents: dict[str, list[Document]] = {}

    def add_operation(
        self,
        operation: OperationInfo,
        documents: Optional[Iterable[Document]] = None,
    ) -> None:
        """Register an operation, optionally with its documents."""
        self._operations[operation.id] = operation
        self._documents.setdefault(operation.id, [])
        if documents is not None:
            self.add_documents(operation.id, documents)

    def add_documents(self, operation_id: str, documents: Iterable[Document]) -> None:
        """Attach documents to an operation."""
        docs = list(documents)
        self._documents.setdefault(operation_id, []).extend(docs)
        logger.debug("Attached %d documents to operation %s", len(docs), operation_id)

    async def get_operation(self, operation_id: str) -> Optional[OperationInfo]:
        return self._operations.get(operation_id)

    async def get_documents(self, operation_id: str) -> list[Document]:
        return list(self._documents.get(operation_id, []))
