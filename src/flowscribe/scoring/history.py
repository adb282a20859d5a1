"""
Validation run history.

Trend series are read from a store of past validation runs. The store
returns completed, scored runs newest first.
"""

from typing import Protocol, runtime_checkable

from flowscribe.models.validation import ValidationRun

COMPLETED_STATUS = "COMPLETED"


@runtime_checkable
class ScoreHistory(Protocol):
    """Read access to completed validation runs."""

    def list_completed_runs(self, diagram_id: str, limit: int) -> list[ValidationRun]:
        """Completed runs with a score, newest first, at most ``limit``."""
        ...


class InMemoryScoreHistory:
    """Validation run store kept in process memory."""

    def __init__(self) -> None:
        self._runs: list[ValidationRun] = []

    def record_run(self, run: ValidationRun) -> None:
        self._runs.append(run)

    def list_completed_runs(self, diagram_id: str, limit: int) -> list[ValidationRun]:
        runs = [
            r
            for r in self._runs
            if r.diagram_id == diagram_id and r.status == COMPLETED_STATUS and r.score is not None
        ]
        runs.sort(key=lambda r: r.completed_at or r.started_at, reverse=True)
        return runs[: max(limit, 0)]
