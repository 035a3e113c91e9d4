"""Route worker lifecycle models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from turbine.models.routes import RouteKind


class WorkerState(str, Enum):
    """Lifecycle of a dispatched route worker."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"  # inputs exhausted, outputs closed
    FAILED = "failed"  # a callback raised; outputs left open


class WorkerReport(BaseModel):
    """Point-in-time snapshot of a route worker."""

    model_config = ConfigDict(frozen=True)

    name: str
    route_kind: RouteKind
    state: WorkerState
    error: str | None = None

    @property
    def is_finished(self) -> bool:
        return self.state in (WorkerState.COMPLETED, WorkerState.FAILED)
