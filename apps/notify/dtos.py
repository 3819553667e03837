"""
Data Transfer Objects (DTOs) for execution event dispatch.

Each hook invocation produces a DispatchResult. Failures are carried as a
DispatchError inside the result instead of being raised to the engine.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


class DispatchStatus:
    PUBLISHED = "published"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class DispatchError:
    """Represents an error that occurred while dispatching an event."""

    error_type: str
    message: str
    stack_trace: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DispatchResult:
    """
    Outcome of one lifecycle hook invocation.

    - status: published, skipped (suspended execution) or failed
    - event_type: the type tag of the event, once built
    - notifications_added: application notifications merged into the execution
    """

    execution_id: str | None
    phase: str
    status: str = DispatchStatus.FAILED
    event_type: str | None = None
    notifications_added: int = 0
    error: DispatchError | None = None
    duration_ms: float = 0.0

    @property
    def published(self) -> bool:
        return self.status == DispatchStatus.PUBLISHED

    @property
    def has_errors(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "execution_id": self.execution_id,
            "phase": self.phase,
            "status": self.status,
            "event_type": self.event_type,
            "notifications_added": self.notifications_added,
            "duration_ms": self.duration_ms,
        }
        if self.error:
            result["error"] = self.error.to_dict()
        return result
