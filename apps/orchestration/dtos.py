"""
Data Transfer Objects (DTOs) for executions.

The engine hands these to execution listeners. ``to_dict`` produces the
camelCase representation used both as template context and as event content.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from apps.notify.auth import Identity
from apps.notify.notifications import Notification
from apps.orchestration.models import ExecutionStatus, ExecutionType


@dataclass
class Execution:
    """
    A running pipeline or orchestration instance.

    ``notifications`` belongs to the execution and is mutated in place by
    execution listeners.
    """

    id: str
    type: ExecutionType
    application: str
    status: ExecutionStatus = ExecutionStatus.NOT_STARTED
    notifications: list[Notification] = field(default_factory=list)
    authentication: Identity | None = None
    name: str | None = None
    pipeline_config_id: str | None = None
    trigger: dict[str, Any] = field(default_factory=dict)
    start_time: int | None = None  # epoch millis
    end_time: int | None = None

    @property
    def is_pipeline(self) -> bool:
        return self.type == ExecutionType.PIPELINE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": str(self.type),
            "application": self.application,
            "name": self.name,
            "status": str(self.status),
            "pipelineConfigId": self.pipeline_config_id,
            "notifications": [n.to_dict() for n in self.notifications],
            "authentication": self.authentication.to_dict() if self.authentication else None,
            "trigger": dict(self.trigger),
            "startTime": self.start_time,
            "endTime": self.end_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Execution":
        return cls(
            id=data["id"],
            type=ExecutionType(str(data.get("type", ExecutionType.PIPELINE)).upper()),
            application=data["application"],
            status=ExecutionStatus(
                str(data.get("status", ExecutionStatus.NOT_STARTED)).upper()
            ),
            notifications=[Notification.from_dict(n) for n in data.get("notifications") or []],
            authentication=Identity.from_dict(data.get("authentication")),
            name=data.get("name"),
            pipeline_config_id=data.get("pipelineConfigId"),
            trigger=dict(data.get("trigger") or {}),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
        )
