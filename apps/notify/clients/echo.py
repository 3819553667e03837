"""Client for the event service that records execution lifecycle events."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from apps.notify.auth import Identity
from apps.notify.clients.base import BaseServiceClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventDetails:
    """Fixed-shape header of an event."""

    source: str
    type: str
    application: str

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source, "type": self.type, "application": self.application}


@dataclass
class EventRecord:
    """An event as accepted by the event service."""

    details: EventDetails
    content: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"details": self.details.to_dict(), "content": self.content}


class EchoClient(BaseServiceClient):
    """Publishes events; the response body is ignored."""

    name = "echo"

    def record_event(self, event: EventRecord, identity: Identity | None = None) -> None:
        status_code, _ = self._request("POST", "/", payload=event.to_dict(), identity=identity)
        logger.info(f"Recorded {event.details.type} event for {event.details.application}: {status_code}")
