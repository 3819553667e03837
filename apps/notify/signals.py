"""
Monitoring signals for execution event dispatch.

Emits one structured signal per dispatch outcome:
- notify.dispatch.started
- notify.dispatch.published
- notify.dispatch.skipped (suspended executions)
- notify.dispatch.failed (with error type)

Every signal carries the execution id, execution type, application and
phase.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from django.conf import settings

logger = logging.getLogger("apps.notify.signals")


@dataclass
class SignalTags:
    """Required tags for all dispatch signals."""

    execution_id: str
    execution_type: str
    application: str
    phase: str  # starting, complete, failed
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        base = {
            "execution_id": self.execution_id,
            "execution_type": self.execution_type,
            "application": self.application,
            "phase": self.phase,
        }
        base.update(self.extra)
        return base


class MonitoringBackend:
    """
    Abstract monitoring backend.

    Override emit() to send signals to your preferred monitoring system.
    """

    def emit(
        self,
        signal_name: str,
        tags: SignalTags,
        value: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Emit a monitoring signal."""
        raise NotImplementedError


class LoggingBackend(MonitoringBackend):
    """Default backend: structured logging."""

    def emit(
        self,
        signal_name: str,
        tags: SignalTags,
        value: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        data = {
            "signal": signal_name,
            "value": value,
            **tags.to_dict(),
            **(extra or {}),
        }
        logger.info(f"[SIGNAL] {signal_name}", extra={"signal_data": data})


class NullBackend(MonitoringBackend):
    """Discards every signal."""

    def emit(
        self,
        signal_name: str,
        tags: SignalTags,
        value: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        return None


def get_monitoring_backend() -> MonitoringBackend:
    """Get configured monitoring backend."""
    backend_name = getattr(settings, "NOTIFY_METRICS_BACKEND", "logging")

    if backend_name == "none":
        return NullBackend()

    return LoggingBackend()


# Global backend instance (lazy initialized)
_backend: MonitoringBackend | None = None


def _get_backend() -> MonitoringBackend:
    global _backend
    if _backend is None:
        _backend = get_monitoring_backend()
    return _backend


def emit_dispatch_started(tags: SignalTags) -> None:
    """Emit signal when a lifecycle event dispatch begins."""
    _get_backend().emit("notify.dispatch.started", tags)


def emit_dispatch_published(tags: SignalTags, event_type: str, duration_ms: float) -> None:
    """Emit signal when the lifecycle event was published."""
    _get_backend().emit(
        "notify.dispatch.published",
        tags,
        value=duration_ms,
        extra={"event_type": event_type},
    )


def emit_dispatch_skipped(tags: SignalTags, reason: str) -> None:
    """Emit signal when dispatch is skipped."""
    _get_backend().emit("notify.dispatch.skipped", tags, extra={"reason": reason})


def emit_dispatch_failed(
    tags: SignalTags,
    error_type: str,
    error_message: str,
    duration_ms: float,
) -> None:
    """Emit signal when dispatch fails."""
    _get_backend().emit(
        "notify.dispatch.failed",
        tags,
        value=duration_ms,
        extra={"error_type": error_type, "error_message": error_message},
    )
