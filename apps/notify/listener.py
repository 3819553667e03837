"""
Execution listener that publishes lifecycle events.

Before an execution starts and after it ends the listener:
1. Evaluates template expressions in the execution's notifications
2. For pipelines, merges in the application's own notifications from the
   registry, fetched as the user who triggered the execution
3. Builds the event content from the execution
4. Publishes an ``orca:<type>:<phase>`` event, always anonymously

This is a side channel. Every failure is logged with the execution id and
contained here; the engine never sees an exception and the execution's
status is never touched. Changes made before a failing step are kept.
"""

from __future__ import annotations

import logging
import time
import traceback
from typing import Any

from django.conf import settings

from apps.notify.auth import AuthenticationPropagator, Identity
from apps.notify.clients.base import DEFAULT_TIMEOUT
from apps.notify.clients.echo import EchoClient, EventDetails, EventRecord
from apps.notify.clients.front50 import Front50Client
from apps.notify.dtos import DispatchError, DispatchResult, DispatchStatus
from apps.notify.notifications import Notification, merge_application_notifications
from apps.notify.signals import (
    SignalTags,
    emit_dispatch_failed,
    emit_dispatch_published,
    emit_dispatch_skipped,
    emit_dispatch_started,
)
from apps.notify.templating import ExpressionEvaluator, build_execution_context
from apps.orchestration.dtos import Execution
from apps.orchestration.listeners import ExecutionListener
from apps.orchestration.models import ExecutionStatus

logger = logging.getLogger(__name__)

EVENT_SOURCE = "orca"

PHASE_STARTING = "starting"
PHASE_COMPLETE = "complete"
PHASE_FAILED = "failed"


def event_type(execution_type: str, phase: str) -> str:
    """Type tag of a lifecycle event, e.g. ``orca:pipeline:starting``."""
    return f"{EVENT_SOURCE}:{str(execution_type).lower()}:{phase}"


class EventNotifyingExecutionListener(ExecutionListener):
    """
    Publishes execution lifecycle events to the event service.

    Usage:
        listener = EventNotifyingExecutionListener(echo_client, front50_client)
        listener.before_execution(execution)
        listener.after_execution(execution, ExecutionStatus.SUCCEEDED, True)
    """

    def __init__(
        self,
        echo_client: EchoClient,
        front50_client: Front50Client,
        evaluator: ExpressionEvaluator | None = None,
        auth: AuthenticationPropagator | None = None,
    ):
        self.echo_client = echo_client
        self.front50_client = front50_client
        self.evaluator = evaluator or ExpressionEvaluator()
        self.auth = auth or AuthenticationPropagator()

    def before_execution(self, execution: Execution) -> DispatchResult:
        return self._dispatch(execution, PHASE_STARTING, "start")

    def after_execution(
        self,
        execution: Execution,
        execution_status: ExecutionStatus,
        was_successful: bool,
    ) -> DispatchResult:
        phase = PHASE_COMPLETE if was_successful else PHASE_FAILED
        return self._dispatch(execution, phase, "end")

    def _dispatch(self, execution: Execution, phase: str, boundary: str) -> DispatchResult:
        start_time = time.perf_counter()
        result = DispatchResult(execution_id=getattr(execution, "id", None), phase=phase)
        tags: SignalTags | None = None

        try:
            tags = SignalTags(
                execution_id=execution.id,
                execution_type=str(execution.type),
                application=execution.application,
                phase=phase,
            )

            if execution.status == ExecutionStatus.SUSPENDED:
                result.status = DispatchStatus.SKIPPED
                emit_dispatch_skipped(tags, reason="suspended")
                return result

            emit_dispatch_started(tags)

            self._process_notification_templates(execution)

            if execution.is_pipeline:
                result.notifications_added = self._add_application_notifications(execution)

            event = EventRecord(
                details=EventDetails(
                    source=EVENT_SOURCE,
                    type=event_type(execution.type, phase),
                    application=execution.application,
                ),
                content=self.build_content(execution),
            )
            result.event_type = event.details.type

            self.auth.allow_anonymous(
                lambda identity: self.echo_client.record_event(event, identity=identity)
            )

            result.status = DispatchStatus.PUBLISHED
            result.duration_ms = (time.perf_counter() - start_time) * 1000

        except Exception as e:
            result.status = DispatchStatus.FAILED
            result.duration_ms = (time.perf_counter() - start_time) * 1000
            result.error = DispatchError(
                error_type=type(e).__name__,
                message=str(e),
                stack_trace=traceback.format_exc(),
            )
            logger.exception(
                f"Failed to send pipeline {boundary} event: {result.execution_id}",
                extra={"execution_id": result.execution_id, "phase": phase},
            )
            self._emit_failure(tags, result)

        if result.published:
            self._emit_published(tags, result)

        return result

    def _emit_published(self, tags: SignalTags | None, result: DispatchResult) -> None:
        if tags is None or result.event_type is None:
            return
        try:
            emit_dispatch_published(tags, result.event_type, result.duration_ms)
        except Exception:
            logger.warning(
                f"Could not emit dispatch published signal: {result.execution_id}", exc_info=True
            )

    def _emit_failure(self, tags: SignalTags | None, result: DispatchResult) -> None:
        if tags is None or result.error is None:
            return
        try:
            emit_dispatch_failed(
                tags,
                error_type=result.error.error_type,
                error_message=result.error.message,
                duration_ms=result.duration_ms,
            )
        except Exception:
            logger.warning(
                f"Could not emit dispatch failure signal: {result.execution_id}", exc_info=True
            )

    def _process_notification_templates(self, execution: Execution) -> None:
        """Replace the execution's notifications with their evaluated form."""
        context = build_execution_context(execution)
        execution.notifications = [
            Notification.from_dict(self.evaluator.evaluate(n, context, True))
            for n in execution.notifications
        ]

    def _add_application_notifications(self, execution: Execution) -> int:
        """
        Merge the application's notifications into the pipeline's.

        A pipeline notification with the same address (or publisher) and type
        overrides the application one: triggers it already covers are removed
        from the application notification, which is dropped if none remain.

        Returns:
            Number of notifications added to the execution.
        """

        def fetch(identity: Identity | None):
            return self.front50_client.get_application_notifications(
                execution.application, identity=identity
            )

        user = execution.authentication
        if user is not None and user.is_present:
            notifications = self.auth.propagate(fetch, user)
        else:
            notifications = self.auth.allow_anonymous(fetch)

        if notifications is None:
            return 0

        added = 0
        for app_notification in notifications.pipeline_notifications():
            evaluated = Notification.from_dict(
                self.evaluator.evaluate(app_notification, build_execution_context(execution), True)
            )
            added += merge_application_notifications(execution.notifications, [evaluated])
        return added

    def build_content(self, execution: Execution) -> dict[str, Any]:
        """Event content: the evaluated execution and its id."""
        return self.evaluator.evaluate(
            {"execution": execution, "executionId": execution.id},
            {"execution": execution.to_dict()},
            True,
        )


# Process-wide listener (lazy initialized)
_listener: EventNotifyingExecutionListener | None = None


def build_listener() -> EventNotifyingExecutionListener:
    """Build a listener from Django settings."""
    timeout = float(getattr(settings, "NOTIFY_HTTP_TIMEOUT", DEFAULT_TIMEOUT))
    return EventNotifyingExecutionListener(
        echo_client=EchoClient(settings.NOTIFY_ECHO_BASE_URL, timeout=timeout),
        front50_client=Front50Client(settings.NOTIFY_FRONT50_BASE_URL, timeout=timeout),
    )


def get_execution_listener() -> EventNotifyingExecutionListener:
    """Get the configured listener, building it on first use."""
    global _listener
    if _listener is None:
        _listener = build_listener()
    return _listener
