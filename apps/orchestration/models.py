"""
Enumerations for executions driven by the orchestration engine.

Executions themselves are owned and persisted by the engine; this app only
describes their shape (see dtos.py).
"""

from django.db import models


class ExecutionType(models.TextChoices):
    """Kind of execution."""

    PIPELINE = "PIPELINE", "Pipeline"
    ORCHESTRATION = "ORCHESTRATION", "Orchestration"


class ExecutionStatus(models.TextChoices):
    """Execution status as reported by the engine's state machine."""

    NOT_STARTED = "NOT_STARTED", "Not started"
    RUNNING = "RUNNING", "Running"
    PAUSED = "PAUSED", "Paused"
    SUSPENDED = "SUSPENDED", "Suspended"
    SUCCEEDED = "SUCCEEDED", "Succeeded"
    FAILED_CONTINUE = "FAILED_CONTINUE", "Failed (continue)"
    TERMINAL = "TERMINAL", "Terminal"
    CANCELED = "CANCELED", "Canceled"
    REDIRECT = "REDIRECT", "Redirect"
    STOPPED = "STOPPED", "Stopped"
    BUFFERED = "BUFFERED", "Buffered"
    SKIPPED = "SKIPPED", "Skipped"
