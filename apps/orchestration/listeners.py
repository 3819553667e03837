"""Listener contract the orchestration engine invokes at execution boundaries."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from apps.orchestration.dtos import Execution
from apps.orchestration.models import ExecutionStatus


class ExecutionListener(ABC):
    """Hooks called synchronously by the engine on the thread driving an execution.

    For a given execution ``before_execution`` is always called before
    ``after_execution``. Implementations must not raise back into the engine.
    """

    @abstractmethod
    def before_execution(self, execution: Execution) -> Any:
        """Called before the execution starts."""

    @abstractmethod
    def after_execution(
        self,
        execution: Execution,
        execution_status: ExecutionStatus,
        was_successful: bool,
    ) -> Any:
        """Called after the execution has reached ``execution_status``."""
