"""Exceptions raised while dispatching execution notifications.

All of them are contained by the execution listener: they are logged and
never reach the orchestration engine.
"""


class NotifyError(Exception):
    """Base class for notification dispatch failures."""


class ServiceRequestError(NotifyError):
    """An outbound call to the registry or event service failed."""

    def __init__(self, service: str, message: str, status_code: int | None = None):
        self.service = service
        self.status_code = status_code
        self.message = message
        if status_code is not None:
            super().__init__(f"{service} request failed ({status_code}): {message}")
        else:
            super().__init__(f"{service} request failed: {message}")


class ExpressionEvaluationError(NotifyError):
    """A template expression could not be resolved."""

    def __init__(self, template: str, reason: str):
        self.template = template
        self.reason = reason
        super().__init__(f"Failed to evaluate {template!r}: {reason}")
