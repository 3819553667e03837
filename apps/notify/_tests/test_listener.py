"""Tests for EventNotifyingExecutionListener."""

from unittest import mock
from unittest.mock import MagicMock

import pytest
from django.test import SimpleTestCase

from apps.notify.auth import Identity
from apps.notify.clients.echo import EchoClient
from apps.notify.clients.front50 import Front50Client
from apps.notify.dtos import DispatchStatus
from apps.notify.exceptions import ServiceRequestError
from apps.notify.listener import EventNotifyingExecutionListener, event_type
from apps.notify.notifications import ApplicationNotifications, Notification
from apps.notify.templating import ExpressionEvaluator
from apps.orchestration.dtos import Execution
from apps.orchestration.models import ExecutionStatus, ExecutionType


def _published_event(echo_client):
    assert echo_client.record_event.call_count == 1
    return echo_client.record_event.call_args.args[0]


class TestSuspendedExecutions:
    @pytest.fixture
    def evaluator(self):
        return MagicMock(spec=ExpressionEvaluator)

    @pytest.fixture
    def suspended(self, pipeline_execution):
        pipeline_execution.status = ExecutionStatus.SUSPENDED
        return pipeline_execution

    def test_before_execution_does_nothing(self, suspended, evaluator, echo_client, front50_client):
        listener = EventNotifyingExecutionListener(echo_client, front50_client, evaluator)
        original = list(suspended.notifications)

        result = listener.before_execution(suspended)

        assert result.status == DispatchStatus.SKIPPED
        evaluator.evaluate.assert_not_called()
        front50_client.get_application_notifications.assert_not_called()
        echo_client.record_event.assert_not_called()
        assert suspended.notifications == original

    def test_after_execution_does_nothing(self, suspended, evaluator, echo_client, front50_client):
        listener = EventNotifyingExecutionListener(echo_client, front50_client, evaluator)

        result = listener.after_execution(suspended, ExecutionStatus.SUCCEEDED, True)

        assert result.status == DispatchStatus.SKIPPED
        evaluator.evaluate.assert_not_called()
        front50_client.get_application_notifications.assert_not_called()
        echo_client.record_event.assert_not_called()


class TestEventTypes:
    def test_event_type_lowercases_execution_type(self):
        assert event_type(ExecutionType.ORCHESTRATION, "starting") == "orca:orchestration:starting"

    def test_starting(self, listener, pipeline_execution, echo_client):
        result = listener.before_execution(pipeline_execution)

        event = _published_event(echo_client)
        assert event.details.type == "orca:pipeline:starting"
        assert event.details.source == "orca"
        assert event.details.application == "myapp"
        assert result.status == DispatchStatus.PUBLISHED
        assert result.event_type == "orca:pipeline:starting"

    def test_complete(self, listener, pipeline_execution, echo_client):
        listener.after_execution(pipeline_execution, ExecutionStatus.SUCCEEDED, True)

        assert _published_event(echo_client).details.type == "orca:pipeline:complete"

    def test_failed(self, listener, pipeline_execution, echo_client):
        listener.after_execution(pipeline_execution, ExecutionStatus.TERMINAL, False)

        assert _published_event(echo_client).details.type == "orca:pipeline:failed"

    def test_orchestration_skips_application_notifications(
        self, listener, pipeline_execution, echo_client, front50_client
    ):
        pipeline_execution.type = ExecutionType.ORCHESTRATION

        listener.before_execution(pipeline_execution)

        front50_client.get_application_notifications.assert_not_called()
        assert _published_event(echo_client).details.type == "orca:orchestration:starting"


class TestNotificationProcessing:
    def test_notifications_are_evaluated_in_place(self, listener, pipeline_execution):
        listener.before_execution(pipeline_execution)

        assert len(pipeline_execution.notifications) == 1
        assert pipeline_execution.notifications[0].address == "myapp-team@example.com"
        assert pipeline_execution.notifications[0].when == ["pipeline.starting"]

    def test_application_notifications_are_merged(
        self, listener, pipeline_execution, front50_client, app_notifications
    ):
        front50_client.get_application_notifications.return_value = app_notifications

        result = listener.after_execution(pipeline_execution, ExecutionStatus.SUCCEEDED, True)

        assert result.notifications_added == 1
        assert [n.address for n in pipeline_execution.notifications] == [
            "myapp-team@example.com",
            "ops@example.com",
        ]
        assert pipeline_execution.notifications[1].type == "email"

    def test_application_notifications_are_evaluated(
        self, listener, pipeline_execution, front50_client
    ):
        front50_client.get_application_notifications.return_value = (
            ApplicationNotifications.from_dict(
                {"slack": [{"address": "#{{ execution.name }}", "when": ["pipeline.failed"]}]}
            )
        )

        listener.before_execution(pipeline_execution)

        assert pipeline_execution.notifications[-1].address == "#deploy"
        assert pipeline_execution.notifications[-1].type == "slack"

    def test_shadowed_application_notification_is_dropped(
        self, listener, pipeline_execution, front50_client
    ):
        front50_client.get_application_notifications.return_value = (
            ApplicationNotifications.from_dict(
                {
                    "email": [
                        {"address": "myapp-team@example.com", "when": ["pipeline.starting"]}
                    ]
                }
            )
        )

        result = listener.before_execution(pipeline_execution)

        assert result.notifications_added == 0
        assert len(pipeline_execution.notifications) == 1

    def test_content_contains_evaluated_execution(self, listener, pipeline_execution, echo_client):
        listener.before_execution(pipeline_execution)

        content = _published_event(echo_client).content
        assert content["executionId"] == "01HEXEC"
        assert content["execution"]["id"] == "01HEXEC"
        assert content["execution"]["type"] == "PIPELINE"
        assert content["execution"]["notifications"][0]["address"] == "myapp-team@example.com"

    def test_failing_trigger_expression_is_published_as_written(
        self, listener, pipeline_execution, echo_client
    ):
        pipeline_execution.trigger = {"parameters": {"note": "{{ 1 / 0 }}"}}

        result = listener.before_execution(pipeline_execution)

        assert result.status == DispatchStatus.PUBLISHED
        echo_client.record_event.assert_called_once()
        content = _published_event(echo_client).content
        assert content["execution"]["trigger"]["parameters"]["note"] == "{{ 1 / 0 }}"

    def test_status_is_never_changed(self, listener, pipeline_execution):
        listener.after_execution(pipeline_execution, ExecutionStatus.SUCCEEDED, True)

        assert pipeline_execution.status == ExecutionStatus.RUNNING


class TestIdentity:
    def test_fetch_impersonates_and_publish_is_anonymous(
        self, listener, pipeline_execution, echo_client, front50_client, user
    ):
        pipeline_execution.authentication = user

        listener.before_execution(pipeline_execution)

        fetch_identity = front50_client.get_application_notifications.call_args.kwargs["identity"]
        publish_identity = echo_client.record_event.call_args.kwargs["identity"]
        assert fetch_identity == user
        assert publish_identity is None
        assert fetch_identity != publish_identity

    def test_fetch_is_anonymous_without_identity(self, listener, pipeline_execution, front50_client):
        listener.before_execution(pipeline_execution)

        front50_client.get_application_notifications.assert_called_once_with(
            "myapp", identity=None
        )

    def test_blank_user_counts_as_anonymous(self, listener, pipeline_execution, front50_client):
        pipeline_execution.authentication = Identity(user="  ")

        listener.before_execution(pipeline_execution)

        assert front50_client.get_application_notifications.call_args.kwargs["identity"] is None


class TestFailureContainment:
    def test_publish_failure_keeps_earlier_mutations(
        self, listener, pipeline_execution, echo_client, front50_client, app_notifications
    ):
        front50_client.get_application_notifications.return_value = app_notifications
        echo_client.record_event.side_effect = ServiceRequestError("echo", "boom", status_code=500)

        result = listener.after_execution(pipeline_execution, ExecutionStatus.SUCCEEDED, True)

        assert result.status == DispatchStatus.FAILED
        assert result.error.error_type == "ServiceRequestError"
        assert pipeline_execution.notifications[0].address == "myapp-team@example.com"
        assert pipeline_execution.notifications[1].address == "ops@example.com"
        assert pipeline_execution.status == ExecutionStatus.RUNNING

    def test_registry_failure_is_contained(
        self, listener, pipeline_execution, echo_client, front50_client
    ):
        front50_client.get_application_notifications.side_effect = ServiceRequestError(
            "front50", "Failed to connect: refused"
        )

        result = listener.before_execution(pipeline_execution)

        assert result.status == DispatchStatus.FAILED
        echo_client.record_event.assert_not_called()
        assert pipeline_execution.notifications[0].address == "myapp-team@example.com"

    def test_evaluation_failure_is_contained(self, pipeline_execution, echo_client, front50_client):
        evaluator = MagicMock(spec=ExpressionEvaluator)
        evaluator.evaluate.side_effect = RuntimeError("bad expression")
        listener = EventNotifyingExecutionListener(echo_client, front50_client, evaluator)

        result = listener.before_execution(pipeline_execution)

        assert result.status == DispatchStatus.FAILED
        assert result.error.message == "bad expression"
        front50_client.get_application_notifications.assert_not_called()
        echo_client.record_event.assert_not_called()

    def test_missing_execution_is_contained(self, listener):
        result = listener.before_execution(None)

        assert result.status == DispatchStatus.FAILED
        assert result.execution_id is None

    def test_published_signal_failure_keeps_published_status(
        self, listener, pipeline_execution, echo_client
    ):
        with mock.patch(
            "apps.notify.listener.emit_dispatch_published", side_effect=RuntimeError("backend down")
        ):
            result = listener.before_execution(pipeline_execution)

        assert result.status == DispatchStatus.PUBLISHED
        assert result.error is None
        echo_client.record_event.assert_called_once()


class FailureLoggingTests(SimpleTestCase):
    """Failures are logged with the execution id."""

    def setUp(self):
        self.echo_client = MagicMock(spec=EchoClient)
        self.front50_client = MagicMock(spec=Front50Client)
        self.front50_client.get_application_notifications.return_value = None
        self.listener = EventNotifyingExecutionListener(self.echo_client, self.front50_client)
        self.execution = Execution(
            id="exec-42",
            type=ExecutionType.PIPELINE,
            application="myapp",
            status=ExecutionStatus.RUNNING,
            notifications=[Notification(address="a@example.com", type="email", when=["x"])],
        )

    def test_start_failure_logged_with_execution_id(self):
        self.echo_client.record_event.side_effect = ServiceRequestError("echo", "down")

        with self.assertLogs("apps.notify.listener", level="ERROR") as logs:
            self.listener.before_execution(self.execution)

        self.assertIn("Failed to send pipeline start event: exec-42", logs.output[0])

    def test_end_failure_logged_with_execution_id(self):
        self.echo_client.record_event.side_effect = ServiceRequestError("echo", "down")

        with self.assertLogs("apps.notify.listener", level="ERROR") as logs:
            result = self.listener.after_execution(self.execution, ExecutionStatus.TERMINAL, False)

        self.assertIn("Failed to send pipeline end event: exec-42", logs.output[0])
        self.assertEqual(result.event_type, "orca:pipeline:failed")
