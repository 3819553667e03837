"""Shared test fixtures for the notify app."""

from unittest.mock import MagicMock

import pytest

from apps.notify.auth import Identity
from apps.notify.clients.echo import EchoClient
from apps.notify.clients.front50 import Front50Client
from apps.notify.listener import EventNotifyingExecutionListener
from apps.notify.notifications import ApplicationNotifications, Notification
from apps.orchestration.dtos import Execution
from apps.orchestration.models import ExecutionStatus, ExecutionType


@pytest.fixture
def pipeline_execution():
    """A running pipeline with one templated notification."""
    return Execution(
        id="01HEXEC",
        type=ExecutionType.PIPELINE,
        application="myapp",
        name="deploy",
        status=ExecutionStatus.RUNNING,
        notifications=[
            Notification(
                address="{{ application }}-team@example.com",
                type="email",
                when=["pipeline.starting"],
            )
        ],
    )


@pytest.fixture
def echo_client():
    return MagicMock(spec=EchoClient)


@pytest.fixture
def front50_client():
    client = MagicMock(spec=Front50Client)
    client.get_application_notifications.return_value = None
    return client


@pytest.fixture
def listener(echo_client, front50_client):
    return EventNotifyingExecutionListener(echo_client, front50_client)


@pytest.fixture
def user():
    return Identity(user="alice@example.com", allowed_accounts=("prod", "test"))


@pytest.fixture
def app_notifications():
    """Registry response with an email notification for pipeline completion."""
    return ApplicationNotifications.from_dict(
        {
            "application": "myapp",
            "email": [
                {
                    "address": "ops@example.com",
                    "when": ["pipeline.complete", "pipeline.failed"],
                }
            ],
        }
    )
