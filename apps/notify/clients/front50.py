"""Client for the application registry's notification settings."""

from __future__ import annotations

import logging

from apps.notify.auth import Identity
from apps.notify.clients.base import BaseServiceClient
from apps.notify.exceptions import ServiceRequestError
from apps.notify.notifications import ApplicationNotifications

logger = logging.getLogger(__name__)


class Front50Client(BaseServiceClient):
    """Reads application-scoped notification settings."""

    name = "front50"

    def get_application_notifications(
        self, application: str, identity: Identity | None = None
    ) -> ApplicationNotifications | None:
        """Fetch the notifications configured for ``application``.

        Returns:
            The application's notifications, or None when it has none.
        """
        path = f"/notifications/application/{self._quote(application)}"
        try:
            _, body = self._request("GET", path, identity=identity)
        except ServiceRequestError as e:
            if e.status_code == 404:
                logger.debug("No notifications configured for application %s", application)
                return None
            raise

        if not isinstance(body, dict):
            return None
        return ApplicationNotifications.from_dict(body)
