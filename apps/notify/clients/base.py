"""Base JSON-over-HTTP client shared by the service clients.

Transport failures are raised as ``ServiceRequestError``; callers decide
whether to contain them.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from abc import ABC
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder

from apps.notify.auth import Identity, identity_headers
from apps.notify.exceptions import ServiceRequestError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class BaseServiceClient(ABC):
    """Abstract base class for service clients."""

    name: str = "base"

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        payload: Any = None,
        identity: Identity | None = None,
    ) -> tuple[int, Any]:
        """Send a request and decode the JSON response.

        Returns:
            (status_code, decoded body). The body is None when empty and
            ``{"raw": ...}`` when it is not JSON.
        """
        url = self._url(path)
        headers = {
            "Accept": "application/json",
            "User-Agent": "ExecutionNotifications/1.0",
        }
        headers.update(identity_headers(identity))

        data = None
        if payload is not None:
            data = json.dumps(payload, cls=DjangoJSONEncoder).encode("utf-8")
            headers["Content-Type"] = "application/json"

        request = urllib.request.Request(url, data=data, headers=headers, method=method)

        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                status_code = response.getcode()
                body = response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8") if e.fp else str(e)
            logger.error(f"{self.name} HTTP error {e.code} for {method} {url}: {error_body}")
            raise ServiceRequestError(self.name, error_body, status_code=e.code) from e
        except urllib.error.URLError as e:
            logger.error(f"{self.name} URL error for {method} {url}: {e.reason}")
            raise ServiceRequestError(self.name, f"Failed to connect: {e.reason}") from e
        except TimeoutError as e:
            raise ServiceRequestError(self.name, f"Timed out after {self.timeout}s") from e

        if not body.strip():
            return status_code, None
        try:
            return status_code, json.loads(body)
        except json.JSONDecodeError:
            return status_code, {"raw": body}

    @staticmethod
    def _quote(segment: str) -> str:
        return urllib.parse.quote(segment, safe="")
