"""Notification subscriptions and the application-level merge.

A notification says where to alert (``address`` or ``publisherName``), how
(``type``, e.g. ``email`` or ``slack``) and on which trigger events
(``when``, e.g. ``pipeline.complete``). Any other keys are kept in ``extra``
and round-trip untouched.

Public API:
- Notification
- ApplicationNotifications
- merge_application_notifications
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable

logger = logging.getLogger(__name__)

# Trigger names of pipeline-level notifications start with this prefix
PIPELINE_TRIGGER_PREFIX = "pipeline"

_KNOWN_KEYS = {"address", "publisherName", "type", "when"}


def _normalize_when(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(w) for w in value]


@dataclass
class Notification:
    """A single notification subscription."""

    address: str | None = None
    publisher_name: str | None = None
    type: str | None = None
    when: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        if self.address is not None:
            data["address"] = self.address
        if self.publisher_name is not None:
            data["publisherName"] = self.publisher_name
        if self.type is not None:
            data["type"] = self.type
        data["when"] = list(self.when)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Notification":
        return cls(
            address=data.get("address"),
            publisher_name=data.get("publisherName"),
            type=data.get("type"),
            when=_normalize_when(data.get("when")),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def targets_same_destination(self, other: "Notification") -> bool:
        """True when both share a non-empty address or publisher, and a non-empty type."""
        address_matches = bool(self.address and other.address and self.address == other.address)
        publisher_matches = bool(
            self.publisher_name
            and other.publisher_name
            and self.publisher_name == other.publisher_name
        )
        type_matches = bool(self.type and other.type and self.type == other.type)
        return (address_matches or publisher_matches) and type_matches


@dataclass
class ApplicationNotifications:
    """Notification settings stored for an application in the registry.

    The registry groups notifications by type::

        {"application": "myapp", "email": [{"address": "...", "when": [...]}], "slack": [...]}
    """

    application: str | None = None
    notifications_by_type: dict[str, list[dict[str, Any]]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ApplicationNotifications":
        data = data or {}
        by_type = {
            key: [entry for entry in value if isinstance(entry, dict)]
            for key, value in data.items()
            if isinstance(value, list)
        }
        return cls(application=data.get("application"), notifications_by_type=by_type)

    def pipeline_notifications(self) -> list[Notification]:
        """Notifications subscribed to at least one pipeline trigger, typed by their group."""
        result: list[Notification] = []
        for notification_type, entries in self.notifications_by_type.items():
            for entry in entries:
                when = _normalize_when(entry.get("when"))
                if not any(w.startswith(PIPELINE_TRIGGER_PREFIX) for w in when):
                    continue
                notification = Notification.from_dict(entry)
                notification.type = notification_type
                result.append(notification)
        return result


def merge_application_notifications(
    pipeline_notifications: list[Notification],
    application_notifications: Iterable[Notification],
) -> int:
    """Append application-level notifications to a pipeline's own list.

    A pipeline notification with the same address (or publisher) and type acts
    as an override: the application notification keeps only the triggers the
    pipeline one does not already cover, and is dropped when none remain. The
    first matching pipeline notification wins.

    ``pipeline_notifications`` is mutated in place; existing entries are never
    removed or reordered.

    Returns:
        Number of notifications appended.
    """
    added = 0
    for app_notification in application_notifications:
        target = next(
            (p for p in pipeline_notifications if app_notification.targets_same_destination(p)),
            None,
        )
        if target is None:
            pipeline_notifications.append(app_notification)
            added += 1
            continue

        remaining = list(dict.fromkeys(w for w in app_notification.when if w not in target.when))
        if remaining:
            pipeline_notifications.append(
                replace(app_notification, when=remaining, extra=dict(app_notification.extra))
            )
            added += 1
        else:
            logger.debug(
                "Application notification %s/%s shadowed by pipeline notification",
                app_notification.type,
                app_notification.address or app_notification.publisher_name,
            )
    return added
