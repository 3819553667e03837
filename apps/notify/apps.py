"""Django app configuration for the notify app."""

from django.apps import AppConfig


class NotifyConfig(AppConfig):
    """Configuration for the execution event notifications app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.notify"
    verbose_name = "Execution Notifications"
