"""Django settings for the execution notifications project."""

from __future__ import annotations

import os
from pathlib import Path

from config.env import env_bool, load_env

BASE_DIR = Path(__file__).resolve().parent.parent

load_env(BASE_DIR)

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-dev-key-change-me")
DEBUG = env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "apps.orchestration",
    "apps.notify",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
USE_TZ = True
TIME_ZONE = "UTC"

# ---------------------------------------------------------------------------
# Execution notifications
# ---------------------------------------------------------------------------

# Event service that records execution lifecycle events
NOTIFY_ECHO_BASE_URL = os.environ.get("NOTIFY_ECHO_BASE_URL", "http://localhost:8089")

# Application registry holding application-level notification settings
NOTIFY_FRONT50_BASE_URL = os.environ.get("NOTIFY_FRONT50_BASE_URL", "http://localhost:8080")

# Socket timeout (seconds) for both services
NOTIFY_HTTP_TIMEOUT = float(os.environ.get("NOTIFY_HTTP_TIMEOUT", "10"))

# Headers carrying the impersonated user on registry calls
NOTIFY_AUTH_USER_HEADER = os.environ.get("NOTIFY_AUTH_USER_HEADER", "X-SPINNAKER-USER")
NOTIFY_AUTH_ACCOUNTS_HEADER = os.environ.get(
    "NOTIFY_AUTH_ACCOUNTS_HEADER", "X-SPINNAKER-ACCOUNTS"
)

# "logging" (default) or "none"
NOTIFY_METRICS_BACKEND = os.environ.get("NOTIFY_METRICS_BACKEND", "logging")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
    },
    "loggers": {
        "apps.notify": {
            "level": os.environ.get("NOTIFY_LOG_LEVEL", "INFO"),
        },
    },
}
