"""Environment loading for the notification dispatcher.

Every ``NOTIFY_*`` setting (echo and front50 base URLs, HTTP timeout, identity
header names, metrics backend) is read from the process environment in
``config/settings.py``. When running ``manage.py dispatch_execution_event``
against local services, those values can live in dotenv files at the project
root instead:

- ``.env`` is always read when present
- ``.env.dev`` is read afterwards when ``DJANGO_ENV`` is dev/development/local

Variables already set in the process win over both files.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

DEV_ENVIRONMENTS = {"dev", "development", "local"}

TRUE_VALUES = {"1", "true", "yes", "on"}


def _should_load_dev_env() -> bool:
    return os.environ.get("DJANGO_ENV", "").strip().lower() in DEV_ENVIRONMENTS


def env_files(base_dir: Path) -> list[Path]:
    """Dotenv files to read from ``base_dir``, in load order."""
    files = [base_dir / ".env"]
    if _should_load_dev_env():
        files.append(base_dir / ".env.dev")
    return files


def load_env(base_dir: Path | None = None) -> list[Path]:
    """Load the dotenv files for this project into ``os.environ``.

    Missing files are skipped and existing variables are never overridden,
    so calling this more than once is harmless.

    Args:
        base_dir: Directory holding the dotenv files. Defaults to the project
            root (the parent of ``config/``).

    Returns:
        The files that were found and loaded.
    """
    if base_dir is None:
        base_dir = Path(__file__).resolve().parent.parent

    loaded = []
    for path in env_files(base_dir):
        if path.is_file():
            load_dotenv(path, override=False)
            loaded.append(path)
    return loaded


def env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean flag such as ``DJANGO_DEBUG`` from the environment."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES
