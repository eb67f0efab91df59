"""Shared initialization for the CLI and the API.

Both entry points call ensure_initialized() so they agree on where the form
is stored and how option fetches behave. Resolution order:

1. ``.env`` in the project root is loaded into the environment.
2. ``form_builder.yaml`` in the project root, if present, gives base settings.
3. ``FORM_BUILDER_*`` environment variables override individual settings.
"""

import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from form_builder.config.settings import FormBuilderConfig

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "form_builder.yaml"
_ROOT_MARKERS = (SETTINGS_FILENAME, "pyproject.toml")

_settings: Optional[FormBuilderConfig] = None


def _find_project_root(start_path: Optional[Path] = None) -> Path:
    """Nearest directory (from start_path upwards) holding a settings file or pyproject.toml.

    Falls back to start_path (default: the working directory) when none is found.
    """
    start = (start_path or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if any((candidate / marker).exists() for marker in _ROOT_MARKERS):
            return candidate
    return start


def _load_env(project_root: Path) -> bool:
    """Load ``project_root/.env`` without overriding variables already set."""
    env_file = project_root / ".env"
    if not env_file.exists():
        return False
    load_dotenv(env_file)
    logger.debug("Loaded environment from %s", env_file)
    return True


def ensure_initialized(start_path: Optional[Path] = None) -> FormBuilderConfig:
    """Resolve settings once per process and return them.

    Args:
        start_path: Where to start looking for the project root.

    Returns:
        The cached FormBuilderConfig.
    """
    global _settings

    if _settings is None:
        project_root = _find_project_root(start_path)
        _load_env(project_root)
        file_settings = FormBuilderConfig.from_yaml(project_root / SETTINGS_FILENAME)
        _settings = FormBuilderConfig.from_env(base=file_settings)
        logger.debug("Settings resolved from %s: storage_dir=%s", project_root, _settings.storage_dir)

    return _settings


def reset_initialization() -> None:
    """Forget cached settings so the next call re-reads them (tests)."""
    global _settings
    _settings = None
