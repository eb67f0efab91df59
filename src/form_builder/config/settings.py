"""Configuration for the form builder runtime.

Settings come from an optional YAML file, with environment variables
(``FORM_BUILDER_*``) taking precedence. ``startup.ensure_initialized()``
loads ``.env`` before these are read.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from form_builder.storage.form_storage import EXPIRATION_MS, STORAGE_KEY

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


class FormBuilderConfig(BaseModel):
    """Runtime settings.

    Attributes:
        storage_dir: Directory for the file-backed key-value store
        storage_key: Key under which the form record is persisted
        expiration_ms: Age after which a saved record is discarded
        fetch_timeout_seconds: Timeout for remote option requests
        discard_stale_options: Drop option responses superseded by a newer
            request for the same field (last-request-wins)
        log_level: Default log level for the CLI and API

    Example:
        >>> config = FormBuilderConfig(storage_dir=Path("output/form_builder"))
    """

    storage_dir: Path = Path("output/form_builder")
    storage_key: str = Field(default=STORAGE_KEY, min_length=1)
    expiration_ms: int = Field(default=EXPIRATION_MS, gt=0)
    fetch_timeout_seconds: float = Field(default=10.0, gt=0)
    discard_stale_options: bool = False
    log_level: str = "INFO"

    model_config = {"extra": "forbid"}

    @field_validator("storage_dir", mode="before")
    @classmethod
    def convert_storage_dir(cls, v):
        """Convert string paths to Path objects."""
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Unknown log level '{v}'. Valid levels: {sorted(VALID_LOG_LEVELS)}")
        return level

    @classmethod
    def from_env(
        cls,
        prefix: str = "FORM_BUILDER_",
        base: Optional["FormBuilderConfig"] = None,
    ) -> "FormBuilderConfig":
        """Create config from environment variables.

        Environment variables:
            {prefix}STORAGE_DIR: Key-value store directory
            {prefix}STORAGE_KEY: Record key
            {prefix}EXPIRATION_MS: Record expiry in milliseconds
            {prefix}FETCH_TIMEOUT: Remote fetch timeout in seconds
            {prefix}DISCARD_STALE_OPTIONS: "true"/"false"
            {prefix}LOG_LEVEL: DEBUG, INFO, WARNING or ERROR

        Args:
            prefix: Environment variable prefix (default: FORM_BUILDER_)
            base: Settings that unset variables fall back to (default: defaults)

        Returns:
            FormBuilderConfig with values from environment
        """
        kwargs: Dict[str, Any] = {}

        storage_dir = os.getenv(f"{prefix}STORAGE_DIR")
        if storage_dir:
            kwargs["storage_dir"] = Path(storage_dir)

        storage_key = os.getenv(f"{prefix}STORAGE_KEY")
        if storage_key:
            kwargs["storage_key"] = storage_key

        expiration_ms = os.getenv(f"{prefix}EXPIRATION_MS")
        if expiration_ms:
            kwargs["expiration_ms"] = int(expiration_ms)

        fetch_timeout = os.getenv(f"{prefix}FETCH_TIMEOUT")
        if fetch_timeout:
            kwargs["fetch_timeout_seconds"] = float(fetch_timeout)

        discard_stale = os.getenv(f"{prefix}DISCARD_STALE_OPTIONS")
        if discard_stale:
            kwargs["discard_stale_options"] = discard_stale.strip().lower() in ("1", "true", "yes")

        log_level = os.getenv(f"{prefix}LOG_LEVEL")
        if log_level:
            kwargs["log_level"] = log_level

        merged = base.model_dump() if base else {}
        merged.update(kwargs)
        return cls(**merged)

    @classmethod
    def from_yaml(cls, path: Path, base: Optional["FormBuilderConfig"] = None) -> "FormBuilderConfig":
        """Load settings from a YAML file, overlaying ``base`` when given.

        A missing file returns ``base`` (or defaults) unchanged.

        Raises:
            ValueError: If the file is not a YAML mapping.
        """
        base = base or cls()
        path = Path(path)
        if not path.exists():
            logger.debug("No settings file at %s, using defaults", path)
            return base

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")

        merged = base.model_dump()
        merged.update(data)
        return cls(**merged)
