"""Persisted form configuration with lazy expiry.

The record ``{config, formState, timestamp}`` is stored as JSON under a
single fixed key. Records older than the expiration window are discarded on
the next read; nothing sweeps them in the background.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from form_builder.schemas.form import FormConfig, FormState, StorageRecord
from form_builder.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEY = "formBuilderData"
EXPIRATION_MS = 24 * 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


class FormStorage:
    """Saves and loads the form configuration record.

    Args:
        kv: Backing key-value store
        key: Storage key for the record
        expiration_ms: Age after which a record is treated as expired
        clock: Returns the current time in epoch milliseconds
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        key: str = STORAGE_KEY,
        expiration_ms: int = EXPIRATION_MS,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.kv = kv
        self.key = key
        self.expiration_ms = expiration_ms
        self._clock = clock or _now_ms

    def save(
        self,
        config: FormConfig,
        form_state: Optional[Dict[str, Any]] = None,
        *,
        runtime: Optional[FormState] = None,
    ) -> StorageRecord:
        """Save the configuration and form values, stamped with the current time.

        Args:
            config: Form configuration
            form_state: Field values
            runtime: Runtime state whose visible/disabled sets and fetched
                options are saved alongside the values
        """
        record = StorageRecord(
            config=config,
            form_state=dict(form_state or {}),
            timestamp=self._clock(),
        )
        if runtime is not None:
            record.visible_fields = sorted(runtime.visible_fields)
            record.disabled_fields = sorted(runtime.disabled_fields)
            record.field_options = {k: list(v) for k, v in runtime.field_options.items()}
        payload = json.dumps(record.to_json_dict(), ensure_ascii=False, default=str)
        self.kv.set(self.key, payload)
        return record

    def load(self) -> Optional[StorageRecord]:
        """Load the saved record.

        Returns:
            The record, or None when nothing is saved, the record expired, or
            it could not be parsed (expired and unreadable records are cleared).
        """
        raw = self.kv.get(self.key)
        if raw is None:
            return None

        try:
            record = StorageRecord.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning("Discarding unreadable form record %s: %s", self.key, exc)
            self.clear()
            return None

        age_ms = self._clock() - record.timestamp
        if age_ms >= self.expiration_ms:
            logger.info("Form record %s expired (%d ms old), discarding", self.key, age_ms)
            self.clear()
            return None

        return record

    def load_config(self) -> Optional[FormConfig]:
        """Load just the configuration of a non-expired record."""
        record = self.load()
        return record.config if record else None

    def clear(self) -> None:
        self.kv.delete(self.key)
