"""Storage layer for persisted form configurations."""

from form_builder.storage.form_storage import EXPIRATION_MS, STORAGE_KEY, FormStorage
from form_builder.storage.kv_store import (
    FileKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
)

__all__ = [
    "EXPIRATION_MS",
    "STORAGE_KEY",
    "FileKeyValueStore",
    "FormStorage",
    "InMemoryKeyValueStore",
    "KeyValueStore",
]
