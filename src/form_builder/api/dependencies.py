"""FastAPI dependencies for the form builder API.

The store is a process-wide singleton built from the startup settings, so
every request sees (and serializes through) the same form state.
"""

from typing import Optional

from form_builder.runtime.store import FormStateStore
from form_builder.startup import ensure_initialized
from form_builder.storage import FileKeyValueStore, FormStorage


# =============================================================================
# STORE
# =============================================================================

_store: Optional[FormStateStore] = None


def get_store() -> FormStateStore:
    """Get the shared FormStateStore, restoring saved data on first use."""
    global _store
    if _store is None:
        config = ensure_initialized()
        storage = FormStorage(
            FileKeyValueStore(config.storage_dir),
            key=config.storage_key,
            expiration_ms=config.expiration_ms,
        )
        _store = FormStateStore(
            storage=storage,
            discard_stale_options=config.discard_stale_options,
            fetch_timeout=config.fetch_timeout_seconds,
        )
        _store.load()
    return _store


def set_store(store: Optional[FormStateStore]) -> None:
    """Replace the shared store (None forces a rebuild on next access)."""
    global _store
    _store = store
