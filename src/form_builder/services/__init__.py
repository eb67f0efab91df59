"""Services talking to the outside world."""

from form_builder.services.remote_fetcher import fetch_json

__all__ = ["fetch_json"]
