"""HTTP API over the form state store."""
