"""System endpoints: health check and version info."""

from fastapi import APIRouter
from pydantic import BaseModel

from form_builder import __version__

router = APIRouter(tags=["system"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


@router.get("/api/health", response_model=HealthResponse)
def health() -> HealthResponse:
    """Liveness check."""
    return HealthResponse(status="ok", version=__version__)
