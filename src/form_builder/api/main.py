"""
FastAPI backend for the form builder.

Provides endpoints for:
- Editing fields and rules
- Applying field changes through the rule engine
- Linting the configuration

File-based storage (no database); see form_builder.storage.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from form_builder import __version__
from form_builder.api.routers import form, system
from form_builder.startup import ensure_initialized

logger = logging.getLogger(__name__)


# =============================================================================
# APP SETUP
# =============================================================================


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = ensure_initialized()
    logging.getLogger("form_builder").setLevel(settings.log_level)

    app = FastAPI(
        title="Form Builder API",
        description="Rule-driven dynamic form configuration and evaluation",
        version=__version__,
    )

    # CORS for a local editor frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(system.router)
    app.include_router(form.router)
    return app


app = create_app()
