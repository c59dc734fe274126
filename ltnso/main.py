"""FastAPI application entry point.

Wiring only: logging, lifespan, routers. No business logic here (SRP).
See ltnso.core.lifespan.

Settings are loaded inside create_app() so that tests can set env (and optionally
clear get_settings cache) before importing or calling create_app().
"""

from fastapi import FastAPI

from ltnso.api.router import api_router
from ltnso.core.config import get_settings
from ltnso.core.lifespan import create_lifespan
from ltnso.shared.logging import setup_logging


def create_app() -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import)."""
    settings = get_settings()
    setup_logging(settings)
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    app.include_router(api_router)
    return app


app = create_app()
