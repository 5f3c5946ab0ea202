"""
Main entrypoint for the ABN Registry API.

This module assembles the FastAPI application, sets up logging,
registers the error envelope handlers and includes versioned
routers.  The ``create_app`` function builds and configures the app,
which is then instantiated at module import time as ``app``, so it
can be served directly::

    uvicorn abn_registry_api.app.main:app --reload

The application title, version and route prefix are provided via
``Settings`` from ``core.config``.
"""

from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import init_db
from .core.exceptions import register_exception_handlers
from .core.logging_config import setup_logging


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.  The database
        schema is migrated when the application starts.
    """
    # Logging first so that everything below can log.
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    register_exception_handlers(app)
    app.include_router(v1_router, prefix=settings.api_prefix)

    @app.on_event("startup")
    async def startup_event() -> None:
        init_db()

    return app


app = create_app()
