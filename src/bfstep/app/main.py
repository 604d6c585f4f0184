from __future__ import annotations

import structlog
from fastapi import FastAPI

from bfstep.api import router as api_router
from bfstep.api.routes.session import shutdown_controller
from bfstep.core.config.settings import settings
from bfstep.core.logging.setup import configure_logging

log = structlog.get_logger()


def create_app() -> FastAPI:
    """
    Application factory.

    This function is the single place where the FastAPI app
    is created and configured.
    """
    # Initialize structured logging
    configure_logging(level=settings.log_level, json=settings.log_json)

    app = FastAPI(
        title="bfstep",
        version="0.1.0",
    )

    @app.on_event("startup")
    async def on_startup() -> None:
        log.info(
            "app.startup",
            environment=settings.env,
            direct_start=settings.direct_start,
            start_super_speed=settings.start_super_speed,
        )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        shutdown_controller()
        log.info("app.shutdown")

    # Mount API
    app.include_router(api_router, prefix="/api")

    return app


# ASGI entrypoint
app = create_app()
