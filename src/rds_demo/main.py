"""rds-demo - FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rds_demo import __version__
from rds_demo.config import Settings, get_settings
from rds_demo.gateway import Gateway
from rds_demo.routes import router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; settings are resolved at startup, not import."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Own the gateway for the lifetime of the server."""
        config = (settings or get_settings()).gateway_config()
        async with Gateway(config) as gateway:
            app.state.gateway = gateway
            yield
            logger.info("Shutting down...")
        logger.info("Server shutdown complete")

    app = FastAPI(
        title="rds-demo",
        description="Demonstration service for a pooled PostgreSQL connection",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


app = create_app()
