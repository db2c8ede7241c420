# SPDX-License-Identifier: MIT
"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .config import APIConfig
from .headers import Headers
from .slice import NuGet
from .storage import Storage, close_storage, create_storage

logger = logging.getLogger(__name__)

FEED_METHODS = ["GET", "PUT", "POST", "DELETE", "PATCH"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    config: APIConfig = app.state.config

    # Startup: open the configured storage unless one was supplied
    owned = app.state.nuget is None
    if owned:
        storage = await create_storage(config)
        app.state.nuget = NuGet(config.base_path, storage, config.public_url)
    logger.info("Serving NuGet feed under '%s'", app.state.nuget.base or "/")

    yield

    # Shutdown: release storage we opened
    if owned:
        await close_storage(app.state.nuget.storage)
        app.state.nuget = None


def create_app(config: Optional[APIConfig] = None, storage: Optional[Storage] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: API configuration. If None, loads from environment.
        storage: Storage backend. If None, the backend named in the
            configuration is opened on startup.

    Returns:
        Configured FastAPI application instance.
    """
    if config is None:
        config = APIConfig.from_env()

    logging.getLogger("nuget_api").setLevel(logging.DEBUG if config.debug else config.log_level)

    app = FastAPI(
        title=config.title,
        description=config.description,
        version=config.version,
        docs_url=config.docs_url,
        openapi_url=config.openapi_url,
        lifespan=lifespan,
    )

    # Store config and feed in app state
    app.state.config = config
    app.state.nuget = None
    if storage is not None:
        app.state.nuget = NuGet(config.base_path, storage, config.public_url)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add error handling middleware
    from .middleware.errors import add_error_handlers

    add_error_handlers(app)

    # Health check endpoint
    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy", "version": config.version}

    # Every other path belongs to the feed, which answers 404/405 itself
    @app.api_route("/{path:path}", methods=FEED_METHODS, include_in_schema=False)
    async def feed(request: Request) -> Response:
        nuget: NuGet = request.app.state.nuget
        return await nuget.response(
            request.method,
            request.url.path,
            Headers.from_raw(request.headers.raw),
            request.stream(),
        )

    return app


# Default app instance for uvicorn
app = create_app()
