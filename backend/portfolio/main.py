"""Entry point for the FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import cloudinary.uploader
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from .config import (
    load_cors_origins,
    load_media_config,
    load_server_config,
    resolve_dist_dir,
    resolve_images_dir,
    resolve_sqlite_path,
)
from .db import Database
from .errors import register_error_handlers
from .logging_config import configure_logging
from .media import CloudinaryMediaStore, Uploader
from .middleware import SecurityHeadersMiddleware, install_cors
from .ratelimit import build_limiters
from .repositories.projects import ProjectsRepository
from .routes import admin, health, media, projects, static
from .security import current_credential


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the datastore on startup and release resources on shutdown."""

    database: Database = app.state.database
    database.open()
    if current_credential() is None:
        logger.warning(
            "Admin PIN is NOT configured. Set ADMIN_PIN_SALT and ADMIN_PIN_HASH to "
            "enable admin-only endpoints."
        )
    logger.info("Images directory: %s", app.state.images_dir)
    try:
        yield
    finally:
        database.close()


def create_app(*, media_uploader: Uploader | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        media_uploader: Optional replacement for :mod:`cloudinary.uploader`,
            used by tests to fake the media host.
    """

    load_dotenv()

    app = FastAPI(
        title="Portfolio Gallery Backend",
        version="0.1.0",
        description=(
            "REST API for the portfolio gallery. Mutating endpoints require the "
            "admin PIN as a Bearer token or X-Admin-Pin header."
        ),
        lifespan=lifespan,
    )

    images_dir = resolve_images_dir()
    images_dir.mkdir(parents=True, exist_ok=True)
    media_config = load_media_config()

    database = Database(resolve_sqlite_path())
    app.state.database = database
    app.state.repository = ProjectsRepository(database)
    app.state.media_config = media_config
    app.state.media_store = CloudinaryMediaStore(media_config, uploader=media_uploader or cloudinary.uploader)
    app.state.limiters = build_limiters()
    app.state.images_dir = images_dir
    app.state.dist_dir = resolve_dist_dir()

    register_error_handlers(app)
    origins, wildcard = load_cors_origins()
    install_cors(app, origins, wildcard=wildcard)
    app.add_middleware(SecurityHeadersMiddleware)

    app.include_router(health.router)
    app.include_router(admin.router)
    app.include_router(projects.router)
    app.include_router(media.router)
    app.mount("/images", StaticFiles(directory=images_dir), name="images")
    # Catch-all; must stay last.
    app.include_router(static.router)
    return app


def run() -> None:
    """Run the API under uvicorn using the environment's server settings."""

    load_dotenv()
    config = load_server_config()
    configure_logging(config.log_level, config.log_format)
    uvicorn.run(create_app(), host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    run()
