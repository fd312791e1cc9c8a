"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from storytrail.cache import close_redis, init_redis
from storytrail.completion.router import router as completion_router
from storytrail.config import get_settings
from storytrail.database import close_db, create_schema, init_db
from storytrail.health.router import router as health_router
from storytrail.leaderboard.router import router as leaderboard_router
from storytrail.middleware import setup_middleware
from storytrail.settings.router import router as settings_router
from storytrail.trails.router import router as trails_router
from storytrail.validation.router import router as validation_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.redis_url:
        await init_redis(settings.redis_url)
    else:
        logger.warning("Redis disabled: rate limiting and leaderboard caching are off")

    if settings.create_schema_on_startup:
        await create_schema()

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="StoryTrail API",
        description="Game engine for location-based story trails: unlocks, answers, timing and leaderboards",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(validation_router)
    app.include_router(trails_router)
    app.include_router(completion_router)
    app.include_router(leaderboard_router)
    app.include_router(settings_router)

    return app


app = create_app()
