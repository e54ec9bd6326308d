"""FastAPI application factory for the read-only reporting API."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dailyten.config import get_settings
from dailyten.database import close_db, init_db, session_scope
from dailyten.error_handlers import setup_error_handlers
from dailyten.logging_config import setup_logging
from dailyten.progress.router import router as progress_router
from dailyten.progress.seed import seed_badges, seed_questions

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)

    # Seed badges and questions (idempotent)
    try:
        async with session_scope() as db:
            await seed_badges(db)
            await seed_questions(db)
    except Exception:
        logger.warning("Seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="DailyTen API",
        description="Read-only streak, badge and catalog statistics",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        return {"status": "ok", "version": settings.app_version}

    setup_error_handlers(app)
    app.include_router(progress_router)
    return app
