"""Rally API — FastAPI application entry point.

Invariants:
    - Routers and error handlers registered explicitly (ExMA: no auto-discovery)
    - CORS origins come from settings
    - Startup: logging, then the database engine. Shutdown: in-flight notifications are
      drained before the engine is disposed, so no emit outlives its connection pool

Design Decisions:
    - Lifespan context over @app.on_event
    - Error handlers live in api/error_handlers.py (ADR: ExMA import fan-out < 10)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import activity_actions, health
from app.config import Settings, get_settings
from app.infrastructure import database
from app.infrastructure.observability import setup_logging
from app.services.notification_dispatcher import drain_in_flight

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("Rally API accepting actions")
    yield
    pending = await drain_in_flight()
    logger.info(f"Rally API stopping, drained {pending} notification task(s)")
    if database.db_manager:
        await database.db_manager.dispose()


def create_app(settings: Settings) -> FastAPI:
    application = FastAPI(title="Rally API", version="1.0.0", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(health.router)
    application.include_router(activity_actions.router)
    register_error_handlers(application)
    return application


app = create_app(get_settings())
