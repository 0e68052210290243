"""tzserver API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map TzCacheError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - DataStore created on startup, stopped on shutdown, via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Startup warms the cache but a failed first load does not abort startup:
      the next query retries and /health/ready reports 503 meanwhile
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tzserver.api.error_handlers import register_error_handlers
from tzserver.api.routes import admin, health, timezones
from tzserver.config import get_settings
from tzserver.core.errors import LoadFailure
from tzserver.infrastructure.observability import setup_logging
from tzserver.services.store_factory import build_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    store = build_store(settings)
    app.state.store = store
    try:
        result = await store.update()
        logger.info(
            f"tzserver started with {result.loaded} timezone(s)",
            extra={"generation": result.generation, "dtstamp": result.dtstamp},
        )
    except LoadFailure as e:
        logger.error(
            f"tzserver started without data: {e.message}",
            extra={"error_code": e.code},
        )
    yield
    logger.info("tzserver shutting down")
    await store.stop()


app = FastAPI(
    title="tzserver", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(timezones.router)
app.include_router(admin.router)

register_error_handlers(app)
