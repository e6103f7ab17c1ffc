"""Food Share API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map FoodShareError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Store, registry, bus and service created once per app in the lifespan,
      kept on app.state, disposed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - attach_components() shared by lifespan and test fixtures: one wiring path
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import health, listings, realtime
from app.config import Settings, get_settings
from app.infrastructure.database import DatabaseSessionManager
from app.infrastructure.observability import setup_logging
from app.services.connection_registry import ConnectionRegistry
from app.services.event_bus import EventBus
from app.services.listing_service import ListingService
from app.services.listing_store import ListingStore

logger = logging.getLogger(__name__)


def attach_components(
    app: FastAPI, db: DatabaseSessionManager, settings: Settings,
) -> None:
    """Build the service graph over an open store and hang it on app.state."""
    registry = ConnectionRegistry()
    bus = EventBus(registry, queue_size=settings.event_queue_size)
    store = ListingStore(db, update_attempts=settings.store_update_attempts)
    app.state.db = db
    app.state.registry = registry
    app.state.event_bus = bus
    app.state.listing_service = ListingService(
        store, bus, notify_scope=settings.notify_scope,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_auto_create:
        await db.create_schema()
    attach_components(app, db, settings)
    logger.info("Food Share API started")
    yield
    logger.info("Food Share API shutting down")
    await db.dispose()


app = FastAPI(
    title="Food Share API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(listings.router)
app.include_router(realtime.router)

register_error_handlers(app)
