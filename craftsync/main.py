"""CraftSync API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CraftSyncError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Store loaded (and optionally seeded) before the first request is served
    - Shutdown notifies every subscriber and closes its stream

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Service built once and parked on app.state; routes reach it via Depends
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from craftsync.api.error_handlers import register_error_handlers
from craftsync.api.routes import combinations, events, health
from craftsync.config import Settings, get_settings
from craftsync.core.domain_types import PersistenceBackend
from craftsync.core.repository_protocols import CombinationRepository
from craftsync.infrastructure.anthropic_client import ResilientAnthropicClient
from craftsync.infrastructure.database import DatabaseSessionManager
from craftsync.infrastructure.json_file_repository import JsonFileCombinationRepository
from craftsync.infrastructure.observability import setup_logging
from craftsync.infrastructure.sql_repository import SqlCombinationRepository
from craftsync.services.change_broadcaster import ChangeBroadcaster
from craftsync.services.combination_generator import CombinationGenerator
from craftsync.services.combination_service import CombinationService
from craftsync.services.combination_store import CombinationStore

logger = logging.getLogger(__name__)


async def build_repository(
    settings: Settings,
) -> tuple[CombinationRepository, DatabaseSessionManager | None]:
    """Pick the persistence gateway. Returns the db manager when one was opened."""
    if settings.persistence_backend == PersistenceBackend.SQL:
        db = DatabaseSessionManager(settings.database_url)
        await db.create_all()
        return SqlCombinationRepository(db), db
    return JsonFileCombinationRepository(settings.data_file), None


def build_generator(settings: Settings) -> CombinationGenerator | None:
    if not settings.generation_enabled or not settings.anthropic_api_key:
        logger.info("Combination generation disabled")
        return None
    client = ResilientAnthropicClient(
        api_key=settings.anthropic_api_key,
        max_retries=settings.anthropic_max_retries,
        timeout_seconds=settings.anthropic_timeout_seconds,
    )
    return CombinationGenerator(client, settings.anthropic_model)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    repository, db = await build_repository(settings)
    broadcaster = ChangeBroadcaster(settings.subscriber_queue_size)
    store = CombinationStore(
        repository, broadcaster,
        save_timeout_seconds=settings.persistence_timeout_seconds,
    )
    await store.load()
    service = CombinationService(store, broadcaster, build_generator(settings))
    if settings.seed_default_combinations:
        await service.seed_defaults()
    app.state.combination_service = service
    logger.info(
        "CraftSync API started (%s backend, %d combinations)",
        settings.persistence_backend.value, len(store),
    )
    yield
    logger.info("CraftSync API shutting down")
    broadcaster.shutdown()
    if db is not None:
        await db.dispose()


app = FastAPI(title="CraftSync API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(combinations.router)
app.include_router(events.router)

register_error_handlers(app)
