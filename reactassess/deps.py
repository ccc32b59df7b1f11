"""
Shared FastAPI dependencies: stores, event emitter, narrative generator and
the services built from them. Tests swap any of these via
``app.dependency_overrides``.
"""

import logging
from functools import lru_cache
from typing import Optional, Union

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncEngine

from .components.adaptive.catalog import ExerciseCatalog, load_catalog
from .components.adaptive.service import AdaptiveSessionService
from .components.events.emitter import EventEmitter, make_event_emitter
from .components.profile.aggregator import ProfileAggregator
from .components.profile.narrative import ClaudeNarrativeGenerator, NarrativeGenerator
from .components.storage.memory import MemoryStore
from .components.storage.sql import SqlAlchemyStore
from .platform.config import settings
from .platform.database import create_engine_for, create_session_maker

logger = logging.getLogger(__name__)

Store = Union[MemoryStore, SqlAlchemyStore]


def uses_sql_storage() -> bool:
    return (settings.STORAGE_BACKEND or "").strip().lower() == "sql"


@lru_cache
def get_engine() -> AsyncEngine:
    return create_engine_for(settings.DATABASE_URL)


@lru_cache
def get_store() -> Store:
    if uses_sql_storage():
        return SqlAlchemyStore(create_session_maker(get_engine()))
    logger.info("Using in-memory storage backend")
    return MemoryStore()


@lru_cache
def get_catalog() -> ExerciseCatalog:
    return load_catalog(settings.EXERCISE_CATALOG_PATH)


@lru_cache
def get_event_emitter() -> EventEmitter:
    if not settings.EVENTS_ENABLED:
        logger.info("Domain event emission disabled (EVENTS_ENABLED=false)")
    return make_event_emitter(settings.EVENTS_ENABLED)


@lru_cache
def get_narrative_generator() -> Optional[NarrativeGenerator]:
    if not settings.narrative_configured:
        logger.warning("Narrative generation disabled: ANTHROPIC_API_KEY not set or NARRATIVE_ENABLED=false")
        return None
    return ClaudeNarrativeGenerator(api_key=settings.ANTHROPIC_API_KEY)


def get_session_service(
    store: Store = Depends(get_store),
    catalog: ExerciseCatalog = Depends(get_catalog),
    emitter: EventEmitter = Depends(get_event_emitter),
) -> AdaptiveSessionService:
    return AdaptiveSessionService(
        sessions=store,
        artifacts=store,
        catalog=catalog,
        emitter=emitter,
        parser_config=settings.terminal_parser_config,
    )


def get_profile_aggregator(
    store: Store = Depends(get_store),
    emitter: EventEmitter = Depends(get_event_emitter),
    narrative: Optional[NarrativeGenerator] = Depends(get_narrative_generator),
) -> ProfileAggregator:
    return ProfileAggregator(
        artifacts=store,
        profiles=store,
        emitter=emitter,
        narrative=narrative,
        timeout_seconds=settings.NARRATIVE_TIMEOUT_SECONDS,
        parser_config=settings.terminal_parser_config,
    )
