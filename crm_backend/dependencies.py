"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from crm_backend.config import Settings, get_settings
from crm_backend.db import (
    EntityStore,
    InMemoryEntityStore,
    MongoEntityStore,
    SqlEntityStore,
)

MONGO_SCHEMES = ("mongodb://", "mongodb+srv://")

_entity_store: EntityStore | None = None


def build_entity_store(settings: Settings) -> EntityStore:
    """Pick the store implementation from settings without connecting."""
    if settings.use_in_memory_backends or not settings.database_url:
        return InMemoryEntityStore()
    if settings.database_url.startswith(MONGO_SCHEMES):
        return MongoEntityStore(
            settings.database_url,
            settings.database_name,
            connect_timeout_ms=settings.store_connect_timeout_ms,
        )
    return SqlEntityStore(settings.database_url)


def get_entity_store() -> EntityStore:
    """
    Return the process-wide store so every request shares one connection pool.
    """
    global _entity_store
    if _entity_store:
        return _entity_store
    _entity_store = build_entity_store(get_settings())
    return _entity_store


def close_entity_store() -> None:
    global _entity_store
    if _entity_store is not None:
        _entity_store.close()
        _entity_store = None
