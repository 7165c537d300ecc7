"""
FastAPI application entry point for the catalog backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crm_backend.config import get_settings
from crm_backend.db import StoreUnavailableError
from crm_backend.dependencies import close_entity_store, get_entity_store
from crm_backend.error_handlers import register_error_handlers
from crm_backend.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the store on startup; an unreachable store is fatal."""
    store = get_entity_store()
    try:
        store.connect()
    except StoreUnavailableError as exc:
        logger.critical("Store connection failed: %s", exc)
        raise SystemExit(1) from exc
    logger.info("Using %s", store.__class__.__name__)
    try:
        yield
    finally:
        close_entity_store()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="VLN Contacts Backend", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
