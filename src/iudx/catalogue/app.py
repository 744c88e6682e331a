from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from shared.logging import get_logger, setup_logging

from .auth.credentials import CredentialTable, FileCredentialTable
from .bus import MessageBus
from .config import CatalogueSettings, get_settings
from .pipeline.dispatch import STORE_ADDRESS, VALIDATOR_ADDRESS, DispatchPipeline
from .repository.documents import DocumentStore
from .repository.memory import InMemoryDocumentStore
from .routes import catalogue, mutations, schemas
from .services.store import CatalogueStoreAdapter
from .services.validation import ValidationService

logger = get_logger("catalogue.app")


def build_store(settings: CatalogueSettings) -> DocumentStore:
    backend = settings.store_backend.lower()
    if backend == "memory":
        return InMemoryDocumentStore()
    if backend == "postgres":
        from .repository.postgres import PostgresDocumentStore

        return PostgresDocumentStore(settings.database_url)
    raise ValueError(f"unknown store backend {settings.store_backend!r}")


def create_app(
    settings: CatalogueSettings | None = None,
    store: DocumentStore | None = None,
    credentials: CredentialTable | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    store = store or build_store(settings)
    credentials = credentials or FileCredentialTable(settings.credentials_path)

    bus = MessageBus()
    adapter = CatalogueStoreAdapter(
        store,
        items_collection=settings.items_collection,
        schemas_collection=settings.schemas_collection,
        provider=settings.provider,
    )
    validator = ValidationService(settings.validator_url, timeout=settings.validator_timeout)
    bus.consumer(STORE_ADDRESS, adapter.handle)
    bus.consumer(VALIDATOR_ADDRESS, validator.handle)

    pipeline = DispatchPipeline(
        bus,
        credentials,
        item_types=settings.item_types,
        trust_classes=settings.trust_classes,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        setup_logging(settings.log_level, service_name=settings.service_name)
        logger.info(
            "catalogue_startup",
            store_backend=settings.store_backend,
            validator_url=settings.validator_url,
        )
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(title="IUDX Catalogue Service", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.bus = bus
    app.state.store = store
    app.state.pipeline = pipeline

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict[str, str]:
        return {"status": "ok", "service": settings.service_name}

    app.include_router(catalogue.router)
    app.include_router(schemas.router)
    app.include_router(mutations.router)

    return app


__all__ = ["build_store", "create_app"]
