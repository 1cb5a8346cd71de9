"""Application lifespan: startup and shutdown.

Single place for startup/shutdown wiring: logging, the document store and
the email sender. No business logic here.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from accounts.application.interfaces.store import DocumentStore
from accounts.core.config import Settings, get_settings
from accounts.infrastructure.external.email import create_email_sender
from accounts.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


def create_document_store(settings: Settings) -> DocumentStore:
    """Return the store selected by settings.database_backend."""
    if settings.database_backend == "memory":
        from accounts.infrastructure.memory import InMemoryDocumentStore

        logger.warning("Using in-memory document store; data is lost on shutdown")
        return InMemoryDocumentStore()

    from accounts.infrastructure.firestore import (
        FirestoreDocumentStore,
        create_firestore_client,
    )

    return FirestoreDocumentStore(create_firestore_client(settings))


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown."""
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    app.state.store = create_document_store(settings)
    app.state.email_sender = create_email_sender(settings)
    logger.info(
        "%s started (environment=%s, store=%s, email=%s)",
        settings.app_name,
        settings.environment,
        settings.database_backend,
        settings.email_backend,
    )

    yield

    # ---- Shutdown ----
    if getattr(app.state, "store", None) is not None:
        await app.state.store.aclose()
        app.state.store = None
        logger.info("Document store closed")
