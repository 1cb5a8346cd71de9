"""In-memory document store (tests / local development)."""

from accounts.infrastructure.memory.document_store import (
    InMemoryCollection,
    InMemoryDocumentStore,
)

__all__ = [
    "InMemoryCollection",
    "InMemoryDocumentStore",
]
