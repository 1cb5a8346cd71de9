"""Firestore (REST) document store."""

from accounts.infrastructure.firestore.client import create_firestore_client
from accounts.infrastructure.firestore.document_store import (
    FirestoreCollection,
    FirestoreDocumentStore,
)

__all__ = [
    "FirestoreCollection",
    "FirestoreDocumentStore",
    "create_firestore_client",
]
