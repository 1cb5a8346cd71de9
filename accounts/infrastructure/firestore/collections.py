"""Firestore collection names (schema-in-code).

Firestore has no DDL or migrations. Collections are created automatically
when the first document is written; these constants keep the names
consistent across repositories and scripts.
"""

COLLECTION_USERS = "users"
