"""Persistence access: filter evaluation and repositories over a DocumentStore."""
