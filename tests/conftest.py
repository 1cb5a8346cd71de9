"""Pytest configuration and fixtures for accounts.

Environment is set before any accounts import so the cached settings use
the in-memory store, a test secret and cheap bcrypt rounds. HTTP tests run
against create_app() over ASGITransport (no lifespan), with the document
store and email sender injected through dependency_overrides.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["DATABASE_BACKEND"] = "memory"
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["EMAIL_BACKEND"] = "log"

import pytest
from httpx import ASGITransport, AsyncClient

from accounts.api.v1.dependencies import get_document_store, get_email_sender
from accounts.core.config import get_settings
from accounts.domain.exceptions import EmailDeliveryException
from accounts.infrastructure.memory import InMemoryDocumentStore
from accounts.infrastructure.persistence.repositories import UserRepository
from accounts.main import create_app
from tests.factories import (
    SUPER_ADMIN_EMAIL,
    SUPER_ADMIN_PASSWORD,
    bearer,
    login,
    user_payload,
)

get_settings.cache_clear()


class RecordingEmailSender:
    """IEmailSender that keeps every message; set fail=True to simulate an outage."""

    def __init__(self) -> None:
        self.sent: list[dict[str, str]] = []
        self.fail = False

    async def send(self, to_email: str, subject: str, body: str) -> None:
        if self.fail:
            raise EmailDeliveryException()
        self.sent.append({"to": to_email, "subject": subject, "body": body})


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def user_repo(store: InMemoryDocumentStore) -> UserRepository:
    return UserRepository(store)


@pytest.fixture
def app(store: InMemoryDocumentStore, email_sender: RecordingEmailSender):
    application = create_app()
    application.dependency_overrides[get_document_store] = lambda: store
    application.dependency_overrides[get_email_sender] = lambda: email_sender
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def super_admin(user_repo: UserRepository) -> dict:
    """A stored super_admin user (public view)."""
    return await user_repo.create(
        user_payload(
            first_name="Root",
            last_name="Admin",
            email=SUPER_ADMIN_EMAIL,
            password=SUPER_ADMIN_PASSWORD,
            passwordConfirm=SUPER_ADMIN_PASSWORD,
            role="super_admin",
        )
    )


@pytest.fixture
async def super_admin_headers(client: AsyncClient, super_admin: dict) -> dict[str, str]:
    """Authorization header of the logged-in super admin."""
    return bearer(await login(client, SUPER_ADMIN_EMAIL, SUPER_ADMIN_PASSWORD))
