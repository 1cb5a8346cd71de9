"""Tests for login, password reset and password change endpoints."""

import re
from datetime import timedelta

import pytest
from httpx import AsyncClient

from accounts.infrastructure.security.jwt import create_access_token
from accounts.shared.utils.datetime import utc_now
from tests.factories import bearer, login, user_payload

RESET_LINK = re.compile(r"/reset-password/([0-9a-f]{64})")


@pytest.fixture
async def ada(user_repo) -> dict:
    return await user_repo.create(user_payload())


class TestLogin:
    async def test_success_returns_token_and_sets_cookie(self, client: AsyncClient, ada) -> None:
        response = await client.post(
            "/api/v1/users/login", json={"email": "ada@acme.io", "password": "secret123"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["token"]
        assert body["data"]["user"]["id"] == ada["id"]
        assert "password" not in body["data"]["user"]
        cookie = response.headers["set-cookie"]
        assert cookie.startswith(f"jwt={body['token']}")
        assert "HttpOnly" in cookie
        assert "Secure" not in cookie

    async def test_cookie_secure_behind_https_proxy(self, client: AsyncClient, ada) -> None:
        response = await client.post(
            "/api/v1/users/login",
            json={"email": "ada@acme.io", "password": "secret123"},
            headers={"X-Forwarded-Proto": "https"},
        )
        assert "Secure" in response.headers["set-cookie"]

    async def test_missing_credentials(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/users/login", json={"email": "ada@acme.io"})
        assert response.status_code == 400
        assert response.json()["message"] == "Please provide email and password"

    async def test_wrong_password(self, client: AsyncClient, ada) -> None:
        response = await client.post(
            "/api/v1/users/login", json={"email": "ada@acme.io", "password": "wrongpass"}
        )
        assert response.status_code == 401
        assert response.json() == {"status": "fail", "message": "Invalid credentials"}


class TestProtectedRoutes:
    async def test_no_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/users/me")
        assert response.status_code == 401
        assert response.json()["message"] == "You are not logged in! Please log in to get access"

    async def test_cookie_alone_is_not_enough(self, client: AsyncClient, ada) -> None:
        await login(client, "ada@acme.io", "secret123")
        response = await client.get("/api/v1/users/me")
        assert response.status_code == 401

    async def test_invalid_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/users/me", headers=bearer("garbage"))
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token, please login again."


class TestPasswordReset:
    async def test_full_flow(self, client: AsyncClient, ada, email_sender) -> None:
        response = await client.post(
            "/api/v1/users/forget-password",
            params={"url": "https://app.acme.io"},
            json={"email": "ada@acme.io"},
        )
        assert response.status_code == 200
        assert response.json() == {"status": "success", "message": "Token sent to email!"}

        [message] = email_sender.sent
        assert "https://app.acme.io/reset-password/" in message["body"]
        token = RESET_LINK.search(message["body"]).group(1)

        response = await client.patch(
            f"/api/v1/users/reset-password/{token}",
            json={"password": "brandnew123", "passwordConfirm": "brandnew123"},
        )
        assert response.status_code == 200
        new_token = response.json()["token"]
        assert (await client.get("/api/v1/users/me", headers=bearer(new_token))).status_code == 200
        await login(client, "ada@acme.io", "brandnew123")

        reused = await client.patch(
            f"/api/v1/users/reset-password/{token}",
            json={"password": "another123", "passwordConfirm": "another123"},
        )
        assert reused.status_code == 400
        assert reused.json()["message"] == "Token is invalid or has expired"

    async def test_default_site_url_used(self, client: AsyncClient, ada, email_sender) -> None:
        await client.post("/api/v1/users/forget-password", json={"email": "ada@acme.io"})
        assert "http://localhost:3000/reset-password/" in email_sender.sent[0]["body"]

    async def test_unknown_email(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/users/forget-password", json={"email": "nobody@acme.io"}
        )
        assert response.status_code == 404
        assert response.json()["message"] == "There is no user with that email address."

    async def test_delivery_failure_is_500(self, client: AsyncClient, ada, email_sender) -> None:
        email_sender.fail = True
        response = await client.post(
            "/api/v1/users/forget-password", json={"email": "ada@acme.io"}
        )
        assert response.status_code == 500
        assert response.json() == {
            "status": "error",
            "message": "There was an error sending the email. Please try again later!",
        }

    async def test_mismatched_confirmation(self, client: AsyncClient, ada, email_sender) -> None:
        await client.post("/api/v1/users/forget-password", json={"email": "ada@acme.io"})
        token = RESET_LINK.search(email_sender.sent[0]["body"]).group(1)
        response = await client.patch(
            f"/api/v1/users/reset-password/{token}",
            json={"password": "brandnew123", "passwordConfirm": "different1"},
        )
        assert response.status_code == 400
        assert response.json()["errors"] == {"password_confirm": "Passwords are not the same"}


class TestUpdatePassword:
    async def test_old_token_stops_working(self, client: AsyncClient, ada) -> None:
        old_token = create_access_token(ada["id"], issued_at=utc_now() - timedelta(minutes=5))
        assert (await client.get("/api/v1/users/me", headers=bearer(old_token))).status_code == 200

        response = await client.patch(
            "/api/v1/users/settings/update-password",
            headers=bearer(old_token),
            json={
                "currentPassword": "secret123",
                "password": "newpass123",
                "passwordConfirm": "newpass123",
            },
        )
        assert response.status_code == 200
        new_token = response.json()["token"]

        stale = await client.get("/api/v1/users/me", headers=bearer(old_token))
        assert stale.status_code == 401
        assert stale.json()["message"] == (
            "The user you are trying to access has changed their password"
        )
        assert (await client.get("/api/v1/users/me", headers=bearer(new_token))).status_code == 200

    async def test_wrong_current_password(self, client: AsyncClient, ada) -> None:
        token = await login(client, "ada@acme.io", "secret123")
        response = await client.patch(
            "/api/v1/users/settings/update-password",
            headers=bearer(token),
            json={
                "currentPassword": "nope12345",
                "password": "newpass123",
                "passwordConfirm": "newpass123",
            },
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Current password is incorrect"

    async def test_requires_authentication(self, client: AsyncClient) -> None:
        response = await client.patch(
            "/api/v1/users/settings/update-password", json={"currentPassword": "x"}
        )
        assert response.status_code == 401
