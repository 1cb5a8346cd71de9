"""Tests for the user resource endpoints, roles and soft delete."""

import pytest
from httpx import AsyncClient

from tests.factories import bearer, login, user_payload

USERS = "/api/v1/users"


@pytest.fixture
async def admin_headers(client: AsyncClient, user_repo) -> dict[str, str]:
    """Authorization header of a logged-in plain admin."""
    await user_repo.create(user_payload(email="admin@acme.io"))
    return bearer(await login(client, "admin@acme.io", "secret123"))


async def _create(client: AsyncClient, headers: dict[str, str], **overrides) -> dict:
    response = await client.post(USERS, headers=headers, json=user_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()["data"]["user"]


async def test_end_to_end_lifecycle(client: AsyncClient, super_admin_headers) -> None:
    response = await client.post(
        USERS,
        headers=super_admin_headers,
        json={
            "first_name": "A",
            "last_name": "B",
            "email": "a@x.com",
            "password": "secret123",
            "passwordConfirm": "secret123",
            "role": "admin",
        },
    )
    assert response.status_code == 201
    user = response.json()["data"]["user"]
    assert "password" not in user and "passwordConfirm" not in user

    wrong = await client.post(USERS + "/login", json={"email": "a@x.com", "password": "wrong1234"})
    assert wrong.status_code == 401

    token = await login(client, "a@x.com", "secret123")
    me = await client.get(USERS + "/me", headers=bearer(token))
    assert me.status_code == 200
    assert me.json()["data"]["user"]["id"] == user["id"]

    deleted = await client.delete(f"{USERS}/{user['id']}", headers=super_admin_headers)
    assert deleted.status_code == 204

    gone = await client.get(f"{USERS}/{user['id']}", headers=super_admin_headers)
    assert gone.status_code == 404
    assert gone.json()["message"] == "No user found with that ID"

    trash = await client.get(USERS + "/trash", headers=super_admin_headers)
    assert trash.status_code == 200
    assert [u["id"] for u in trash.json()["data"]["users"]] == [user["id"]]


class TestCreate:
    async def test_sends_welcome_email(self, client, super_admin_headers, email_sender) -> None:
        response = await client.post(
            USERS, headers=super_admin_headers, params={"url": "https://app.acme.io"}, json=user_payload()
        )
        assert response.status_code == 201
        [message] = email_sender.sent
        assert message["to"] == "ada@acme.io"
        assert "https://app.acme.io" in message["body"]
        assert "secret123" not in message["body"]

    async def test_validation_errors(self, client, super_admin_headers) -> None:
        response = await client.post(
            USERS, headers=super_admin_headers, json=user_payload(email="bad", role="operator")
        )
        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "fail"
        assert body["message"].startswith("Invalid input data: ")
        assert body["errors"]["email"] == "Please provide a valid email"
        assert body["errors"]["role"] == "Role is either: super_admin, admin"

    async def test_duplicate_email(self, client, super_admin_headers) -> None:
        await _create(client, super_admin_headers)
        response = await client.post(USERS, headers=super_admin_headers, json=user_payload())
        assert response.status_code == 400
        assert response.json()["errors"] == {
            "email": "Duplicate value for field 'email' with value 'ada@acme.io'"
        }

    async def test_admin_cannot_create(self, client, admin_headers) -> None:
        response = await client.post(USERS, headers=admin_headers, json=user_payload(email="x@acme.io"))
        assert response.status_code == 403

    async def test_non_object_body_rejected(self, client, super_admin_headers) -> None:
        response = await client.post(USERS, headers=super_admin_headers, json=["nope"])
        assert response.status_code == 400


class TestList:
    async def test_filter_sort_fields_and_paginate(self, client, super_admin_headers) -> None:
        for first, email in (("cleo", "c@acme.io"), ("bea", "b@acme.io"), ("abe", "a@acme.io")):
            await _create(client, super_admin_headers, first_name=first, email=email)

        response = await client.get(
            USERS,
            headers=super_admin_headers,
            params={"role": "admin", "sort": "first_name", "fields": "first_name", "page": "2", "limit": "2"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["results"] == 1
        assert body["data"]["users"] == [
            {"id": body["data"]["users"][0]["id"], "first_name": "cleo"}
        ]

    async def test_relational_operators_from_brackets(self, client, super_admin_headers) -> None:
        await _create(client, super_admin_headers, first_name="abe", email="a@acme.io")
        await _create(client, super_admin_headers, first_name="zed", email="z@acme.io")
        response = await client.get(
            USERS + "?role=admin&first_name[gte]=m&fields=first_name", headers=super_admin_headers
        )
        assert [u["first_name"] for u in response.json()["data"]["users"]] == ["zed"]

    async def test_default_excludes_version_and_secrets(self, client, super_admin_headers) -> None:
        response = await client.get(USERS, headers=super_admin_headers)
        [user] = response.json()["data"]["users"]
        for hidden in ("__v", "password", "deleted", "password_reset_token"):
            assert hidden not in user

    async def test_invalid_date_value(self, client, super_admin_headers) -> None:
        response = await client.get(
            USERS + "?created_at[gte]=yesterday", headers=super_admin_headers
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid type, please provide a valid created_at"

    async def test_admin_may_list(self, client, admin_headers) -> None:
        assert (await client.get(USERS, headers=admin_headers)).status_code == 200

    async def test_query_flag_cannot_reveal_deleted(self, client, super_admin_headers) -> None:
        user = await _create(client, super_admin_headers)
        await client.delete(f"{USERS}/{user['id']}", headers=super_admin_headers)
        response = await client.get(USERS + "?deleted=true", headers=super_admin_headers)
        ids = [u["id"] for u in response.json()["data"]["users"]]
        assert user["id"] not in ids

    async def test_include_deleted_flag(self, client, super_admin_headers) -> None:
        user = await _create(client, super_admin_headers)
        await client.delete(f"{USERS}/{user['id']}", headers=super_admin_headers)

        listed = await client.get(
            USERS, headers=super_admin_headers, params={"include_deleted": "true"}
        )
        assert listed.status_code == 200
        assert user["id"] in [u["id"] for u in listed.json()["data"]["users"]]

        one = await client.get(
            f"{USERS}/{user['id']}", headers=super_admin_headers, params={"include_deleted": "true"}
        )
        assert one.status_code == 200
        assert one.json()["data"]["user"]["id"] == user["id"]

    @pytest.mark.parametrize(
        "query", ["email[$regex]=a", "first_name[gte]=a&first_name[where]=b", "$where=1"]
    )
    async def test_unsupported_operator_is_400(self, client, super_admin_headers, query) -> None:
        response = await client.get(f"{USERS}?{query}", headers=super_admin_headers)
        assert response.status_code == 400
        assert response.json()["status"] == "fail"

    async def test_prefixed_ne_operator(self, client, super_admin_headers) -> None:
        await _create(client, super_admin_headers, email="keep@acme.io")
        response = await client.get(
            USERS + "?email[$ne]=root@acme.io&fields=email", headers=super_admin_headers
        )
        assert response.status_code == 200
        assert [u["email"] for u in response.json()["data"]["users"]] == ["keep@acme.io"]

    async def test_control_characters_in_values(self, client, super_admin_headers) -> None:
        response = await client.get(USERS + "?first_name=foo%0Ae", headers=super_admin_headers)
        assert response.status_code == 200
        assert response.json()["results"] == 0

    async def test_secret_fields_ignored_in_filter_and_sort(self, client, super_admin_headers) -> None:
        await _create(client, super_admin_headers)
        everyone = (await client.get(USERS, headers=super_admin_headers)).json()["results"]
        response = await client.get(
            USERS + "?password[gte]=zzz&password_reset_token=abc&sort=password",
            headers=super_admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["results"] == everyone == 2


class TestUpdate:
    async def test_patch_updates_fields(self, client, super_admin_headers) -> None:
        user = await _create(client, super_admin_headers)
        response = await client.patch(
            f"{USERS}/{user['id']}", headers=super_admin_headers, json={"first_name": "Grace"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["user"]["first_name"] == "grace"

    async def test_put_behaves_like_patch(self, client, super_admin_headers) -> None:
        user = await _create(client, super_admin_headers)
        response = await client.put(
            f"{USERS}/{user['id']}", headers=super_admin_headers, json={"role": "super_admin"}
        )
        assert response.json()["data"]["user"]["role"] == "super_admin"

    async def test_password_rejected(self, client, super_admin_headers) -> None:
        user = await _create(client, super_admin_headers)
        response = await client.patch(
            f"{USERS}/{user['id']}",
            headers=super_admin_headers,
            json={"password": "newpass123", "passwordConfirm": "newpass123"},
        )
        assert response.status_code == 403
        assert response.json()["message"] == (
            "This route is not for password updates. Please use /settings/update-password."
        )

    async def test_admin_cannot_update(self, client, admin_headers, super_admin) -> None:
        response = await client.patch(
            f"{USERS}/{super_admin['id']}", headers=admin_headers, json={"first_name": "x"}
        )
        assert response.status_code == 403

    async def test_missing_user(self, client, super_admin_headers) -> None:
        response = await client.patch(
            f"{USERS}/missing", headers=super_admin_headers, json={"first_name": "x"}
        )
        assert response.status_code == 404


class TestMe:
    async def test_update_me(self, client, admin_headers) -> None:
        response = await client.put(USERS + "/me", headers=admin_headers, json={"last_name": "Byron"})
        assert response.status_code == 200
        assert response.json()["data"]["user"]["last_name"] == "byron"

    @pytest.mark.parametrize(
        "body,message",
        [
            ({"password": "newpass123"}, "This route is not for password updates. Please use /settings/update-password."),
            ({"role": "super_admin"}, "You can't update your role. Please ask the super admin."),
            ({"machines": ["m1"]}, "You can't update your machines. Please ask the super admin."),
        ],
    )
    async def test_self_service_guards(self, client, admin_headers, body, message) -> None:
        response = await client.put(USERS + "/me", headers=admin_headers, json=body)
        assert response.status_code == 403
        assert response.json()["message"] == message


class TestTrashAndRestore:
    async def test_restore_round_trip(self, client, super_admin_headers) -> None:
        user = await _create(client, super_admin_headers)
        await client.delete(f"{USERS}/{user['id']}", headers=super_admin_headers)

        restored = await client.post(f"{USERS}/{user['id']}/restore", headers=super_admin_headers)
        assert restored.status_code == 200
        assert restored.json()["data"]["user"]["id"] == user["id"]
        assert (await client.get(f"{USERS}/{user['id']}", headers=super_admin_headers)).status_code == 200

        again = await client.post(f"{USERS}/{user['id']}/restore", headers=super_admin_headers)
        assert again.status_code == 404
        assert again.json()["message"] == "User Not found or Already restored."

    async def test_trash_excludes_live_users(self, client, super_admin_headers) -> None:
        response = await client.get(USERS + "/trash", headers=super_admin_headers)
        assert response.json() == {"status": "success", "results": 0, "data": {"users": []}}

    async def test_deleted_user_token_rejected(self, client, super_admin_headers) -> None:
        await _create(client, super_admin_headers)
        token = await login(client, "ada@acme.io", "secret123")
        me = (await client.get(USERS + "/me", headers=bearer(token))).json()["data"]["user"]
        await client.delete(f"{USERS}/{me['id']}", headers=super_admin_headers)
        response = await client.get(USERS + "/me", headers=bearer(token))
        assert response.status_code == 401
        assert response.json()["message"] == "The user you are trying to access does not exist"

    async def test_admin_cannot_delete_or_restore(self, client, admin_headers, super_admin) -> None:
        assert (await client.delete(f"{USERS}/{super_admin['id']}", headers=admin_headers)).status_code == 403
        assert (
            await client.post(f"{USERS}/{super_admin['id']}/restore", headers=admin_headers)
        ).status_code == 403
