"""
User endpoint tests: registration, login, the current-user resource and
partial updates.
"""
import pytest
from httpx import AsyncClient

from conduit.security import create_access_token


async def _register(client: AsyncClient, username: str, email: str | None = None, password: str = "secret123"):
    return await client.post("/api/users", json={"user": {
        "username": username,
        "email": email or f"{username}@example.com",
        "password": password,
    }})


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Token {token}"}


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_returns_user_with_token(async_client: AsyncClient):
    """Registration answers 201 with the public user fields and a token."""
    resp = await _register(async_client, "jake", email="  Jake@Example.COM ")
    assert resp.status_code == 201
    user = resp.json()["user"]
    assert user["username"] == "jake"
    assert user["email"] == "jake@example.com"
    assert user["bio"] == ""
    assert user["image"] == ""
    assert user["token"]
    assert "password" not in user
    assert "passwordHash" not in user


@pytest.mark.asyncio
async def test_register_blank_fields_reports_each_field(async_client: AsyncClient):
    """All blank fields are reported together as 422."""
    resp = await async_client.post("/api/users", json={"user": {"username": " ", "email": "", "password": ""}})
    assert resp.status_code == 422
    errors = resp.json()["errors"]
    assert errors["username"] == ["can't be blank"]
    assert errors["email"] == ["can't be blank"]
    assert errors["password"] == ["can't be blank"]


@pytest.mark.asyncio
async def test_register_missing_envelope_is_422(async_client: AsyncClient):
    """A body without the ``user`` wrapper is rejected with an errors body."""
    resp = await async_client.post("/api/users", json={"username": "x"})
    assert resp.status_code == 422
    assert "user" in resp.json()["errors"]


@pytest.mark.asyncio
async def test_register_duplicate_email_is_409(async_client: AsyncClient):
    """Email uniqueness ignores case and names the field."""
    await _register(async_client, "first", email="same@example.com")
    resp = await _register(async_client, "second", email="SAME@example.com")
    assert resp.status_code == 409
    assert resp.json() == {"errors": {"email": ["has already been taken"]}}


@pytest.mark.asyncio
async def test_register_duplicate_username_is_409(async_client: AsyncClient):
    await _register(async_client, "taken", email="a@example.com")
    resp = await _register(async_client, "taken", email="b@example.com")
    assert resp.status_code == 409
    assert resp.json() == {"errors": {"username": ["has already been taken"]}}


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login_success(async_client: AsyncClient):
    await _register(async_client, "login_ok", password="pa55word")
    resp = await async_client.post("/api/users/login", json={"user": {
        "email": "LOGIN_OK@example.com",
        "password": "pa55word",
    }})
    assert resp.status_code == 200
    assert resp.json()["user"]["username"] == "login_ok"
    assert resp.json()["user"]["token"]


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(async_client: AsyncClient):
    """Wrong password and unknown email produce the same 401 body."""
    await _register(async_client, "login_bad", password="right-one")

    wrong_password = await async_client.post("/api/users/login", json={"user": {
        "email": "login_bad@example.com", "password": "wrong-one",
    }})
    unknown_email = await async_client.post("/api/users/login", json={"user": {
        "email": "nobody@example.com", "password": "right-one",
    }})

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json() == {"errors": {"email or password": ["is invalid"]}}


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_current_user_requires_token(async_client: AsyncClient):
    resp = await async_client.get("/api/user")
    assert resp.status_code == 401
    assert "token" in resp.json()["errors"]


@pytest.mark.asyncio
async def test_current_user_rejects_garbage_token(async_client: AsyncClient):
    resp = await async_client.get("/api/user", headers=_auth("not-a-jwt"))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_token_for_unknown_user_is_unauthenticated(async_client: AsyncClient):
    """A well-signed token whose subject has no account is refused everywhere."""
    await _register(async_client, "celeb")
    headers = _auth(create_access_token(987654))

    responses = [
        await async_client.get("/api/user", headers=headers),
        await async_client.post("/api/articles", headers=headers, json={"article": {
            "title": "Ghost", "description": "d", "body": "b",
        }}),
        await async_client.post("/api/profiles/celeb/follow", headers=headers),
    ]
    for resp in responses:
        assert resp.status_code == 401
        assert resp.json() == {"errors": {"token": ["unknown user"]}}


@pytest.mark.asyncio
async def test_current_user_with_token_and_bearer_scheme(async_client: AsyncClient):
    """Both ``Token`` and ``Bearer`` schemes are accepted."""
    token = (await _register(async_client, "me")).json()["user"]["token"]

    resp = await async_client.get("/api/user", headers=_auth(token))
    assert resp.status_code == 200
    assert resp.json()["user"]["username"] == "me"
    assert resp.json()["user"]["token"]

    resp = await async_client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_applies_only_present_fields(async_client: AsyncClient):
    """Sending only ``bio`` leaves email and username untouched."""
    token = (await _register(async_client, "partial")).json()["user"]["token"]

    resp = await async_client.put("/api/user", headers=_auth(token), json={"user": {"bio": "I like to skateboard"}})
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["bio"] == "I like to skateboard"
    assert user["email"] == "partial@example.com"
    assert user["username"] == "partial"


@pytest.mark.asyncio
async def test_update_password_then_login(async_client: AsyncClient):
    token = (await _register(async_client, "rotate", password="old-password")).json()["user"]["token"]

    resp = await async_client.put("/api/user", headers=_auth(token), json={"user": {"password": "new-password"}})
    assert resp.status_code == 200

    old = await async_client.post("/api/users/login", json={"user": {
        "email": "rotate@example.com", "password": "old-password",
    }})
    new = await async_client.post("/api/users/login", json={"user": {
        "email": "rotate@example.com", "password": "new-password",
    }})
    assert old.status_code == 401
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_update_blank_username_is_422(async_client: AsyncClient):
    token = (await _register(async_client, "keepname")).json()["user"]["token"]
    resp = await async_client.put("/api/user", headers=_auth(token), json={"user": {"username": ""}})
    assert resp.status_code == 422
    assert resp.json()["errors"]["username"] == ["can't be blank"]


@pytest.mark.asyncio
async def test_update_to_taken_username_is_409(async_client: AsyncClient):
    await _register(async_client, "holder")
    token = (await _register(async_client, "wanter")).json()["user"]["token"]
    resp = await async_client.put("/api/user", headers=_auth(token), json={"user": {"username": "holder"}})
    assert resp.status_code == 409
    assert resp.json()["errors"] == {"username": ["has already been taken"]}


@pytest.mark.asyncio
async def test_update_null_image_clears_it(async_client: AsyncClient):
    token = (await _register(async_client, "pic")).json()["user"]["token"]
    await async_client.put("/api/user", headers=_auth(token), json={"user": {"image": "https://img/x.png"}})
    resp = await async_client.put("/api/user", headers=_auth(token), json={"user": {"image": None}})
    assert resp.status_code == 200
    assert resp.json()["user"]["image"] == ""
