"""
RecipeBox Backend — Auth Endpoint Tests
=========================================

What we test (POST /auth/register, POST /auth/login):
    ✅ Register returns a token that identifies the new user
    ✅ Duplicate email → 400, and no second user row
    ✅ Login with good credentials → token for the same user
    ✅ Unknown email and wrong password → identical 400
    ✅ Missing fields → 400 validation_error
"""

import pytest
from sqlalchemy import func, select

from recipebox.models.user import User


@pytest.mark.asyncio
async def test_register_returns_token(client, app):
    response = await client.post(
        "/auth/register",
        json={"name": "Ann", "email": "a@x.io", "password": "p"},
    )
    assert response.status_code == 200
    token = response.json()["token"]
    assert app.state.token_service.verify(token)


@pytest.mark.asyncio
async def test_register_does_not_store_raw_password(register, database):
    await register("Ann", "a@x.io", "hunter2")
    async with database.session_factory() as session:
        user = (await session.execute(select(User))).scalar_one()
    assert user.password_hash != "hunter2"
    assert user.password_hash.startswith("$2")


@pytest.mark.asyncio
async def test_duplicate_email(client, register, database):
    await register("Ann", "a@x.io")
    response = await client.post(
        "/auth/register",
        json={"name": "Other", "email": "a@x.io", "password": "q"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "duplicate_email"
    assert body["message"] == "User already exists."

    async with database.session_factory() as session:
        count = await session.scalar(select(func.count()).select_from(User))
    assert count == 1


@pytest.mark.asyncio
async def test_login_returns_token_for_same_user(client, register, app):
    registered = await register("Ann", "a@x.io", "p")
    response = await client.post("/auth/login", json={"email": "a@x.io", "password": "p"})
    assert response.status_code == 200

    verify = app.state.token_service.verify
    assert verify(response.json()["token"]) == verify(registered)


@pytest.mark.asyncio
async def test_bad_credentials_are_indistinguishable(client, register):
    await register("Ann", "a@x.io", "p")
    wrong = await client.post("/auth/login", json={"email": "a@x.io", "password": "nope"})
    unknown = await client.post("/auth/login", json={"email": "b@x.io", "password": "p"})

    assert wrong.status_code == unknown.status_code == 400
    assert wrong.json()["message"] == unknown.json()["message"] == "Invalid credentials."
    assert wrong.json()["error"] == "invalid_credentials"


@pytest.mark.asyncio
async def test_register_missing_field(client):
    response = await client.post("/auth/register", json={"name": "Ann", "email": "a@x.io"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_error"
    assert "password" in body["details"]["fields"]


@pytest.mark.asyncio
async def test_login_missing_field(client):
    response = await client.post("/auth/login", json={"email": "a@x.io"})
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
