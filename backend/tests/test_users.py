"""Tests for user management endpoints."""
import uuid

import pytest

from app.auth.security import verify_password
from app.models.user import UserRole
from conftest import auth_headers, make_user


@pytest.fixture
async def admin(test_db):
    return await make_user(test_db, role=UserRole.ADMIN, name="Admin")


@pytest.mark.asyncio
async def test_update_own_profile(client, test_db):
    user = await make_user(test_db, name="Old Name")

    response = await client.patch(
        "/api/users/me", json={"name": "New Name", "password": "Another123"}, headers=auth_headers(user)
    )

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "New Name"
    assert verify_password("Another123", user.password_hash)


@pytest.mark.asyncio
async def test_update_profile_rejects_weak_password(client, test_db):
    user = await make_user(test_db)

    response = await client.patch("/api/users/me", json={"password": "weakpassword"}, headers=auth_headers(user))

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_users_admin_only(client, test_db, admin):
    subscriber = await make_user(test_db, name="Alice")
    await make_user(test_db, role=UserRole.AUTHOR, name="Bob")
    await make_user(test_db, name="Gone", is_deleted=True)

    response = await client.get("/api/users", headers=auth_headers(subscriber))
    assert response.status_code == 403

    response = await client.get("/api/users", params={"role": "author"}, headers=auth_headers(admin))
    assert response.status_code == 200
    assert [u["name"] for u in response.json()["data"]] == ["Bob"]

    response = await client.get("/api/users", headers=auth_headers(admin))
    assert response.json()["meta"]["total"] == 3


@pytest.mark.asyncio
async def test_search_users(client, test_db, admin):
    await make_user(test_db, name="Carol", email="carol@example.com")
    await make_user(test_db, name="Dave")

    response = await client.get("/api/users", params={"searchTerm": "carol"}, headers=auth_headers(admin))

    assert [u["email"] for u in response.json()["data"]] == ["carol@example.com"]


@pytest.mark.asyncio
async def test_get_user_by_id(client, test_db, admin):
    user = await make_user(test_db, name="Target")

    response = await client.get(f"/api/users/{user.uuid}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Target"

    response = await client.get(f"/api/users/{uuid.uuid4()}", headers=auth_headers(admin))
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_blocked_user_loses_access(client, test_db, admin):
    user = await make_user(test_db)
    headers = auth_headers(user)

    response = await client.patch(f"/api/users/{user.uuid}/status", json={"status": "blocked"}, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "blocked"

    response = await client.get("/api/users/me", headers=headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_invalid_status_value(client, test_db, admin):
    user = await make_user(test_db)

    response = await client.patch(f"/api/users/{user.uuid}/status", json={"status": "banished"}, headers=auth_headers(admin))

    assert response.status_code == 422
