"""Tests for authentication endpoints."""
from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import select

from app.auth.security import create_access_token, create_password_reset_token, create_refresh_token
from app.models.user import User, UserRole
from app.services.email_service import EmailService
from conftest import TEST_PASSWORD, auth_headers, make_user


@pytest.mark.asyncio
async def test_register_success(client, test_db):
    """Test successful user registration."""
    response = await client.post(
        "/api/auth/register",
        json={"name": "Test User", "email": "NewUser@Example.com", "password": "Test1234a", "role": "author"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["tokenType"] == "bearer"
    assert body["data"]["accessToken"]
    assert body["data"]["refreshToken"]
    assert body["data"]["user"]["email"] == "newuser@example.com"
    assert body["data"]["user"]["role"] == "author"
    assert "passwordHash" not in body["data"]["user"]

    result = await test_db.execute(select(User).where(User.email == "newuser@example.com"))
    user = result.scalar_one()
    assert user.stripe_customer_id.startswith("cus_test_")


@pytest.mark.asyncio
async def test_register_duplicate_email(client, test_db):
    """Test registration fails with duplicate email."""
    await make_user(test_db, email="existing@example.com")

    response = await client.post(
        "/api/auth/register",
        json={"name": "New User", "email": "Existing@example.com", "password": "Test1234a"},
    )

    assert response.status_code == 409
    assert response.json()["message"] == "Email already registered"


@pytest.mark.asyncio
async def test_register_cannot_claim_admin_role(client):
    response = await client.post(
        "/api/auth/register",
        json={"name": "Sneaky", "email": "sneaky@example.com", "password": "Test1234a", "role": "admin"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_register_weak_password(client):
    """Test registration fails with weak password."""
    response = await client.post(
        "/api/auth/register",
        json={"name": "Test User", "email": "test@example.com", "password": "alllowercase1"},
    )

    assert response.status_code == 422
    assert response.json()["errorSources"][0]["path"] == "password"


@pytest.mark.asyncio
async def test_login_success(client, test_db):
    """Test successful login."""
    await make_user(test_db, email="login@example.com")

    response = await client.post("/api/auth/login", json={"email": "login@example.com", "password": TEST_PASSWORD})

    assert response.status_code == 200
    assert response.json()["data"]["accessToken"]
    assert response.json()["data"]["user"]["email"] == "login@example.com"


@pytest.mark.asyncio
async def test_login_invalid_credentials(client, test_db):
    """Test login fails with invalid credentials."""
    await make_user(test_db, email="login@example.com")

    response = await client.post("/api/auth/login", json={"email": "login@example.com", "password": "WrongPass1"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"

    response = await client.post("/api/auth/login", json={"email": "nobody@example.com", "password": TEST_PASSWORD})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_blocked_user(client, test_db):
    user = await make_user(test_db, email="blocked@example.com")
    user.status = "blocked"
    await test_db.commit()

    response = await client.post("/api/auth/login", json={"email": "blocked@example.com", "password": TEST_PASSWORD})

    assert response.status_code == 403
    assert response.json()["message"] == "User account is not active"


@pytest.mark.asyncio
async def test_refresh_token_success(client, test_db):
    """Test refreshing access token."""
    user = await make_user(test_db)
    refresh_token = create_refresh_token(data={"sub": user.uuid, "email": user.email, "role": user.role})

    response = await client.post("/api/auth/refresh", json={"refresh_token": refresh_token})

    assert response.status_code == 200
    assert response.json()["data"]["accessToken"]


@pytest.mark.asyncio
async def test_access_token_cannot_refresh(client, test_db):
    user = await make_user(test_db)
    access_token = create_access_token(data={"sub": user.uuid, "email": user.email, "role": user.role})

    response = await client.post("/api/auth/refresh", json={"refresh_token": access_token})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user(client, test_db):
    """Test getting current user profile."""
    user = await make_user(test_db, role=UserRole.AUTHOR, name="Me")
    token = create_access_token(data={"sub": user.uuid, "email": user.email, "role": user.role})

    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Me"
    assert response.json()["data"]["totalEarnings"] == 0.0


@pytest.mark.asyncio
async def test_get_current_user_requires_token(client):
    response = await client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["message"] == "Not authenticated"

    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer invalid_token"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


async def _login(client, email, password):
    return await client.post("/api/auth/login", json={"email": email, "password": password})


@pytest.mark.asyncio
async def test_logout(client, test_db):
    user = await make_user(test_db)
    refresh_token = create_refresh_token(data={"sub": user.uuid, "email": user.email, "role": user.role})

    response = await client.post("/api/auth/logout", json={"refresh_token": refresh_token})
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"

    response = await client.post("/api/auth/logout", json={"refresh_token": "stale"})
    assert response.status_code == 400
    assert response.json()["message"] == "You are not logged in"


@pytest.mark.asyncio
async def test_change_password(client, test_db):
    user = await make_user(test_db, email="changer@example.com")
    headers = auth_headers(user)

    response = await client.post(
        "/api/auth/change-password",
        json={"oldPassword": "WrongPass1", "newPassword": "Fresh1234"},
        headers=headers,
    )
    assert response.status_code == 401
    assert response.json()["message"] == "Password is incorrect"

    response = await client.post(
        "/api/auth/change-password",
        json={"oldPassword": TEST_PASSWORD, "newPassword": "weakpassword"},
        headers=headers,
    )
    assert response.status_code == 422

    response = await client.post(
        "/api/auth/change-password",
        json={"oldPassword": TEST_PASSWORD, "newPassword": "Fresh1234"},
        headers=headers,
    )
    assert response.status_code == 200

    assert (await _login(client, "changer@example.com", TEST_PASSWORD)).status_code == 401
    assert (await _login(client, "changer@example.com", "Fresh1234")).status_code == 200


@pytest.mark.asyncio
async def test_change_password_requires_login(client):
    response = await client.post(
        "/api/auth/change-password", json={"oldPassword": TEST_PASSWORD, "newPassword": "Fresh1234"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_forgot_and_reset_password(client, test_db, monkeypatch):
    await make_user(test_db, email="forgetful@example.com")
    sent = []
    monkeypatch.setattr(
        EmailService, "send_password_reset_email", staticmethod(lambda user, url: sent.append(url) or True)
    )

    response = await client.post("/api/auth/forgot-password", json={"email": "Forgetful@example.com"})
    assert response.status_code == 200
    assert response.json()["message"] == "Password reset link sent to your email"

    query = parse_qs(urlparse(sent[0]).query)
    assert query["email"] == ["forgetful@example.com"]
    reset = {"email": "forgetful@example.com", "token": query["token"][0], "newPassword": "Recovered9"}

    response = await client.post("/api/auth/reset-password", json=reset)
    assert response.status_code == 200
    assert (await _login(client, "forgetful@example.com", "Recovered9")).status_code == 200

    # The link is spent once the password changes
    response = await client.post("/api/auth/reset-password", json={**reset, "newPassword": "Again1234"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_forgot_password_unknown_email(client):
    response = await client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

    assert response.status_code == 404
    assert response.json()["message"] == "User not found with this email"


@pytest.mark.asyncio
async def test_reset_password_rejects_bad_tokens(client, test_db):
    owner = await make_user(test_db, email="owner@example.com")
    other = await make_user(test_db, email="other@example.com")
    access_token = create_access_token(data={"sub": owner.uuid, "email": owner.email, "role": owner.role})

    response = await client.post(
        "/api/auth/reset-password",
        json={"email": "owner@example.com", "token": access_token, "newPassword": "Recovered9"},
    )
    assert response.status_code == 400

    someone_elses = create_password_reset_token(other.uuid, other.password_hash)
    response = await client.post(
        "/api/auth/reset-password",
        json={"email": "owner@example.com", "token": someone_elses, "newPassword": "Recovered9"},
    )
    assert response.status_code == 401
    assert response.json()["message"] == "You are not authorized to reset this user password"
