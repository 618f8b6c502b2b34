"""
Authentication and staff account tests.
"""

import pytest
from httpx import AsyncClient

from app.core.config import settings
from app.core.security import verify_password
from app.models.user import UserRole
from app.services.auth import AuthService, seed_first_admin


EMPLOYEE = {
    "email": "recepcion@example.com",
    "password": "password123",
    "full_name": "Laura Recepción",
}


@pytest.mark.asyncio
async def test_login_returns_tokens_and_profile(client: AsyncClient, admin_user):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "admin@example.com", "password": "testpassword123"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"] and data["refresh_token"]
    assert data["user"]["role"] == "admin"
    assert "hashed_password" not in data["user"]


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, test_user):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "test@example.com", "password": "wrongpassword"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_no_public_registration(client: AsyncClient):
    response = await client.post("/api/v1/auth/register", json=EMPLOYEE)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_opens_receptionist_account(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/auth/employees", json=EMPLOYEE, headers=admin_headers
    )

    assert response.status_code == 201
    assert response.json()["role"] == "receptionist"

    response = await client.post(
        "/api/v1/auth/login",
        json={"email": EMPLOYEE["email"], "password": EMPLOYEE["password"]},
    )
    assert response.status_code == 200
    assert response.json()["user"]["full_name"] == "Laura Recepción"


@pytest.mark.asyncio
async def test_receptionist_cannot_open_accounts(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/auth/employees",
        json={**EMPLOYEE, "role": "admin"},
        headers=auth_headers,
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_duplicate_employee_email(client: AsyncClient, admin_headers, test_user):
    response = await client.post(
        "/api/v1/auth/employees",
        json={**EMPLOYEE, "email": "test@example.com"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert "Ya existe" in response.json()["detail"]


@pytest.mark.asyncio
async def test_list_employees_by_role(client: AsyncClient, admin_headers, test_user):
    response = await client.get(
        "/api/v1/auth/employees",
        params={"role": "receptionist"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert [u["email"] for u in response.json()] == ["test@example.com"]


@pytest.mark.asyncio
async def test_deactivated_employee_cannot_log_in(client: AsyncClient, admin_headers, test_user):
    response = await client.patch(
        f"/api/v1/auth/employees/{test_user.id}",
        json={"is_active": False},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "test@example.com", "password": "testpassword123"},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_last_admin_cannot_be_demoted(client: AsyncClient, db_session, admin_user, admin_headers):
    url = f"/api/v1/auth/employees/{admin_user.id}"

    response = await client.patch(url, json={"role": "receptionist"}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.patch(url, json={"is_active": False}, headers=admin_headers)
    assert response.status_code == 400

    await AuthService(db_session).ensure_admin("gerencia@example.com", "gerencia123", "Gerencia")
    response = await client.patch(url, json={"role": "receptionist"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["role"] == "receptionist"


@pytest.mark.asyncio
async def test_promoted_receptionist_can_approve_discounts(
    client: AsyncClient, admin_headers, auth_headers, test_user, lens
):
    response = await client.post(
        "/api/v1/discount-requests",
        json={"lens_id": lens.id, "is_global": True, "discount_percentage": "10"},
        headers=auth_headers,
    )
    request_id = response.json()["id"]

    await client.patch(
        f"/api/v1/auth/employees/{test_user.id}",
        json={"role": "admin"},
        headers=admin_headers,
    )
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "test@example.com", "password": "testpassword123"},
    )
    assert response.json()["user"]["role"] == "admin"
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

    response = await client.post(
        f"/api/v1/discount-requests/{request_id}/approve", headers=headers
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_refresh_token(client: AsyncClient, test_user):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "test@example.com", "password": "testpassword123"},
    )
    refresh_token = response.json()["refresh_token"]

    response = await client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": refresh_token},
    )

    assert response.status_code == 200
    assert "access_token" in response.json()


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client: AsyncClient, test_user):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "test@example.com", "password": "testpassword123"},
    )
    access_token = response.json()["access_token"]

    response = await client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": access_token},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user(auth_client: AsyncClient):
    response = await auth_client.get("/api/v1/auth/me")

    assert response.status_code == 200
    assert response.json()["email"] == "test@example.com"


@pytest.mark.asyncio
async def test_protected_route_without_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_ensure_admin_is_idempotent(db_session):
    service = AuthService(db_session)

    first = await service.ensure_admin("jefe@example.com", "secreto123", "Jefe")
    second = await service.ensure_admin("jefe@example.com", "otra-clave", "Otro")

    assert first.id == second.id
    assert first.role == UserRole.ADMIN
    assert verify_password("secreto123", second.hashed_password)


@pytest.mark.asyncio
async def test_seed_first_admin_from_settings(db_session, monkeypatch):
    monkeypatch.setattr(settings, "FIRST_ADMIN_EMAIL", None)
    assert await seed_first_admin(db_session) is None

    monkeypatch.setattr(settings, "FIRST_ADMIN_EMAIL", "bootstrap@example.com")
    monkeypatch.setattr(settings, "FIRST_ADMIN_PASSWORD", "bootstrap123")

    user = await seed_first_admin(db_session)

    assert user.is_admin
    assert await AuthService(db_session).get_user_by_email("bootstrap@example.com") is not None
