import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.api.v1.employees import service as employee_service
from timekeeper.api.v1.employees.service import generate_user_id
from timekeeper.auth.models import User
from timekeeper.auth.security import verify_password


@pytest.mark.asyncio
async def test_register_employee_generates_user_id(
    client: AsyncClient, db_session: AsyncSession, admin_headers
) -> None:
    payload = {
        "name": "Ravi Kumar",
        "password": "secret123",
        "phone": "555-1234",
        "email": "ravi@example.com",
    }
    response = await client.post("/api/v1/employees", json=payload, headers=admin_headers)
    assert response.status_code == 201
    data = response.json()

    assert data["name"] == "Ravi Kumar"
    assert data["role"] == "employee"
    assert data["is_active"] is True
    assert data["user_id"].startswith("EMP")
    assert "password" not in data
    assert "password_hash" not in data

    result = await db_session.execute(select(User).where(User.user_id == data["user_id"]))
    user = result.scalar_one()
    assert user.password_hash != "secret123"
    assert verify_password("secret123", user.password_hash)


@pytest.mark.asyncio
async def test_registered_employee_can_log_in(client: AsyncClient, admin_headers) -> None:
    await client.post(
        "/api/v1/employees",
        json={"name": "Asha", "password": "secret123", "user_id": "W-42"},
        headers=admin_headers,
    )
    response = await client.post(
        "/api/v1/auth/login",
        json={"identifier": "W-42", "password": "secret123"},
    )
    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Asha"


@pytest.mark.asyncio
async def test_register_duplicate_phone(client: AsyncClient, admin_headers, employees) -> None:
    response = await client.post(
        "/api/v1/employees",
        json={"name": "Copy", "password": "secret123", "phone": "555-0001"},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "DUPLICATE_PHONE"


@pytest.mark.asyncio
async def test_register_duplicate_user_id(client: AsyncClient, admin_headers, employees) -> None:
    response = await client.post(
        "/api/v1/employees",
        json={"name": "Copy", "password": "secret123", "user_id": "EMP001"},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "DUPLICATE_USER_ID"


@pytest.mark.asyncio
async def test_register_rejects_short_password(client: AsyncClient, admin_headers) -> None:
    response = await client.post(
        "/api/v1/employees",
        json={"name": "Short", "password": "123"},
        headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_employees_excludes_admins(client: AsyncClient, admin_headers, employees) -> None:
    response = await client.get("/api/v1/employees", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 3
    assert all(e["role"] == "employee" for e in data)
    assert {e["user_id"] for e in data} == {"EMP001", "EMP002", "EMP003"}


@pytest.mark.asyncio
async def test_update_employee(client: AsyncClient, admin_headers, employees) -> None:
    target = employees[0]
    response = await client.put(
        f"/api/v1/employees/{target.id}",
        json={"name": "Renamed", "phone": "555-9999"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Renamed"
    assert data["phone"] == "555-9999"
    assert data["email"] == "emp1@test.com"


@pytest.mark.asyncio
async def test_update_employee_phone_conflict(client: AsyncClient, admin_headers, employees) -> None:
    response = await client.put(
        f"/api/v1/employees/{employees[0].id}",
        json={"phone": "555-0002"},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "DUPLICATE_PHONE"


@pytest.mark.asyncio
async def test_update_unknown_employee(client: AsyncClient, admin_headers, admin_user) -> None:
    # The admin account is not an employee
    response = await client.put(
        f"/api/v1/employees/{admin_user.id}",
        json={"name": "Nope"},
        headers=admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "EMPLOYEE_NOT_FOUND"


@pytest.mark.asyncio
async def test_deactivate_employee_blocks_login(
    client: AsyncClient, admin_headers, employees
) -> None:
    response = await client.delete(f"/api/v1/employees/{employees[1].id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Employee deactivated successfully"}

    login = await client.post(
        "/api/v1/auth/login",
        json={"identifier": "EMP002", "password": "password123"},
    )
    assert login.status_code == 401
    assert login.json()["detail"]["code"] == "ACCOUNT_DEACTIVATED"

    # Soft delete: still listed, marked inactive
    listing = await client.get("/api/v1/employees", headers=admin_headers)
    by_code = {e["user_id"]: e for e in listing.json()}
    assert by_code["EMP002"]["is_active"] is False


def test_generate_user_id_format() -> None:
    value = generate_user_id()
    assert value.startswith("EMP")
    assert len(value) == 12
    assert value[3:].isdigit()


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   "])
async def test_register_rejects_blank_name(client: AsyncClient, admin_headers, name) -> None:
    response = await client.post(
        "/api/v1/employees",
        json={"name": name, "password": "secret123"},
        headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_register_trims_name_and_blank_update_is_rejected(
    client: AsyncClient, admin_headers
) -> None:
    created = await client.post(
        "/api/v1/employees",
        json={"name": "  Meera  ", "password": "secret123"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    assert created.json()["name"] == "Meera"

    response = await client.put(
        f"/api/v1/employees/{created.json()['id']}",
        json={"name": "  "},
        headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_generated_user_id_collision_is_retried(
    client: AsyncClient, admin_headers, employees, monkeypatch
) -> None:
    # First generated id is already taken by the EMP001 fixture employee
    codes = iter(["EMP001", "EMP777000111"])
    monkeypatch.setattr(employee_service, "generate_user_id", lambda: next(codes))

    response = await client.post(
        "/api/v1/employees",
        json={"name": "Lucky", "password": "secret123"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["user_id"] == "EMP777000111"


@pytest.mark.asyncio
async def test_repeated_generated_user_id_collision_is_not_a_duplicate(
    client: AsyncClient, admin_headers, employees, monkeypatch
) -> None:
    monkeypatch.setattr(employee_service, "generate_user_id", lambda: "EMP001")

    response = await client.post(
        "/api/v1/employees",
        json={"name": "Unlucky", "password": "secret123"},
        headers=admin_headers,
    )
    assert response.status_code == 500
    assert response.json()["detail"]["code"] == "USER_ID_GENERATION_FAILED"
