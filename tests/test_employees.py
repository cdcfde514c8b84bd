import pytest
from uuid import uuid4
from httpx import AsyncClient
from app.employees.exceptions import DuplicateEmailException, PositionInUseException


@pytest.mark.asyncio
async def test_employee_crud(auth_client: AsyncClient):
    response = await auth_client.post("/positions/", json={"title": "Préparateur"})
    assert response.status_code == 201
    position_id = response.json()["id"]

    response = await auth_client.post(
        "/employees/",
        json={
            "first_name": "Luc",
            "last_name": "Bernard",
            "email": "luc@example.com",
            "position_id": position_id,
        },
    )
    assert response.status_code == 201
    employee = response.json()
    assert employee["position"] == "Préparateur"
    assert employee["is_active"] is True

    response = await auth_client.patch(f"/employees/{employee['id']}", json={"first_name": "Lucas"})
    assert response.status_code == 200
    assert response.json()["first_name"] == "Lucas"

    response = await auth_client.post(f"/employees/{employee['id']}/deactivate")
    assert response.json()["is_active"] is False

    response = await auth_client.get("/employees/")
    assert response.json() == []
    response = await auth_client.get("/employees/", params={"include_inactive": True})
    assert len(response.json()) == 1

    response = await auth_client.delete(f"/employees/{employee['id']}")
    assert response.status_code == 204
    response = await auth_client.get(f"/employees/{employee['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_duplicate_email_rejected(services):
    await services.employees.create_employee(
        {"first_name": "A", "last_name": "B", "email": "dup@example.com"}
    )
    with pytest.raises(DuplicateEmailException):
        await services.employees.create_employee(
            {"first_name": "C", "last_name": "D", "email": "DUP@example.com"}
        )


@pytest.mark.asyncio
async def test_unknown_position_rejected(auth_client: AsyncClient):
    response = await auth_client.post(
        "/employees/",
        json={"first_name": "A", "last_name": "B", "email": "a@example.com", "position_id": str(uuid4())},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_position_in_use_cannot_be_deleted(services):
    position = await services.positions.create_position("Caissier")
    await services.employees.create_employee(
        {"first_name": "E", "last_name": "F", "email": "e@example.com", "position_id": position.id}
    )
    assert await services.positions.is_position_in_use(position.id) is True
    with pytest.raises(PositionInUseException):
        await services.positions.delete_position(position.id)


@pytest.mark.asyncio
async def test_position_routes(auth_client: AsyncClient):
    response = await auth_client.post("/positions/", json={"title": "Stagiaire"})
    position_id = response.json()["id"]

    response = await auth_client.post("/positions/", json={"title": "Stagiaire"})
    assert response.status_code == 409

    response = await auth_client.put(f"/positions/{position_id}", json={"title": "Apprenti"})
    assert response.json()["title"] == "Apprenti"

    await auth_client.post(
        "/employees/",
        json={"first_name": "G", "last_name": "H", "email": "g@example.com", "position_id": position_id},
    )
    response = await auth_client.delete(f"/positions/{position_id}")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_employees_require_permission(client: AsyncClient, app, mock_jwt_payload):
    from app.auth.middleware import verify_token

    app.dependency_overrides[verify_token] = lambda: mock_jwt_payload.model_copy(
        update={"permissions": ["statistics:read"]}
    )
    response = await client.get("/employees/", headers={"Authorization": "Bearer mock_token"})
    assert response.status_code == 403
    app.dependency_overrides.clear()
