from uuid import UUID
from fastapi import APIRouter, Depends, Query, Request, status
from app.employees.service import EmployeeService, PositionService
from app.employees.schemas import (
    CreateEmployeeRequest,
    UpdateEmployeeRequest,
    EmployeeResponse,
    PositionRequest,
    PositionResponse,
)
from app.auth.middleware import JWTPayload, verify_token, check_permission


def get_employee_service(request: Request) -> EmployeeService:
    """Dependency to get the shared EmployeeService"""
    return request.app.state.services.employees


def get_position_service(request: Request) -> PositionService:
    """Dependency to get the shared PositionService"""
    return request.app.state.services.positions


router = APIRouter(
    prefix="/employees",
    tags=["employees"],
)

positions_router = APIRouter(
    prefix="/positions",
    tags=["positions"],
)


def to_response(user) -> EmployeeResponse:
    """Convert User model to response schema."""
    return EmployeeResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        role=user.role,
        position_id=user.position_id,
        position=user.position_title,
        avatar=user.avatar,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@router.get("/", response_model=list[EmployeeResponse])
async def list_employees(
    search: str | None = Query(None),
    include_inactive: bool = Query(False),
    employees_only: bool = Query(False),
    service: EmployeeService = Depends(get_employee_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    List staff members sorted by name.

    Required permission: employee:manage
    """
    check_permission(jwt_payload, "employee:manage")
    users = await service.list_employees(search, include_inactive, employees_only)
    return [to_response(u) for u in users]


@router.post("/", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    request: CreateEmployeeRequest,
    service: EmployeeService = Depends(get_employee_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "employee:manage")
    user = await service.create_employee(request.model_dump())
    return to_response(user)


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: UUID,
    service: EmployeeService = Depends(get_employee_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "employee:manage")
    return to_response(await service.get_employee(employee_id))


@router.patch("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: UUID,
    request: UpdateEmployeeRequest,
    service: EmployeeService = Depends(get_employee_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "employee:manage")
    user = await service.update_employee(employee_id, request.model_dump(exclude_unset=True))
    return to_response(user)


@router.post("/{employee_id}/deactivate", response_model=EmployeeResponse)
async def deactivate_employee(
    employee_id: UUID,
    service: EmployeeService = Depends(get_employee_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "employee:manage")
    return to_response(await service.deactivate_employee(employee_id))


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(
    employee_id: UUID,
    service: EmployeeService = Depends(get_employee_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "employee:manage")
    await service.delete_employee(employee_id)


@positions_router.get("/", response_model=list[PositionResponse])
async def list_positions(
    service: PositionService = Depends(get_position_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "employee:manage")
    return [PositionResponse.model_validate(p, from_attributes=True) for p in await service.list_positions()]


@positions_router.post("/", response_model=PositionResponse, status_code=status.HTTP_201_CREATED)
async def create_position(
    request: PositionRequest,
    service: PositionService = Depends(get_position_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "employee:manage")
    position = await service.create_position(request.title)
    return PositionResponse.model_validate(position, from_attributes=True)


@positions_router.put("/{position_id}", response_model=PositionResponse)
async def update_position(
    position_id: UUID,
    request: PositionRequest,
    service: PositionService = Depends(get_position_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "employee:manage")
    position = await service.update_position(position_id, request.title)
    return PositionResponse.model_validate(position, from_attributes=True)


@positions_router.delete("/{position_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_position(
    position_id: UUID,
    service: PositionService = Depends(get_position_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """Delete a position that no employee holds (409 otherwise)"""
    check_permission(jwt_payload, "employee:manage")
    await service.delete_position(position_id)
