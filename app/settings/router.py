from fastapi import APIRouter, Depends, Request
from app.settings.service import SettingsService
from app.settings.schemas import (
    FeedbackPageSettings,
    ReportSettings,
    SettingsView,
    UpdateSettingsRequest,
)
from app.auth.middleware import JWTPayload, verify_token, check_permission


def get_settings_service(request: Request) -> SettingsService:
    """Dependency to get the shared SettingsService"""
    return request.app.state.services.settings


router = APIRouter(
    prefix="/settings",
    tags=["settings"],
)


@router.get("/", response_model=SettingsView)
async def get_settings(
    service: SettingsService = Depends(get_settings_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """Required permission: settings:read"""
    check_permission(jwt_payload, "settings:read")
    return await service.get_settings()


@router.patch("/", response_model=SettingsView)
async def update_settings(
    request: UpdateSettingsRequest,
    service: SettingsService = Depends(get_settings_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """Required permission: settings:manage"""
    check_permission(jwt_payload, "settings:manage")
    return await service.update_settings(request.model_dump(exclude_unset=True), jwt_payload.user_id)


@router.get("/reports", response_model=ReportSettings)
async def get_report_settings(
    service: SettingsService = Depends(get_settings_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "settings:read")
    return await service.get_report_settings()


@router.get("/feedback-pages", response_model=FeedbackPageSettings)
async def get_feedback_page_settings(
    service: SettingsService = Depends(get_settings_service),
):
    """Public: the kiosk reads which pages to show"""
    return await service.get_feedback_page_settings()
