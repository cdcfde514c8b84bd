import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_settings_created_with_defaults(services):
    settings = await services.settings.get_settings()
    assert settings.dark_mode is False
    assert settings.monthly_report_format == "PDF"
    assert settings.feedback_pages.suggestion_enabled is True

    # Second read returns the same row instead of creating another one
    again = await services.settings.get_settings()
    assert again.updated_at == settings.updated_at


@pytest.mark.asyncio
async def test_partial_update_keeps_other_fields(services):
    view = await services.settings.update_settings(
        {"dark_mode": True, "feedback_pages": {"client_info_enabled": False}},
        user_id="manager-1",
    )
    assert view.dark_mode is True
    assert view.email_notifications is True
    assert view.feedback_pages.client_info_enabled is False
    assert view.feedback_pages.thank_you_enabled is True
    assert view.updated_by == "manager-1"

    report_settings = await services.settings.get_report_settings()
    assert report_settings.auto_generate_monthly_report is False


@pytest.mark.asyncio
async def test_settings_routes(auth_client: AsyncClient, mock_jwt_payload):
    response = await auth_client.patch(
        "/settings/",
        json={"auto_generate_monthly_report": True, "monthly_report_format": "BOTH"},
    )
    assert response.status_code == 200
    assert response.json()["updated_by"] == mock_jwt_payload.user_id

    response = await auth_client.get("/settings/reports")
    assert response.json() == {"auto_generate_monthly_report": True, "monthly_report_format": "BOTH"}


@pytest.mark.asyncio
async def test_feedback_pages_are_public(client: AsyncClient):
    response = await client.get("/settings/feedback-pages")
    assert response.status_code == 200
    assert response.json()["feedback_collection_enabled"] is True


@pytest.mark.asyncio
async def test_settings_update_requires_manage_permission(client: AsyncClient, app, mock_jwt_payload):
    from app.auth.middleware import verify_token

    app.dependency_overrides[verify_token] = lambda: mock_jwt_payload.model_copy(
        update={"permissions": ["settings:read"]}
    )
    response = await client.patch(
        "/settings/", json={"dark_mode": True}, headers={"Authorization": "Bearer mock_token"}
    )
    assert response.status_code == 403
    app.dependency_overrides.clear()
