from datetime import datetime
from typing import Literal
from pydantic import BaseModel


class FeedbackPageSettings(BaseModel):
    """Which kiosk pages are shown to clients"""
    feedback_collection_enabled: bool = True
    client_info_enabled: bool = True
    suggestion_enabled: bool = True
    thank_you_enabled: bool = True


class ReportSettings(BaseModel):
    auto_generate_monthly_report: bool = False
    monthly_report_format: Literal["PDF", "EXCEL", "BOTH"] = "PDF"


class SettingsView(BaseModel):
    """Settings as shown on the back-office settings page"""
    dark_mode: bool = False
    email_notifications: bool = True
    auto_generate_monthly_report: bool = False
    monthly_report_format: Literal["PDF", "EXCEL", "BOTH"] = "PDF"
    feedback_pages: FeedbackPageSettings = FeedbackPageSettings()
    updated_by: str | None = None
    updated_at: datetime | None = None


class UpdateFeedbackPageSettings(BaseModel):
    feedback_collection_enabled: bool | None = None
    client_info_enabled: bool | None = None
    suggestion_enabled: bool | None = None
    thank_you_enabled: bool | None = None


class UpdateSettingsRequest(BaseModel):
    """Partial settings update"""
    dark_mode: bool | None = None
    email_notifications: bool | None = None
    auto_generate_monthly_report: bool | None = None
    monthly_report_format: Literal["PDF", "EXCEL", "BOTH"] | None = None
    feedback_pages: UpdateFeedbackPageSettings | None = None
