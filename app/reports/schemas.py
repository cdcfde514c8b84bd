from uuid import UUID
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, field_validator, model_validator
from app.utils.timezone import to_naive_utc


class DateRange(BaseModel):
    """Inclusive UTC date range"""
    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def normalize_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @model_validator(mode="after")
    def check_order(self):
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self


class GenerateReportRequest(BaseModel):
    """Request to render a report to disk"""
    report_type: str
    format: Literal["PDF", "EXCEL"] = "PDF"
    date_range: DateRange | None = None
    employee_id: str | None = None
    sentiment_filter: Literal["positive", "negative"] | None = None


class GeneratePeriodReportsRequest(BaseModel):
    period: str = "last-month"
    format: Literal["PDF", "EXCEL", "BOTH"] = "PDF"


class ReportResponse(BaseModel):
    """Generated report response"""
    id: UUID
    name: str
    format: str  # PDF | EXCEL
    size: str
    date: datetime
    type: str
    file_path: str
    download_count: int
    generated_by: str | None = None
    date_range_start: datetime | None = None
    date_range_end: datetime | None = None


class ReportPage(BaseModel):
    reports: list[ReportResponse]
    total: int
    page: int
    limit: int


class ReportTypeItem(BaseModel):
    type: str
    name: str
    description: str
    requires_employee: bool = False
