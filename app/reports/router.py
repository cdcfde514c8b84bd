from uuid import UUID
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import FileResponse
from app.reports.service import PERIODS, ReportService
from app.reports.schemas import (
    GenerateReportRequest,
    GeneratePeriodReportsRequest,
    ReportPage,
    ReportResponse,
    ReportTypeItem,
)
from app.reports.exceptions import InvalidReportRequestException, ReportNotFoundException
from app.auth.middleware import JWTPayload, verify_token, check_permission

MEDIA_TYPES = {
    "PDF": "application/pdf",
    "EXCEL": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def get_report_service(request: Request) -> ReportService:
    """Dependency to get the shared ReportService"""
    return request.app.state.services.reports


router = APIRouter(
    prefix="/reports",
    tags=["reports"],
)


@router.get("/", response_model=ReportPage)
async def list_reports(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ReportService = Depends(get_report_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Most recently generated reports.

    Required permission: report:read
    """
    check_permission(jwt_payload, "report:read")
    reports, total = await service.get_recent_reports(limit, page)
    return ReportPage(
        reports=[ReportResponse.model_validate(r, from_attributes=True) for r in reports],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/types", response_model=list[ReportTypeItem])
async def list_report_types(
    service: ReportService = Depends(get_report_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "report:read")
    return service.get_available_report_types()


@router.post("/generate", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def generate_report(
    request: GenerateReportRequest,
    service: ReportService = Depends(get_report_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Render a report to PDF or Excel and record it.

    Required permission: report:generate
    """
    check_permission(jwt_payload, "report:generate")
    report = await service.generate_report(
        request.report_type,
        request.format,
        user_id=jwt_payload.user_id,
        date_range=request.date_range,
        employee_id=request.employee_id,
        sentiment_filter=request.sentiment_filter,
    )
    return ReportResponse.model_validate(report, from_attributes=True)


@router.post("/generate-period", response_model=list[ReportResponse], status_code=status.HTTP_201_CREATED)
async def generate_period_reports(
    request: GeneratePeriodReportsRequest,
    service: ReportService = Depends(get_report_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Generate the employee, pharmacy review and employee review reports
    for a calendar period.

    Required permission: report:generate
    """
    check_permission(jwt_payload, "report:generate")
    if request.period not in PERIODS:
        raise InvalidReportRequestException(f"Unknown period '{request.period}'")
    reports = await service.generate_report_for_period(request.period, request.format, jwt_payload.user_id)
    return [ReportResponse.model_validate(r, from_attributes=True) for r in reports]


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: UUID,
    service: ReportService = Depends(get_report_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "report:read")
    report = await service.get_report_by_id(report_id)
    if not report:
        raise ReportNotFoundException(str(report_id))
    return ReportResponse.model_validate(report, from_attributes=True)


@router.get("/{report_id}/download")
async def download_report(
    report_id: UUID,
    service: ReportService = Depends(get_report_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Stream a generated report file and count the download.

    Required permission: report:read
    """
    check_permission(jwt_payload, "report:read")
    report = await service.get_report_by_id(report_id)
    if not report:
        raise ReportNotFoundException(str(report_id))
    path = service.get_report_path(report)
    if not path.exists():
        raise ReportNotFoundException(str(report_id))

    await service.increment_download_count(report_id)
    return FileResponse(path, media_type=MEDIA_TYPES.get(report.format), filename=path.name)
