"""Custom exceptions for reports"""
from fastapi import HTTPException, status


class ReportNotFoundException(HTTPException):
    """Raised when a report or its file is not found"""
    def __init__(self, report_id: str = None):
        detail = "Report not found"
        if report_id:
            detail = f"Report {report_id} not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class InvalidReportRequestException(HTTPException):
    """Raised when the report type, format or parameters are invalid"""
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ReportGenerationException(HTTPException):
    """Raised when rendering or saving a report fails"""
    def __init__(self, reason: str = None):
        detail = "Report generation failed"
        if reason:
            detail = f"Report generation failed: {reason}"
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
