"""Report generation to PDF and Excel files"""
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional, Tuple
from uuid import UUID
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from app import config
from app.db.models import Report
from app.employees.service import EmployeeService
from app.reports import definitions
from app.reports.definitions import REPORT_DEFINITIONS, FORMATS, ReportDocument
from app.reports.excel import render_excel
from app.reports.exceptions import InvalidReportRequestException, ReportGenerationException
from app.reports.pdf import render_pdf
from app.reports.repository import ReportRepository
from app.reports.schemas import DateRange, ReportTypeItem
from app.reviews.service import ReviewService
from app.statistics.time_frames import months_after, months_before
from app.utils.timezone import convert_from_cet, convert_to_cet, format_date

logger = logging.getLogger(__name__)

PERIODS = ["current-month", "last-month", "current-quarter", "last-quarter", "current-year", "last-year"]
PERIOD_REPORT_TYPES = ["employees", "pharmacy-reviews", "employee-reviews"]


def report_file_name(report_type: str, fmt: str, now: datetime) -> str:
    """<type>_<ISO timestamp with ':' and '.' replaced by '-'>.<ext>"""
    timestamp = now.isoformat(timespec="milliseconds").replace(":", "-").replace(".", "-")
    return f"{report_type}_{timestamp}Z.{FORMATS[fmt]}"


def format_size(size_in_bytes: int) -> str:
    return f"{size_in_bytes / (1024 * 1024):.2f} MB"


class ReportService:
    """
    Selects report rows through the review and employee services, renders
    them to a file under the reports directory and records the result.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        reviews: ReviewService,
        employees: EmployeeService,
        reports_dir: Path = config.REPORTS_DIR,
        url_prefix: str = config.REPORTS_URL_PREFIX,
    ):
        self.session_factory = session_factory
        self.reviews = reviews
        self.employees = employees
        self.reports_dir = Path(reports_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def get_available_report_types(self) -> List[ReportTypeItem]:
        return [
            ReportTypeItem(
                type=d.type,
                name=d.title,
                description=d.description,
                requires_employee=d.type == "specific-employee-reviews",
            )
            for d in REPORT_DEFINITIONS.values()
        ]

    def get_report_name(
        self,
        report_type: str,
        date_range: Optional[DateRange] = None,
        employee_name: Optional[str] = None,
    ) -> str:
        """French display name, e.g. 'Avis sur la pharmacie du 01/09/2026 au 30/09/2026'"""
        definition = REPORT_DEFINITIONS.get(report_type)
        name = definition.title if definition else f"Rapport {report_type}"
        if employee_name:
            name = f"{name} {employee_name}"
        if date_range:
            name = f"{name} du {format_date(date_range.start)} au {format_date(date_range.end)}"
        return name

    def get_date_range_for_period(self, period: str, now: Optional[datetime] = None) -> DateRange:
        """
        Calendar period in local time, returned as an inclusive UTC range.

        Raises:
            ValueError: Unknown period
        """
        today = convert_to_cet(now or datetime.utcnow())
        month_start = datetime(today.year, today.month, 1)
        quarter_start = datetime(today.year, 3 * ((today.month - 1) // 3) + 1, 1)

        if period == "current-month":
            start, end = month_start, months_after(month_start, 1)
        elif period == "last-month":
            start, end = months_before(month_start, 1), month_start
        elif period == "current-quarter":
            start, end = quarter_start, months_after(quarter_start, 3)
        elif period == "last-quarter":
            start, end = months_before(quarter_start, 3), quarter_start
        elif period == "current-year":
            start, end = datetime(today.year, 1, 1), datetime(today.year + 1, 1, 1)
        elif period == "last-year":
            start, end = datetime(today.year - 1, 1, 1), datetime(today.year, 1, 1)
        else:
            raise ValueError(f"Unknown period: {period}")

        return DateRange(
            start=convert_from_cet(start),
            end=convert_from_cet(end) - timedelta(microseconds=1),
        )

    async def build_document(
        self,
        report_type: str,
        date_range: Optional[DateRange] = None,
        employee_id: Optional[str] = None,
        sentiment_filter: Optional[str] = None,
        now: Optional[datetime] = None,
        employee_name: Optional[str] = None,
    ) -> ReportDocument:
        """Select and format the rows of a report, newest first"""
        now = now or datetime.utcnow()
        start = date_range.start if date_range else None
        end = date_range.end if date_range else None

        if report_type == "employees":
            users = await self.employees.list_employees(include_inactive=True)
            users = [
                u for u in users
                if (start is None or u.created_at >= start) and (end is None or u.created_at <= end)
            ]
            users.sort(key=lambda u: u.created_at, reverse=True)
            rows = [definitions.employee_row(u) for u in users]
            summary = definitions.summarize_employees(users)
        elif report_type == "clients":
            clients, _ = await self.reviews.get_clients_list(limit=None, start=start, end=end)
            rows = [definitions.client_row(c) for c in clients]
            summary = definitions.summarize_clients(clients, months_before(now, 3))
        elif report_type == "pharmacy-reviews":
            reviews, _ = await self.reviews.get_pharmacy_ratings(
                time_filter=None, limit=None, sentiment_filter=sentiment_filter, start=start, end=end
            )
            rows = [definitions.pharmacy_review_row(r) for r in reviews]
            summary = definitions.summarize_reviews([r.rating for r in reviews])
        elif report_type in ("employee-reviews", "specific-employee-reviews"):
            if report_type == "specific-employee-reviews" and employee_name is None:
                employee_name = await self._employee_name(employee_id)
            reviews, _ = await self.reviews.get_employee_ratings(
                employee_id=employee_id if report_type == "specific-employee-reviews" else None,
                limit=None,
                sentiment_filter=sentiment_filter,
                start=start,
                end=end,
            )
            row = (
                definitions.specific_employee_review_row
                if report_type == "specific-employee-reviews"
                else definitions.employee_review_row
            )
            rows = [row(r) for r in reviews]
            summary = definitions.summarize_reviews([r.rating for r in reviews])
        elif report_type == "suggestions":
            suggestions, _ = await self.reviews.get_suggestions(limit=None, start=start, end=end)
            rows = [definitions.suggestion_row(s) for s in suggestions]
            summary = definitions.summarize_suggestions(suggestions)
        else:
            raise InvalidReportRequestException(f"Unknown report type '{report_type}'")

        period = (
            f"du {format_date(date_range.start)} au {format_date(date_range.end)}"
            if date_range else "Toutes les données"
        )
        return ReportDocument(
            definition=REPORT_DEFINITIONS[report_type],
            title=self.get_report_name(report_type, employee_name=employee_name),
            period=period,
            generated_at=convert_to_cet(now).strftime("%d/%m/%Y %H:%M"),
            organisation=config.PHARMACY_NAME,
            rows=rows,
            summary=summary,
        )

    async def _employee_name(self, employee_id: Optional[str]) -> str:
        if not employee_id:
            raise InvalidReportRequestException("employee_id is required for specific-employee-reviews")
        try:
            user_id = UUID(str(employee_id))
        except ValueError:
            raise InvalidReportRequestException(f"Invalid employee_id '{employee_id}'")
        user = await self.employees.get_employee(user_id)
        return user.full_name

    async def generate_report(
        self,
        report_type: str,
        fmt: str,
        user_id: Optional[str] = None,
        date_range: Optional[DateRange] = None,
        employee_id: Optional[str] = None,
        sentiment_filter: Optional[str] = None,
    ) -> Report:
        """
        Render a report to disk, then record it.

        The file is written before the database row, so a failure while
        saving the record can leave an unreferenced file behind.

        Raises:
            InvalidReportRequestException: Unknown type or format, missing employee
            ReportGenerationException: Rendering or saving failed
        """
        if report_type not in REPORT_DEFINITIONS:
            raise InvalidReportRequestException(f"Unknown report type '{report_type}'")
        if fmt not in FORMATS:
            raise InvalidReportRequestException(f"Unknown report format '{fmt}'")

        logger.info("Generating %s report as %s for user %s", report_type, fmt, user_id)
        now = datetime.utcnow()
        employee_name = None
        if report_type == "specific-employee-reviews":
            employee_name = await self._employee_name(employee_id)
        try:
            document = await self.build_document(
                report_type, date_range, employee_id, sentiment_filter, now, employee_name
            )

            self.reports_dir.mkdir(parents=True, exist_ok=True)
            file_name = report_file_name(report_type, fmt, now)
            path = self.reports_dir / file_name
            if fmt == "PDF":
                render_pdf(document, path)
            else:
                render_excel(document, path)

            report = Report(
                name=self.get_report_name(report_type, date_range, employee_name),
                format=fmt,
                size=format_size(path.stat().st_size),
                date=now,
                type=report_type,
                file_path=f"{self.url_prefix}/{file_name}",
                generated_by=user_id,
                date_range_start=date_range.start if date_range else None,
                date_range_end=date_range.end if date_range else None,
            )
            async with self.session_factory() as db:
                report = await ReportRepository(db).add(report)
        except HTTPException:
            raise
        except Exception as e:
            logger.exception("Failed to generate %s report", report_type)
            raise ReportGenerationException(str(e))

        logger.info("Report %s written to %s (%s)", report.id, path, report.size)
        return report

    async def generate_report_for_period(
        self,
        period: str = "last-month",
        fmt: str = "PDF",
        user_id: Optional[str] = None,
    ) -> List[Report]:
        """Generate the monthly bundle of reports for a calendar period, in one or both formats"""
        date_range = self.get_date_range_for_period(period)
        formats = list(FORMATS) if fmt == "BOTH" else [fmt]
        reports = []
        for report_type in PERIOD_REPORT_TYPES:
            for report_format in formats:
                reports.append(await self.generate_report(report_type, report_format, user_id, date_range))
        return reports

    async def get_report_by_id(self, report_id: UUID) -> Optional[Report]:
        try:
            async with self.session_factory() as db:
                return await ReportRepository(db).get_by_id(report_id)
        except SQLAlchemyError:
            logger.exception("Failed to load report %s", report_id)
            return None

    async def get_recent_reports(self, limit: int = 10, page: int = 1) -> Tuple[List[Report], int]:
        async with self.session_factory() as db:
            return await ReportRepository(db).get_recent(limit, (page - 1) * limit)

    async def increment_download_count(self, report_id: UUID) -> bool:
        async with self.session_factory() as db:
            return await ReportRepository(db).increment_download_count(report_id)

    def get_report_path(self, report: Report) -> Path:
        """Location on disk of a report's file"""
        return self.reports_dir / Path(report.file_path).name
