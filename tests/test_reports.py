import pytest
from datetime import datetime, timedelta
from uuid import uuid4
import openpyxl
from httpx import AsyncClient
from app.reports.definitions import truncate, REPORT_DEFINITIONS
from app.reports.exceptions import InvalidReportRequestException
from app.reports.schemas import DateRange
from app.reports.service import report_file_name, format_size


@pytest.fixture
async def rated_sessions(add_sessions, make_session):
    now = datetime.utcnow()
    return await add_sessions(
        make_session(
            now - timedelta(hours=1),
            pharmacy_rating=5,
            employee_ratings=[{"employee_id": "e1", "rating": 4, "comment": "Souriant"}],
            client_first_name="Jean",
            client_last_name="Dupont",
            suggestion="x" * 150,
        ),
        make_session(now - timedelta(hours=2), pharmacy_rating=2),
    )


@pytest.mark.asyncio
async def test_generate_pdf_report(services, rated_sessions, tmp_path):
    report = await services.reports.generate_report("pharmacy-reviews", "PDF", user_id="manager-1")

    assert report.type == "pharmacy-reviews"
    assert report.format == "PDF"
    assert report.name == "Avis sur la pharmacie"
    assert report.download_count == 0
    assert report.generated_by == "manager-1"
    assert report.file_path.startswith("/reports/pharmacy-reviews_")
    assert report.file_path.endswith("Z.pdf")
    assert report.size.endswith(" MB")

    path = services.reports.get_report_path(report)
    assert path.parent == tmp_path / "reports"
    assert path.read_bytes().startswith(b"%PDF")


@pytest.mark.asyncio
async def test_generate_excel_report(services, rated_sessions):
    date_range = DateRange(
        start=datetime.utcnow() - timedelta(days=1),
        end=datetime.utcnow() + timedelta(days=1),
    )
    report = await services.reports.generate_report("suggestions", "EXCEL", date_range=date_range)
    assert report.name.startswith("Suggestions des clients du ")
    assert report.file_path.endswith(".xlsx")

    wb = openpyxl.load_workbook(services.reports.get_report_path(report))
    ws = wb.active
    assert "Suggestions des clients" in ws["A1"].value
    assert ws["A2"].value.startswith("Période : du ")
    assert [c.value for c in ws[5]] == list(REPORT_DEFINITIONS["suggestions"].headings)
    suggestion = ws.cell(row=6, column=2).value
    assert len(suggestion) == 100
    assert suggestion.endswith("...")


@pytest.mark.asyncio
async def test_generate_report_with_no_data(services):
    report = await services.reports.generate_report("employees", "PDF")
    assert services.reports.get_report_path(report).exists()


@pytest.mark.asyncio
async def test_generate_report_rejects_invalid_requests(services):
    with pytest.raises(InvalidReportRequestException):
        await services.reports.generate_report("unknown", "PDF")
    with pytest.raises(InvalidReportRequestException):
        await services.reports.generate_report("employees", "CSV")
    with pytest.raises(InvalidReportRequestException):
        await services.reports.generate_report("specific-employee-reviews", "PDF")


@pytest.mark.asyncio
async def test_specific_employee_report(services, add_sessions, make_session):
    user = await services.employees.create_employee(
        {"first_name": "Claire", "last_name": "Dubois", "email": "claire@example.com"}
    )
    await add_sessions(
        make_session(
            datetime.utcnow() - timedelta(hours=1),
            employee_ratings=[{"employee_id": str(user.id), "rating": 5, "comment": None}],
        )
    )
    report = await services.reports.generate_report(
        "specific-employee-reviews", "EXCEL", employee_id=str(user.id)
    )
    assert report.name == "Avis sur l'employé Dubois Claire"

    ws = openpyxl.load_workbook(services.reports.get_report_path(report)).active
    assert ws.cell(row=6, column=2).value == "5/5"


@pytest.mark.asyncio
async def test_recent_reports_and_downloads(services):
    first = await services.reports.generate_report("employees", "PDF")
    await services.reports.generate_report("clients", "EXCEL")

    reports, total = await services.reports.get_recent_reports(limit=1)
    assert total == 2
    assert len(reports) == 1

    assert await services.reports.increment_download_count(first.id) is True
    assert await services.reports.increment_download_count(first.id) is True
    assert (await services.reports.get_report_by_id(first.id)).download_count == 2
    assert await services.reports.increment_download_count(uuid4()) is False


@pytest.mark.asyncio
async def test_generate_for_period_in_both_formats(services):
    reports = await services.reports.generate_report_for_period("last-month", "BOTH")
    assert len(reports) == 6
    assert {r.type for r in reports} == {"employees", "pharmacy-reviews", "employee-reviews"}
    assert {r.format for r in reports} == {"PDF", "EXCEL"}
    assert all(r.date_range_start is not None for r in reports)


def test_date_range_for_period(services):
    now = datetime(2026, 5, 20, 10, 0)
    last_month = services.reports.get_date_range_for_period("last-month", now)
    # April in Paris is UTC+2
    assert last_month.start == datetime(2026, 3, 31, 22, 0)
    assert last_month.end == datetime(2026, 4, 30, 21, 59, 59, 999999)

    quarter = services.reports.get_date_range_for_period("current-quarter", now)
    assert quarter.start == datetime(2026, 3, 31, 22, 0)

    last_year = services.reports.get_date_range_for_period("last-year", now)
    assert last_year.start == datetime(2024, 12, 31, 23, 0)
    assert last_year.end == datetime(2025, 12, 31, 22, 59, 59, 999999)

    with pytest.raises(ValueError):
        services.reports.get_date_range_for_period("fortnight", now)


def test_report_file_name_and_size():
    name = report_file_name("clients", "EXCEL", datetime(2026, 5, 1, 8, 30, 15, 123000))
    assert name == "clients_2026-05-01T08-30-15-123Z.xlsx"
    assert format_size(1048576) == "1.00 MB"


def test_truncate():
    assert truncate("court") == "court"
    assert truncate("a" * 100) == "a" * 100
    assert truncate("a" * 101) == "a" * 97 + "..."


def test_report_names(services):
    date_range = DateRange(start=datetime(2026, 3, 31, 22, 0), end=datetime(2026, 4, 30, 21, 59))
    name = services.reports.get_report_name("pharmacy-reviews", date_range)
    assert name == "Avis sur la pharmacie du 01/04/2026 au 30/04/2026"


@pytest.mark.asyncio
async def test_report_routes(auth_client: AsyncClient):
    response = await auth_client.get("/reports/types")
    assert response.status_code == 200
    assert len(response.json()) == 6

    response = await auth_client.post("/reports/generate", json={"report_type": "clients", "format": "PDF"})
    assert response.status_code == 201
    report = response.json()

    response = await auth_client.get(f"/reports/{report['id']}/download")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"

    response = await auth_client.get(f"/reports/{report['id']}")
    assert response.json()["download_count"] == 1

    response = await auth_client.get("/reports/")
    assert response.json()["total"] == 1

    response = await auth_client.get(f"/reports/{uuid4()}")
    assert response.status_code == 404

    response = await auth_client.post("/reports/generate", json={"report_type": "nope", "format": "PDF"})
    assert response.status_code == 400

    response = await auth_client.post("/reports/generate-period", json={"period": "fortnight"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_generate_report_requires_permission(client: AsyncClient, app, mock_jwt_payload):
    from app.auth.middleware import verify_token

    app.dependency_overrides[verify_token] = lambda: mock_jwt_payload.model_copy(
        update={"permissions": ["report:read"]}
    )
    response = await client.post(
        "/reports/generate",
        json={"report_type": "clients", "format": "PDF"},
        headers={"Authorization": "Bearer mock_token"},
    )
    assert response.status_code == 403
    app.dependency_overrides.clear()


def test_date_range_converts_offsets_to_utc():
    date_range = DateRange(start="2026-04-01T00:00:00+02:00", end="2026-04-30T23:59:59.999Z")
    assert date_range.start == datetime(2026, 3, 31, 22, 0)
    assert date_range.start.tzinfo is None
    assert date_range.end == datetime(2026, 4, 30, 23, 59, 59, 999000)


@pytest.mark.asyncio
async def test_generate_with_browser_date_range(auth_client: AsyncClient, services, rated_sessions):
    await services.employees.create_employee(
        {"first_name": "Claire", "last_name": "Dubois", "email": "claire@example.com"}
    )
    date_range = {"start": "2020-01-01T00:00:00.000Z", "end": "2030-12-31T23:59:59.999Z"}

    for report_type in ("employees", "pharmacy-reviews"):
        response = await auth_client.post(
            "/reports/generate",
            json={"report_type": report_type, "format": "EXCEL", "date_range": date_range},
        )
        assert response.status_code == 201
        assert response.json()["date_range_start"] == "2020-01-01T00:00:00"

    _, total = await services.reports.get_recent_reports()
    assert total == 2
