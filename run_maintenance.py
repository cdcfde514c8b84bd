"""
Maintenance Entry Point
Sweeps idle kiosk sessions, generates the monthly reports or creates tables
"""
import argparse
import asyncio
import logging
from app import config
from app.container import build_services
from app.db.postgres import async_session, init_models

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


async def sweep(older_than: int) -> None:
    services = build_services(async_session)
    processed = await services.feedback_sessions.process_abandoned_sessions(older_than)
    logger.info("Sweep processed %d sessions", processed)


async def monthly_report(period: str, fmt: str, force: bool) -> None:
    services = build_services(async_session)
    settings = await services.settings.get_report_settings()
    if not (force or settings.auto_generate_monthly_report):
        logger.info("Automatic monthly reports are disabled, nothing to do")
        return
    reports = await services.reports.generate_report_for_period(period, fmt or settings.monthly_report_format)
    for report in reports:
        logger.info("Generated %s (%s)", report.name, report.file_path)


def main() -> None:
    parser = argparse.ArgumentParser(description="Pharmacy feedback maintenance tasks")
    commands = parser.add_subparsers(dest="command", required=True)

    sweep_parser = commands.add_parser("sweep", help="Abandon or delete idle kiosk sessions")
    sweep_parser.add_argument("--older-than", type=int, default=config.ABANDONED_SESSION_MINUTES)

    report_parser = commands.add_parser("monthly-report", help="Generate the monthly report bundle")
    report_parser.add_argument("--period", default="last-month")
    report_parser.add_argument("--format", choices=["PDF", "EXCEL", "BOTH"], default=None)
    report_parser.add_argument("--force", action="store_true", help="Run even when automatic reports are disabled")

    commands.add_parser("init-db", help="Create database tables")

    args = parser.parse_args()
    if args.command == "sweep":
        asyncio.run(sweep(args.older_than))
    elif args.command == "monthly-report":
        asyncio.run(monthly_report(args.period, args.format, args.force))
    else:
        asyncio.run(init_models())


if __name__ == "__main__":
    main()
