from fastapi import APIRouter, Depends, Query, Request
from app.statistics.service import StatisticsService
from app.statistics.schemas import (
    ChartData,
    MultiSeriesChartData,
    PharmacyRatingStats,
    RoleDistribution,
    StatisticsSummary,
)
from app.statistics.time_frames import TIME_FRAMES
from app.auth.middleware import JWTPayload, verify_token, check_permission


def get_statistics_service(request: Request) -> StatisticsService:
    """Dependency to get the shared StatisticsService"""
    return request.app.state.services.statistics


router = APIRouter(
    prefix="/statistics",
    tags=["statistics"],
)


@router.get("/summary", response_model=StatisticsSummary)
async def get_statistics_summary(
    time_frame: str = Query("month", enum=TIME_FRAMES),
    service: StatisticsService = Depends(get_statistics_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    KPI cards with deltas against the preceding window.

    Required permission: statistics:read
    """
    check_permission(jwt_payload, "statistics:read")
    return await service.get_statistics_summary(time_frame)


@router.get("/pharmacy-rating-trends", response_model=ChartData)
async def get_pharmacy_rating_trends(
    time_frame: str = Query("year", enum=TIME_FRAMES),
    service: StatisticsService = Depends(get_statistics_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "statistics:read")
    return await service.get_pharmacy_rating_trends(time_frame)


@router.get("/pharmacy-rating-stats", response_model=PharmacyRatingStats)
async def get_pharmacy_rating_stats(
    time_frame: str = Query("month", enum=TIME_FRAMES),
    service: StatisticsService = Depends(get_statistics_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "statistics:read")
    return await service.calculate_pharmacy_rating_stats(time_frame)


@router.get("/satisfaction-trends", response_model=ChartData)
async def get_satisfaction_trends(
    time_frame: str = Query("month", enum=TIME_FRAMES),
    service: StatisticsService = Depends(get_statistics_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "statistics:read")
    return await service.get_satisfaction_trends(time_frame)


@router.get("/visitors", response_model=ChartData)
async def get_monthly_visitors(
    time_frame: str = Query("year", enum=TIME_FRAMES),
    service: StatisticsService = Depends(get_statistics_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "statistics:read")
    return await service.get_monthly_visitors(time_frame)


@router.get("/star-distribution", response_model=ChartData)
async def get_star_rating_distribution(
    time_frame: str = Query("all", enum=TIME_FRAMES),
    service: StatisticsService = Depends(get_statistics_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "statistics:read")
    return await service.get_star_rating_distribution(time_frame)


@router.get("/feedback-by-time", response_model=ChartData)
async def get_feedback_by_time(
    time_frame: str = Query("month", enum=TIME_FRAMES),
    service: StatisticsService = Depends(get_statistics_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "statistics:read")
    return await service.get_feedback_by_time(time_frame)


@router.get("/monthly-ratings", response_model=MultiSeriesChartData)
async def get_monthly_rating_data(
    year: int | None = Query(None, ge=2020, le=2100),
    service: StatisticsService = Depends(get_statistics_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """Pharmacy vs employee monthly averages for a calendar year (current year by default)"""
    check_permission(jwt_payload, "statistics:read")
    return await service.get_monthly_rating_data(year)


@router.get("/roles", response_model=RoleDistribution)
async def get_role_distribution(
    time_frame: str = Query("year", enum=TIME_FRAMES),
    service: StatisticsService = Depends(get_statistics_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "statistics:read")
    return await service.get_role_distribution(time_frame)


@router.get("/roles/performance", response_model=ChartData)
async def get_role_performance(
    service: StatisticsService = Depends(get_statistics_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "statistics:read")
    return await service.get_role_performance_data()
