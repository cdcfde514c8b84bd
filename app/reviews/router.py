from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from app.reviews.service import ReviewService
from app.reviews.schemas import (
    ClientListPage,
    PharmacyRatingPage,
    EmployeeRatingPage,
    EmployeeStatistics,
    SuggestionPage,
)
from app.statistics.router import get_statistics_service
from app.statistics.service import StatisticsService
from app.statistics.time_frames import TIME_FRAMES
from app.auth.middleware import JWTPayload, verify_token, check_permission
from app.utils.timezone import to_naive_utc


def get_review_service(request: Request) -> ReviewService:
    """Dependency to get the shared ReviewService"""
    return request.app.state.services.reviews


router = APIRouter(
    prefix="/reviews",
    tags=["reviews"],
)

SENTIMENTS = ["positive", "negative"]


@router.get("/clients", response_model=ClientListPage)
async def get_clients(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None),
    service: ReviewService = Depends(get_review_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Clients who left contact details on the kiosk.

    Required permission: reviews:read
    """
    check_permission(jwt_payload, "reviews:read")
    items, total = await service.get_clients_list(page, limit, search)
    return ClientListPage(items=items, total=total, page=page, limit=limit)


@router.get("/pharmacy", response_model=PharmacyRatingPage)
async def get_pharmacy_ratings(
    time_filter: str = Query("all", enum=TIME_FRAMES),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    rating: int | None = Query(None, ge=1, le=5),
    sentiment: str | None = Query(None, enum=SENTIMENTS),
    service: ReviewService = Depends(get_review_service),
    statistics: StatisticsService = Depends(get_statistics_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """Pharmacy ratings with summary stats for the same time filter"""
    check_permission(jwt_payload, "reviews:read")
    try:
        items, total = await service.get_pharmacy_ratings(time_filter, page, limit, rating, sentiment)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    stats = await statistics.calculate_pharmacy_rating_stats(time_filter)
    return PharmacyRatingPage(items=items, total=total, page=page, limit=limit, stats=stats)


@router.get("/employees", response_model=EmployeeRatingPage)
async def get_employee_ratings(
    employee_id: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sentiment: str | None = Query(None, enum=SENTIMENTS),
    service: ReviewService = Depends(get_review_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "reviews:read")
    items, total = await service.get_employee_ratings(employee_id, page, limit, sentiment)
    return EmployeeRatingPage(items=items, total=total, page=page, limit=limit)


@router.get("/employees/statistics", response_model=list[EmployeeStatistics])
async def get_employee_statistics(
    service: ReviewService = Depends(get_review_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "reviews:read")
    return await service.get_all_employee_statistics()


@router.get("/employees/top", response_model=list[EmployeeStatistics])
async def get_top_rated_employees(
    limit: int = Query(5, ge=1, le=50),
    service: ReviewService = Depends(get_review_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "reviews:read")
    return await service.get_top_rated_employees(limit)


@router.get("/employees/{employee_id}/statistics", response_model=EmployeeStatistics)
async def get_single_employee_statistics(
    employee_id: str,
    service: ReviewService = Depends(get_review_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "reviews:read")
    stats = await service.get_employee_statistics(employee_id)
    if stats is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No ratings for this employee")
    return stats


@router.get("/suggestions", response_model=SuggestionPage)
async def get_suggestions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    service: ReviewService = Depends(get_review_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    check_permission(jwt_payload, "reviews:read")
    items, total = await service.get_suggestions(page, limit, to_naive_utc(start_date), to_naive_utc(end_date))
    return SuggestionPage(items=items, total=total, page=page, limit=limit)
