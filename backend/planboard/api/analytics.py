from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from planboard.api.deps import get_current_user
from planboard.api.schemas import (
    ActivityResponse,
    DashboardStatsResponse,
    TrendBucketResponse,
)
from planboard.db.models import User
from planboard.db.session import get_db_session
from planboard.hierarchy.stats import DEFAULT_ACTIVITY_LIMIT, DEFAULT_TREND_DAYS
from planboard.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/dashboard", response_model=DashboardStatsResponse)
def get_dashboard_stats(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> DashboardStatsResponse:
    stats = AnalyticsService().dashboard(session, user_id=current_user.id)
    return DashboardStatsResponse.model_validate(stats)


# days/limit ranges are enforced by the analytics engine (400 INVALID_ARGUMENT)
@router.get("/trends", response_model=list[TrendBucketResponse])
def get_completion_trends(
    days: int = Query(DEFAULT_TREND_DAYS),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> list[TrendBucketResponse]:
    buckets = AnalyticsService().completion_trends(
        session, user_id=current_user.id, days=days
    )
    return [TrendBucketResponse.model_validate(bucket) for bucket in buckets]


@router.get("/status-distribution", response_model=dict[str, int])
def get_status_distribution(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> dict[str, int]:
    return AnalyticsService().status_distribution(session, user_id=current_user.id)


@router.get("/activity", response_model=list[ActivityResponse])
def get_activity_feed(
    limit: int = Query(DEFAULT_ACTIVITY_LIMIT),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> list[ActivityResponse]:
    activities = AnalyticsService().activity_feed(
        session, user_id=current_user.id, limit=limit
    )
    return [ActivityResponse.model_validate(item) for item in activities]
