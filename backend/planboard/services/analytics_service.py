from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from planboard.db.models import Milestone, Plan
from planboard.hierarchy import stats
from planboard.hierarchy.errors import CyclicHierarchyError, HierarchyError
from planboard.hierarchy.schema import ActivityItem, DashboardStats, TrendBucket
from planboard.services.errors import ConflictError, InvalidArgumentError

logger = logging.getLogger(__name__)


class AnalyticsService:
    def dashboard(
        self, session: Session, *, user_id: UUID | None, now: datetime | None = None
    ) -> DashboardStats:
        plans = self._load_plans(session, user_id)
        try:
            result = stats.dashboard_stats(plans, now=now or _local_now())
        except HierarchyError as exc:
            raise _translate(exc) from exc

        logger.info(
            "analytics_dashboard_summary",
            extra={
                "user_id": str(user_id),
                "total_plans": result["total_plans"],
                "total_milestones": result["total_milestones"],
            },
        )
        return result

    def completion_trends(
        self,
        session: Session,
        *,
        user_id: UUID | None,
        days: int = stats.DEFAULT_TREND_DAYS,
        now: datetime | None = None,
    ) -> list[TrendBucket]:
        self._require_user_id(user_id)
        try:
            stats.check_trend_days(days)
            plans = self._load_plans(session, user_id)
            return stats.completion_trends(
                stats.collect_milestones(plans), now=now or _local_now(), days=days
            )
        except HierarchyError as exc:
            raise _translate(exc) from exc

    def status_distribution(
        self, session: Session, *, user_id: UUID | None
    ) -> dict[str, int]:
        plans = self._load_plans(session, user_id)
        try:
            return stats.status_distribution(stats.collect_milestones(plans))
        except HierarchyError as exc:
            raise _translate(exc) from exc

    def activity_feed(
        self,
        session: Session,
        *,
        user_id: UUID | None,
        limit: int = stats.DEFAULT_ACTIVITY_LIMIT,
    ) -> list[ActivityItem]:
        self._require_user_id(user_id)
        try:
            stats.check_activity_limit(limit)
        except HierarchyError as exc:
            raise _translate(exc) from exc

        stmt = (
            select(Plan)
            .where(Plan.user_id == user_id)
            .options(selectinload(Plan.milestones).selectinload(Milestone.children))
            .order_by(Plan.updated_at.desc())
            .limit(limit)
        )
        plans = list(session.scalars(stmt).all())
        try:
            return stats.activity_feed(plans, limit=limit)
        except HierarchyError as exc:
            raise _translate(exc) from exc

    def _load_plans(self, session: Session, user_id: UUID | None) -> list[Plan]:
        self._require_user_id(user_id)
        stmt = (
            select(Plan)
            .where(Plan.user_id == user_id)
            .options(selectinload(Plan.milestones).selectinload(Milestone.children))
        )
        return list(session.scalars(stmt).all())

    def _require_user_id(self, user_id: UUID | None) -> None:
        if not user_id:
            raise InvalidArgumentError("User ID is required")


def _translate(exc: HierarchyError) -> InvalidArgumentError | ConflictError:
    if isinstance(exc, CyclicHierarchyError):
        return ConflictError(str(exc), code="MILESTONE_CYCLE")
    return InvalidArgumentError(str(exc))


def _local_now() -> datetime:
    # naive means server-local; the engine resolves the offset per timestamp
    return datetime.now()
