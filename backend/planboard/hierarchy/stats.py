from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from typing import Any

from planboard.hierarchy.errors import HierarchyInputError
from planboard.hierarchy.flatten import flatten_milestones
from planboard.hierarchy.schema import (
    ActivityItem,
    DashboardStats,
    MilestoneStatus,
    TrendBucket,
    UpcomingMilestone,
)

UPCOMING_LIMIT = 10
DEFAULT_TREND_DAYS = 30
DEFAULT_ACTIVITY_LIMIT = 10
TREND_DAYS_RANGE = (1, 365)
ACTIVITY_LIMIT_RANGE = (1, 50)

_COMPLETED = MilestoneStatus.completed.value


def collect_milestones(plans: Iterable[Any]) -> list[Any]:
    """Flatten the milestone forests of all ``plans`` into one list."""
    collected: list[Any] = []
    for plan in plans:
        collected.extend(flatten_milestones(plan.milestones))
    return collected


def dashboard_stats(plans: Sequence[Any], *, now: datetime) -> DashboardStats:
    """Summarise ``plans`` as seen at ``now``.

    A naive ``now`` is server-local time; day boundaries then follow the local
    zone rules in effect at each instant.
    """
    tz = now.tzinfo
    milestones_by_plan = [flatten_milestones(plan.milestones) for plan in plans]
    milestones = [m for plan_milestones in milestones_by_plan for m in plan_milestones]

    distribution = status_distribution(milestones)
    total_milestones = len(milestones)
    completed_milestones = distribution[MilestoneStatus.completed.value]

    active_plans = sum(
        1
        for plan_milestones in milestones_by_plan
        if any(_status(m) != _COMPLETED for m in plan_milestones)
    )
    completed_plans = sum(
        1
        for plan_milestones in milestones_by_plan
        if plan_milestones and all(_status(m) == _COMPLETED for m in plan_milestones)
    )

    today_date = now.astimezone(tz).date()
    today = _midnight(today_date, tz)
    week_end = _midnight(today_date + timedelta(days=7), tz)

    pending = [
        m for m in milestones if _status(m) != _COMPLETED and m.deadline is not None
    ]
    due_today = 0
    due_this_week = 0
    overdue = 0
    for milestone in pending:
        deadline = _to_zone(milestone.deadline, tz)
        if deadline.date() == today_date:
            due_today += 1
        if today <= deadline <= week_end:
            due_this_week += 1
        if deadline < today:
            overdue += 1

    upcoming = sorted(pending, key=lambda m: _to_zone(m.deadline, tz))[:UPCOMING_LIMIT]

    return {
        "total_plans": len(plans),
        "active_plans": active_plans,
        "completed_plans": completed_plans,
        "total_milestones": total_milestones,
        "completed_milestones": completed_milestones,
        "in_progress_milestones": distribution[MilestoneStatus.in_progress.value],
        "not_started_milestones": distribution[MilestoneStatus.not_started.value],
        "at_risk_milestones": distribution[MilestoneStatus.at_risk.value],
        "delayed_milestones": distribution[MilestoneStatus.delayed.value],
        "completion_rate": completion_rate(completed_milestones, total_milestones),
        "due_today": due_today,
        "due_this_week": due_this_week,
        "overdue_milestones": overdue,
        "upcoming_milestones": [_upcoming_entry(m) for m in upcoming],
    }


def completion_rate(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    # half-up rounding, 12.5 -> 13
    return int(math.floor(completed / total * 100 + 0.5))


def completion_trends(
    milestones: Iterable[Any],
    *,
    now: datetime,
    days: int = DEFAULT_TREND_DAYS,
) -> list[TrendBucket]:
    """Count milestones per day of their last update.

    Buckets cover ``days`` calendar days starting at ``today - days``; a
    milestone counts toward the day it was last updated, not the day it was
    completed.
    """
    check_trend_days(days)
    tz = now.tzinfo
    today = now.astimezone(tz).date()
    start = today - timedelta(days=days)

    buckets: dict[str, TrendBucket] = {}
    for offset in range(days):
        day = (start + timedelta(days=offset)).isoformat()
        buckets[day] = {"date": day, "completed": 0, "total": 0}

    for milestone in milestones:
        updated_at = getattr(milestone, "updated_at", None)
        if updated_at is None:
            continue
        bucket = buckets.get(_to_zone(updated_at, tz).date().isoformat())
        if bucket is None:
            continue
        bucket["total"] += 1
        if _status(milestone) == _COMPLETED:
            bucket["completed"] += 1

    return list(buckets.values())


def status_distribution(milestones: Iterable[Any]) -> dict[str, int]:
    distribution = {status.value: 0 for status in MilestoneStatus}
    for milestone in milestones:
        status = _status(milestone)
        if status in distribution:
            distribution[status] += 1
    return distribution


def activity_feed(
    plans: Iterable[Any],
    *,
    limit: int = DEFAULT_ACTIVITY_LIMIT,
) -> list[ActivityItem]:
    """Synthesize recent activity from plan and milestone timestamps.

    The ``limit`` most recently updated plans are walked in order, each
    contributing a creation entry followed by one entry per milestone; the cap
    applies while collecting, so the result is the first ``limit`` entries
    encountered, sorted newest first afterwards.
    """
    check_activity_limit(limit)

    recent_plans = sorted(plans, key=lambda p: _sort_ts(p.updated_at), reverse=True)
    activities: list[ActivityItem] = []

    for plan in recent_plans[:limit]:
        if len(activities) < limit:
            activities.append(
                {
                    "id": f"task-{plan.id}",
                    "type": "task_created",
                    "entity_type": "task",
                    "entity_id": plan.id,
                    "title": plan.title,
                    "description": f'Created plan "{plan.title}"',
                    "timestamp": plan.created_at,
                }
            )

        ordered = sorted(
            plan.milestones, key=lambda m: _sort_ts(m.updated_at), reverse=True
        )
        for milestone in flatten_milestones(ordered):
            if len(activities) >= limit:
                break
            activities.append(_milestone_activity(plan, milestone))

    activities.sort(key=lambda item: _sort_ts(item["timestamp"]), reverse=True)
    return activities[:limit]


def _milestone_activity(plan: Any, milestone: Any) -> ActivityItem:
    status = _status(milestone)
    if status == MilestoneStatus.completed.value:
        activity_type = "milestone_completed"
        verb = "Completed"
    elif status == MilestoneStatus.in_progress.value:
        activity_type = "milestone_started"
        verb = "Started"
    else:
        activity_type = "milestone_updated"
        verb = "Updated"

    return {
        "id": f"milestone-{milestone.id}",
        "type": activity_type,
        "entity_type": "milestone",
        "entity_id": milestone.id,
        "task_id": plan.id,
        "title": milestone.title,
        "description": f'{verb} milestone "{milestone.title}"',
        "status": status,
        "timestamp": milestone.updated_at,
    }


def _upcoming_entry(milestone: Any) -> UpcomingMilestone:
    return {
        "id": milestone.id,
        "title": milestone.title,
        "description": milestone.description,
        "status": _status(milestone),
        "deadline": milestone.deadline,
        "task_id": milestone.task_id,
    }


def check_trend_days(days: Any) -> None:
    _require_in_range("days", days, TREND_DAYS_RANGE)


def check_activity_limit(limit: Any) -> None:
    _require_in_range("limit", limit, ACTIVITY_LIMIT_RANGE)


def _require_in_range(name: str, value: Any, bounds: tuple[int, int]) -> None:
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, int):
        raise HierarchyInputError(f"{name} must be an integer")
    if not low <= value <= high:
        raise HierarchyInputError(f"{name} must be between {low} and {high}")


def _status(milestone: Any) -> str:
    status = milestone.status
    if isinstance(status, MilestoneStatus):
        return status.value
    return status


def _to_zone(value: datetime, tz: tzinfo | None) -> datetime:
    # naive values come back from the store and are UTC; tz None is server-local
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(tz)


def _midnight(day: date, tz: tzinfo | None) -> datetime:
    if tz is None:
        return datetime.combine(day, time()).astimezone()
    return datetime.combine(day, time(), tzinfo=tz)


def _sort_ts(value: datetime | None) -> datetime:
    if value is None:
        return datetime.min.replace(tzinfo=UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
