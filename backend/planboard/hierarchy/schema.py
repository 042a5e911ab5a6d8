from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, TypedDict


class MilestoneStatus(str, Enum):
    not_started = "NOT_STARTED"
    in_progress = "IN_PROGRESS"
    completed = "COMPLETED"
    at_risk = "AT_RISK"
    delayed = "DELAYED"


class UpcomingMilestone(TypedDict):
    id: Any
    title: str
    description: str | None
    status: str
    deadline: datetime
    task_id: Any


class DashboardStats(TypedDict):
    total_plans: int
    active_plans: int
    completed_plans: int
    total_milestones: int
    completed_milestones: int
    in_progress_milestones: int
    not_started_milestones: int
    at_risk_milestones: int
    delayed_milestones: int
    completion_rate: int
    due_today: int
    due_this_week: int
    overdue_milestones: int
    upcoming_milestones: list[UpcomingMilestone]


class TrendBucket(TypedDict):
    date: str
    completed: int
    total: int


class ActivityItem(TypedDict, total=False):
    id: str
    type: str
    entity_type: str
    entity_id: Any
    task_id: Any
    title: str
    description: str
    status: str
    timestamp: datetime


class MilestoneBlueprint(TypedDict):
    title: str
    description: str | None
    deadline: datetime | None
    status: str
    children: list[MilestoneBlueprint]


class PlanBlueprint(TypedDict):
    title: str
    description: str | None
    milestones: list[MilestoneBlueprint]
