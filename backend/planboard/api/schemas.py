from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from planboard.hierarchy.schema import MilestoneStatus


class RegisterRequest(BaseModel):
    email: str
    password: str
    first_name: str
    last_name: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    first_name: str
    last_name: str | None
    created_at: datetime


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"


class MessageResponse(BaseModel):
    message: str


class MilestoneResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None
    deadline: datetime | None
    task_id: UUID
    parent_id: UUID | None
    status: MilestoneStatus
    is_complete: bool
    created_at: datetime
    updated_at: datetime
    children: list[MilestoneResponse] = Field(default_factory=list)


class MilestoneCreateRequest(BaseModel):
    task_id: UUID
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    deadline: datetime
    status: MilestoneStatus = MilestoneStatus.not_started
    parent_id: UUID | None = None


class MilestoneUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    deadline: datetime | None = None
    status: MilestoneStatus | None = None
    parent_id: UUID | None = None


class PlanCreateRequest(BaseModel):
    title: str
    description: str | None = None


class PlanUpdateRequest(BaseModel):
    title: str | None = None
    description: str | None = None


class PlanResponse(BaseModel):
    id: UUID
    title: str
    description: str | None
    user_id: UUID
    is_public: bool
    shareable_link: str | None
    created_at: datetime
    updated_at: datetime
    milestones: list[MilestoneResponse]


class ShareUpdateRequest(BaseModel):
    regenerate_link: bool = Field(default=False)


class ShareResponse(BaseModel):
    shareable_link: str | None
    is_public: bool
    share_url: str | None


class UpcomingMilestoneResponse(BaseModel):
    id: UUID
    title: str
    description: str | None
    status: MilestoneStatus
    deadline: datetime
    task_id: UUID


class DashboardStatsResponse(BaseModel):
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
    upcoming_milestones: list[UpcomingMilestoneResponse]


class TrendBucketResponse(BaseModel):
    date: str
    completed: int
    total: int


class ActivityResponse(BaseModel):
    id: str
    type: str
    entity_type: str
    entity_id: UUID
    task_id: UUID | None = None
    title: str
    description: str
    status: MilestoneStatus | None = None
    timestamp: datetime