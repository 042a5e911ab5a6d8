from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from planboard.db.models import Milestone, Plan
from planboard.hierarchy.errors import CyclicHierarchyError
from planboard.hierarchy.flatten import build_forest
from planboard.hierarchy.schema import MilestoneStatus
from planboard.services.errors import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    PersistenceError,
)
from planboard.services.plan_service import PlanService

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"title", "description", "deadline", "status", "parent_id"}


class MilestoneService:
    def __init__(self, plan_service: PlanService | None = None) -> None:
        self.plan_service = plan_service or PlanService()

    def create_milestone(
        self,
        session: Session,
        *,
        owner_id: UUID,
        task_id: UUID,
        title: str,
        description: str,
        deadline: datetime,
        status: MilestoneStatus = MilestoneStatus.not_started,
        parent_id: UUID | None = None,
    ) -> Milestone:
        if not title or not description or deadline is None:
            raise InvalidArgumentError(
                "Missing required fields: title, description, deadline, task_id"
            )

        plan = self.plan_service.get_plan(session, task_id, owner_id=owner_id)
        if parent_id is not None:
            self._get_parent(session, plan, parent_id)

        now = datetime.now(UTC)
        milestone = Milestone(
            title=title,
            description=description,
            deadline=_as_utc(deadline),
            task_id=plan.id,
            parent_id=parent_id,
            status=status.value,
            created_at=now,
            updated_at=now,
        )
        plan.updated_at = now
        try:
            session.add(milestone)
            session.add(plan)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception(
                "milestone_create_failed", extra={"task_id": str(task_id)}
            )
            raise PersistenceError("Error creating milestone") from exc

        return milestone

    def list_milestones(
        self, session: Session, *, task_id: UUID, owner_id: UUID
    ) -> list[Milestone]:
        """Return the root milestones of a plan; subtrees hang off ``children``."""
        self.plan_service.get_plan(session, task_id, owner_id=owner_id)
        stmt = (
            select(Milestone)
            .where(Milestone.task_id == task_id)
            .order_by(Milestone.created_at.asc())
        )
        return build_forest(session.scalars(stmt).all())

    def update_milestone(
        self,
        session: Session,
        *,
        milestone_id: UUID,
        owner_id: UUID,
        changes: dict[str, Any],
    ) -> Milestone:
        if not changes:
            raise InvalidArgumentError("No fields provided for update")
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise InvalidArgumentError(
                "Unknown fields: " + ", ".join(sorted(unknown))
            )
        for required in ("title", "description", "deadline", "status"):
            if required in changes and changes[required] is None:
                raise InvalidArgumentError(f"{required} must not be null")

        milestone = self._get_owned(session, milestone_id, owner_id)
        if "parent_id" in changes and changes["parent_id"] is not None:
            plan = self.plan_service.get_plan(session, milestone.task_id)
            parent = self._get_parent(session, plan, changes["parent_id"])
            try:
                _ensure_not_descendant(milestone, parent)
            except CyclicHierarchyError as exc:
                raise ConflictError(str(exc), code="MILESTONE_CYCLE") from exc

        for field, value in changes.items():
            if isinstance(value, MilestoneStatus):
                value = value.value
            elif field == "deadline":
                value = _as_utc(value)
            setattr(milestone, field, value)
        now = datetime.now(UTC)
        milestone.updated_at = now
        milestone.plan.updated_at = now

        try:
            session.add(milestone)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception(
                "milestone_update_failed", extra={"milestone_id": str(milestone_id)}
            )
            raise PersistenceError("Error updating milestone") from exc
        return milestone

    def delete_milestone(
        self, session: Session, *, milestone_id: UUID, owner_id: UUID
    ) -> None:
        milestone = self._get_owned(session, milestone_id, owner_id)
        milestone.plan.updated_at = datetime.now(UTC)
        try:
            session.delete(milestone)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception(
                "milestone_delete_failed", extra={"milestone_id": str(milestone_id)}
            )
            raise PersistenceError("Error deleting milestone") from exc

    def _get_owned(
        self, session: Session, milestone_id: UUID, owner_id: UUID
    ) -> Milestone:
        milestone = session.get(Milestone, milestone_id)
        if milestone is None or milestone.plan.user_id != owner_id:
            raise NotFoundError(
                f"Milestone '{milestone_id}' not found", code="MILESTONE_NOT_FOUND"
            )
        return milestone

    def _get_parent(self, session: Session, plan: Plan, parent_id: UUID) -> Milestone:
        parent = session.get(Milestone, parent_id)
        if parent is None or parent.task_id != plan.id:
            raise NotFoundError(
                f"Parent milestone '{parent_id}' not found in plan '{plan.id}'",
                code="MILESTONE_NOT_FOUND",
            )
        return parent


def _ensure_not_descendant(milestone: Milestone, new_parent: Milestone) -> None:
    seen: set[UUID] = set()
    current: Milestone | None = new_parent
    while current is not None:
        if current.id == milestone.id:
            raise CyclicHierarchyError(
                f"Milestone '{milestone.title}' cannot be moved under its own subtree"
            )
        if current.id in seen:
            raise CyclicHierarchyError("Milestone hierarchy already contains a cycle")
        seen.add(current.id)
        current = current.parent


def _as_utc(value: datetime) -> datetime:
    # naive input is taken as UTC, matching how stored values are read back
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
