from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from planboard.db.models import Milestone, Plan, User
from planboard.hierarchy.clone import build_clone_blueprint, count_blueprint_milestones
from planboard.hierarchy.schema import MilestoneBlueprint
from planboard.services.errors import (
    InvalidArgumentError,
    NotFoundError,
    PersistenceError,
)

logger = logging.getLogger(__name__)


class PlanService:
    def create_plan(
        self,
        session: Session,
        *,
        user_id: UUID,
        title: str,
        description: str | None = None,
    ) -> Plan:
        if not title or not title.strip():
            raise InvalidArgumentError("Title is required")
        self._require_user(session, user_id)

        now = datetime.now(UTC)
        plan = Plan(
            title=title,
            description=description,
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )
        try:
            session.add(plan)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("plan_create_failed", extra={"user_id": str(user_id)})
            raise PersistenceError("Error creating plan") from exc

        session.refresh(plan)
        return plan

    def list_plans(self, session: Session, *, user_id: UUID) -> list[Plan]:
        stmt = (
            select(Plan)
            .where(Plan.user_id == user_id)
            .options(selectinload(Plan.milestones).selectinload(Milestone.children))
            .order_by(Plan.created_at.desc())
        )
        return list(session.scalars(stmt).all())

    def get_plan(
        self, session: Session, plan_id: UUID, *, owner_id: UUID | None = None
    ) -> Plan:
        plan = session.get(Plan, plan_id)
        if plan is None or (owner_id is not None and plan.user_id != owner_id):
            raise NotFoundError(f"Plan '{plan_id}' not found", code="PLAN_NOT_FOUND")
        return plan

    def update_plan(
        self,
        session: Session,
        *,
        plan_id: UUID,
        owner_id: UUID,
        title: str | None = None,
        description: str | None = None,
    ) -> Plan:
        if title is None and description is None:
            raise InvalidArgumentError("No fields provided for update")
        if title is not None and not title.strip():
            raise InvalidArgumentError("Title must not be empty")

        plan = self.get_plan(session, plan_id, owner_id=owner_id)
        if title is not None:
            plan.title = title
        if description is not None:
            plan.description = description
        plan.updated_at = datetime.now(UTC)

        try:
            session.add(plan)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("plan_update_failed", extra={"plan_id": str(plan_id)})
            raise PersistenceError("Error updating plan") from exc
        return plan

    def delete_plan(self, session: Session, *, plan_id: UUID, owner_id: UUID) -> None:
        plan = self.get_plan(session, plan_id, owner_id=owner_id)
        try:
            session.delete(plan)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("plan_delete_failed", extra={"plan_id": str(plan_id)})
            raise PersistenceError("Error deleting plan") from exc
        logger.info("plan_deleted", extra={"plan_id": str(plan_id)})

    def clone_plan(
        self, session: Session, *, source_plan_id: UUID, target_user_id: UUID
    ) -> Plan:
        """Copy a plan and two levels of its milestones to ``target_user_id``.

        The source is looked up by id only; callers that must restrict cloning
        to shared plans resolve the plan through its public link first.
        """
        source = self.get_plan(session, source_plan_id)
        self._require_user(session, target_user_id)
        blueprint = build_clone_blueprint(source)

        now = datetime.now(UTC)
        clone = Plan(
            title=blueprint["title"],
            description=blueprint["description"],
            user_id=target_user_id,
            is_public=False,
            shareable_link=None,
            created_at=now,
            updated_at=now,
        )
        sequence = itertools.count(1)
        for item in blueprint["milestones"]:
            self._add_blueprint_milestone(clone, item, None, now, sequence)

        try:
            session.add(clone)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception(
                "plan_clone_failed", extra={"source_plan_id": str(source_plan_id)}
            )
            raise PersistenceError("Error cloning plan") from exc

        logger.info(
            "plan_cloned",
            extra={
                "source_plan_id": str(source_plan_id),
                "plan_id": str(clone.id),
                "milestone_count": count_blueprint_milestones(blueprint),
            },
        )
        return clone

    def _add_blueprint_milestone(
        self,
        plan: Plan,
        item: MilestoneBlueprint,
        parent: Milestone | None,
        now: datetime,
        sequence: Iterator[int],
    ) -> None:
        # distinct created_at values keep the copied order stable
        stamp = now + timedelta(microseconds=next(sequence))
        milestone = Milestone(
            title=item["title"],
            description=item["description"],
            deadline=item["deadline"],
            status=item["status"],
            plan=plan,
            parent=parent,
            created_at=stamp,
            updated_at=now,
        )
        for child in item["children"]:
            self._add_blueprint_milestone(plan, child, milestone, now, sequence)

    def _require_user(self, session: Session, user_id: UUID) -> User:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found", code="USER_NOT_FOUND")
        return user
