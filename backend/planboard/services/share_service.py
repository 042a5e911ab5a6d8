from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from planboard.db.models import Plan
from planboard.services.errors import (
    InvalidStateError,
    NotFoundError,
    PersistenceError,
)
from planboard.services.plan_service import PlanService
from planboard.services.share_links import generate_share_token

logger = logging.getLogger(__name__)

MAX_TOKEN_ATTEMPTS = 3


class ShareService:
    def __init__(self, plan_service: PlanService | None = None) -> None:
        self.plan_service = plan_service or PlanService()

    def generate_share_link(
        self, session: Session, *, plan_id: UUID, owner_id: UUID
    ) -> Plan:
        plan = self.plan_service.get_plan(session, plan_id, owner_id=owner_id)
        plan = self._assign_new_link(session, plan)
        logger.info("share_link_generated", extra={"plan_id": str(plan.id)})
        return plan

    def update_share_link(
        self,
        session: Session,
        *,
        plan_id: UUID,
        owner_id: UUID | None = None,
        regenerate_link: bool = False,
    ) -> Plan:
        plan = self.plan_service.get_plan(session, plan_id, owner_id=owner_id)
        if not plan.is_public or plan.shareable_link is None:
            raise InvalidStateError(
                "Plan is not currently shared", code="PLAN_NOT_SHARED"
            )

        if regenerate_link:
            plan = self._assign_new_link(session, plan)
            logger.info("share_link_regenerated", extra={"plan_id": str(plan.id)})
        return plan

    def delete_share_link(
        self, session: Session, *, plan_id: UUID, owner_id: UUID | None = None
    ) -> str:
        plan = self.plan_service.get_plan(session, plan_id, owner_id=owner_id)
        if not plan.is_public and plan.shareable_link is None:
            return "Plan is already private"

        plan.shareable_link = None
        plan.is_public = False
        plan.updated_at = datetime.now(UTC)
        try:
            session.add(plan)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception(
                "share_link_revoke_failed", extra={"plan_id": str(plan_id)}
            )
            raise PersistenceError("Error revoking share link") from exc

        logger.info("share_link_revoked", extra={"plan_id": str(plan.id)})
        return "Share link removed"

    def get_by_shareable_link(self, session: Session, *, link: str) -> Plan:
        plan = None
        if link:
            plan = session.scalar(
                select(Plan).where(
                    Plan.shareable_link == link,
                    Plan.is_public.is_(True),
                )
            )
        if plan is None:
            # revoked and never-issued links look the same to the caller
            raise NotFoundError(
                "Shared plan not found", code="SHARED_PLAN_NOT_FOUND"
            )
        return plan

    def _assign_new_link(self, session: Session, plan: Plan) -> Plan:
        plan_id = plan.id
        for attempt in range(1, MAX_TOKEN_ATTEMPTS + 1):
            plan.shareable_link = generate_share_token()
            plan.is_public = True
            plan.updated_at = datetime.now(UTC)
            try:
                session.add(plan)
                session.commit()
                return plan
            except IntegrityError as exc:
                session.rollback()
                if attempt == MAX_TOKEN_ATTEMPTS:
                    logger.exception(
                        "share_link_collision", extra={"plan_id": str(plan_id)}
                    )
                    raise PersistenceError("Error generating share link") from exc
                plan = self.plan_service.get_plan(session, plan_id)
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception(
                    "share_link_persist_failed", extra={"plan_id": str(plan_id)}
                )
                raise PersistenceError("Error generating share link") from exc
