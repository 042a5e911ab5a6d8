from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from planboard.api.deps import get_current_user
from planboard.api.schemas import (
    MessageResponse,
    PlanCreateRequest,
    PlanResponse,
    PlanUpdateRequest,
    ShareResponse,
    ShareUpdateRequest,
)
from planboard.api.serializers import serialize_plan, serialize_share
from planboard.db.models import User
from planboard.db.session import get_db_session
from planboard.services.errors import NotFoundError
from planboard.services.plan_service import PlanService
from planboard.services.share_service import ShareService

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("/shared/{link}", response_model=PlanResponse)
def get_shared_plan(
    link: str,
    session: Session = Depends(get_db_session),
) -> PlanResponse:
    plan = ShareService().get_by_shareable_link(session, link=link)
    return serialize_plan(plan)


@router.post("/shared/{plan_id}/clone", response_model=PlanResponse, status_code=201)
def clone_shared_plan(
    plan_id: UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> PlanResponse:
    service = PlanService()
    source = service.get_plan(session, plan_id)
    if not source.is_public and source.user_id != current_user.id:
        raise NotFoundError("Shared plan not found", code="SHARED_PLAN_NOT_FOUND")

    clone = service.clone_plan(
        session, source_plan_id=plan_id, target_user_id=current_user.id
    )
    return serialize_plan(clone)


@router.get("", response_model=list[PlanResponse])
def list_plans(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> list[PlanResponse]:
    plans = PlanService().list_plans(session, user_id=current_user.id)
    return [serialize_plan(plan) for plan in plans]


@router.post("", response_model=PlanResponse, status_code=201)
def create_plan(
    payload: PlanCreateRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> PlanResponse:
    plan = PlanService().create_plan(
        session,
        user_id=current_user.id,
        title=payload.title,
        description=payload.description,
    )
    return serialize_plan(plan)


@router.get("/{plan_id}", response_model=PlanResponse)
def get_plan(
    plan_id: UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> PlanResponse:
    plan = PlanService().get_plan(session, plan_id, owner_id=current_user.id)
    return serialize_plan(plan)


@router.put("/{plan_id}", response_model=PlanResponse)
def update_plan(
    plan_id: UUID,
    payload: PlanUpdateRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> PlanResponse:
    plan = PlanService().update_plan(
        session,
        plan_id=plan_id,
        owner_id=current_user.id,
        title=payload.title,
        description=payload.description,
    )
    return serialize_plan(plan)


@router.delete("/{plan_id}", status_code=204)
def delete_plan(
    plan_id: UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> Response:
    PlanService().delete_plan(session, plan_id=plan_id, owner_id=current_user.id)
    return Response(status_code=204)


@router.post("/{plan_id}/share", response_model=ShareResponse)
def generate_share_link(
    plan_id: UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> ShareResponse:
    plan = ShareService().generate_share_link(
        session, plan_id=plan_id, owner_id=current_user.id
    )
    return serialize_share(plan)


@router.put("/{plan_id}/share", response_model=ShareResponse)
def update_share_link(
    plan_id: UUID,
    payload: ShareUpdateRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> ShareResponse:
    plan = ShareService().update_share_link(
        session,
        plan_id=plan_id,
        owner_id=current_user.id,
        regenerate_link=payload.regenerate_link,
    )
    return serialize_share(plan)


@router.delete("/{plan_id}/share", response_model=MessageResponse)
def delete_share_link(
    plan_id: UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> MessageResponse:
    message = ShareService().delete_share_link(
        session, plan_id=plan_id, owner_id=current_user.id
    )
    return MessageResponse(message=message)
