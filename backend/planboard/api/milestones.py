from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from planboard.api.deps import get_current_user
from planboard.api.schemas import (
    MilestoneCreateRequest,
    MilestoneResponse,
    MilestoneUpdateRequest,
)
from planboard.api.serializers import serialize_milestone_tree
from planboard.db.models import User
from planboard.db.session import get_db_session
from planboard.hierarchy.flatten import flatten_milestones
from planboard.services.milestone_service import MilestoneService

router = APIRouter(prefix="/milestones", tags=["milestones"])


@router.get("/{task_id}", response_model=list[MilestoneResponse])
def list_milestones(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> list[MilestoneResponse]:
    roots = MilestoneService().list_milestones(
        session, task_id=task_id, owner_id=current_user.id
    )
    return serialize_milestone_tree(flatten_milestones(roots))


@router.post("", response_model=MilestoneResponse, status_code=201)
def create_milestone(
    payload: MilestoneCreateRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> MilestoneResponse:
    milestone = MilestoneService().create_milestone(
        session,
        owner_id=current_user.id,
        task_id=payload.task_id,
        title=payload.title,
        description=payload.description,
        deadline=payload.deadline,
        status=payload.status,
        parent_id=payload.parent_id,
    )
    return serialize_milestone_tree([milestone])[0]


@router.put("/{milestone_id}", response_model=MilestoneResponse)
def update_milestone(
    milestone_id: UUID,
    payload: MilestoneUpdateRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> MilestoneResponse:
    milestone = MilestoneService().update_milestone(
        session,
        milestone_id=milestone_id,
        owner_id=current_user.id,
        changes=payload.model_dump(exclude_unset=True),
    )
    return serialize_milestone_tree(flatten_milestones([milestone]))[0]


@router.delete("/{milestone_id}", status_code=204)
def delete_milestone(
    milestone_id: UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> Response:
    MilestoneService().delete_milestone(
        session, milestone_id=milestone_id, owner_id=current_user.id
    )
    return Response(status_code=204)
