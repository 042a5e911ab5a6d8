from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from planboard.api.schemas import MilestoneResponse, PlanResponse, ShareResponse
from planboard.config import load_app_config
from planboard.hierarchy.flatten import build_forest, index_children
from planboard.hierarchy.schema import MilestoneStatus
from planboard.services.share_links import build_share_url


def serialize_milestone_tree(milestones: Iterable[Any]) -> list[MilestoneResponse]:
    """Rebuild the nested view of a flat milestone list from ``parent_id``."""
    items = list(milestones)
    children_by_parent = index_children(items)
    return [
        _serialize_milestone(root, children_by_parent) for root in build_forest(items)
    ]


def serialize_plan(plan: Any) -> PlanResponse:
    return PlanResponse(
        id=plan.id,
        title=plan.title,
        description=plan.description,
        user_id=plan.user_id,
        is_public=plan.is_public,
        shareable_link=plan.shareable_link,
        created_at=plan.created_at,
        updated_at=plan.updated_at,
        milestones=serialize_milestone_tree(plan.milestones),
    )


def serialize_share(plan: Any) -> ShareResponse:
    share_url = None
    if plan.is_public and plan.shareable_link:
        share_url = build_share_url(load_app_config().app_base_url, plan.shareable_link)
    return ShareResponse(
        shareable_link=plan.shareable_link,
        is_public=plan.is_public,
        share_url=share_url,
    )


def _serialize_milestone(
    milestone: Any, children_by_parent: dict[Any, list[Any]]
) -> MilestoneResponse:
    status = MilestoneStatus(milestone.status)
    return MilestoneResponse(
        id=milestone.id,
        title=milestone.title,
        description=milestone.description,
        deadline=milestone.deadline,
        task_id=milestone.task_id,
        parent_id=milestone.parent_id,
        status=status,
        is_complete=status == MilestoneStatus.completed,
        created_at=milestone.created_at,
        updated_at=milestone.updated_at,
        children=[
            _serialize_milestone(child, children_by_parent)
            for child in children_by_parent.get(milestone.id, [])
        ],
    )
