from __future__ import annotations

from typing import Any

from planboard.hierarchy.flatten import build_forest
from planboard.hierarchy.schema import (
    MilestoneBlueprint,
    MilestoneStatus,
    PlanBlueprint,
)

CLONE_DEPTH = 2


def build_clone_blueprint(plan: Any) -> PlanBlueprint:
    """Describe the copy of ``plan`` that a clone should create.

    Only two levels of milestones are kept: the plan's root milestones and
    their direct children. Sharing flags and identities are never copied.
    """
    roots = build_forest(plan.milestones)
    return {
        "title": plan.title,
        "description": plan.description,
        "milestones": [_blueprint(root, depth=1) for root in roots],
    }


def count_blueprint_milestones(blueprint: PlanBlueprint) -> int:
    total = 0
    pending = list(blueprint["milestones"])
    while pending:
        item = pending.pop()
        total += 1
        pending.extend(item["children"])
    return total


def _blueprint(milestone: Any, *, depth: int) -> MilestoneBlueprint:
    children: list[MilestoneBlueprint] = []
    if depth < CLONE_DEPTH:
        children = [
            _blueprint(child, depth=depth + 1)
            for child in (getattr(milestone, "children", None) or [])
        ]

    status = milestone.status
    if isinstance(status, MilestoneStatus):
        status = status.value

    return {
        "title": milestone.title,
        "description": milestone.description,
        "deadline": milestone.deadline,
        "status": status or MilestoneStatus.not_started.value,
        "children": children,
    }
