from planboard.hierarchy.clone import build_clone_blueprint
from planboard.hierarchy.errors import (
    CyclicHierarchyError,
    HierarchyError,
    HierarchyInputError,
)
from planboard.hierarchy.flatten import build_forest, flatten_milestones, index_children
from planboard.hierarchy.stats import (
    activity_feed,
    completion_trends,
    dashboard_stats,
    status_distribution,
)

__all__ = [
    "activity_feed",
    "build_clone_blueprint",
    "build_forest",
    "completion_trends",
    "dashboard_stats",
    "flatten_milestones",
    "index_children",
    "status_distribution",
    "HierarchyError",
    "HierarchyInputError",
    "CyclicHierarchyError",
]
