from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from typing import Any

from planboard.hierarchy.errors import CyclicHierarchyError


def flatten_milestones(roots: Iterable[Any]) -> list[Any]:
    """Return every milestone reachable from ``roots`` in pre-order.

    Each milestone appears once. A milestone seen again from another branch is
    skipped (a plan's stored list holds children next to their parents), while
    one seen again on its own ancestor path means the tree is cyclic.
    """
    result: list[Any] = []
    seen: set[Any] = set()
    on_path: set[Any] = set()

    stack: list[tuple[Any, bool]] = [(node, False) for node in reversed(list(roots))]
    while stack:
        node, leaving = stack.pop()
        key = _identity(node)
        if leaving:
            on_path.discard(key)
            continue
        if key in on_path:
            raise CyclicHierarchyError(
                f"Milestone '{_label(node)}' is its own ancestor"
            )
        if key in seen:
            continue

        seen.add(key)
        on_path.add(key)
        result.append(node)
        stack.append((node, True))
        for child in reversed(_children_of(node)):
            stack.append((child, False))

    return result


def index_children(milestones: Iterable[Any]) -> dict[Any, list[Any]]:
    children_by_parent: dict[Any, list[Any]] = defaultdict(list)
    for milestone in milestones:
        parent_id = getattr(milestone, "parent_id", None)
        if parent_id is not None:
            children_by_parent[parent_id].append(milestone)
    return dict(children_by_parent)


def build_forest(milestones: Iterable[Any]) -> list[Any]:
    """Return the roots of a flat milestone list.

    A milestone is a root when it has no parent or its parent is not part of
    the list.
    """
    items = list(milestones)
    known_ids = {getattr(item, "id", None) for item in items}
    return [
        item
        for item in items
        if getattr(item, "parent_id", None) is None
        or item.parent_id not in known_ids
    ]


def _children_of(node: Any) -> list[Any]:
    children = getattr(node, "children", None)
    if not children:
        return []
    return list(children)


def _identity(node: Any) -> Any:
    node_id = getattr(node, "id", None)
    if node_id is None:
        return ("object", id(node))
    return node_id


def _label(node: Any) -> str:
    return str(getattr(node, "title", None) or _identity(node))
