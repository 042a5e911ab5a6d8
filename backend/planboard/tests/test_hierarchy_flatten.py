from __future__ import annotations

from types import SimpleNamespace

import pytest

from planboard.hierarchy.errors import CyclicHierarchyError
from planboard.hierarchy.flatten import build_forest, flatten_milestones, index_children


def _node(node_id: str, *children: SimpleNamespace, parent_id: str | None = None):
    node = SimpleNamespace(
        id=node_id, title=node_id, parent_id=parent_id, children=list(children)
    )
    for child in children:
        child.parent_id = node_id
    return node


def _sample_forest() -> list[SimpleNamespace]:
    grandchild = _node("m_1_1_1")
    child_a = _node("m_1_1", grandchild)
    child_b = _node("m_1_2")
    root_one = _node("m_1", child_a, child_b)
    root_two = _node("m_2", _node("m_2_1"))
    return [root_one, root_two]


def test_flatten_is_pre_order() -> None:
    flat = flatten_milestones(_sample_forest())
    assert [node.id for node in flat] == [
        "m_1",
        "m_1_1",
        "m_1_1_1",
        "m_1_2",
        "m_2",
        "m_2_1",
    ]


def test_flatten_returns_every_node_once() -> None:
    forest = _sample_forest()
    flat = flatten_milestones(forest)
    assert len(flat) == 6
    assert len({node.id for node in flat}) == 6


def test_flatten_skips_children_also_listed_at_top_level() -> None:
    forest = _sample_forest()
    stored = forest + [forest[0].children[0], forest[0].children[0].children[0]]

    flat = flatten_milestones(stored)

    assert [node.id for node in flat] == [
        node.id for node in flatten_milestones(forest)
    ]


def test_flatten_of_flat_list_is_idempotent() -> None:
    flat = flatten_milestones(_sample_forest())
    as_roots = [
        SimpleNamespace(id=node.id, title=node.title, parent_id=None, children=[])
        for node in flat
    ]
    again = flatten_milestones(as_roots)
    assert {node.id for node in again} == {node.id for node in flat}


def test_flatten_handles_empty_and_missing_children() -> None:
    assert flatten_milestones([]) == []
    bare = SimpleNamespace(id="m_bare", title="bare")
    assert flatten_milestones([bare]) == [bare]


def test_flatten_deep_chain_does_not_recurse() -> None:
    root = current = _node("m_0")
    for depth in range(1, 3000):
        nxt = _node(f"m_{depth}")
        current.children.append(nxt)
        current = nxt

    assert len(flatten_milestones([root])) == 3000


def test_flatten_cycle_raises() -> None:
    first = _node("m_a")
    second = _node("m_b")
    first.children.append(second)
    second.children.append(first)

    with pytest.raises(CyclicHierarchyError, match="its own ancestor"):
        flatten_milestones([first])


def test_flatten_without_ids_uses_object_identity() -> None:
    child = SimpleNamespace(id=None, title="child", children=[])
    root = SimpleNamespace(id=None, title="root", children=[child])
    assert flatten_milestones([root, child]) == [root, child]


def test_index_children_and_build_forest() -> None:
    flat = flatten_milestones(_sample_forest())

    children = index_children(flat)
    assert [node.id for node in children["m_1"]] == ["m_1_1", "m_1_2"]
    assert [node.id for node in children["m_1_1"]] == ["m_1_1_1"]
    assert "m_1_2" not in children

    assert [node.id for node in build_forest(flat)] == ["m_1", "m_2"]


def test_build_forest_treats_orphaned_subtree_as_root() -> None:
    flat = flatten_milestones(_sample_forest())
    subset = [node for node in flat if node.id.startswith("m_1_1")]
    assert [node.id for node in build_forest(subset)] == ["m_1_1"]
