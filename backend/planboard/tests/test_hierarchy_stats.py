from __future__ import annotations

import time
from datetime import UTC, date, datetime, timedelta
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from planboard.hierarchy.errors import HierarchyInputError
from planboard.hierarchy.stats import (
    activity_feed,
    collect_milestones,
    completion_rate,
    completion_trends,
    dashboard_stats,
    status_distribution,
)

NOW = datetime(2026, 3, 10, 15, 30, tzinfo=UTC)


def _milestone(
    milestone_id: str,
    status: str = "NOT_STARTED",
    *,
    deadline: datetime | None = None,
    updated_at: datetime | None = None,
    children: list[SimpleNamespace] | None = None,
    task_id: str = "p_1",
) -> SimpleNamespace:
    return SimpleNamespace(
        id=milestone_id,
        title=f"Milestone {milestone_id}",
        description=None,
        status=status,
        deadline=deadline,
        task_id=task_id,
        parent_id=None,
        updated_at=updated_at or NOW,
        children=children or [],
    )


def _plan(
    plan_id: str,
    milestones: list[SimpleNamespace],
    *,
    created_at: datetime = NOW,
    updated_at: datetime = NOW,
) -> SimpleNamespace:
    return SimpleNamespace(
        id=plan_id,
        title=f"Plan {plan_id}",
        milestones=milestones,
        created_at=created_at,
        updated_at=updated_at,
    )


def test_dashboard_rate_without_deadlines() -> None:
    plan = _plan(
        "p_1", [_milestone("m_1", "COMPLETED"), _milestone("m_2", "IN_PROGRESS")]
    )

    result = dashboard_stats([plan], now=NOW)

    assert result["completion_rate"] == 50
    assert result["due_today"] == 0
    assert result["overdue_milestones"] == 0
    assert result["upcoming_milestones"] == []


def test_dashboard_counts_plans_and_deadline_buckets() -> None:
    due_today = _milestone("m_today", deadline=datetime(2026, 3, 10, 9, 0, tzinfo=UTC))
    week_edge = _milestone(
        "m_week_edge", "IN_PROGRESS", deadline=datetime(2026, 3, 17, tzinfo=UTC)
    )
    after_week = _milestone(
        "m_after_week", "AT_RISK", deadline=datetime(2026, 3, 17, 0, 0, 1, tzinfo=UTC)
    )
    overdue = _milestone(
        "m_overdue", "DELAYED", deadline=datetime(2026, 3, 9, 23, 59, tzinfo=UTC)
    )
    done = _milestone("m_done", "COMPLETED", deadline=datetime(2026, 3, 1, tzinfo=UTC))
    active_plan = _plan(
        "p_active",
        [
            _milestone("m_root", children=[due_today, week_edge]),
            after_week,
            overdue,
            done,
        ],
    )
    finished_plan = _plan(
        "p_done",
        [_milestone("m_d1", "COMPLETED", children=[_milestone("m_d2", "COMPLETED")])],
    )
    empty_plan = _plan("p_empty", [])

    result = dashboard_stats([active_plan, finished_plan, empty_plan], now=NOW)

    assert result["total_plans"] == 3
    assert result["active_plans"] == 1
    assert result["completed_plans"] == 1
    assert result["total_milestones"] == 8
    assert result["completed_milestones"] == 3
    assert result["not_started_milestones"] == 2
    assert result["in_progress_milestones"] == 1
    assert result["at_risk_milestones"] == 1
    assert result["delayed_milestones"] == 1
    assert result["completion_rate"] == 38
    assert result["due_today"] == 1
    assert result["due_this_week"] == 2
    assert result["overdue_milestones"] == 1
    assert [item["id"] for item in result["upcoming_milestones"]] == [
        "m_overdue",
        "m_today",
        "m_week_edge",
        "m_after_week",
    ]
    assert set(result["upcoming_milestones"][0]) == {
        "id",
        "title",
        "description",
        "status",
        "deadline",
        "task_id",
    }


def test_dashboard_upcoming_is_capped_at_ten() -> None:
    milestones = [
        _milestone(f"m_{idx:02d}", deadline=NOW + timedelta(days=idx))
        for idx in range(12)
    ]
    result = dashboard_stats([_plan("p_1", milestones)], now=NOW)
    assert len(result["upcoming_milestones"]) == 10
    assert result["upcoming_milestones"][0]["id"] == "m_00"


def test_dashboard_uses_local_day_of_now() -> None:
    berlin_now = datetime(2026, 3, 10, 0, 30, tzinfo=ZoneInfo("Europe/Berlin"))
    # stored naive values are UTC: 23:45 UTC is 00:45 in Berlin on the 10th
    naive_deadline = datetime(2026, 3, 9, 23, 45)
    plan = _plan("p_1", [_milestone("m_1", deadline=naive_deadline)])

    result = dashboard_stats([plan], now=berlin_now)

    assert result["due_today"] == 1
    assert result["overdue_milestones"] == 0


def test_completion_rate_bounds_and_rounding() -> None:
    assert completion_rate(0, 0) == 0
    assert completion_rate(1, 8) == 13
    assert completion_rate(1, 3) == 33
    assert completion_rate(3, 3) == 100


def test_status_distribution_always_has_all_statuses() -> None:
    assert status_distribution([]) == {
        "NOT_STARTED": 0,
        "IN_PROGRESS": 0,
        "COMPLETED": 0,
        "AT_RISK": 0,
        "DELAYED": 0,
    }


def test_status_distribution_sums_to_total_milestones() -> None:
    plan = _plan(
        "p_1",
        [
            _milestone("m_1", "COMPLETED", children=[_milestone("m_2", "AT_RISK")]),
            _milestone("m_3", "DELAYED"),
        ],
    )
    distribution = status_distribution(collect_milestones([plan]))
    stats = dashboard_stats([plan], now=NOW)

    assert sum(distribution.values()) == stats["total_milestones"] == 3
    assert distribution["AT_RISK"] == 1


def test_trends_without_milestones_returns_empty_buckets() -> None:
    buckets = completion_trends([], now=NOW, days=7)

    assert len(buckets) == 7
    assert all(b["completed"] == 0 and b["total"] == 0 for b in buckets)
    dates = [date.fromisoformat(b["date"]) for b in buckets]
    assert dates[0] == date(2026, 3, 3)
    steps = {later - earlier for earlier, later in zip(dates, dates[1:])}
    assert steps == {timedelta(days=1)}


def test_trends_count_by_last_update_day() -> None:
    milestones = [
        _milestone("m_1", "COMPLETED", updated_at=datetime(2026, 3, 9, 10, tzinfo=UTC)),
        _milestone(
            "m_2", "IN_PROGRESS", updated_at=datetime(2026, 3, 9, 18, tzinfo=UTC)
        ),
        _milestone("m_3", "COMPLETED", updated_at=datetime(2026, 3, 4, tzinfo=UTC)),
        _milestone("m_today", "COMPLETED", updated_at=NOW),
        _milestone("m_old", "COMPLETED", updated_at=datetime(2026, 3, 2, tzinfo=UTC)),
    ]

    buckets = {b["date"]: b for b in completion_trends(milestones, now=NOW, days=7)}

    assert buckets["2026-03-09"] == {"date": "2026-03-09", "completed": 1, "total": 2}
    assert buckets["2026-03-04"] == {"date": "2026-03-04", "completed": 1, "total": 1}
    assert sum(b["total"] for b in buckets.values()) == 3


@pytest.mark.parametrize("days", [0, 366, -1, True])
def test_trends_reject_out_of_range_days(days: int) -> None:
    with pytest.raises(HierarchyInputError, match="days"):
        completion_trends([], now=NOW, days=days)


def test_activity_feed_cap_hit_by_plan_entry() -> None:
    older = _plan("p_old", [], updated_at=datetime(2026, 3, 1, tzinfo=UTC))
    newest = _plan(
        "p_new",
        [_milestone("m_1"), _milestone("m_2"), _milestone("m_3")],
        updated_at=datetime(2026, 3, 9, tzinfo=UTC),
    )

    feed = activity_feed([older, newest], limit=1)

    assert len(feed) == 1
    assert feed[0]["id"] == "task-p_new"
    assert feed[0]["type"] == "task_created"


def test_activity_feed_caps_before_sorting() -> None:
    newest = _plan(
        "p_new",
        [
            _milestone("m_b", "COMPLETED", updated_at=datetime(2026, 3, 7, tzinfo=UTC)),
            _milestone(
                "m_a", "IN_PROGRESS", updated_at=datetime(2026, 3, 8, tzinfo=UTC)
            ),
        ],
        created_at=datetime(2026, 3, 1, tzinfo=UTC),
        updated_at=datetime(2026, 3, 9, tzinfo=UTC),
    )
    older = _plan(
        "p_old",
        [],
        created_at=datetime(2026, 3, 5, tzinfo=UTC),
        updated_at=datetime(2026, 3, 6, tzinfo=UTC),
    )

    feed = activity_feed([older, newest], limit=3)

    assert [item["id"] for item in feed] == [
        "milestone-m_a",
        "milestone-m_b",
        "task-p_new",
    ]
    assert [item["type"] for item in feed] == [
        "milestone_started",
        "milestone_completed",
        "task_created",
    ]
    assert feed[0]["description"] == 'Started milestone "Milestone m_a"'
    assert feed[0]["task_id"] == "p_new"


def test_activity_feed_includes_nested_milestones() -> None:
    child = _milestone("m_child", "AT_RISK")
    plan = _plan("p_1", [_milestone("m_root", children=[child])])

    feed = activity_feed([plan], limit=10)

    assert {item["id"] for item in feed} == {
        "task-p_1",
        "milestone-m_root",
        "milestone-m_child",
    }
    child_entry = next(item for item in feed if item["id"] == "milestone-m_child")
    assert child_entry["type"] == "milestone_updated"


@pytest.mark.parametrize("limit", [0, 51])
def test_activity_feed_rejects_out_of_range_limit(limit: int) -> None:
    with pytest.raises(HierarchyInputError, match="limit"):
        activity_feed([], limit=limit)


@pytest.fixture()
def berlin_server_zone(monkeypatch: pytest.MonkeyPatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "Europe/Berlin")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_trends_use_local_rules_across_dst_change(berlin_server_zone) -> None:
    # server-local now in CEST; 22:30 UTC on Mar 20 is 23:30 CET that day
    now = datetime(2026, 4, 10, 12, 0)
    milestone = _milestone(
        "m_1", "COMPLETED", updated_at=datetime(2026, 3, 20, 22, 30)
    )

    buckets = {
        b["date"]: b for b in completion_trends([milestone], now=now, days=30)
    }

    assert buckets["2026-03-20"] == {"date": "2026-03-20", "completed": 1, "total": 1}
    assert buckets["2026-03-21"]["total"] == 0


def test_dashboard_local_day_across_dst_change(berlin_server_zone) -> None:
    now = datetime(2026, 3, 30, 9, 0)
    # 22:30 UTC on Mar 29 is 00:30 CEST on Mar 30; 22:30 UTC on Mar 28 is
    # 23:30 CET on Mar 28
    today = _milestone("m_today", deadline=datetime(2026, 3, 29, 22, 30))
    late = _milestone("m_late", deadline=datetime(2026, 3, 28, 22, 30))

    result = dashboard_stats([_plan("p_1", [today, late])], now=now)

    assert result["due_today"] == 1
    assert result["overdue_milestones"] == 1
    assert result["due_this_week"] == 1
