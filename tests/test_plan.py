from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from issuedeck.plan import PlanError, load_plan, parse_plan

PLAN_YAML = """
weeks:
  - {id: dec-08, label: "Dec 8", start_date: 2024-12-08, end_date: 2024-12-14}
  - {id: dec-01, label: "Dec 1", start_date: 2024-12-01, end_date: 2024-12-07}
items:
  dec-01:
    - {number: 84, title: "Footer single type", category: strapi, priority: critical, status: closed}
    - {number: 85, title: "Cart totals", category: backend}
  dec-08:
    - {number: 90, title: "Hero", category: frontend, priority: medium}
"""


def test_load_plan_orders_weeks_and_fills_defaults(tmp_path: Path):
    path = tmp_path / "plan.yaml"
    path.write_text(PLAN_YAML, encoding="utf-8")

    plan = load_plan(path)

    assert [b.id for b in plan.buckets] == ["dec-01", "dec-08"]
    assert plan.buckets[0].start_date == date(2024, 12, 1)
    assert plan.buckets[1].label == "Dec 8"
    first, second = plan.items["dec-01"]
    assert first.closed and first.priority == "critical"
    assert second.status == "open"
    assert second.priority == "low"
    assert [i.number for i in plan.items["dec-08"]] == [90]


def test_weeks_without_items_get_empty_lists():
    plan = parse_plan({"weeks": [{"id": "w1", "start_date": "2024-12-01", "end_date": "2024-12-07"}]})

    assert plan.items == {"w1": []}
    assert plan.buckets[0].label == "w1"


@pytest.mark.parametrize(
    ("raw", "fragment"),
    [
        ([], "mapping"),
        ({"weeks": [{"start_date": "2024-12-01", "end_date": "2024-12-07"}]}, "needs an id"),
        ({"weeks": [{"id": "w1", "start_date": "soon", "end_date": "2024-12-07"}]}, "invalid date"),
        ({"weeks": [{"id": "w1", "start_date": "2024-12-07", "end_date": "2024-12-01"}]}, "before"),
        (
            {
                "weeks": [
                    {"id": "w1", "start_date": "2024-12-01", "end_date": "2024-12-07"},
                    {"id": "w1", "start_date": "2024-12-08", "end_date": "2024-12-14"},
                ]
            },
            "duplicate",
        ),
        ({"weeks": [], "items": {"w9": [{"number": 1}]}}, "unknown week"),
        (
            {
                "weeks": [{"id": "w1", "start_date": "2024-12-01", "end_date": "2024-12-07"}],
                "items": {"w1": [{"number": "1"}]},
            },
            "integer number",
        ),
        (
            {
                "weeks": [{"id": "w1", "start_date": "2024-12-01", "end_date": "2024-12-07"}],
                "items": {"w1": [{"number": True}]},
            },
            "integer number",
        ),
        (
            {
                "weeks": [{"id": "w1", "start_date": "2024-12-01", "end_date": "2024-12-07"}],
                "items": {"w1": [{"number": 1, "status": "done"}]},
            },
            "invalid status",
        ),
    ],
)
def test_malformed_plans_raise(raw, fragment: str):
    with pytest.raises(PlanError) as excinfo:
        parse_plan(raw)
    assert fragment in str(excinfo.value)


def test_missing_plan_file(tmp_path: Path):
    with pytest.raises(PlanError):
        load_plan(tmp_path / "absent.yaml")


def test_with_items_keeps_buckets():
    plan = parse_plan({"weeks": [{"id": "w1", "start_date": "2024-12-01", "end_date": "2024-12-07"}]})

    updated = plan.with_items({"w1": []})

    assert updated.buckets == plan.buckets
    assert updated is not plan


def test_yaml_timestamps_become_plain_dates(tmp_path: Path):
    path = tmp_path / "plan.yaml"
    path.write_text(
        "weeks:\n"
        "  - {id: w1, start_date: 2024-12-01 10:00:00, end_date: 2024-12-07 18:30:00}\n",
        encoding="utf-8",
    )

    plan = load_plan(path)

    week = plan.buckets[0]
    assert type(week.start_date) is date
    assert week.end_date == date(2024, 12, 7)
    assert week.contains(date(2024, 12, 7))
