from __future__ import annotations

import json

from fakes import issue_payload

from issuedeck.logging import configure_logging
from issuedeck.models import Issue, ScheduledItem
from issuedeck.reconcile import live_state_index, reconcile


def _item(number: int, status: str = "open", **kw) -> ScheduledItem:
    return ScheduledItem(
        number=number,
        title=kw.get("title", f"Task {number}"),
        category=kw.get("category", "backend"),
        priority=kw.get("priority", "high"),
        status=status,
    )


PLAN = {
    "w1": [_item(84, "open"), _item(85, "closed"), _item(86, "open")],
    "w2": [_item(90, "open"), _item(91, "open")],
}


def _live(*pairs: tuple[int, str]) -> list[Issue]:
    return [Issue.from_api(issue_payload(n, state=s)) for n, s in pairs]


def test_statuses_follow_live_issues():
    live = _live((84, "closed"), (85, "open"), (90, "closed"))

    result = reconcile(PLAN, live)

    assert [i.status for i in result["w1"]] == ["closed", "open", "open"]
    assert [i.status for i in result["w2"]] == ["closed", "open"]


def test_unmatched_items_keep_prior_status():
    result = reconcile(PLAN, _live((999, "closed")))

    assert result == {k: list(v) for k, v in PLAN.items()}
    assert result["w1"][1].status == "closed"


def test_order_membership_and_fields_preserved():
    result = reconcile(PLAN, _live((86, "closed"), (84, "closed")))

    assert list(result) == ["w1", "w2"]
    for bucket_id, items in PLAN.items():
        merged = result[bucket_id]
        assert [i.number for i in merged] == [i.number for i in items]
        for before, after in zip(items, merged):
            assert (before.title, before.category, before.priority) == (
                after.title,
                after.category,
                after.priority,
            )


def test_reconcile_is_idempotent():
    live = _live((84, "closed"), (85, "open"), (91, "closed"))

    once = reconcile(PLAN, live)
    twice = reconcile(once, live)

    assert once == twice


def test_input_plan_is_not_mutated():
    reconcile(PLAN, _live((84, "closed")))

    assert PLAN["w1"][0].status == "open"


def test_accepts_raw_issue_dicts_and_skips_junk():
    live = [
        {"number": 90, "state": "closed"},
        {"number": "91", "state": "closed"},
        {"number": 84, "state": "merged"},
        {"title": "no number"},
    ]

    assert live_state_index(live) == {90: "closed"}
    result = reconcile(PLAN, live)
    assert [i.status for i in result["w2"]] == ["closed", "open"]
    assert result["w1"][0].status == "open"


def test_empty_inputs():
    assert reconcile({}, _live((1, "closed"))) == {}
    assert reconcile(PLAN, []) == {k: list(v) for k, v in PLAN.items()}


def test_reconcile_logs_change_count(capsys):
    configure_logging(json_logging=True, level="INFO")

    reconcile(PLAN, _live((84, "closed"), (85, "closed")))

    lines = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line]
    entry = next(e for e in lines if e.get("operation") == "plan_reconcile")
    assert entry["changed_count"] == 1
    assert entry["live_count"] == 2
