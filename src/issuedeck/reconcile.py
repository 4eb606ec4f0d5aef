"""Reconcile scheduled plan items against the live tracker.

Each scheduled item whose number appears among the live issues takes the
live issue's state as its status. Items with no live counterpart keep
whatever status they had. Order, membership and every other field are left
alone, so applying the routine twice with the same live data is the same as
applying it once.

The routine only copies the source of truth; it never infers a transition.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .forecast import WeeklyItems
from .logging import get_logger
from .models import ISSUE_STATES, Issue, ScheduledItem


def _number_and_state(issue: Issue | Mapping[str, Any]) -> tuple[int | None, str | None]:
    if isinstance(issue, Issue):
        return issue.number, issue.state
    number = issue.get("number")
    state = issue.get("state")
    return (
        number if isinstance(number, int) else None,
        state if isinstance(state, str) else None,
    )


def live_state_index(live_issues: Iterable[Issue | Mapping[str, Any]]) -> dict[int, str]:
    index: dict[int, str] = {}
    for issue in live_issues:
        number, state = _number_and_state(issue)
        if number is not None and state in ISSUE_STATES:
            index[number] = state
    return index


def reconcile(
    weekly_items: WeeklyItems, live_issues: Iterable[Issue | Mapping[str, Any]]
) -> dict[str, list[ScheduledItem]]:
    """Return a new bucket-id -> items mapping with live statuses applied."""
    index = live_state_index(live_issues)
    updated: dict[str, list[ScheduledItem]] = {}
    changed = 0
    for bucket_id, items in weekly_items.items():
        merged: list[ScheduledItem] = []
        for item in items:
            live = index.get(item.number)
            if live is not None and live != item.status:
                changed += 1
                item = item.with_status(live)
            merged.append(item)
        updated[bucket_id] = merged
    get_logger().log_operation(
        "plan_reconcile", live_count=len(index), changed_count=changed
    )
    return updated


__all__ = ["reconcile", "live_state_index"]
