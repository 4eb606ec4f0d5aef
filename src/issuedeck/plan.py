"""Weekly delivery plan loaded from YAML.

Expected shape::

    weeks:
      - {id: dec-01, label: "Dec 1", start_date: 2024-12-01, end_date: 2024-12-07}
    items:
      dec-01:
        - {number: 84, title: "Footer single type", category: strapi,
           priority: critical, status: closed}

Items are pinned to exactly one week when the file is authored; only their
status changes afterwards (see ``reconcile``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from .models import ISSUE_STATES, ScheduledItem, WeekBucket


class PlanError(RuntimeError):
    """Raised when a plan file is missing or malformed."""


@dataclass
class Plan:
    buckets: list[WeekBucket] = field(default_factory=list)
    items: dict[str, list[ScheduledItem]] = field(default_factory=dict)

    def with_items(self, items: dict[str, list[ScheduledItem]]) -> Plan:
        return Plan(buckets=list(self.buckets), items=items)


def _as_date(value: Any, where: str) -> date:
    # YAML timestamps load as datetime, which is also a date
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise PlanError(f"{where}: invalid date {value!r}") from exc


def _parse_week(raw: Any, index: int) -> WeekBucket:
    if not isinstance(raw, dict) or not raw.get("id"):
        raise PlanError(f"weeks[{index}] needs an id")
    week_id = str(raw["id"])
    start = _as_date(raw.get("start_date"), f"week {week_id}")
    end = _as_date(raw.get("end_date"), f"week {week_id}")
    if end < start:
        raise PlanError(f"week {week_id}: end_date before start_date")
    return WeekBucket(id=week_id, label=str(raw.get("label") or week_id), start_date=start, end_date=end)


def _parse_item(raw: Any, week_id: str) -> ScheduledItem:
    number = raw.get("number") if isinstance(raw, dict) else None
    if not isinstance(number, int) or isinstance(number, bool):
        raise PlanError(f"week {week_id}: item needs an integer number: {raw!r}")
    status = str(raw.get("status") or "open")
    if status not in ISSUE_STATES:
        raise PlanError(f"week {week_id}: item #{number} has invalid status {status!r}")
    return ScheduledItem(
        number=number,
        title=str(raw.get("title") or ""),
        category=str(raw.get("category") or ""),
        priority=str(raw.get("priority") or "low"),
        status=status,
    )


def parse_plan(raw: Any) -> Plan:
    if not isinstance(raw, dict):
        raise PlanError("plan must be a mapping with 'weeks' and 'items'")
    weeks_raw = raw.get("weeks") or []
    if not isinstance(weeks_raw, list):
        raise PlanError("'weeks' must be a list")
    buckets = [_parse_week(entry, idx) for idx, entry in enumerate(weeks_raw)]
    ids = [b.id for b in buckets]
    if len(set(ids)) != len(ids):
        raise PlanError("duplicate week id")
    # Keep chronological order regardless of authoring order
    buckets.sort(key=lambda b: b.start_date)

    items_raw = raw.get("items") or {}
    if not isinstance(items_raw, dict):
        raise PlanError("'items' must map week ids to lists")
    items: dict[str, list[ScheduledItem]] = {b.id: [] for b in buckets}
    for week_id, entries in items_raw.items():
        week_id = str(week_id)
        if week_id not in items:
            raise PlanError(f"items scheduled under unknown week {week_id!r}")
        items[week_id] = [_parse_item(entry, week_id) for entry in entries or []]
    return Plan(buckets=buckets, items=items)


def load_plan(path: str | Path) -> Plan:
    p = Path(path)
    if not p.exists():
        raise PlanError(f"Plan file not found: {p}")
    return parse_plan(yaml.safe_load(p.read_text(encoding="utf-8")) or {})


__all__ = ["Plan", "PlanError", "parse_plan", "load_plan"]
