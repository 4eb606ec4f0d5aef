"""Weekly plan forecasting.

Given the ordered week buckets and the items scheduled in each, compute
per-week completion and the cumulative forecast: the share of all planned
work that would be done if every item scheduled up to and including a week
were finished. Aggregates cover the whole plan: totals, per-category
progress and a priority-tier breakdown.

All functions are pure and degrade to zeros on empty input.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date

from .categories import DEFAULT_CATEGORIES, CategoryTable
from .models import ScheduledItem, WeekBucket

PRIORITY_TIERS = ("critical", "high", "medium", "low")
_TIER_PREFIXES = (("crit", "critical"), ("high", "high"), ("med", "medium"))

WeeklyItems = Mapping[str, Sequence[ScheduledItem]]


def percent(part: int, whole: int) -> int:
    """Half-up rounded percentage; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return math.floor(100 * part / whole + 0.5)


def priority_tier(priority: str | None) -> str:
    value = (priority or "").lower()
    for prefix, tier in _TIER_PREFIXES:
        if value.startswith(prefix):
            return tier
    return "low"


@dataclass(frozen=True)
class BucketForecast:
    bucket: WeekBucket
    completed_count: int
    total_count: int
    completion_ratio: float
    cumulative_forecast_percent: int

    @property
    def completion_percent(self) -> int:
        return percent(self.completed_count, self.total_count)


@dataclass(frozen=True)
class CategoryProgress:
    id: str
    name: str
    color: str | None
    completed: int
    total: int

    @property
    def percent(self) -> int:
        return percent(self.completed, self.total)


@dataclass(frozen=True)
class PlanSummary:
    weeks: list[BucketForecast] = field(default_factory=list)
    total_planned: int = 0
    total_completed: int = 0
    overall_completion_percent: int = 0
    by_category: list[CategoryProgress] = field(default_factory=list)
    by_priority: dict[str, int] = field(default_factory=dict)


def _items_for(weekly_items: WeeklyItems, bucket: WeekBucket) -> Sequence[ScheduledItem]:
    return weekly_items.get(bucket.id) or ()


def forecast(buckets: Sequence[WeekBucket], weekly_items: WeeklyItems) -> list[BucketForecast]:
    totals = [len(_items_for(weekly_items, b)) for b in buckets]
    grand_total = sum(totals)
    result: list[BucketForecast] = []
    running = 0
    for bucket, total in zip(buckets, totals):
        completed = sum(1 for item in _items_for(weekly_items, bucket) if item.closed)
        running += total
        result.append(
            BucketForecast(
                bucket=bucket,
                completed_count=completed,
                total_count=total,
                completion_ratio=completed / total if total else 0.0,
                cumulative_forecast_percent=percent(running, grand_total),
            )
        )
    return result


def category_progress(
    items: Sequence[ScheduledItem], categories: CategoryTable = DEFAULT_CATEGORIES
) -> list[CategoryProgress]:
    completed = {c.id: 0 for c in categories.named}
    total = {c.id: 0 for c in categories.named}
    for item in items:
        # Items outside the table count toward overall totals only
        if item.category not in total:
            continue
        total[item.category] += 1
        if item.closed:
            completed[item.category] += 1
    return [
        CategoryProgress(
            id=c.id, name=c.label, color=c.color, completed=completed[c.id], total=total[c.id]
        )
        for c in categories.named
    ]


def priority_breakdown(items: Sequence[ScheduledItem]) -> dict[str, int]:
    counts = dict.fromkeys(PRIORITY_TIERS, 0)
    for item in items:
        counts[priority_tier(item.priority)] += 1
    return counts


def summarize_plan(
    buckets: Sequence[WeekBucket],
    weekly_items: WeeklyItems,
    categories: CategoryTable = DEFAULT_CATEGORIES,
) -> PlanSummary:
    items = [item for b in buckets for item in _items_for(weekly_items, b)]
    total_completed = sum(1 for item in items if item.closed)
    return PlanSummary(
        weeks=forecast(buckets, weekly_items),
        total_planned=len(items),
        total_completed=total_completed,
        overall_completion_percent=percent(total_completed, len(items)),
        by_category=category_progress(items, categories),
        by_priority=priority_breakdown(items),
    )


def current_bucket(buckets: Sequence[WeekBucket], today: date) -> WeekBucket | None:
    for bucket in buckets:
        if bucket.contains(today):
            return bucket
    return None


__all__ = [
    "PRIORITY_TIERS",
    "BucketForecast",
    "CategoryProgress",
    "PlanSummary",
    "percent",
    "priority_tier",
    "forecast",
    "category_progress",
    "priority_breakdown",
    "summarize_plan",
    "current_bucket",
]
