"""Plain-text rendering for the issues list and the plan report."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from .categories import CategoryTable
from .forecast import PlanSummary
from .models import Comment, Issue, WeekBucket
from .views import ViewResult, priority_label

BAR_WIDTH = 20


def relative_age(when: datetime, now: datetime | None = None) -> str:
    now = now or datetime.now(tz=timezone.utc)
    days = (now - when).days
    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    return when.date().isoformat()


def progress_bar(pct: int, width: int = BAR_WIDTH) -> str:
    filled = max(0, min(width, round(width * pct / 100)))
    return "[" + "#" * filled + "." * (width - filled) + "]"


def format_issue_line(issue: Issue, now: datetime | None = None) -> str:
    marker = "o" if issue.state == "open" else "x"
    badge = priority_label(issue.labels)
    others = [l.name for l in issue.labels if l is not badge][:3]
    parts = [f"{marker} #{issue.number} {issue.title}"]
    if badge is not None:
        parts.append(f"[{badge.name}]")
    if others:
        parts.append("(" + ", ".join(others) + ")")
    parts.append(f"- {relative_age(issue.created_at, now)}")
    return " ".join(parts)


def format_view(
    result: ViewResult,
    categories: CategoryTable,
    active_category: str,
    selected: Sequence[str] = (),
    now: datetime | None = None,
) -> list[str]:
    tabs = []
    for category in categories:
        name = f"{category.label} ({result.tab_counts.get(category.id, 0)})"
        tabs.append(f"*{name}*" if category.id == active_category else name)
    stats = result.stats
    lines = [
        " | ".join(tabs),
        f"open={stats.open} closed={stats.closed} critical={stats.critical} total={stats.total}",
    ]
    if result.available_facets:
        facets = ", ".join(
            ("+" if f.name in selected else "") + f"{f.name}:{f.count}"
            for f in result.available_facets
        )
        lines.append(f"labels: {facets}")
    count = len(result.filtered_sorted)
    lines.append(f"{count} issue{'' if count == 1 else 's'}")
    lines.extend(format_issue_line(issue, now) for issue in result.filtered_sorted)
    return lines


def format_issue_detail(issue: Issue, comments: Sequence[Comment]) -> list[str]:
    lines = [
        f"#{issue.number} {issue.title} [{issue.state}]",
        f"by {issue.user.login} on {issue.created_at.date().isoformat()}  {issue.html_url}",
    ]
    if issue.labels:
        lines.append("labels: " + ", ".join(issue.label_names))
    lines.append("")
    lines.append(issue.body or "(no description)")
    if comments:
        lines.append("")
        lines.append(f"{len(comments)} comment{'' if len(comments) == 1 else 's'}")
        for comment in comments:
            lines.append(f"--- {comment.user.login} on {comment.created_at.date().isoformat()}")
            lines.append(comment.body)
    return lines


def format_plan(summary: PlanSummary, current: WeekBucket | None = None) -> list[str]:
    lines = [
        f"Overall progress: {summary.overall_completion_percent}% "
        f"({summary.total_completed}/{summary.total_planned}) "
        f"{progress_bar(summary.overall_completion_percent)}",
        "",
        "By category:",
    ]
    for cat in summary.by_category:
        lines.append(f"  {cat.name:<12} {cat.completed:>3}/{cat.total:<3} {cat.percent:>3}%")
    lines.append(
        "By priority: "
        + ", ".join(f"{tier}={count}" for tier, count in summary.by_priority.items())
    )
    lines.append("")
    lines.append("Weeks:")
    for week in summary.weeks:
        flag = "*" if current is not None and week.bucket.id == current.id else " "
        lines.append(
            f" {flag}{week.bucket.label:<8} {week.completed_count:>3}/{week.total_count:<3} done"
            f"  forecast {week.cumulative_forecast_percent:>3}% "
            f"{progress_bar(week.cumulative_forecast_percent)}"
        )
    return lines


__all__ = [
    "relative_age",
    "progress_bar",
    "format_issue_line",
    "format_view",
    "format_issue_detail",
    "format_plan",
]
