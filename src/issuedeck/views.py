"""Derived view engine for the issues list.

``compute`` turns the raw issue collection plus the current ``FilterState``
into everything the list view shows. Stages run in a fixed order, each
consuming the previous stage's output:

1. category scoping
2. per-category tab counts (over the full collection)
3. status filter
4. label filter (AND: every selected label must be present)
5. facet tally over the result of 1-4
6. free-text search
7. stable sort
8. stats (over the category-scoped subset, not the filtered one)

Everything here is a pure function of its inputs. Nothing is cached and the
source issues are never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

from .categories import ALL_CATEGORY_ID, DEFAULT_CATEGORIES, CategoryTable
from .models import Issue, Label

STATUS_FILTERS = ("all", "open", "closed")
CRITICAL_LABEL = "critical"
PRIORITY_MARKER = "priority"


class SortOption(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    NUMBER_ASC = "number-asc"
    NUMBER_DESC = "number-desc"
    ALPHA_ASC = "alpha-asc"
    ALPHA_DESC = "alpha-desc"


@dataclass(frozen=True)
class FilterState:
    """Per-session list filters. Not persisted."""

    active_category: str = ALL_CATEGORY_ID
    status_filter: str = "all"
    selected_labels: tuple[str, ...] = ()
    search_query: str = ""
    sort_option: SortOption = SortOption.NEWEST

    def __post_init__(self) -> None:
        if self.status_filter not in STATUS_FILTERS:
            raise ValueError(f"unknown status filter '{self.status_filter}'")
        # Accept plain strings for the sort key
        object.__setattr__(self, "sort_option", SortOption(self.sort_option))
        object.__setattr__(self, "selected_labels", tuple(dict.fromkeys(self.selected_labels)))


def select_category(state: FilterState, category_id: str) -> FilterState:
    """Switch tabs. Label filters never carry across categories."""
    return replace(state, active_category=category_id, selected_labels=())


def toggle_label_filter(state: FilterState, label_name: str) -> FilterState:
    if label_name in state.selected_labels:
        remaining = tuple(name for name in state.selected_labels if name != label_name)
        return replace(state, selected_labels=remaining)
    return replace(state, selected_labels=(*state.selected_labels, label_name))


def clear_label_filters(state: FilterState) -> FilterState:
    return replace(state, selected_labels=())


@dataclass(frozen=True)
class Facet:
    name: str
    count: int
    label: Label | None = None


@dataclass(frozen=True)
class IssueStats:
    open: int = 0
    closed: int = 0
    critical: int = 0
    total: int = 0


@dataclass(frozen=True)
class ViewResult:
    tab_counts: dict[str, int] = field(default_factory=dict)
    issues_in_category: list[Issue] = field(default_factory=list)
    available_facets: list[Facet] = field(default_factory=list)
    filtered_sorted: list[Issue] = field(default_factory=list)
    stats: IssueStats = field(default_factory=IssueStats)


def is_priority_label(name: str) -> bool:
    # ``critical`` or any ``*priority*`` tier, all tiers together
    return name == CRITICAL_LABEL or PRIORITY_MARKER in name


def priority_label(labels: Iterable[Label]) -> Label | None:
    """First label that reads as a priority badge, if any."""
    for label in labels:
        if is_priority_label(label.name):
            return label
    return None


def scope_to_category(
    issues: Sequence[Issue], category_id: str, categories: CategoryTable = DEFAULT_CATEGORIES
) -> list[Issue]:
    category = categories.get(category_id)
    return [issue for issue in issues if category.contains(issue)]


def count_tabs(
    issues: Sequence[Issue], categories: CategoryTable = DEFAULT_CATEGORIES
) -> dict[str, int]:
    return {
        category.id: sum(1 for issue in issues if category.contains(issue))
        for category in categories
    }


def filter_by_status(issues: Iterable[Issue], status_filter: str) -> list[Issue]:
    if status_filter == "all":
        return list(issues)
    return [issue for issue in issues if issue.state == status_filter]


def filter_by_labels(issues: Iterable[Issue], selected: Sequence[str]) -> list[Issue]:
    if not selected:
        return list(issues)
    return [issue for issue in issues if all(issue.has_label(name) for name in selected)]


def tally_facets(
    issues: Iterable[Issue],
    selected: Sequence[str],
    categories: CategoryTable = DEFAULT_CATEGORIES,
    catalog: Iterable[Label] = (),
) -> list[Facet]:
    counts: dict[str, int] = {}
    first_seen: dict[str, Label] = {}
    for issue in issues:
        for label in issue.labels:
            if categories.is_reserved(label.name):
                continue
            counts[label.name] = counts.get(label.name, 0) + 1
            first_seen.setdefault(label.name, label)

    # Selected labels stay visible even when nothing left carries them.
    known = {label.name: label for label in catalog}
    for name in selected:
        if name not in counts and not categories.is_reserved(name):
            counts[name] = 0
            if name in known:
                first_seen[name] = known[name]

    facets = [
        Facet(name=name, count=count, label=first_seen.get(name))
        for name, count in counts.items()
        if count > 0 or name in selected
    ]
    # sorted() is stable, so ties keep first-seen order
    return sorted(facets, key=lambda facet: facet.count, reverse=True)


def matches_query(issue: Issue, query: str) -> bool:
    if query in issue.title.lower():
        return True
    if issue.body is not None and query in issue.body.lower():
        return True
    if any(query in label.name.lower() for label in issue.labels):
        return True
    return query in str(issue.number)


def search(issues: Iterable[Issue], search_query: str) -> list[Issue]:
    if not search_query.strip():
        return list(issues)
    query = search_query.lower()
    return [issue for issue in issues if matches_query(issue, query)]


def _title_key(issue: Issue) -> tuple[str, str]:
    return (issue.title.casefold(), issue.title)


def sort_issues(issues: Iterable[Issue], sort_option: SortOption | str) -> list[Issue]:
    option = SortOption(sort_option)
    if option is SortOption.NEWEST:
        return sorted(issues, key=lambda i: i.created_at, reverse=True)
    if option is SortOption.OLDEST:
        return sorted(issues, key=lambda i: i.created_at)
    if option is SortOption.NUMBER_ASC:
        return sorted(issues, key=lambda i: i.number)
    if option is SortOption.NUMBER_DESC:
        return sorted(issues, key=lambda i: i.number, reverse=True)
    if option is SortOption.ALPHA_ASC:
        return sorted(issues, key=_title_key)
    return sorted(issues, key=_title_key, reverse=True)


def compute_stats(issues: Sequence[Issue]) -> IssueStats:
    return IssueStats(
        open=sum(1 for i in issues if i.state == "open"),
        closed=sum(1 for i in issues if i.state == "closed"),
        critical=sum(1 for i in issues if any(is_priority_label(l.name) for l in i.labels)),
        total=len(issues),
    )


def compute(
    issues: Sequence[Issue],
    state: FilterState,
    *,
    categories: CategoryTable = DEFAULT_CATEGORIES,
    catalog: Iterable[Label] = (),
) -> ViewResult:
    """Derive the full list view from scratch."""
    in_category = scope_to_category(issues, state.active_category, categories)
    tab_counts = count_tabs(issues, categories)
    narrowed = filter_by_status(in_category, state.status_filter)
    narrowed = filter_by_labels(narrowed, state.selected_labels)
    facets = tally_facets(narrowed, state.selected_labels, categories, catalog)
    found = search(narrowed, state.search_query)
    return ViewResult(
        tab_counts=tab_counts,
        issues_in_category=in_category,
        available_facets=facets,
        filtered_sorted=sort_issues(found, state.sort_option),
        stats=compute_stats(in_category),
    )


def suggest_labels(
    labels: Iterable[Label], query: str, selected: Iterable[str] = ()
) -> list[Label]:
    """Catalog labels matching ``query`` that are not already chosen."""
    if not query.strip():
        return []
    needle = query.lower()
    taken = set(selected)
    return [l for l in labels if needle in l.name.lower() and l.name not in taken]


__all__ = [
    "STATUS_FILTERS",
    "SortOption",
    "FilterState",
    "Facet",
    "IssueStats",
    "ViewResult",
    "select_category",
    "toggle_label_filter",
    "clear_label_filters",
    "priority_label",
    "is_priority_label",
    "scope_to_category",
    "count_tabs",
    "filter_by_status",
    "filter_by_labels",
    "tally_facets",
    "search",
    "sort_issues",
    "compute_stats",
    "compute",
    "suggest_labels",
]
