"""Process-local view state.

The engines in ``views``, ``forecast`` and ``reconcile`` hold no state.
Sessions own the latest fetched snapshot and the current filters, and
re-run the engines from scratch whenever a view is requested.

Refreshes are pull-based. Issues and labels update independently; an issue
fetch failure is recorded on ``error`` (the previous issues stay in place)
so the caller can offer a retry; nothing is retried automatically. Overlapping refreshes are the caller's concern.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import replace
from datetime import date

from .categories import DEFAULT_CATEGORIES, CategoryTable, require_category_label
from .errors import FetchError, redact
from .forecast import PlanSummary, current_bucket, summarize_plan
from .logging import get_logger
from .models import Comment, Issue, WeekBucket
from .plan import Plan
from .reconcile import reconcile
from .store import IssueStore, Snapshot
from .views import (
    FilterState,
    SortOption,
    ViewResult,
    clear_label_filters,
    compute,
    select_category,
    toggle_label_filter,
)


class DashboardSession:
    def __init__(
        self,
        store: IssueStore,
        categories: CategoryTable = DEFAULT_CATEGORIES,
        state: FilterState | None = None,
    ):
        self.store = store
        self.categories = categories
        self.state = state or FilterState()
        self.snapshot = Snapshot()
        self.loading = False
        self.error: str | None = None
        self.logger = get_logger()

    # ---- fetching --------------------------------------------------------
    async def refresh(self) -> bool:
        """Re-fetch issues and labels; False when the issue list could not be loaded.

        A label catalog failure is logged and the previous catalog stays; it
        does not hold back freshly fetched issues.
        """
        self.loading = True
        try:
            snapshot = await self.store.fetch_snapshot(previous=self.snapshot)
        finally:
            self.loading = False
        self.snapshot = snapshot
        if snapshot.labels_error is not None:
            self.logger.warning(
                "label catalog refresh failed", error=redact(str(snapshot.labels_error))
            )
        if snapshot.issues_error is not None:
            self.error = redact(str(snapshot.issues_error))
            self.logger.log_error("dashboard refresh failed", error=str(snapshot.issues_error))
            return False
        self.error = None
        return True

    async def open_issue(self, number: int) -> tuple[Issue, list[Comment]]:
        issue, comments = await asyncio.gather(
            self.store.run_async(self.store.get_issue, number),
            self.store.run_async(self.store.list_comments, number),
        )
        return issue, comments

    # ---- filter state ----------------------------------------------------
    def select_category(self, category_id: str) -> None:
        self.state = select_category(self.state, category_id)

    def toggle_filter(self, label_name: str) -> None:
        self.state = toggle_label_filter(self.state, label_name)

    def clear_filters(self) -> None:
        self.state = clear_label_filters(self.state)

    def set_status(self, status_filter: str) -> None:
        self.state = replace(self.state, status_filter=status_filter)

    def set_search(self, query: str) -> None:
        self.state = replace(self.state, search_query=query)

    def set_sort(self, sort_option: SortOption | str) -> None:
        self.state = replace(self.state, sort_option=SortOption(sort_option))

    def view(self) -> ViewResult:
        return compute(
            self.snapshot.issues,
            self.state,
            categories=self.categories,
            catalog=self.snapshot.labels,
        )

    # ---- edits -------------------------------------------------------------
    async def create_issue(
        self, title: str, body: str | None = None, labels: Iterable[str] = ()
    ) -> Issue:
        issue = await self.store.run_async(self.store.create_issue, title, body, list(labels))
        await self.refresh()
        return issue

    async def save_issue(
        self, number: int, *, title: str, body: str | None, labels: Iterable[str]
    ) -> Issue:
        label_list = list(labels)
        require_category_label(label_list, self.categories)
        issue = await self.store.run_async(
            self.store.update_issue, number, title=title, body=body, labels=label_list
        )
        await self.refresh()
        return issue

    async def toggle_state(self, issue: Issue) -> Issue:
        target = "closed" if issue.state == "open" else "open"
        updated = await self.store.run_async(self.store.update_issue, issue.number, state=target)
        await self.refresh()
        return updated

    async def add_comment(self, number: int, body: str) -> Comment:
        return await self.store.run_async(self.store.create_comment, number, body)


class PlanSession:
    def __init__(
        self,
        store: IssueStore,
        plan: Plan,
        categories: CategoryTable = DEFAULT_CATEGORIES,
    ):
        self.store = store
        self.plan = plan
        self.categories = categories
        self.refreshing = False
        self.error: str | None = None
        self.logger = get_logger()

    async def refresh(self) -> bool:
        self.refreshing = True
        try:
            live = await self.store.run_async(self.store.list_issues, "all")
        except FetchError as exc:
            self.error = redact(str(exc))
            self.logger.log_error("plan refresh failed", error=str(exc))
            return False
        finally:
            self.refreshing = False
        self.plan = self.plan.with_items(reconcile(self.plan.items, live))
        self.error = None
        return True

    def report(self) -> PlanSummary:
        return summarize_plan(self.plan.buckets, self.plan.items, self.categories)

    def current_week(self, today: date | None = None) -> WeekBucket | None:
        return current_bucket(self.plan.buckets, today or date.today())


__all__ = ["DashboardSession", "PlanSession"]
