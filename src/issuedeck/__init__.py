"""issuedeck - issue dashboard and weekly delivery plan over a GitHub repository.

High-level public API:

from issuedeck import IssueStore, FilterState, compute, load_config

cfg = load_config()
store = IssueStore.from_config(cfg)
view = compute(store.list_issues("all"), FilterState(active_category="backend"))
print(view.stats)

Plan forecasting works offline on a YAML plan:

from issuedeck import load_plan, reconcile, summarize_plan

plan = load_plan("plan.yaml")
items = reconcile(plan.items, store.list_issues("all"))
summary = summarize_plan(plan.buckets, items)
"""

from __future__ import annotations

from .categories import DEFAULT_CATEGORIES, Category, CategoryTable
from .config import DeckConfig, load_config
from .errors import FetchError, ValidationError
from .forecast import forecast, summarize_plan
from .models import Comment, Issue, Label, ScheduledItem, User, WeekBucket
from .plan import Plan, load_plan
from .reconcile import reconcile
from .store import IssueStore
from .views import FilterState, SortOption, compute

# Version constant (sync manually with pyproject)
__version__ = "0.3.0"

__all__ = [
    "Category",
    "CategoryTable",
    "DEFAULT_CATEGORIES",
    "DeckConfig",
    "load_config",
    "FetchError",
    "ValidationError",
    "forecast",
    "summarize_plan",
    "Comment",
    "Issue",
    "Label",
    "ScheduledItem",
    "User",
    "WeekBucket",
    "Plan",
    "load_plan",
    "reconcile",
    "IssueStore",
    "FilterState",
    "SortOption",
    "compute",
    "__version__",
]
