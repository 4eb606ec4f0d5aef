"""Category table: each named category is backed by one reserved label.

The table is the single place that knows which label names are reserved.
Category membership, tab counts, facet exclusion and the save-time
classification check all consult it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from .errors import ValidationError
from .models import Issue

ALL_CATEGORY_ID = "all"


@dataclass(frozen=True)
class Category:
    id: str
    label: str
    label_name: str | None = None
    color: str | None = None

    @property
    def is_all(self) -> bool:
        return self.label_name is None

    def contains(self, issue: Issue) -> bool:
        if self.label_name is None:
            return True
        return issue.has_label(self.label_name)


ALL_CATEGORY = Category(id=ALL_CATEGORY_ID, label="All")


class CategoryTable:
    """Ordered categories, with ``all`` always first."""

    def __init__(self, categories: Iterable[Category]):
        named: list[Category] = []
        seen_ids: set[str] = {ALL_CATEGORY_ID}
        seen_labels: set[str] = set()
        for category in categories:
            if category.label_name is None:
                raise ValueError(f"category '{category.id}' has no reserved label name")
            if category.id in seen_ids:
                raise ValueError(f"duplicate category id '{category.id}'")
            if category.label_name in seen_labels:
                raise ValueError(f"duplicate reserved label '{category.label_name}'")
            seen_ids.add(category.id)
            seen_labels.add(category.label_name)
            named.append(category)
        self._categories: tuple[Category, ...] = (ALL_CATEGORY, *named)
        self._by_id = {c.id: c for c in self._categories}
        self.reserved_labels: frozenset[str] = frozenset(seen_labels)

    def __iter__(self) -> Iterator[Category]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    @property
    def named(self) -> Sequence[Category]:
        return self._categories[1:]

    def get(self, category_id: str) -> Category:
        """Resolve an id; unknown ids fall back to ``all``."""
        return self._by_id.get(category_id, ALL_CATEGORY)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._by_id

    def is_reserved(self, label_name: str) -> bool:
        return label_name in self.reserved_labels


DEFAULT_CATEGORIES = CategoryTable(
    [
        Category(id="backend", label="Backend", label_name="medusa-backend", color="#E11D48"),
        Category(id="frontend", label="Frontend", label_name="medusa-frontend", color="#0E8A16"),
        Category(id="strapi", label="Strapi", label_name="strapi-cms", color="#4945FF"),
    ]
)


def require_category_label(
    label_names: Iterable[str], categories: CategoryTable = DEFAULT_CATEGORIES
) -> None:
    """Reject a label set that carries no reserved category label."""
    if any(categories.is_reserved(name) for name in label_names):
        return
    choices = ", ".join(c.label for c in categories.named)
    raise ValidationError(f"Please select at least one category ({choices})")


__all__ = [
    "ALL_CATEGORY_ID",
    "ALL_CATEGORY",
    "Category",
    "CategoryTable",
    "DEFAULT_CATEGORIES",
    "require_category_label",
]
