"""Typed containers for tracker entities and the weekly plan.

Tracker payloads arrive as plain JSON dicts; ``from_api`` builds the typed
form and ``to_dict`` gives back a JSON-able dict in the tracker's shape so
the relay can pass objects through unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any

ISSUE_STATES = ("open", "closed")


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class Label:
    id: int
    name: str
    color: str = "ededed"
    description: str | None = None

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> Label:
        return cls(
            id=int(raw.get("id") or 0),
            name=str(raw.get("name") or ""),
            color=str(raw.get("color") or "ededed"),
            description=raw.get("description"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "description": self.description,
        }


@dataclass(frozen=True)
class User:
    login: str
    avatar_url: str = ""

    @classmethod
    def from_api(cls, raw: dict[str, Any] | None) -> User:
        raw = raw or {}
        return cls(login=str(raw.get("login") or ""), avatar_url=str(raw.get("avatar_url") or ""))

    def to_dict(self) -> dict[str, Any]:
        return {"login": self.login, "avatar_url": self.avatar_url}


@dataclass(frozen=True)
class Issue:
    id: int
    number: int
    title: str
    body: str | None
    state: str
    labels: tuple[Label, ...] = ()
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))
    user: User = field(default_factory=lambda: User(login=""))
    html_url: str = ""

    @property
    def label_names(self) -> list[str]:
        return [label.name for label in self.labels]

    def has_label(self, name: str) -> bool:
        return any(label.name == name for label in self.labels)

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> Issue:
        labels_any = raw.get("labels")
        labels: list[Label] = []
        if isinstance(labels_any, list):
            for entry in labels_any:
                if isinstance(entry, dict):
                    labels.append(Label.from_api(entry))
                elif isinstance(entry, str):
                    labels.append(Label(id=0, name=entry))
        return cls(
            id=int(raw.get("id") or 0),
            number=int(raw["number"]),
            title=str(raw.get("title") or ""),
            body=raw.get("body"),
            state=str(raw.get("state") or "open"),
            labels=tuple(labels),
            created_at=parse_timestamp(raw.get("created_at")),
            updated_at=parse_timestamp(raw.get("updated_at")),
            user=User.from_api(raw.get("user")),
            html_url=str(raw.get("html_url") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "number": self.number,
            "title": self.title,
            "body": self.body,
            "state": self.state,
            "labels": [label.to_dict() for label in self.labels],
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "user": self.user.to_dict(),
            "html_url": self.html_url,
        }


@dataclass(frozen=True)
class Comment:
    id: int
    body: str
    user: User
    created_at: datetime
    updated_at: datetime
    html_url: str = ""

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> Comment:
        return cls(
            id=int(raw.get("id") or 0),
            body=str(raw.get("body") or ""),
            user=User.from_api(raw.get("user")),
            created_at=parse_timestamp(raw.get("created_at")),
            updated_at=parse_timestamp(raw.get("updated_at")),
            html_url=str(raw.get("html_url") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "body": self.body,
            "user": self.user.to_dict(),
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "html_url": self.html_url,
        }


@dataclass(frozen=True)
class WeekBucket:
    """One calendar week of the delivery plan."""

    id: str
    label: str
    start_date: date
    end_date: date

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class ScheduledItem:
    """A planned unit of work pinned to a week; only ``status`` ever changes."""

    number: int
    title: str
    category: str
    priority: str
    status: str = "open"

    @property
    def closed(self) -> bool:
        return self.status == "closed"

    def with_status(self, status: str) -> ScheduledItem:
        if status == self.status:
            return self
        return replace(self, status=status)


__all__ = [
    "ISSUE_STATES",
    "Label",
    "User",
    "Issue",
    "Comment",
    "WeekBucket",
    "ScheduledItem",
    "parse_timestamp",
    "format_timestamp",
]
