"""Typed access to the issue tracker.

``IssueStore`` sits between callers and ``GitHubRestClient``:

- validates caller input up front and raises ``ValidationError`` before any
  request goes out;
- turns tracker failures into ``FetchError`` carrying the upstream status
  text;
- returns model objects instead of raw JSON.

Nothing is retried. Every failure reaches the caller as-is.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, TypeVar

import requests

from .config import DeckConfig
from .errors import FetchError, ValidationError
from .github_rest import UNSET, GitHubAPIError, GitHubRestClient
from .logging import StructuredLogger, get_logger
from .models import ISSUE_STATES, Comment, Issue, Label

T = TypeVar("T")

LIST_STATES = ("open", "closed", "all")


def parse_issue_number(value: Any) -> int:
    """Accept an int or a decimal string; anything else is a validation error."""
    if isinstance(value, bool):
        raise ValidationError("Invalid issue number")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError("Invalid issue number")


def _require_text(value: Any, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value


def _check_state(state: str | None, allowed: Iterable[str]) -> None:
    if state is not None and state not in allowed:
        raise ValidationError(f"Invalid state '{state}'")


def _label_list(labels: Any) -> list[str] | None:
    # A bare string is iterable too; it must not be split into one label per character
    if labels is None:
        return None
    if not isinstance(labels, (list, tuple)) or not all(isinstance(n, str) for n in labels):
        raise ValidationError("Labels must be a list of label names")
    return list(labels)


@dataclass(frozen=True)
class Snapshot:
    """Latest fetched issues and labels, as held by a view session.

    Each slice is fetched on its own. When one fetch fails, that slice keeps
    its previous value and the failure is kept in ``issues_error`` or
    ``labels_error``.
    """

    issues: list[Issue] = field(default_factory=list)
    labels: list[Label] = field(default_factory=list)
    issues_error: FetchError | None = field(default=None, compare=False)
    labels_error: FetchError | None = field(default=None, compare=False)


class IssueStore:
    def __init__(self, client: GitHubRestClient, logger: StructuredLogger | None = None):
        self.client = client
        self.logger = logger or get_logger()

    @classmethod
    def from_config(cls, cfg: DeckConfig) -> IssueStore:
        client = GitHubRestClient(
            token=cfg.github_token or "",
            repo=cfg.require_repo(),
            base_url=cfg.github_api_url,
            per_page=cfg.github_per_page,
            timeout=cfg.github_timeout,
        )
        return cls(client)

    @contextmanager
    def _upstream(self, operation: str, action: str, **kw: Any) -> Iterator[None]:
        with self.logger.timed_operation(operation, **kw):
            try:
                yield
            except GitHubAPIError as exc:
                text = exc.reason or str(exc.status or "")
                raise FetchError(
                    f"Failed to {action}: {text}".rstrip(": "),
                    status=exc.status,
                    status_text=text,
                ) from exc
            except requests.RequestException as exc:
                raise FetchError(f"Failed to {action}: {exc}", status_text=str(exc)) from exc

    def _call(self, operation: str, action: str, fn: Callable[[], T], **kw: Any) -> T:
        with self._upstream(operation, action, **kw):
            return fn()

    # ---- issues --------------------------------------------------------
    def list_issues(self, status: str = "all", label_filter: str | None = None) -> list[Issue]:
        _check_state(status, LIST_STATES)
        raw = self._call(
            "list_issues",
            "fetch issues",
            lambda: self.client.list_issues(state=status, labels=label_filter or None),
            state=status,
        )
        return [Issue.from_api(entry) for entry in raw]

    def get_issue(self, number: int | str) -> Issue:
        num = parse_issue_number(number)
        raw = self._call(
            "get_issue", "fetch issue", lambda: self.client.get_issue(number=num), issue_number=num
        )
        return Issue.from_api(raw)

    def create_issue(
        self, title: Any, body: str | None = None, labels: Sequence[str] | None = None
    ) -> Issue:
        _require_text(title, "Title is required")
        label_list = _label_list(labels)
        raw = self._call(
            "create_issue",
            "create issue",
            lambda: self.client.create_issue(title=title, body=body, labels=label_list),
        )
        issue = Issue.from_api(raw)
        self.logger.log_issue_action("created", issue.number)
        return issue

    def update_issue(
        self,
        number: int | str,
        *,
        title: str | None = None,
        body: Any = UNSET,
        state: str | None = None,
        labels: Sequence[str] | None = None,
    ) -> Issue:
        """Change only the fields passed; an explicit ``body=None`` clears the body."""
        num = parse_issue_number(number)
        _check_state(state, ISSUE_STATES)
        if title is not None:
            _require_text(title, "Title cannot be empty")
        if body is not UNSET and body is not None and not isinstance(body, str):
            raise ValidationError("Body must be a string")
        label_list = _label_list(labels)
        raw = self._call(
            "update_issue",
            "update issue",
            lambda: self.client.update_issue(
                number=num, title=title, body=body, state=state, labels=label_list
            ),
            issue_number=num,
        )
        issue = Issue.from_api(raw)
        self.logger.log_issue_action("updated", num, state=issue.state)
        return issue

    # ---- labels & comments ---------------------------------------------
    def list_labels(self) -> list[Label]:
        raw = self._call("list_labels", "fetch labels", self.client.list_labels)
        return [Label.from_api(entry) for entry in raw]

    def list_comments(self, number: int | str) -> list[Comment]:
        num = parse_issue_number(number)
        raw = self._call(
            "list_comments",
            "fetch comments",
            lambda: self.client.list_comments(number=num),
            issue_number=num,
        )
        return [Comment.from_api(entry) for entry in raw]

    def create_comment(self, number: int | str, body: Any) -> Comment:
        num = parse_issue_number(number)
        _require_text(body, "Comment body is required")
        raw = self._call(
            "create_comment",
            "create comment",
            lambda: self.client.create_comment(number=num, body=body),
            issue_number=num,
        )
        comment = Comment.from_api(raw)
        self.logger.log_issue_action("commented", num, comment_id=comment.id)
        return comment

    # ---- async helpers ---------------------------------------------------
    async def run_async(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking store call on the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))

    async def fetch_snapshot(
        self, status: str = "all", previous: Snapshot | None = None
    ) -> Snapshot:
        """Fetch issues and labels concurrently.

        The two requests resolve independently. A ``FetchError`` from one of
        them leaves that slice as it was in ``previous`` and is recorded on
        the returned snapshot; any other exception propagates.
        """
        base = previous or Snapshot()
        issues, labels = await asyncio.gather(
            self.run_async(self.list_issues, status),
            self.run_async(self.list_labels),
            return_exceptions=True,
        )
        for outcome in (issues, labels):
            if isinstance(outcome, BaseException) and not isinstance(outcome, FetchError):
                raise outcome
        issues_error = issues if isinstance(issues, FetchError) else None
        labels_error = labels if isinstance(labels, FetchError) else None
        return Snapshot(
            issues=base.issues if issues_error else issues,
            labels=base.labels if labels_error else labels,
            issues_error=issues_error,
            labels_error=labels_error,
        )


__all__ = ["IssueStore", "Snapshot", "parse_issue_number", "LIST_STATES"]
