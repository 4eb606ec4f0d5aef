"""Minimal GitHub REST access for one repository's issues, labels and comments.

Only the calls the dashboard needs are wrapped. Each call is sent exactly
once; an HTTP status of 400 or above raises ``GitHubAPIError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

import requests

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_PAGE_SIZE = 100
DEFAULT_TIMEOUT = 30
USER_AGENT = "issuedeck-rest/0.3.0"
ACCEPT = "application/vnd.github.v3+json"


class GitHubAPIError(RuntimeError):
    """Non-success answer from the GitHub REST API."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        reason: str = "",
        response_text: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.response_text = response_text

    @classmethod
    def from_response(cls, method: str, url: str, response: Any) -> GitHubAPIError:
        reason = getattr(response, "reason", "") or ""
        return cls(
            f"GitHub API {method} {url} failed with {response.status_code} {reason}".rstrip(),
            status=response.status_code,
            reason=reason,
            response_text=response.text,
        )


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# Marks an update field the caller did not pass; ``None`` is a real value for body
UNSET: Any = _Unset()


def _dicts(data: Any) -> list[dict[str, Any]]:
    return [entry for entry in data or [] if isinstance(entry, dict)]


@dataclass
class GitHubRestClient:
    """REST client bound to a single ``owner/repo``."""

    token: str
    repo: str
    base_url: str = DEFAULT_API_URL
    per_page: int = DEFAULT_PAGE_SIZE
    timeout: float = DEFAULT_TIMEOUT
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        headers = self._session.headers
        if self.token:
            headers.setdefault("Authorization", f"Bearer {self.token}")
        headers.setdefault("Accept", ACCEPT)
        headers.setdefault("User-Agent", USER_AGENT)

    def _repo_url(self, *parts: object) -> str:
        tail = "/".join(str(p) for p in parts)
        return f"{self.base_url.rstrip('/')}/repos/{self.repo}/{tail}"

    def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        response = self._session.request(
            method,
            url,
            params=params,
            json=payload,
            headers=self._session.headers,
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            raise GitHubAPIError.from_response(method, url, response)
        return response.json() if response.text else None

    def _iter_pages(self, url: str, params: dict[str, Any]) -> Iterator[list[Any]]:
        """Yield pages in server order until one comes back short."""
        query = {**params, "per_page": self.per_page, "page": 1}
        while True:
            page = self._send("GET", url, params=dict(query))
            if not isinstance(page, list):
                return
            yield page
            if len(page) < self.per_page:
                return
            query["page"] += 1

    # ---- issues ------------------------------------------------------
    def list_issues(
        self, *, state: str = "all", labels: str | None = None
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"state": state, "sort": "created", "direction": "desc"}
        if labels:
            params["labels"] = labels
        issues: list[dict[str, Any]] = []
        for page in self._iter_pages(self._repo_url("issues"), params):
            issues.extend(_dicts(page))
        return issues

    def get_issue(self, *, number: int) -> dict[str, Any]:
        return self._send("GET", self._repo_url("issues", number))

    def create_issue(
        self,
        *,
        title: str,
        body: str | None = None,
        labels: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        fields: dict[str, Any] = {"title": title, "body": body}
        if labels is not None:
            fields["labels"] = list(labels)
        payload = {k: v for k, v in fields.items() if v is not None}
        return self._send("POST", self._repo_url("issues"), payload=payload)

    def update_issue(
        self,
        *,
        number: int,
        title: str | None = None,
        body: Any = UNSET,
        state: str | None = None,
        labels: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        # Omitted fields stay unchanged on the server
        fields: dict[str, Any] = {
            "title": title,
            "state": state,
            "labels": list(labels) if labels is not None else None,
        }
        payload = {k: v for k, v in fields.items() if v is not None}
        if body is not UNSET:
            payload["body"] = body
        return self._send("PATCH", self._repo_url("issues", number), payload=payload)

    # ---- labels & comments ---------------------------------------------
    def list_labels(self) -> list[dict[str, Any]]:
        return _dicts(self._send("GET", self._repo_url("labels"), params={"per_page": self.per_page}))

    def list_comments(self, *, number: int) -> list[dict[str, Any]]:
        url = self._repo_url("issues", number, "comments")
        return _dicts(self._send("GET", url, params={"per_page": self.per_page}))

    def create_comment(self, *, number: int, body: str) -> dict[str, Any]:
        url = self._repo_url("issues", number, "comments")
        return self._send("POST", url, payload={"body": body})


__all__ = [
    "DEFAULT_API_URL",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_TIMEOUT",
    "GitHubAPIError",
    "GitHubRestClient",
    "UNSET",
]
