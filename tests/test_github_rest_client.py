from __future__ import annotations

import pytest
from fakes import REPO, DummyResponse, QueuedSession, issue_payload, label_payload

from issuedeck.github_rest import GitHubAPIError, GitHubRestClient


def _client(session: QueuedSession) -> GitHubRestClient:
    return GitHubRestClient(token="tkn", repo=REPO, session=session)  # type: ignore[arg-type]


def test_list_issues_follows_pages_until_short_page():
    pages = [
        [issue_payload(n) for n in range(1, 101)],
        [issue_payload(n) for n in range(101, 201)],
        [issue_payload(n) for n in range(201, 241)],
    ]
    session = QueuedSession([DummyResponse(200, page) for page in pages])

    issues = _client(session).list_issues(state="all")

    assert len(issues) == 240
    assert [i["number"] for i in issues] == list(range(1, 241))
    assert [entry[2]["params"]["page"] for entry in session.request_log] == [1, 2, 3]
    params = session.request_log[0][2]["params"]
    assert params["per_page"] == 100
    assert params["state"] == "all"
    assert params["sort"] == "created"
    assert params["direction"] == "desc"


def test_list_issues_exact_multiple_needs_one_empty_page():
    session = QueuedSession(
        [DummyResponse(200, [issue_payload(n) for n in range(1, 101)]), DummyResponse(200, [])]
    )

    issues = _client(session).list_issues()

    assert len(issues) == 100
    assert len(session.request_log) == 2


def test_list_issues_passes_label_filter():
    session = QueuedSession([DummyResponse(200, [])])

    _client(session).list_issues(state="open", labels="bug,critical")

    params = session.request_log[0][2]["params"]
    assert params["labels"] == "bug,critical"
    assert params["state"] == "open"


def test_rest_client_raises_on_error():
    session = QueuedSession([DummyResponse(500, {"message": "boom"})])

    with pytest.raises(GitHubAPIError) as excinfo:
        _client(session).list_issues(state="all")

    assert excinfo.value.status == 500
    assert excinfo.value.reason == "Internal Server Error"
    assert "boom" in (excinfo.value.response_text or "")
    # No retry
    assert len(session.request_log) == 1


def test_update_issue_sends_only_given_fields():
    session = QueuedSession([DummyResponse(200, issue_payload(4, state="closed"))])

    _client(session).update_issue(number=4, state="closed")

    method, url, sent = session.request_log[0]
    assert method == "PATCH"
    assert url.endswith(f"/repos/{REPO}/issues/4")
    assert sent["json"] == {"state": "closed"}


def test_update_issue_sends_explicit_null_body():
    session = QueuedSession([DummyResponse(200, issue_payload(4))])

    _client(session).update_issue(number=4, title="Renamed", body=None)

    assert session.request_log[0][2]["json"] == {"title": "Renamed", "body": None}


def test_create_issue_payload_and_labels():
    session = QueuedSession([DummyResponse(201, issue_payload(9, "New"))])

    created = _client(session).create_issue(title="New", labels=["strapi-cms"])

    assert created["number"] == 9
    method, url, sent = session.request_log[0]
    assert (method, url.endswith(f"/repos/{REPO}/issues")) == ("POST", True)
    assert sent["json"] == {"title": "New", "labels": ["strapi-cms"]}


def test_labels_and_comments_use_single_page():
    session = QueuedSession(
        [
            DummyResponse(200, [label_payload("bug"), label_payload("ui", 1)]),
            DummyResponse(200, [{"id": 1, "body": "hi"}]),
            DummyResponse(201, {"id": 2, "body": "thanks"}),
        ]
    )
    client = _client(session)

    assert [lab["name"] for lab in client.list_labels()] == ["bug", "ui"]
    assert client.list_comments(number=3) == [{"id": 1, "body": "hi"}]
    assert client.create_comment(number=3, body="thanks")["id"] == 2

    assert session.request_log[0][2]["params"] == {"per_page": 100}
    assert session.request_log[1][1].endswith("/issues/3/comments")
    assert session.request_log[2][2]["json"] == {"body": "thanks"}


def test_client_sets_auth_headers():
    session = QueuedSession([])

    _client(session)

    assert session.headers["Authorization"] == "Bearer tkn"
    assert session.headers["Accept"].startswith("application/vnd.github")
