"""Pytest configuration for issuedeck tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`).
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Ensure pytest-asyncio plugin is loaded explicitly so @pytest.mark.asyncio tests run
pytest_plugins = ["pytest_asyncio"]

from fakes import REPO, FakeTracker, issue_payload  # noqa: E402

import issuedeck.logging as deck_logging  # noqa: E402
from issuedeck.github_rest import GitHubRestClient  # noqa: E402
from issuedeck.store import IssueStore  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # Keep developer credentials and .env files out of the tests
    for name in ("GITHUB_TOKEN", "GH_TOKEN", "GITHUB_OWNER", "GITHUB_REPO"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    # Fresh process-wide logger bound to this test's stderr
    monkeypatch.setattr(deck_logging, "_GLOBAL", None)


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker(
        issues=[
            issue_payload(1, "Cart totals wrong", labels=["medusa-backend", "critical", "bug"],
                          created_at="2024-12-01T09:00:00Z"),
            issue_payload(2, "Hero banner copy", state="closed",
                          labels=["medusa-frontend", "medium-priority"],
                          created_at="2024-12-02T09:00:00Z"),
            issue_payload(3, "Recipe content type", labels=["strapi-cms", "bug"],
                          body="Add difficulty field", created_at="2024-12-03T09:00:00Z"),
        ],
        labels=["medusa-backend", "medusa-frontend", "strapi-cms", "critical", "bug"],
    )


@pytest.fixture
def store(tracker: FakeTracker) -> IssueStore:
    client = GitHubRestClient(token="tkn", repo=REPO, session=tracker)  # type: ignore[arg-type]
    return IssueStore(client)
