from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest
from fakes import FakeTracker

from issuedeck import cli
from issuedeck.store import IssueStore

PLAN_YAML = textwrap.dedent(
    """\
    weeks:
      - {id: w1, label: "Dec 1", start_date: 2024-12-01, end_date: 2024-12-07}
      - {id: w2, label: "Dec 8", start_date: 2024-12-08, end_date: 2024-12-14}
    items:
      w1:
        - {number: 1, title: "Cart totals", category: backend, priority: critical}
        - {number: 2, title: "Hero banner", category: frontend, priority: medium}
      w2:
        - {number: 3, title: "Recipe type", category: strapi, status: closed}
    """
)


@pytest.fixture
def use_store(monkeypatch: pytest.MonkeyPatch, store: IssueStore) -> IssueStore:
    monkeypatch.setattr(cli, "_build_store", lambda cfg: store)
    return store


def test_issues_text_output(use_store, capsys):
    rc = cli.main(["issues", "--category", "backend"])

    out = capsys.readouterr().out.splitlines()
    assert rc == 0
    assert out[0] == "All (3) | *Backend (1)* | Frontend (1) | Strapi (1)"
    assert out[1] == "open=1 closed=0 critical=1 total=1"
    assert out[2] == "labels: critical:1, bug:1"
    assert out[3] == "1 issue"
    assert out[4].startswith("o #1 Cart totals wrong [critical] (medusa-backend, bug) - ")


def test_issues_json_with_filters(use_store, capsys):
    rc = cli.main(["issues", "--state", "open", "--label", "bug", "--sort", "number-asc", "--json"])

    data = json.loads(capsys.readouterr().out)
    assert rc == 0
    assert [i["number"] for i in data] == [1, 3]


def test_issues_reports_fetch_failure(use_store, tracker: FakeTracker, capsys):
    tracker.fail_with = 500

    rc = cli.main(["issues"])

    assert rc == 1
    assert "[issues] Failed to fetch" in capsys.readouterr().err


def test_show_prints_issue_and_comments(use_store, capsys):
    use_store.create_comment(3, "Schema drafted")

    rc = cli.main(["show", "3"])

    out = capsys.readouterr().out
    assert rc == 0
    assert out.startswith("#3 Recipe content type [open]")
    assert "Add difficulty field" in out
    assert "Schema drafted" in out


def test_create_update_comment(use_store, capsys):
    assert cli.main(["create", "--title", "Promo codes", "--label", "medusa-backend"]) == 0
    assert cli.main(["update", "1", "--state", "closed"]) == 0
    assert cli.main(["comment", "2", "--body", "Copy approved"]) == 0

    out = capsys.readouterr().out.splitlines()
    assert out[0].startswith("[create] #4 Promo codes")
    assert out[1] == "[update] #1 Cart totals wrong [closed]"
    assert out[2].startswith("[comment] #2 comment ")


def test_update_labels_need_a_category(use_store, tracker: FakeTracker, capsys):
    rc = cli.main(["update", "1", "--label", "bug"])

    assert rc == 2
    assert "Please select at least one category" in capsys.readouterr().err
    assert tracker.request_log == []


def test_create_with_blank_title_is_invalid(use_store, capsys):
    rc = cli.main(["create", "--title", "  "])

    assert rc == 2
    assert "Title is required" in capsys.readouterr().err


def test_plan_json_reconciles_live_state(use_store, tmp_path: Path, capsys):
    (tmp_path / "plan.yaml").write_text(PLAN_YAML, encoding="utf-8")

    rc = cli.main(["plan", "--plan", "plan.yaml", "--today", "2024-12-09", "--json"])

    data = json.loads(capsys.readouterr().out)
    assert rc == 0
    # live issue 3 is open again, issue 2 is closed
    assert data["total_planned"] == 3
    assert data["total_completed"] == 1
    assert data["overall_completion_percent"] == 33
    assert [w["cumulative_forecast_percent"] for w in data["weeks"]] == [67, 100]
    assert data["by_priority"] == {"critical": 1, "high": 0, "medium": 1, "low": 1}
    assert data["current_week"] == "w2"


def test_plan_no_refresh_skips_tracker(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys):
    def _no_store(cfg):
        raise AssertionError("tracker should not be contacted")

    monkeypatch.setattr(cli, "_build_store", _no_store)
    (tmp_path / "plan.yaml").write_text(PLAN_YAML, encoding="utf-8")

    rc = cli.main(["plan", "--plan", "plan.yaml", "--no-refresh", "--today", "2024-12-02"])

    out = capsys.readouterr().out
    assert rc == 0
    assert out.startswith("Overall progress: 33% (1/3)")
    assert " *Dec 1" in out


def test_plan_without_file_is_an_error(capsys):
    rc = cli.main(["plan", "--no-refresh"])

    assert rc == 1
    assert "No plan file" in capsys.readouterr().err


def test_missing_repo_is_a_config_error(capsys):
    rc = cli.main(["issues"])

    assert rc == 1
    assert "repository not configured" in capsys.readouterr().err


def test_repo_override_reaches_config(monkeypatch: pytest.MonkeyPatch, store: IssueStore, capsys):
    seen = {}

    def _capture(cfg):
        seen["repo"] = cfg.github_repo
        return store

    monkeypatch.setattr(cli, "_build_store", _capture)

    assert cli.main(["issues", "--repo", "acme/other", "--json"]) == 0
    assert seen["repo"] == "acme/other"
