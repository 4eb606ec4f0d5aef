"""issuedeck CLI.

Subcommands:
  issues   -> filtered, categorized issue list with stats and label facets
  show     -> one issue with its comments
  create   -> open a new issue
  update   -> edit title/body/state/labels of an issue
  comment  -> add a comment to an issue
  plan     -> weekly plan report reconciled against live issue states
  serve    -> run the HTTP relay
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from datetime import date
from typing import Any

from issuedeck.categories import require_category_label
from issuedeck.config import CONFIG_DEFAULT, ConfigError, DeckConfig, load_config
from issuedeck.errors import FetchError, ValidationError
from issuedeck.forecast import current_bucket, summarize_plan
from issuedeck.logging import configure_logging
from issuedeck.plan import PlanError, load_plan
from issuedeck.render import format_issue_detail, format_plan, format_view
from issuedeck.session import DashboardSession, PlanSession
from issuedeck.store import IssueStore
from issuedeck.views import STATUS_FILTERS, FilterState, SortOption

REPO_HELP = "Override target repository (owner/repo)"

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _add_common(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--config", default=None, help=f"Config file (default: {CONFIG_DEFAULT})")
    sp.add_argument("--repo", help=REPO_HELP)


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(
        prog="issuedeck", description="Issue dashboard and weekly plan for a GitHub repository"
    )
    p.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    p.add_argument("--log-level", default=None, help="Logging level (default from config)")
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    pi = sub.add_parser("issues", help="List issues with category tabs, filters and search")
    _add_common(pi)
    pi.add_argument("--category", default="all", help="Category tab id (default: all)")
    pi.add_argument("--state", choices=STATUS_FILTERS, default="all")
    pi.add_argument(
        "--label", action="append", default=[], help="Require label (repeat for AND)"
    )
    pi.add_argument("--search", default="", help="Free-text search")
    pi.add_argument(
        "--sort", choices=[o.value for o in SortOption], default=SortOption.NEWEST.value
    )
    pi.add_argument("--json", action="store_true", help="Print issues as JSON")

    ps = sub.add_parser("show", help="Show one issue and its comments")
    _add_common(ps)
    ps.add_argument("number", type=int)

    pc = sub.add_parser("create", help="Create an issue")
    _add_common(pc)
    pc.add_argument("--title", required=True)
    pc.add_argument("--body")
    pc.add_argument("--label", action="append", default=[])

    pu = sub.add_parser("update", help="Update an issue")
    _add_common(pu)
    pu.add_argument("number", type=int)
    pu.add_argument("--title")
    pu.add_argument("--body")
    pu.add_argument("--state", choices=["open", "closed"])
    pu.add_argument(
        "--label",
        action="append",
        default=None,
        help="Replace the label set (must include a category label)",
    )

    pm = sub.add_parser("comment", help="Comment on an issue")
    _add_common(pm)
    pm.add_argument("number", type=int)
    pm.add_argument("--body", required=True)

    pp = sub.add_parser("plan", help="Weekly plan report with cumulative forecast")
    _add_common(pp)
    pp.add_argument("--plan", dest="plan_file", help="Plan YAML file (default from config)")
    pp.add_argument(
        "--no-refresh", action="store_true", help="Skip reconciling with live issue states"
    )
    pp.add_argument("--today", type=date.fromisoformat, help="Highlight the week of this date")
    pp.add_argument("--json", action="store_true")

    pv = sub.add_parser("serve", help="Run the HTTP relay")
    _add_common(pv)
    pv.add_argument("--host")
    pv.add_argument("--port", type=int)

    return p


def _prepare_config(args: argparse.Namespace) -> DeckConfig:
    cfg = load_config(args.config)
    if getattr(args, "repo", None):
        cfg.github_repo = args.repo
    return cfg


def _build_store(cfg: DeckConfig) -> IssueStore:
    return IssueStore.from_config(cfg)


def _cmd_issues(cfg: DeckConfig, args: argparse.Namespace) -> int:
    session = DashboardSession(_build_store(cfg), cfg.categories)
    if not asyncio.run(session.refresh()):
        print(f"[issues] {session.error} (re-run to retry)", file=sys.stderr)
        return 1
    session.state = FilterState(
        active_category=args.category,
        status_filter=args.state,
        selected_labels=tuple(args.label),
        search_query=args.search,
        sort_option=SortOption(args.sort),
    )
    result = session.view()
    if args.json:
        print(json.dumps([i.to_dict() for i in result.filtered_sorted], indent=2))
        return 0
    for line in format_view(result, cfg.categories, args.category, args.label):
        print(line)
    return 0


def _cmd_show(cfg: DeckConfig, args: argparse.Namespace) -> int:
    session = DashboardSession(_build_store(cfg), cfg.categories)
    issue, comments = asyncio.run(session.open_issue(args.number))
    for line in format_issue_detail(issue, comments):
        print(line)
    return 0


def _cmd_create(cfg: DeckConfig, args: argparse.Namespace) -> int:
    issue = _build_store(cfg).create_issue(args.title, args.body, args.label or None)
    print(f"[create] #{issue.number} {issue.title} {issue.html_url}")
    return 0


def _cmd_update(cfg: DeckConfig, args: argparse.Namespace) -> int:
    if args.label is not None:
        require_category_label(args.label, cfg.categories)
    changes = {"title": args.title, "state": args.state, "labels": args.label}
    if args.body is not None:
        changes["body"] = args.body
    issue = _build_store(cfg).update_issue(args.number, **changes)
    print(f"[update] #{issue.number} {issue.title} [{issue.state}]")
    return 0


def _cmd_comment(cfg: DeckConfig, args: argparse.Namespace) -> int:
    comment = _build_store(cfg).create_comment(args.number, args.body)
    print(f"[comment] #{args.number} comment {comment.id} {comment.html_url}")
    return 0


def _cmd_plan(cfg: DeckConfig, args: argparse.Namespace) -> int:
    plan_path = args.plan_file or cfg.plan_file
    if not plan_path:
        raise PlanError("No plan file given; use --plan or set plan.file in config")
    plan = load_plan(plan_path)
    if not args.no_refresh:
        session = PlanSession(_build_store(cfg), plan, cfg.categories)
        if not asyncio.run(session.refresh()):
            print(f"[plan] {session.error}; showing last known statuses", file=sys.stderr)
        plan = session.plan

    summary = summarize_plan(plan.buckets, plan.items, cfg.categories)
    current = current_bucket(plan.buckets, args.today or date.today())
    if args.json:
        payload = {
            "total_planned": summary.total_planned,
            "total_completed": summary.total_completed,
            "overall_completion_percent": summary.overall_completion_percent,
            "by_priority": summary.by_priority,
            "by_category": [
                {"id": c.id, "completed": c.completed, "total": c.total, "percent": c.percent}
                for c in summary.by_category
            ],
            "weeks": [
                {
                    "id": w.bucket.id,
                    "completed": w.completed_count,
                    "total": w.total_count,
                    "cumulative_forecast_percent": w.cumulative_forecast_percent,
                }
                for w in summary.weeks
            ],
            "current_week": current.id if current else None,
        }
        print(json.dumps(payload, indent=2))
        return 0
    for line in format_plan(summary, current):
        print(line)
    return 0


def _cmd_serve(cfg: DeckConfig, args: argparse.Namespace) -> int:
    import uvicorn  # noqa: PLC0415

    from issuedeck.relay import create_app  # noqa: PLC0415

    app = create_app(store=_build_store(cfg))
    uvicorn.run(app, host=args.host or cfg.relay_host, port=args.port or cfg.relay_port)
    return 0


_HANDLERS = {
    "issues": _cmd_issues,
    "show": _cmd_show,
    "create": _cmd_create,
    "update": _cmd_update,
    "comment": _cmd_comment,
    "plan": _cmd_plan,
    "serve": _cmd_serve,
}


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        cfg = _prepare_config(args)
        configure_logging(
            json_logging=args.json_logs or cfg.logging_json_enabled,
            level=args.log_level or cfg.logging_level,
        )
        return _HANDLERS[args.cmd](cfg, args)
    except ValidationError as exc:
        print(f"[{args.cmd}] invalid input: {exc}", file=sys.stderr)
        return 2
    except (FetchError, ConfigError, PlanError) as exc:
        print(f"[{args.cmd}] {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
