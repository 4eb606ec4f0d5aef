"""HTTP relay in front of the issue store.

Each endpoint validates the request shape, forwards to ``IssueStore`` and
answers with the tracker's JSON. Failures always come back as
``{"error": "..."}``: 400 for bad input, 500 when the tracker call fails.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from fastapi import APIRouter, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .config import DeckConfig, load_config
from .errors import ValidationError, classify_error
from .logging import get_logger
from .store import IssueStore, parse_issue_number

T = TypeVar("T")

router = APIRouter(tags=["issues"])


def get_store(request: Request) -> IssueStore:
    return request.app.state.store


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status)


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError("Invalid JSON body") from exc
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON body")
    return payload


async def _relay(
    failure: str, call: Callable[[], T], *, status_code: int = 200
) -> JSONResponse:
    try:
        result = await run_in_threadpool(call)
    except Exception as exc:  # every failure becomes a JSON error response
        return _failure(failure, exc)
    if isinstance(result, list):
        content: Any = [item.to_dict() for item in result]
    else:
        content = result.to_dict()
    return JSONResponse(content, status_code=status_code)


def _failure(failure: str, exc: Exception) -> JSONResponse:
    info = classify_error(exc)
    if info.category == "validation":
        return _error(info.status, info.message)
    get_logger().log_error(f"Error: {failure}", error=info.message, category=info.category)
    return _error(info.status, failure)


@router.get("/issues")
async def list_issues(request: Request) -> JSONResponse:
    store = get_store(request)
    state = request.query_params.get("state") or "all"
    labels = request.query_params.get("labels") or None
    return await _relay("Failed to fetch issues", lambda: store.list_issues(state, labels))


@router.post("/issues")
async def create_issue(request: Request) -> JSONResponse:
    store = get_store(request)
    try:
        payload = await _json_body(request)
    except ValidationError as exc:
        return _failure("Failed to create issue", exc)
    return await _relay(
        "Failed to create issue",
        lambda: store.create_issue(
            payload.get("title"), payload.get("body"), payload.get("labels")
        ),
        status_code=201,
    )


@router.get("/issues/{number}")
async def get_issue(number: str, request: Request) -> JSONResponse:
    store = get_store(request)
    try:
        issue_number = parse_issue_number(number)
    except ValidationError as exc:
        return _failure("Failed to fetch issue", exc)
    return await _relay("Failed to fetch issue", lambda: store.get_issue(issue_number))


@router.patch("/issues/{number}")
async def update_issue(number: str, request: Request) -> JSONResponse:
    store = get_store(request)
    try:
        issue_number = parse_issue_number(number)
        payload = await _json_body(request)
    except ValidationError as exc:
        return _failure("Failed to update issue", exc)
    # Only keys present in the body are forwarded; "body": null clears the body
    changes = {k: payload[k] for k in ("title", "body", "state", "labels") if k in payload}
    return await _relay(
        "Failed to update issue", lambda: store.update_issue(issue_number, **changes)
    )


@router.get("/issues/{number}/comments")
async def list_comments(number: str, request: Request) -> JSONResponse:
    store = get_store(request)
    try:
        issue_number = parse_issue_number(number)
    except ValidationError as exc:
        return _failure("Failed to fetch comments", exc)
    return await _relay("Failed to fetch comments", lambda: store.list_comments(issue_number))


@router.post("/issues/{number}/comments")
async def create_comment(number: str, request: Request) -> JSONResponse:
    store = get_store(request)
    try:
        issue_number = parse_issue_number(number)
        payload = await _json_body(request)
    except ValidationError as exc:
        return _failure("Failed to create comment", exc)
    return await _relay(
        "Failed to create comment",
        lambda: store.create_comment(issue_number, payload.get("body")),
    )


@router.get("/labels")
async def list_labels(request: Request) -> JSONResponse:
    store = get_store(request)
    return await _relay("Failed to fetch labels", store.list_labels)


def create_app(store: IssueStore | None = None, config: DeckConfig | None = None) -> FastAPI:
    """Create the relay application.

    Args:
        store: Optional IssueStore for testing. If None, one is built from
               configuration when the app starts.
        config: Configuration used to build the store; loaded from the
                default location when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "store", None) is None:
            app.state.store = IssueStore.from_config(config or load_config())
        yield

    app = FastAPI(
        title="issuedeck relay",
        description="Relay between the dashboard and the issue tracker",
        version="0.3.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.include_router(router)
    return app


__all__ = ["create_app", "router"]
