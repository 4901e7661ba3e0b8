"""[Layer: Presentation] HTTP API: Linear proxy, OAuth flow and day-plan actions."""

import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Form, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, Field

from daylog.config import Settings, get_settings
from daylog.core.services import DayPlanService
from daylog.core.summary import (
    calculate_statistics,
    generate_share_text,
    work_log_time_split,
)
from daylog.database.sqlite import DayPlanDB, StoreError
from daylog.integrations.linear import (
    LinearClient,
    LinearNotConnectedError,
    LinearRequestError,
    build_authorize_url,
    exchange_code_for_token,
    unify_focused_projects,
)
from daylog.models import FocusedProject, IssueFilters, WorkLogItem
from daylog.web.oauth_state import STATE_MAX_AGE, InvalidStateError, decode_state, encode_state

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "linear_access_token"
STATE_COOKIE = "linear_oauth_state"
ISSUE_STATE_COOKIE = "linear_issue_state"
ISSUE_QUERY_COOKIE = "linear_issue_query"
ISSUE_ASSIGNEE_COOKIE = "linear_issue_assignee"
FILTER_COOKIES = (ISSUE_STATE_COOKIE, ISSUE_QUERY_COOKIE, ISSUE_ASSIGNEE_COOKIE)
COOKIE_MAX_AGE = 60 * 60 * 24 * 30  # 30 days


class StartDayPlanIn(BaseModel):
    plan_date: str
    timezone: Optional[str] = None
    projects: list[FocusedProject] = Field(default_factory=list)


class ProjectsIn(BaseModel):
    projects: list[FocusedProject] = Field(default_factory=list)


class ReflectionIn(BaseModel):
    reflection: str = ""


class CloseDayPlanIn(BaseModel):
    reflection: Optional[str] = None


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> FastAPI:
    """Build the app. transport is passed to every outbound Linear request."""
    settings = settings or get_settings()
    db = DayPlanDB(settings.db_path)
    db.init_db()
    service = DayPlanService(db)

    app = FastAPI(title="daylog")
    app.state.settings = settings
    app.state.service = service

    @app.exception_handler(LinearNotConnectedError)
    async def _not_connected(request: Request, exc: LinearNotConnectedError) -> JSONResponse:
        return _error(str(exc), 401)

    @app.exception_handler(LinearRequestError)
    async def _linear_failed(request: Request, exc: LinearRequestError) -> JSONResponse:
        return _error(str(exc) or "Failed to reach Linear API.", 500)

    @app.exception_handler(StoreError)
    async def _store_failed(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("Store error on %s: %s", request.url.path, exc)
        return _error(str(exc), 500)

    def _set_cookie(response, key: str, value: str, max_age: int) -> None:
        response.set_cookie(
            key,
            value,
            max_age=max_age,
            httponly=True,
            secure=settings.cookie_secure,
            samesite="lax",
            path="/",
        )

    def _client(request: Request) -> LinearClient:
        token = request.cookies.get(TOKEN_COOKIE) or settings.linear_api_key
        return LinearClient(
            token,
            api_url=settings.linear_api_url,
            timeout=settings.linear_timeout,
            transport=transport,
        )

    def _cookie_filters(request: Request) -> IssueFilters:
        return IssueFilters(
            state=request.cookies.get(ISSUE_STATE_COOKIE),
            query=request.cookies.get(ISSUE_QUERY_COOKIE),
            assignee=request.cookies.get(ISSUE_ASSIGNEE_COOKIE),
        ).normalized()

    # ---- Linear ----
    @app.get("/api/linear/issues")
    def linear_issues(
        request: Request,
        state: Optional[str] = None,
        query: Optional[str] = None,
        assignee: Optional[str] = None,
        email: Optional[str] = None,
    ) -> dict:
        saved = _cookie_filters(request)
        filters = IssueFilters(
            state=state if state is not None else saved.state,
            query=query if query is not None else saved.query,
            assignee=assignee or email or saved.assignee,
        )
        user, issues = _client(request).fetch_issues(filters)
        return {
            "user": user.model_dump() if user else None,
            "issues": [i.model_dump() for i in issues],
        }

    @app.get("/api/linear/projects")
    def linear_projects(request: Request) -> dict:
        user, projects, connected = _client(request).fetch_projects()
        return {
            "user": user.model_dump() if user else None,
            "projects": [p.model_dump(by_alias=True) for p in projects],
            "connected": connected,
        }

    @app.get("/api/linear/oauth/start")
    def oauth_start(request: Request):
        if not settings.linear_client_id or not settings.linear_redirect_uri:
            return _error("Missing OAuth environment variables.", 500)
        return_to = request.headers.get("origin") or settings.public_url
        state, token = encode_state(settings.secret_key, return_to.rstrip("/"))
        url = build_authorize_url(
            settings.linear_authorize_url,
            settings.linear_client_id,
            settings.linear_redirect_uri,
            token,
        )
        response = RedirectResponse(url, status_code=307)
        _set_cookie(response, STATE_COOKIE, state.id, STATE_MAX_AGE)
        return response

    @app.get("/api/linear/oauth/callback")
    def oauth_callback(
        request: Request, code: Optional[str] = None, state: Optional[str] = None
    ):
        if not code or not state:
            return _error("Missing code or state.", 400)
        try:
            decoded = decode_state(settings.secret_key, state)
        except InvalidStateError as e:
            return _error(str(e), 400)
        if request.cookies.get(STATE_COOKIE) != decoded.id:
            return _error("Invalid state.", 400)

        if not (
            settings.linear_client_id
            and settings.linear_client_secret
            and settings.linear_redirect_uri
        ):
            return _error("Missing OAuth environment variables.", 500)

        access_token, expires_in = exchange_code_for_token(
            code,
            settings.linear_client_id,
            settings.linear_client_secret,
            settings.linear_redirect_uri,
            token_url=settings.linear_token_url,
            timeout=settings.linear_timeout,
            transport=transport,
        )
        viewer = LinearClient(
            access_token,
            api_url=settings.linear_api_url,
            timeout=settings.linear_timeout,
            transport=transport,
        ).fetch_viewer()
        logger.info("Linear connected for user %s", viewer.id)

        response = RedirectResponse(
            f"{decoded.return_to}/settings?integration=linear", status_code=307
        )
        _set_cookie(response, TOKEN_COOKIE, access_token, expires_in or COOKIE_MAX_AGE)
        response.delete_cookie(STATE_COOKIE, path="/")
        return response

    @app.get("/api/linear/oauth/disconnect")
    def oauth_disconnect() -> RedirectResponse:
        response = RedirectResponse("/settings", status_code=307)
        response.delete_cookie(TOKEN_COOKIE, path="/")
        return response

    @app.post("/api/linear/settings")
    def linear_settings(
        action: str = Form(""),
        state: str = Form(""),
        query: str = Form(""),
        assignee: str = Form(""),
    ) -> RedirectResponse:
        response = RedirectResponse("/settings", status_code=303)
        if action == "clear":
            for key in FILTER_COOKIES:
                response.delete_cookie(key, path="/")
            return response
        values = {
            ISSUE_STATE_COOKIE: state.strip(),
            ISSUE_QUERY_COOKIE: query.strip(),
            ISSUE_ASSIGNEE_COOKIE: assignee.strip(),
        }
        for key, value in values.items():
            if value:
                _set_cookie(response, key, value, COOKIE_MAX_AGE)
            else:
                response.delete_cookie(key, path="/")
        return response

    @app.get("/settings")
    def settings_page(request: Request, integration: Optional[str] = None) -> dict:
        token = request.cookies.get(TOKEN_COOKIE)
        return {
            "linear": {
                "connected": bool(token),
                "oauth": bool(token) and not token.startswith("lin_api_"),
                "api_key_configured": bool(settings.linear_api_key),
                "filters": _cookie_filters(request).model_dump(),
            },
            "integration": integration,
        }

    # ---- Day plans ----
    @app.post("/api/day-plans")
    def start_day_plan(body: StartDayPlanIn) -> dict:
        day_plan_id = service.start_day_plan(body.plan_date, body.projects, body.timezone)
        return {"day_plan_id": day_plan_id}

    @app.get("/api/day-plans/open")
    def open_day_plan() -> dict:
        plan = service.get_open_day_plan()
        return {"day_plan": plan.model_dump(mode="json") if plan else None}

    @app.get("/api/day-plans/{day_plan_id}")
    def get_day_plan(day_plan_id: str):
        plan = service.get_day_plan(day_plan_id)
        if plan is None:
            return _error("Day plan not found.", 404)
        return {
            "day_plan": plan.model_dump(mode="json"),
            "projects": [p.model_dump() for p in service.get_day_plan_projects(day_plan_id)],
            "work_log": [
                i.model_dump(mode="json")
                for i in service.get_day_plan_work_log(day_plan_id)
            ],
        }

    @app.put("/api/day-plans/{day_plan_id}/projects")
    def sync_projects(day_plan_id: str, body: ProjectsIn) -> dict:
        service.sync_day_plan_projects(day_plan_id, body.projects)
        return {"ok": True}

    @app.put("/api/day-plans/{day_plan_id}/work-log/{item_id}")
    def upsert_work_log_item(day_plan_id: str, item_id: str, item: WorkLogItem):
        if item.id != item_id:
            return _error("Work log item id does not match the URL.", 400)
        service.upsert_work_log_item(day_plan_id, item)
        return {"ok": True}

    @app.delete("/api/day-plans/{day_plan_id}/work-log/{item_id}")
    def delete_work_log_item(day_plan_id: str, item_id: str) -> dict:
        service.delete_work_log_item(day_plan_id, item_id)
        return {"ok": True}

    @app.put("/api/day-plans/{day_plan_id}/reflection")
    def update_reflection(day_plan_id: str, body: ReflectionIn) -> dict:
        service.update_day_plan_reflection(day_plan_id, body.reflection)
        return {"ok": True}

    @app.post("/api/day-plans/{day_plan_id}/close")
    def close_day_plan(day_plan_id: str, body: Optional[CloseDayPlanIn] = None) -> dict:
        service.close_day_plan(day_plan_id, body.reflection if body else None)
        return {"ok": True}

    @app.get("/api/day-plans/{day_plan_id}/summary")
    def day_plan_summary(day_plan_id: str):
        plan = service.get_day_plan(day_plan_id)
        if plan is None:
            return _error("Day plan not found.", 404)
        items = service.get_day_plan_work_log(day_plan_id)
        projects = unify_focused_projects(service.get_day_plan_projects(day_plan_id))
        stats = calculate_statistics(items, projects)
        return {
            "statistics": stats.model_dump(),
            "time_split": work_log_time_split(items).model_dump(),
            "share_text": generate_share_text(items, projects, plan.reflection or ""),
        }

    return app
