"""Linear integration: GraphQL client, OAuth helpers and project/issue views.

Uses httpx for direct API calls. No SDK dependency required.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence
from urllib.parse import urlencode

import httpx

from daylog.models import (
    FocusedProject,
    IssueFilters,
    LinearIssue,
    LinearProject,
    LinearUser,
    UnifiedProject,
)

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "lin_api_"
PAGE_SIZE = 50

_ISSUE_FIELDS = """
          id
          identifier
          title
          url
          priority
          estimate
          state { name }
          project { name }
"""

VIEWER_QUERY = """
query Viewer {
  viewer { id name email }
}
"""

PROJECTS_QUERY = """
query Projects($first: Int!) {
  projects(first: $first) {
    nodes {
      id
      name
      description
      url
      state
      progress
      icon
      color
      targetDate
      startDate
    }
  }
}
"""

ISSUES_BY_EMAIL_QUERY = (
    """
query LinearIssuesByEmail($email: String!, $first: Int!) {
  users(filter: { email: { eq: $email } }) {
    nodes {
      id
      name
      email
      assignedIssues(first: $first) {
        nodes {"""
    + _ISSUE_FIELDS
    + """        }
      }
    }
  }
}
"""
)

VIEWER_ISSUES_QUERY = (
    """
query ViewerIssues($first: Int!) {
  viewer {
    id
    name
    email
    assignedIssues(first: $first) {
      nodes {"""
    + _ISSUE_FIELDS
    + """      }
    }
  }
}
"""
)


class LinearError(Exception):
    """Base class for Linear integration failures."""


class LinearNotConnectedError(LinearError):
    """No Linear credentials are available."""

    def __init__(
        self, message: str = "Linear is not connected. Connect your account in Settings."
    ) -> None:
        super().__init__(message)


class LinearRequestError(LinearError):
    """Transport failure, non-2xx response or GraphQL error from Linear."""


def is_api_key(token: str) -> bool:
    """Static personal API keys carry the lin_api_ prefix; others are OAuth tokens."""
    return token.startswith(API_KEY_PREFIX)


def authorization_header(token: str) -> str:
    if is_api_key(token):
        return token
    return f"Bearer {token}"


class LinearClient:
    """Thin synchronous GraphQL client for the Linear API."""

    def __init__(
        self,
        token: Optional[str],
        api_url: str = "https://api.linear.app/graphql",
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Personal API key or OAuth access token.
            api_url: GraphQL endpoint.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests use MockTransport).

        Raises:
            LinearNotConnectedError: If no token is given.
        """
        if not token:
            raise LinearNotConnectedError()
        self._token = token
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport

    @property
    def uses_oauth(self) -> bool:
        return not is_api_key(self._token)

    def _execute(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict:
        """POST one GraphQL document and return its `data` object."""
        headers = {
            "Content-Type": "application/json",
            "Authorization": authorization_header(self._token),
        }
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(
                    self._api_url,
                    json={"query": query, "variables": variables or {}},
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.warning("Linear request failed: %s", e)
            raise LinearRequestError(str(e) or "Failed to reach Linear API.") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        errors = payload.get("errors") if isinstance(payload, dict) else None
        if response.is_error or errors:
            message = "Linear API request failed."
            if errors and isinstance(errors[0], dict) and errors[0].get("message"):
                message = errors[0]["message"]
            logger.warning("Linear API error (%s): %s", response.status_code, message)
            raise LinearRequestError(message)
        return payload.get("data") or {}

    def fetch_viewer(self) -> LinearUser:
        data = self._execute(VIEWER_QUERY)
        viewer = data.get("viewer")
        if not viewer:
            raise LinearRequestError("Failed to validate Linear token.")
        return LinearUser.model_validate(viewer)

    def fetch_projects(self) -> tuple[Optional[LinearUser], list[LinearProject], bool]:
        """Return (user, projects, connected).

        The viewer is only resolved for OAuth tokens, and `connected` is true
        only in that mode.
        """
        user = self.fetch_viewer() if self.uses_oauth else None
        data = self._execute(PROJECTS_QUERY, {"first": PAGE_SIZE})
        nodes = (data.get("projects") or {}).get("nodes") or []
        projects = [LinearProject.model_validate(node) for node in nodes[:PAGE_SIZE]]
        return user, projects, self.uses_oauth

    def fetch_issues(
        self, filters: Optional[IssueFilters] = None
    ) -> tuple[Optional[LinearUser], list[LinearIssue]]:
        """Return assigned issues for the assignee email (or the viewer), filtered."""
        filters = (filters or IssueFilters()).normalized()
        if filters.assignee:
            data = self._execute(
                ISSUES_BY_EMAIL_QUERY, {"email": filters.assignee, "first": PAGE_SIZE}
            )
            nodes = (data.get("users") or {}).get("nodes") or []
            raw_user = nodes[0] if nodes else None
        else:
            data = self._execute(VIEWER_ISSUES_QUERY, {"first": PAGE_SIZE})
            raw_user = data.get("viewer")

        if not raw_user:
            return None, []
        raw_issues = (raw_user.get("assignedIssues") or {}).get("nodes") or []
        user = LinearUser.model_validate(raw_user)
        issues = [LinearIssue.model_validate(node) for node in raw_issues[:PAGE_SIZE]]
        return user, filter_issues(issues, filters)


def filter_issues(issues: Sequence[LinearIssue], filters: IssueFilters) -> list[LinearIssue]:
    """Apply state (exact, case-insensitive) and text query (substring) filters."""
    filters = filters.normalized()
    result = list(issues)
    if filters.state:
        wanted = filters.state.lower()
        result = [i for i in result if i.state_name.lower() == wanted]
    if filters.query:
        needle = filters.query.lower()
        result = [i for i in result if needle in f"{i.identifier} {i.title}".lower()]
    return result


def build_authorize_url(
    authorize_url: str, client_id: str, redirect_uri: str, state: str
) -> str:
    """Linear consent URL with read scope."""
    params = {
        "response_type": "code",
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": "read",
        "state": state,
    }
    return f"{authorize_url}?{urlencode(params)}"


def exchange_code_for_token(
    code: str,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
    token_url: str = "https://api.linear.app/oauth/token",
    timeout: float = 15.0,
    transport: Optional[httpx.BaseTransport] = None,
) -> tuple[str, Optional[int]]:
    """Exchange an authorization code. Returns (access_token, expires_in)."""
    form = {
        "client_id": client_id,
        "client_secret": client_secret,
        "redirect_uri": redirect_uri,
        "grant_type": "authorization_code",
        "code": code,
    }
    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            response = client.post(token_url, data=form)
    except httpx.HTTPError as e:
        raise LinearRequestError(str(e) or "Failed to exchange code.") from e

    if response.is_error:
        logger.warning("Linear token exchange failed: %s", response.text)
        raise LinearRequestError("Failed to exchange code.")
    try:
        data = response.json()
    except ValueError as e:
        raise LinearRequestError("Failed to exchange code.") from e

    token = data.get("access_token")
    if not token:
        raise LinearRequestError("No access token returned from Linear.")
    expires_in = data.get("expires_in")
    return token, int(expires_in) if isinstance(expires_in, (int, float)) else None


# ---- projects and issues for the day ----


def normalize_linear_project(project: LinearProject) -> UnifiedProject:
    return UnifiedProject(
        id=project.id,
        name=project.name,
        source="linear",
        url=project.url or None,
        description=project.description,
        state=project.state or None,
        progress=project.progress,
        icon=project.icon,
        color=project.color,
        target_date=project.target_date,
        start_date=project.start_date,
    )


def unify_focused_projects(
    focused: Sequence[FocusedProject], live: Sequence[LinearProject] = ()
) -> list[UnifiedProject]:
    """Merge stored focus rows with live metadata, keeping the stored order.

    Without live metadata the stored name is used, then the id.
    """
    by_id = {p.id: p for p in live}
    unified: list[UnifiedProject] = []
    for row in focused:
        project = by_id.get(row.project_id)
        if project is not None:
            unified.append(normalize_linear_project(project))
            continue
        unified.append(
            UnifiedProject(
                id=row.project_id,
                name=row.project_name or row.project_id,
                source=row.project_source,
            )
        )
    return unified


def rank_issues_for_focus(
    issues: Sequence[LinearIssue], focused_projects: Sequence[UnifiedProject]
) -> list[LinearIssue]:
    """Keep issues relevant to today's focus; in-progress first, then by identifier."""
    names = [p.name.lower() for p in focused_projects if p.name]

    def relevant(issue: LinearIssue) -> bool:
        project = (issue.project_name or "").lower()
        if not project or not names:
            return True
        return any(project == n or project in n or n in project for n in names)

    kept = [i for i in issues if relevant(i)]
    return sorted(kept, key=lambda i: (not i.is_in_progress, i.identifier))


def client_from_settings(token: Optional[str] = None) -> LinearClient:
    """Client for the configured API key (or an explicit token)."""
    from daylog.config import get_settings

    settings = get_settings()
    return LinearClient(
        token or settings.linear_api_key,
        api_url=settings.linear_api_url,
        timeout=settings.linear_timeout,
    )
