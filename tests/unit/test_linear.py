"""Unit tests for the Linear GraphQL client, OAuth helpers and issue ranking."""

import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from daylog.integrations.linear import (
    ISSUES_BY_EMAIL_QUERY,
    LinearClient,
    LinearNotConnectedError,
    LinearRequestError,
    build_authorize_url,
    exchange_code_for_token,
    rank_issues_for_focus,
    unify_focused_projects,
)
from daylog.models import FocusedProject, IssueFilters, LinearProject

VIEWER = {"id": "u1", "name": "Ada", "email": "ada@example.com"}
ISSUE_NODES = [
    {
        "id": "i1",
        "identifier": "LIN-1",
        "title": "Fix login",
        "url": "https://linear.app/i/LIN-1",
        "state": {"name": "In Progress"},
        "project": {"name": "Alpha"},
    },
    {
        "id": "i2",
        "identifier": "LIN-2",
        "title": "Write docs",
        "url": "https://linear.app/i/LIN-2",
        "state": {"name": "Todo"},
        "project": None,
    },
]


class GraphQLStub:
    """Records requests and answers by operation name."""

    def __init__(self, responses: dict[str, dict], status_code: int = 200) -> None:
        self.responses = responses
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = json.loads(request.content)
        for name, payload in self.responses.items():
            if f"query {name}" in body["query"]:
                return httpx.Response(self.status_code, json=payload)
        return httpx.Response(404, json={"errors": [{"message": "unknown query"}]})

    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


def _client(token: str, stub: GraphQLStub) -> LinearClient:
    return LinearClient(token, transport=httpx.MockTransport(stub))


def test_missing_token_raises_not_connected() -> None:
    with pytest.raises(LinearNotConnectedError, match="Connect your account in Settings"):
        LinearClient(None)
    with pytest.raises(LinearNotConnectedError):
        LinearClient("")


def test_api_key_is_sent_verbatim_and_skips_viewer() -> None:
    stub = GraphQLStub(
        {"Projects": {"data": {"projects": {"nodes": [{"id": "p1", "name": "Alpha"}]}}}}
    )
    user, projects, connected = _client("lin_api_secret", stub).fetch_projects()

    assert user is None
    assert connected is False
    assert [p.name for p in projects] == ["Alpha"]
    assert len(stub.requests) == 1
    assert stub.requests[0].headers["Authorization"] == "lin_api_secret"
    assert stub.bodies()[0]["variables"] == {"first": 50}


def test_oauth_token_uses_bearer_and_resolves_viewer() -> None:
    stub = GraphQLStub(
        {
            "Viewer": {"data": {"viewer": VIEWER}},
            "Projects": {"data": {"projects": {"nodes": []}}},
        }
    )
    user, projects, connected = _client("oauth-token", stub).fetch_projects()

    assert connected is True
    assert user is not None and user.email == "ada@example.com"
    assert projects == []
    assert all(r.headers["Authorization"] == "Bearer oauth-token" for r in stub.requests)


def test_projects_are_capped_at_one_page() -> None:
    nodes = [{"id": f"p{n}", "name": f"P{n}"} for n in range(60)]
    stub = GraphQLStub({"Projects": {"data": {"projects": {"nodes": nodes}}}})
    _, projects, _ = _client("lin_api_x", stub).fetch_projects()
    assert len(projects) == 50


def test_graphql_errors_raise_request_error() -> None:
    stub = GraphQLStub({"Projects": {"errors": [{"message": "Authentication required"}]}})
    with pytest.raises(LinearRequestError, match="Authentication required"):
        _client("lin_api_x", stub).fetch_projects()


def test_http_error_status_raises_request_error() -> None:
    stub = GraphQLStub({"Projects": {"data": None}}, status_code=500)
    with pytest.raises(LinearRequestError, match="Linear API request failed."):
        _client("lin_api_x", stub).fetch_projects()


def test_transport_failure_raises_request_error() -> None:
    def fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = LinearClient("lin_api_x", transport=httpx.MockTransport(fail))
    with pytest.raises(LinearRequestError, match="connection refused"):
        client.fetch_viewer()


def test_fetch_issues_for_viewer_applies_filters() -> None:
    stub = GraphQLStub(
        {"ViewerIssues": {"data": {"viewer": {**VIEWER, "assignedIssues": {"nodes": ISSUE_NODES}}}}}
    )
    client = _client("lin_api_x", stub)

    user, issues = client.fetch_issues()
    assert user is not None and user.name == "Ada"
    assert [i.identifier for i in issues] == ["LIN-1", "LIN-2"]

    _, issues = client.fetch_issues(IssueFilters(state="in progress"))
    assert [i.identifier for i in issues] == ["LIN-1"]

    _, issues = client.fetch_issues(IssueFilters(query=" DOCS "))
    assert [i.identifier for i in issues] == ["LIN-2"]


def test_fetch_issues_by_assignee_email() -> None:
    stub = GraphQLStub(
        {
            "LinearIssuesByEmail": {
                "data": {
                    "users": {"nodes": [{**VIEWER, "assignedIssues": {"nodes": ISSUE_NODES[:1]}}]}
                }
            }
        }
    )
    _, issues = _client("lin_api_x", stub).fetch_issues(
        IssueFilters(assignee=" ada@example.com ")
    )

    body = stub.bodies()[0]
    assert body["query"] == ISSUES_BY_EMAIL_QUERY
    assert body["variables"] == {"email": "ada@example.com", "first": 50}
    assert [i.identifier for i in issues] == ["LIN-1"]


def test_fetch_issues_unknown_assignee_returns_empty() -> None:
    stub = GraphQLStub({"LinearIssuesByEmail": {"data": {"users": {"nodes": []}}}})
    user, issues = _client("lin_api_x", stub).fetch_issues(IssueFilters(assignee="x@y.z"))
    assert user is None
    assert issues == []


def test_build_authorize_url() -> None:
    url = build_authorize_url(
        "https://linear.app/oauth/authorize", "cid", "http://localhost/cb", "st"
    )
    parsed = urlparse(url)
    params = parse_qs(parsed.query)
    assert parsed.netloc == "linear.app"
    assert params == {
        "response_type": ["code"],
        "client_id": ["cid"],
        "redirect_uri": ["http://localhost/cb"],
        "scope": ["read"],
        "state": ["st"],
    }


def test_exchange_code_for_token() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append({k: v[0] for k, v in parse_qs(request.content.decode()).items()})
        return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})

    token, expires_in = exchange_code_for_token(
        "abc", "cid", "secret", "http://localhost/cb", transport=httpx.MockTransport(handler)
    )
    assert (token, expires_in) == ("tok", 3600)
    assert seen[0]["grant_type"] == "authorization_code"
    assert seen[0]["code"] == "abc"


def test_exchange_code_failures() -> None:
    rejected = httpx.MockTransport(lambda r: httpx.Response(400, json={"error": "bad"}))
    with pytest.raises(LinearRequestError, match="Failed to exchange code."):
        exchange_code_for_token("c", "id", "s", "r", transport=rejected)

    no_token = httpx.MockTransport(lambda r: httpx.Response(200, json={}))
    with pytest.raises(LinearRequestError, match="No access token returned from Linear."):
        exchange_code_for_token("c", "id", "s", "r", transport=no_token)


def test_unify_focused_projects_prefers_live_metadata() -> None:
    focused = [
        FocusedProject(project_id="p1", project_name="Old name"),
        FocusedProject(project_id="p2", project_name="Beta"),
        FocusedProject(project_id="p3"),
    ]
    live = [LinearProject(id="p1", name="Alpha", url="https://linear.app/p/alpha")]

    unified = unify_focused_projects(focused, live)
    assert [(p.id, p.name) for p in unified] == [("p1", "Alpha"), ("p2", "Beta"), ("p3", "p3")]
    assert unified[0].url == "https://linear.app/p/alpha"


def test_rank_issues_for_focus(issues, projects) -> None:
    ranked = rank_issues_for_focus(issues, [projects[1]])
    # Alpha issue dropped; project-less issues are kept
    assert [i.identifier for i in ranked] == ["LIN-10", "LIN-20"]

    ranked = rank_issues_for_focus(issues, projects)
    assert [i.identifier for i in ranked] == ["LIN-1", "LIN-10", "LIN-20"]


def test_rank_issues_without_focus_keeps_everything(issues) -> None:
    assert len(rank_issues_for_focus(issues, [])) == 3
