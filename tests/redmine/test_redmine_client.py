"""Tests for RedmineClient against a mocked HTTP transport."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from rmcli.config import Profile
from rmcli.errors import RedmineApiError, RedmineValidationError
from rmcli.redmine.client import API_KEY_HEADER, RedmineClient
from rmcli.redmine.models import IssueFilter
from rmcli.redmine.service import RedmineService

BASE_URL = "https://redmine.example.com"

ISSUE = {
    "id": 42,
    "subject": "Login fails",
    "project": {"id": 1, "name": "Web"},
    "status": {"id": 2, "name": "In Progress"},
    "assigned_to": {"id": 5, "name": "Alice Smith"},
    "done_ratio": 50,
    "created_on": "2024-04-01T09:30:00Z",
    "custom_fields": [],
}

STATUSES = {
    "issue_statuses": [
        {"id": 1, "name": "New", "is_closed": False},
        {"id": 5, "name": "Closed", "is_closed": True},
    ]
}

USERS = {"users": [{"id": 5, "login": "alice", "firstname": "Alice", "lastname": "Smith"}]}
PROJECTS = {"projects": [{"id": 1, "name": "Web", "identifier": "web"}]}
PRIORITIES = {"issue_priorities": [{"id": 2, "name": "Normal"}, {"id": 3, "name": "High"}]}


class FakeRedmine:
    """Records requests and answers from a path-keyed table."""

    def __init__(self, routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response] | Any]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"errors": ["Not found"]})
        if callable(handler):
            return handler(request)
        return httpx.Response(200, json=handler)

    def last(self, method: str, path: str) -> httpx.Request:
        for request in reversed(self.requests):
            if request.method == method and request.url.path == path:
                return request
        raise AssertionError(f"no {method} {path} request recorded")

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)


def _client(fake: FakeRedmine, api_key: str | None = "secret") -> RedmineClient:
    return RedmineClient(Profile(url=BASE_URL, api_key=api_key), transport=httpx.MockTransport(fake))


def _standard_routes() -> dict[tuple[str, str], Any]:
    return {
        ("GET", "/issues.json"): {"issues": [ISSUE], "total_count": 1},
        ("GET", "/issues/42.json"): {"issue": ISSUE},
        ("GET", "/users/current.json"): {"user": {"id": 5, "login": "alice"}},
        ("GET", "/users.json"): USERS,
        ("GET", "/issue_statuses.json"): STATUSES,
        ("GET", "/projects.json"): PROJECTS,
        ("GET", "/enumerations/issue_priorities.json"): PRIORITIES,
    }


class TestLifecycle:
    async def test_requires_context_manager(self) -> None:
        client = _client(FakeRedmine({}))
        with pytest.raises(RuntimeError, match="async context manager"):
            await client.get_projects()

    def test_requires_url(self) -> None:
        with pytest.raises(ValueError, match="URL"):
            RedmineClient(Profile(api_key="x"))

    def test_satisfies_service_protocol(self) -> None:
        assert isinstance(_client(FakeRedmine({})), RedmineService)

    async def test_api_key_header(self) -> None:
        fake = FakeRedmine(_standard_routes())
        async with _client(fake) as client:
            await client.get_projects()
        request = fake.last("GET", "/projects.json")
        assert request.headers[API_KEY_HEADER] == "secret"
        assert str(request.url).startswith(BASE_URL)

    async def test_no_api_key_header_when_anonymous(self) -> None:
        fake = FakeRedmine(_standard_routes())
        async with _client(fake, api_key=None) as client:
            await client.get_projects()
        assert API_KEY_HEADER not in fake.last("GET", "/projects.json").headers


class TestIssues:
    async def test_get_issues_resolves_filter(self) -> None:
        fake = FakeRedmine(_standard_routes())
        async with _client(fake) as client:
            issues = await client.get_issues(
                IssueFilter(assigned_to_id="@me", status_id="Closed", project_id="web", limit=10)
            )

        assert [i.id for i in issues] == [42]
        assert issues[0].assigned_to is not None
        assert issues[0].assigned_to.name == "Alice Smith"
        params = fake.last("GET", "/issues.json").url.params
        assert params["assigned_to_id"] == "5"
        assert params["status_id"] == "5"
        assert params["project_id"] == "web"
        assert params["limit"] == "10"
        assert "offset" not in params

    @pytest.mark.parametrize("keyword", ["open", "CLOSED", "*"])
    async def test_status_keywords_pass_through(self, keyword: str) -> None:
        fake = FakeRedmine(_standard_routes())
        async with _client(fake) as client:
            await client.get_issues(IssueFilter(status_id=keyword))
        assert fake.last("GET", "/issues.json").url.params["status_id"] == keyword.lower()
        assert fake.count("GET", "/issue_statuses.json") == 0

    async def test_login_resolved_to_user_id(self) -> None:
        fake = FakeRedmine(_standard_routes())
        async with _client(fake) as client:
            await client.get_issues(IssueFilter(assigned_to_id="Alice"))
        assert fake.last("GET", "/issues.json").url.params["assigned_to_id"] == "5"

    async def test_login_lookup_uses_name_filter(self) -> None:
        fake = FakeRedmine(_standard_routes())
        async with _client(fake) as client:
            await client.get_issues(IssueFilter(assigned_to_id="alice"))
        params = fake.last("GET", "/users.json").url.params
        assert params["name"] == "alice"
        assert "offset" not in params

    async def test_login_found_on_later_page(self) -> None:
        def users(request: httpx.Request) -> httpx.Response:
            offset = int(request.url.params.get("offset", 0))
            if offset == 0:
                page = [{"id": n, "login": f"alice{n}"} for n in range(1, 101)]
            else:
                page = [{"id": 200, "login": "alice"}]
            return httpx.Response(200, json={"users": page, "total_count": 101})

        routes = _standard_routes()
        routes[("GET", "/users.json")] = users
        fake = FakeRedmine(routes)
        async with _client(fake) as client:
            await client.get_issues(IssueFilter(assigned_to_id="alice"))

        assert fake.count("GET", "/users.json") == 2
        assert fake.last("GET", "/users.json").url.params["offset"] == "100"
        assert fake.last("GET", "/issues.json").url.params["assigned_to_id"] == "200"

    async def test_unknown_user(self) -> None:
        fake = FakeRedmine(_standard_routes())
        async with _client(fake) as client:
            with pytest.raises(RedmineValidationError, match="User 'bob' not found"):
                await client.get_issues(IssueFilter(assigned_to_id="bob"))

    async def test_unknown_status(self) -> None:
        fake = FakeRedmine(_standard_routes())
        async with _client(fake) as client:
            with pytest.raises(RedmineValidationError, match="Status 'Frozen' not found"):
                await client.get_issues(IssueFilter(status_id="Frozen"))

    async def test_current_user_is_cached(self) -> None:
        fake = FakeRedmine(_standard_routes())
        async with _client(fake) as client:
            await client.get_issues(IssueFilter(assigned_to_id="@me"))
            await client.get_issues(IssueFilter(assigned_to_id="@me"))
        assert fake.count("GET", "/users/current.json") == 1

    async def test_get_issue(self) -> None:
        fake = FakeRedmine(_standard_routes())
        async with _client(fake) as client:
            issue = await client.get_issue(42)
            await client.get_issue(42, include_journals=True)

        assert issue.subject == "Login fails"
        assert issue.done_ratio == 50
        first, second = (r for r in fake.requests if r.url.path == "/issues/42.json")
        assert "include" not in first.url.params
        assert second.url.params["include"] == "journals"

    async def test_default_limit(self) -> None:
        fake = FakeRedmine(_standard_routes())
        client = RedmineClient(
            Profile(url=BASE_URL), default_limit=25, transport=httpx.MockTransport(fake)
        )
        async with client:
            await client.get_issues(IssueFilter())
            await client.get_issues(IssueFilter(limit=3))
        first, second = (r for r in fake.requests if r.url.path == "/issues.json")
        assert first.url.params["limit"] == "25"
        assert second.url.params["limit"] == "3"

    async def test_search(self) -> None:
        fake = FakeRedmine(_standard_routes())
        async with _client(fake) as client:
            issues = await client.search("login", status="open", limit=5)
        assert len(issues) == 1
        params = fake.last("GET", "/issues.json").url.params
        assert params["any_searchable"] == "login"
        assert params["status_id"] == "open"
        assert params["limit"] == "5"

    async def test_search_requires_query(self) -> None:
        async with _client(FakeRedmine({})) as client:
            with pytest.raises(RedmineValidationError):
                await client.search("  ")


class TestWrites:
    async def test_create_issue(self) -> None:
        routes = _standard_routes()
        routes[("POST", "/issues.json")] = lambda request: httpx.Response(201, json={"issue": ISSUE})
        fake = FakeRedmine(routes)

        async with _client(fake) as client:
            issue = await client.create_issue("web", "Login fails", assigned_to="alice", priority="high")

        assert issue.id == 42
        body = json.loads(fake.last("POST", "/issues.json").content)
        assert body == {
            "issue": {
                "project_id": 1,
                "subject": "Login fails",
                "assigned_to_id": 5,
                "priority_id": 3,
            }
        }

    async def test_create_issue_unknown_project(self) -> None:
        fake = FakeRedmine(_standard_routes())
        async with _client(fake) as client:
            with pytest.raises(RedmineValidationError, match="Project 'mobile' not found"):
                await client.create_issue("mobile", "x")
        assert fake.count("POST", "/issues.json") == 0

    async def test_update_issue(self) -> None:
        routes = _standard_routes()
        routes[("PUT", "/issues/42.json")] = lambda request: httpx.Response(204)
        fake = FakeRedmine(routes)

        async with _client(fake) as client:
            issue = await client.update_issue(42, status="closed", done_ratio=100, notes="Fixed")

        assert issue.id == 42
        body = json.loads(fake.last("PUT", "/issues/42.json").content)
        assert body == {"issue": {"status_id": 5, "done_ratio": 100, "notes": "Fixed"}}

    async def test_update_issue_nothing_to_update(self) -> None:
        async with _client(FakeRedmine({})) as client:
            with pytest.raises(RedmineValidationError, match="Nothing to update"):
                await client.update_issue(42)

    async def test_add_comment(self) -> None:
        routes = _standard_routes()
        routes[("PUT", "/issues/42.json")] = lambda request: httpx.Response(204)
        fake = FakeRedmine(routes)

        async with _client(fake) as client:
            assert await client.add_comment(42, "Looks good") is None

        assert json.loads(fake.last("PUT", "/issues/42.json").content) == {"issue": {"notes": "Looks good"}}


class TestLookups:
    async def test_lists(self) -> None:
        fake = FakeRedmine(_standard_routes())
        async with _client(fake) as client:
            projects = await client.get_projects()
            users = await client.get_users(limit=3)
            statuses = await client.get_statuses()
            me = await client.get_current_user()

        assert [p.identifier for p in projects] == ["web"]
        assert users[0].display_name == "Alice Smith"
        assert fake.last("GET", "/users.json").url.params["limit"] == "3"
        assert [s.is_closed for s in statuses] == [False, True]
        assert me.login == "alice"


class TestErrors:
    async def test_http_error_detail(self) -> None:
        routes = {
            ("POST", "/issues.json"): lambda request: httpx.Response(
                422, json={"errors": ["Subject cannot be blank", "Tracker is invalid"]}
            ),
        }
        async with _client(FakeRedmine(routes)) as client:
            with pytest.raises(RedmineApiError) as exc_info:
                await client.create_issue("1", "x")
        assert exc_info.value.status_code == 422
        assert exc_info.value.detail == "Subject cannot be blank; Tracker is invalid"

    async def test_not_found(self) -> None:
        async with _client(FakeRedmine({})) as client:
            with pytest.raises(RedmineApiError) as exc_info:
                await client.get_issue(999)
        assert exc_info.value.status_code == 404

    async def test_non_json_error_body(self) -> None:
        routes = {("GET", "/projects.json"): lambda request: httpx.Response(502, text="<html>bad gateway</html>")}
        async with _client(FakeRedmine(routes)) as client:
            with pytest.raises(RedmineApiError, match="502"):
                await client.get_projects()

    async def test_transport_failure(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(FakeRedmine({("GET", "/projects.json"): refuse})) as client:
            with pytest.raises(RedmineApiError, match="connection refused") as exc_info:
                await client.get_projects()
        assert exc_info.value.status_code is None
