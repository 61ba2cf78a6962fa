"""Tests for resource URI matching."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from rmcli.mcp.errors import INVALID_PARAMS, InvalidParamsError
from rmcli.mcp.resources import RESOURCES, ResourceKind, ResourceRoute, route
from rmcli.redmine.models import IssueFilter


class TestRoute:
    def test_issue(self) -> None:
        matched = route("issue://456")
        assert matched.kind is ResourceKind.ISSUE
        assert matched.issue_id == 456

    def test_my_issues(self) -> None:
        assert route("issues://").kind is ResourceKind.MY_ISSUES

    def test_project_issues(self) -> None:
        matched = route("project://backend/issues")
        assert matched.kind is ResourceKind.PROJECT_ISSUES
        assert matched.project_id == "backend"

    @pytest.mark.parametrize("uri", ["issue://abc", "issue://", "issue://0", "issue://-3", "issue://12/x"])
    def test_malformed_issue_id(self, uri: str) -> None:
        with pytest.raises(InvalidParamsError) as exc_info:
            route(uri)
        assert exc_info.value.code == INVALID_PARAMS
        assert exc_info.value.data == uri
        assert "Invalid issue id" in exc_info.value.message

    @pytest.mark.parametrize(
        "uri",
        ["issues://extra", "project:///issues", "project://a/b/issues", "project://x", "file:///etc/passwd", "nonsense"],
    )
    def test_unknown_uri(self, uri: str) -> None:
        with pytest.raises(InvalidParamsError) as exc_info:
            route(uri)
        assert exc_info.value.data == uri
        assert exc_info.value.message == f"Unknown resource URI: {uri}"

    @pytest.mark.parametrize("kind", [ResourceKind.ISSUE, ResourceKind.PROJECT_ISSUES])
    def test_route_requires_its_id(self, kind: ResourceKind) -> None:
        with pytest.raises(ValueError, match="requires"):
            ResourceRoute(kind=kind, uri="x://")


class TestFetch:
    async def test_issue_fetch(self) -> None:
        service = AsyncMock()
        service.get_issue.return_value = {"id": 456}
        assert await route("issue://456").fetch(service) == {"id": 456}
        service.get_issue.assert_awaited_once_with(456, False)

    async def test_my_issues_fetch(self) -> None:
        service = AsyncMock()
        service.get_issues.return_value = []
        await route("issues://").fetch(service)
        service.get_issues.assert_awaited_once_with(IssueFilter(assigned_to_id="@me"))

    async def test_project_issues_fetch(self) -> None:
        service = AsyncMock()
        service.get_issues.return_value = []
        await route("project://42/issues").fetch(service)
        service.get_issues.assert_awaited_once_with(IssueFilter(project_id="42"))


class TestCatalogue:
    def test_templates(self) -> None:
        assert [r.uri for r in RESOURCES] == ["issue://{id}", "issues://", "project://{id}/issues"]
        assert all(r.mime_type == "application/json" for r in RESOURCES)
