"""RedmineService protocol — the domain operations the MCP server forwards to.

:class:`~rmcli.redmine.client.RedmineClient` is the HTTP implementation;
tests substitute an ``AsyncMock``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rmcli.redmine.models import Issue, IssueFilter, IssueStatus, Project, User


@runtime_checkable
class RedmineService(Protocol):
    """Asynchronous Redmine domain operations. Any method may raise."""

    async def get_issues(self, filter: IssueFilter) -> list[Issue]: ...

    async def get_issue(self, issue_id: int, include_journals: bool = False) -> Issue: ...

    async def create_issue(
        self,
        project: str,
        subject: str,
        description: str | None = None,
        assigned_to: str | None = None,
        priority: str | None = None,
    ) -> Issue: ...

    async def update_issue(
        self,
        issue_id: int,
        *,
        subject: str | None = None,
        description: str | None = None,
        status: str | None = None,
        assigned_to: str | None = None,
        done_ratio: int | None = None,
        notes: str | None = None,
    ) -> Issue: ...

    async def add_comment(self, issue_id: int, comment: str) -> None: ...

    async def get_projects(self) -> list[Project]: ...

    async def get_users(self, limit: int | None = None) -> list[User]: ...

    async def get_statuses(self) -> list[IssueStatus]: ...

    async def search(
        self,
        query: str,
        *,
        assigned_to: str | None = None,
        status: str | None = None,
        project: str | None = None,
        limit: int | None = None,
    ) -> list[Issue]: ...

    async def get_current_user(self) -> User: ...
