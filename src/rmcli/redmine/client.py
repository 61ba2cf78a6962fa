"""RedmineClient — the Redmine REST API behind the :class:`RedmineService` protocol."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from rmcli.errors import RedmineApiError, RedmineValidationError
from rmcli.redmine.models import Issue, IssueFilter, IssueStatus, NamedRef, Project, User

if TYPE_CHECKING:
    from rmcli.config import Profile

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Redmine-API-Key"
CURRENT_USER = "@me"
STATUS_FILTERS = frozenset({"open", "closed", "*"})
USER_PAGE_SIZE = 100


class RedmineClient:
    """Talks to one Redmine server over HTTP.

    Satisfies the :class:`~rmcli.redmine.service.RedmineService` protocol.
    Issue listings without a limit use *default_limit*. Lookups used to
    resolve names (current user, statuses, projects, priorities) are cached for the lifetime of the client.

    Usage::

        async with RedmineClient(profile) as client:
            issues = await client.get_issues(IssueFilter(assigned_to_id="@me"))
    """

    def __init__(
        self,
        profile: Profile,
        *,
        default_limit: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not profile.url:
            msg = "RedmineClient requires a profile with a URL"
            raise ValueError(msg)
        self._profile = profile
        self._default_limit = default_limit
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._current_user: User | None = None
        self._statuses: list[IssueStatus] | None = None
        self._projects: list[Project] | None = None
        self._priorities: list[NamedRef] | None = None

    async def __aenter__(self) -> RedmineClient:
        headers = {"Accept": "application/json"}
        if self._profile.api_key:
            headers[API_KEY_HEADER] = self._profile.api_key
        self._client = httpx.AsyncClient(
            base_url=self._profile.url or "",
            headers=headers,
            timeout=self._profile.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *_: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "RedmineClient must be used as an async context manager"
            raise RuntimeError(msg)
        return self._client

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    async def get_issues(self, filter: IssueFilter) -> list[Issue]:
        return await self._list_issues(filter)

    async def search(
        self,
        query: str,
        *,
        assigned_to: str | None = None,
        status: str | None = None,
        project: str | None = None,
        limit: int | None = None,
    ) -> list[Issue]:
        if not query.strip():
            raise RedmineValidationError("Search query must not be empty")
        issue_filter = IssueFilter(
            assigned_to_id=assigned_to,
            status_id=status,
            project_id=project,
            limit=limit,
        )
        return await self._list_issues(issue_filter, any_searchable=query)

    async def get_issue(self, issue_id: int, include_journals: bool = False) -> Issue:
        params = {"include": "journals"} if include_journals else None
        data = await self._request("GET", f"/issues/{issue_id}.json", params=params)
        return Issue.model_validate(data["issue"])

    async def create_issue(
        self,
        project: str,
        subject: str,
        description: str | None = None,
        assigned_to: str | None = None,
        priority: str | None = None,
    ) -> Issue:
        if not subject.strip():
            raise RedmineValidationError("Issue subject must not be empty")
        payload = _compact({
            "project_id": await self._resolve_project(project),
            "subject": subject,
            "description": description,
            "assigned_to_id": _as_int(await self._resolve_user(assigned_to)),
            "priority_id": await self._resolve_priority(priority),
        })
        data = await self._request("POST", "/issues.json", json={"issue": payload})
        return Issue.model_validate(data["issue"])

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
    ) -> Issue:
        payload = _compact({
            "subject": subject,
            "description": description,
            "status_id": _as_int(await self._resolve_status(status, allow_filters=False)),
            "assigned_to_id": _as_int(await self._resolve_user(assigned_to)),
            "done_ratio": done_ratio,
            "notes": notes,
        })
        if not payload:
            raise RedmineValidationError(f"Nothing to update for issue {issue_id}")
        await self._request("PUT", f"/issues/{issue_id}.json", json={"issue": payload})
        return await self.get_issue(issue_id)

    async def add_comment(self, issue_id: int, comment: str) -> None:
        if not comment.strip():
            raise RedmineValidationError("Comment must not be empty")
        await self._request("PUT", f"/issues/{issue_id}.json", json={"issue": {"notes": comment}})

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_projects(self) -> list[Project]:
        if self._projects is None:
            data = await self._request("GET", "/projects.json")
            self._projects = [Project.model_validate(p) for p in data.get("projects", [])]
        return list(self._projects)

    async def get_users(self, limit: int | None = None) -> list[User]:
        data = await self._request("GET", "/users.json", params={"limit": limit})
        return [User.model_validate(u) for u in data.get("users", [])]

    async def get_statuses(self) -> list[IssueStatus]:
        if self._statuses is None:
            data = await self._request("GET", "/issue_statuses.json")
            self._statuses = [IssueStatus.model_validate(s) for s in data.get("issue_statuses", [])]
        return list(self._statuses)

    async def get_current_user(self) -> User:
        if self._current_user is None:
            data = await self._request("GET", "/users/current.json")
            self._current_user = User.model_validate(data["user"])
        return self._current_user

    async def get_priorities(self) -> list[NamedRef]:
        if self._priorities is None:
            data = await self._request("GET", "/enumerations/issue_priorities.json")
            self._priorities = [NamedRef.model_validate(p) for p in data.get("issue_priorities", [])]
        return list(self._priorities)

    # ------------------------------------------------------------------
    # Name resolution
    # ------------------------------------------------------------------

    async def _resolve_user(self, value: str | None) -> str | None:
        """User id for a numeric id, ``@me`` or a login.

        Logins are looked up with the server-side ``name`` filter, paging
        until an exact match or the last page.
        """
        if not value:
            return None
        if value == CURRENT_USER:
            return str((await self.get_current_user()).id)
        if value.isdigit():
            return value
        offset = 0
        while True:
            data = await self._request(
                "GET",
                "/users.json",
                params={"name": value, "limit": USER_PAGE_SIZE, "offset": offset or None},
            )
            page = [User.model_validate(u) for u in data.get("users", [])]
            for user in page:
                if user.login and user.login.lower() == value.lower():
                    return str(user.id)
            offset += len(page)
            if not page or offset >= data.get("total_count", offset):
                break
        raise RedmineValidationError(f"User '{value}' not found")

    async def _resolve_status(self, value: str | None, *, allow_filters: bool) -> str | None:
        """Status id for a numeric id or a status name.

        With *allow_filters*, the query keywords ``open``, ``closed`` and
        ``*`` pass through unchanged.
        """
        if not value:
            return None
        if allow_filters and value.lower() in STATUS_FILTERS:
            return value.lower()
        if value.isdigit():
            return value
        for status in await self.get_statuses():
            if status.name.lower() == value.lower():
                return str(status.id)
        raise RedmineValidationError(f"Status '{value}' not found")

    async def _resolve_project(self, value: str) -> int:
        if not value:
            raise RedmineValidationError("Project ID or identifier is required")
        if value.isdigit():
            return int(value)
        for project in await self.get_projects():
            identifier = (project.identifier or "").lower()
            if value.lower() in (identifier, project.name.lower()):
                return project.id
        raise RedmineValidationError(f"Project '{value}' not found")

    async def _resolve_priority(self, value: str | None) -> int | None:
        if not value:
            return None
        if value.isdigit():
            return int(value)
        for priority in await self.get_priorities():
            if priority.name.lower() == value.lower():
                return priority.id
        raise RedmineValidationError(f"Priority '{value}' not found")

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _list_issues(self, issue_filter: IssueFilter, **extra: Any) -> list[Issue]:
        params = {
            "assigned_to_id": await self._resolve_user(issue_filter.assigned_to_id),
            "project_id": issue_filter.project_id,
            "status_id": await self._resolve_status(issue_filter.status_id, allow_filters=True),
            "limit": issue_filter.limit or self._default_limit,
            "offset": issue_filter.offset,
            **extra,
        }
        data = await self._request("GET", "/issues.json", params=params)
        return [Issue.model_validate(i) for i in data.get("issues", [])]

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        logger.debug("Redmine %s %s params=%s", method, path, params)
        try:
            response = await self._http().request(
                method, path, params=_compact(params or {}), json=json
            )
        except httpx.HTTPError as exc:
            raise RedmineApiError(None, str(exc)) from exc

        if response.is_error:
            raise RedmineApiError(response.status_code, _error_detail(response))
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise RedmineApiError(response.status_code, "Response is not valid JSON") from exc


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def _as_int(value: str | None) -> int | None:
    return int(value) if value is not None else None


def _error_detail(response: httpx.Response) -> str:
    """Redmine reports validation failures as ``{"errors": [...]}``."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("errors"), list):
        return "; ".join(str(e) for e in body["errors"])
    return response.reason_phrase
