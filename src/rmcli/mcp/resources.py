"""Resource Router — read-only Redmine views addressed by URI.

Matching is evaluated in a fixed priority order::

    issue://{id}            single issue (numeric id)
    issues://               issues assigned to the current user
    project://{id}/issues   issues of one project
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from rmcli.mcp.errors import InvalidParamsError
from rmcli.mcp.models import ResourceDef
from rmcli.redmine.models import IssueFilter

if TYPE_CHECKING:
    from rmcli.redmine.service import RedmineService

ISSUE_PREFIX = "issue://"
MY_ISSUES_URI = "issues://"
PROJECT_PREFIX = "project://"
PROJECT_SUFFIX = "/issues"
CURRENT_USER = "@me"

_ISSUE_ID = re.compile(r"[1-9][0-9]*")

RESOURCES: tuple[ResourceDef, ...] = (
    ResourceDef(
        uri="issue://{id}",
        name="Redmine Issue",
        description="Get details of a specific issue by ID",
    ),
    ResourceDef(
        uri="issues://",
        name="My Issues",
        description="List of issues assigned to the current user",
    ),
    ResourceDef(
        uri="project://{id}/issues",
        name="Project Issues",
        description="List of issues in a specific project",
    ),
)


class ResourceKind(str, Enum):
    ISSUE = "issue"
    MY_ISSUES = "my_issues"
    PROJECT_ISSUES = "project_issues"


@dataclass(frozen=True)
class ResourceRoute:
    """A matched resource URI."""

    kind: ResourceKind
    uri: str
    issue_id: int | None = None
    project_id: str | None = None

    def __post_init__(self) -> None:
        if self.kind is ResourceKind.ISSUE and self.issue_id is None:
            msg = f"issue route requires an issue id: {self.uri}"
            raise ValueError(msg)
        if self.kind is ResourceKind.PROJECT_ISSUES and not self.project_id:
            msg = f"project route requires a project id: {self.uri}"
            raise ValueError(msg)

    async def fetch(self, service: RedmineService) -> Any:
        """Read the addressed view from *service*."""
        if self.kind is ResourceKind.ISSUE and self.issue_id is not None:
            return await service.get_issue(self.issue_id, False)
        if self.kind is ResourceKind.MY_ISSUES:
            return await service.get_issues(IssueFilter(assigned_to_id=CURRENT_USER))
        return await service.get_issues(IssueFilter(project_id=self.project_id))


def route(uri: str) -> ResourceRoute:
    """Match *uri* against the resource templates.

    Raises:
        InvalidParamsError: If the URI matches no template, or its id
            segment is malformed.
    """
    if uri.startswith(ISSUE_PREFIX):
        raw_id = uri[len(ISSUE_PREFIX):]
        if not _ISSUE_ID.fullmatch(raw_id):
            raise InvalidParamsError(f"Invalid issue id in resource URI: {uri}", data=uri)
        return ResourceRoute(kind=ResourceKind.ISSUE, uri=uri, issue_id=int(raw_id))

    if uri == MY_ISSUES_URI:
        return ResourceRoute(kind=ResourceKind.MY_ISSUES, uri=uri)

    if uri.startswith(PROJECT_PREFIX) and uri.endswith(PROJECT_SUFFIX):
        project_id = uri[len(PROJECT_PREFIX):-len(PROJECT_SUFFIX)]
        if project_id and "/" not in project_id:
            return ResourceRoute(kind=ResourceKind.PROJECT_ISSUES, uri=uri, project_id=project_id)

    raise InvalidParamsError(f"Unknown resource URI: {uri}", data=uri)
