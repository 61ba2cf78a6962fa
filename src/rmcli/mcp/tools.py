"""Tool Registry — the fixed catalogue of tools exposed over ``tools/*``.

Each entry couples the wire definition (name, description, input schema)
with a typed argument model and the coroutine that forwards the call to the
:class:`~rmcli.redmine.service.RedmineService`. The registry is built once
and is read-only afterwards.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Annotated, Any

from pydantic import Field

from rmcli.mcp.binder import ToolArguments, WireInt
from rmcli.mcp.models import InputSchema, SchemaProperty, ToolDef
from rmcli.redmine.models import IssueFilter

if TYPE_CHECKING:
    from rmcli.redmine.service import RedmineService

ToolHandler = Callable[["RedmineService", Any], Awaitable[Any]]

IssueId = Annotated[WireInt, Field(ge=1)]
Limit = Annotated[WireInt, Field(ge=1)]
Percent = Annotated[WireInt, Field(ge=0, le=100)]

# ---------------------------------------------------------------------------
# Argument models
# ---------------------------------------------------------------------------


class NoArguments(ToolArguments):
    pass


class GetIssuesArguments(ToolArguments):
    assigned_to: str | None = Field(default=None, alias="assignedTo")
    status: str | None = None
    project: str | None = None
    limit: Limit | None = None


class GetIssueArguments(ToolArguments):
    issue_id: IssueId = Field(alias="issueId")
    include_journals: bool = Field(default=False, alias="includeJournals")


class CreateIssueArguments(ToolArguments):
    project: str
    subject: str
    description: str | None = None
    priority: str | None = None
    assigned_to: str | None = Field(default=None, alias="assignedTo")


class UpdateIssueArguments(ToolArguments):
    issue_id: IssueId = Field(alias="issueId")
    subject: str | None = None
    description: str | None = None
    status: str | None = None
    assigned_to: str | None = Field(default=None, alias="assignedTo")
    done_ratio: Percent | None = Field(default=None, alias="doneRatio")
    notes: str | None = None


class AddCommentArguments(ToolArguments):
    issue_id: IssueId = Field(alias="issueId")
    comment: str


class GetUsersArguments(ToolArguments):
    limit: Limit | None = None


class SearchArguments(ToolArguments):
    query: str = Field(min_length=1)
    assigned_to: str | None = Field(default=None, alias="assignedTo")
    status: str | None = None
    project: str | None = None
    limit: Limit | None = None


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _get_issues(service: RedmineService, args: GetIssuesArguments) -> Any:
    issue_filter = IssueFilter(
        assigned_to_id=args.assigned_to,
        status_id=args.status,
        project_id=args.project,
        limit=args.limit,
    )
    return await service.get_issues(issue_filter)


async def _get_issue(service: RedmineService, args: GetIssueArguments) -> Any:
    return await service.get_issue(args.issue_id, args.include_journals)


async def _create_issue(service: RedmineService, args: CreateIssueArguments) -> Any:
    return await service.create_issue(
        args.project,
        args.subject,
        description=args.description,
        assigned_to=args.assigned_to,
        priority=args.priority,
    )


async def _update_issue(service: RedmineService, args: UpdateIssueArguments) -> Any:
    await service.update_issue(
        args.issue_id,
        subject=args.subject,
        description=args.description,
        status=args.status,
        assigned_to=args.assigned_to,
        done_ratio=args.done_ratio,
        notes=args.notes,
    )
    return {"success": True, "issueId": args.issue_id}


async def _add_comment(service: RedmineService, args: AddCommentArguments) -> Any:
    await service.add_comment(args.issue_id, args.comment)
    return {"success": True, "issueId": args.issue_id}


async def _get_projects(service: RedmineService, _: NoArguments) -> Any:
    return await service.get_projects()


async def _get_users(service: RedmineService, args: GetUsersArguments) -> Any:
    return await service.get_users(args.limit)


async def _get_statuses(service: RedmineService, _: NoArguments) -> Any:
    return await service.get_statuses()


async def _search(service: RedmineService, args: SearchArguments) -> Any:
    return await service.search(
        args.query,
        assigned_to=args.assigned_to,
        status=args.status,
        project=args.project,
        limit=args.limit,
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Tool:
    """A registered tool: wire definition, argument model, handler."""

    definition: ToolDef
    arguments: type[ToolArguments]
    handler: ToolHandler

    @property
    def name(self) -> str:
        return self.definition.name


class ToolRegistry:
    """Immutable name-to-tool map.

    Construction checks that every argument model matches its declared
    input schema (same wire names, same required set).
    """

    def __init__(self, tools: Iterable[Tool]) -> None:
        entries: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in entries:
                msg = f"duplicate tool name: {tool.name}"
                raise ValueError(msg)
            _check_schema(tool)
            entries[tool.name] = tool
        self._tools = MappingProxyType(entries)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[ToolDef]:
        return [tool.definition for tool in self._tools.values()]


def _check_schema(tool: Tool) -> None:
    schema = tool.definition.input_schema
    declared = {name: name in tool.definition.required for name in schema.properties}
    if declared != tool.arguments.wire_properties():
        msg = f"argument model for '{tool.name}' does not match its input schema"
        raise ValueError(msg)


def _schema(
    properties: dict[str, tuple[str, str]],
    required: list[str] | None = None,
) -> InputSchema:
    return InputSchema(
        properties={
            name: SchemaProperty(type=type_, description=description)
            for name, (type_, description) in properties.items()
        },
        required=required,
    )


def _tool(
    name: str,
    description: str,
    schema: InputSchema,
    arguments: type[ToolArguments],
    handler: ToolHandler,
) -> Tool:
    return Tool(
        definition=ToolDef(name=name, description=description, input_schema=schema),
        arguments=arguments,
        handler=handler,
    )


def default_tools() -> list[Tool]:
    """The nine Redmine tools, in catalogue order."""
    return [
        _tool(
            "get_issues",
            "Get a list of Redmine issues with optional filters",
            _schema({
                "assignedTo": ("string", "Filter by assigned user (use '@me' for current user)"),
                "status": ("string", "Filter by status (e.g., 'open', 'closed', or specific status name)"),
                "project": ("string", "Filter by project identifier"),
                "limit": ("integer", "Maximum number of issues to return"),
            }),
            GetIssuesArguments,
            _get_issues,
        ),
        _tool(
            "get_issue",
            "Get details of a specific Redmine issue by ID",
            _schema(
                {
                    "issueId": ("integer", "Issue ID"),
                    "includeJournals": ("boolean", "Include the issue history (journals)"),
                },
                required=["issueId"],
            ),
            GetIssueArguments,
            _get_issue,
        ),
        _tool(
            "create_issue",
            "Create a new Redmine issue",
            _schema(
                {
                    "project": ("string", "Project identifier"),
                    "subject": ("string", "Issue subject/title"),
                    "description": ("string", "Issue description"),
                    "priority": ("string", "Priority name"),
                    "assignedTo": ("string", "Assigned user login name"),
                },
                required=["project", "subject"],
            ),
            CreateIssueArguments,
            _create_issue,
        ),
        _tool(
            "update_issue",
            "Update an existing Redmine issue",
            _schema(
                {
                    "issueId": ("integer", "Issue ID"),
                    "subject": ("string", "New subject"),
                    "description": ("string", "New description"),
                    "status": ("string", "New status"),
                    "assignedTo": ("string", "New assigned user"),
                    "doneRatio": ("integer", "Done ratio (0-100)"),
                    "notes": ("string", "Update notes"),
                },
                required=["issueId"],
            ),
            UpdateIssueArguments,
            _update_issue,
        ),
        _tool(
            "add_comment",
            "Add a comment to a Redmine issue",
            _schema(
                {
                    "issueId": ("integer", "Issue ID"),
                    "comment": ("string", "Comment text"),
                },
                required=["issueId", "comment"],
            ),
            AddCommentArguments,
            _add_comment,
        ),
        _tool(
            "get_projects",
            "Get a list of Redmine projects",
            _schema({}),
            NoArguments,
            _get_projects,
        ),
        _tool(
            "get_users",
            "Get a list of Redmine users",
            _schema({"limit": ("integer", "Maximum number of users to return")}),
            GetUsersArguments,
            _get_users,
        ),
        _tool(
            "get_statuses",
            "Get a list of issue statuses",
            _schema({}),
            NoArguments,
            _get_statuses,
        ),
        _tool(
            "search",
            "Search for issues by keyword",
            _schema(
                {
                    "query": ("string", "Search query"),
                    "assignedTo": ("string", "Filter by assigned user (use '@me' for current user)"),
                    "status": ("string", "Filter by status"),
                    "project": ("string", "Filter by project identifier"),
                    "limit": ("integer", "Maximum number of issues to return"),
                },
                required=["query"],
            ),
            SearchArguments,
            _search,
        ),
    ]


def build_tool_registry() -> ToolRegistry:
    return ToolRegistry(default_tools())
