"""Shared CLI output formatters."""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from rmcli.mcp.serialization import JsonSerializer

if TYPE_CHECKING:
    from rmcli.mcp.models import ResourceDef, ToolDef
    from rmcli.redmine.models import Issue, IssueStatus, NamedRef, Project, User

console = Console()
err_console = Console(stderr=True)

_json = JsonSerializer(indent=2)


def print_json(value: Any) -> None:
    """Print domain objects as JSON with their field names."""
    console.print_json(_json.dumps(value))


def print_tools_table(tools: list[ToolDef], *, as_json: bool = False) -> None:
    """Pretty-print the tool catalogue as a table."""
    if as_json:
        console.print_json(json.dumps([tool.to_dict() for tool in tools]))
        return

    table = Table(title="MCP Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Arguments")
    table.add_column("Description")

    for tool in tools:
        required = tool.required
        args = [
            f"{name}*" if name in required else name
            for name in tool.input_schema.properties
        ]
        table.add_row(tool.name, ", ".join(args) or "-", _truncate(tool.description))

    console.print(table)
    console.print("[dim]* required[/dim]")


def print_resources_table(resources: list[ResourceDef], *, as_json: bool = False) -> None:
    """Pretty-print the resource templates as a table."""
    if as_json:
        console.print_json(json.dumps([resource.to_dict() for resource in resources]))
        return

    table = Table(title="MCP Resources")
    table.add_column("URI", style="cyan")
    table.add_column("Name")
    table.add_column("MIME type")
    table.add_column("Description")

    for resource in resources:
        table.add_row(
            resource.uri,
            resource.name,
            resource.mime_type,
            _truncate(resource.description),
        )

    console.print(table)


def print_issues_table(issues: list[Issue], *, as_json: bool = False) -> None:
    if as_json:
        print_json(issues)
        return
    if not issues:
        console.print("[yellow]No issues found.[/yellow]")
        return

    table = Table(title="Issues")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Subject")
    table.add_column("Priority")
    table.add_column("Status")
    table.add_column("Assignee")
    table.add_column("Project")
    table.add_column("Due Date")
    table.add_column("Updated")

    for issue in issues:
        table.add_row(
            str(issue.id),
            escape(_truncate(issue.subject)),
            _ref(issue.priority, "Normal"),
            _ref(issue.status, "Unknown"),
            _ref(issue.assigned_to, "Unassigned"),
            _ref(issue.project, "No Project"),
            _when(issue.due_date, "Not set"),
            _when(issue.updated_on),
        )

    console.print(table)


def print_issue_details(issue: Issue, *, as_json: bool = False) -> None:
    """Header panel, a property grid, the description and any journals."""
    if as_json:
        print_json(issue)
        return

    console.print(Panel(f"[bold]{escape(issue.subject)}[/bold]", title=f"Issue #{issue.id}"))

    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold")
    grid.add_column()
    grid.add_row("Status:", _ref(issue.status, "Unknown"))
    grid.add_row("Priority:", _ref(issue.priority, "Normal"))
    grid.add_row("Assignee:", _ref(issue.assigned_to, "Unassigned"))
    grid.add_row("Project:", _ref(issue.project, "No Project"))
    grid.add_row("Progress:", f"{issue.done_ratio or 0}%")
    grid.add_row("Due Date:", _when(issue.due_date, "Not set"))
    grid.add_row("Created:", _when(issue.created_on))
    grid.add_row("Updated:", _when(issue.updated_on))
    console.print(grid)

    if issue.description and issue.description.strip():
        console.print("\n[bold]Description:[/bold]")
        console.print(escape(issue.description))

    if issue.journals:
        console.print("\n[bold]History:[/bold]")
        for journal in issue.journals:
            author = _ref(journal.user, "Unknown")
            console.print(f"  [dim]{_when(journal.created_on)}[/dim] {author}")
            for detail in journal.details:
                console.print(
                    f"    {escape(detail.name)}: {escape(detail.old_value or '-')} → {escape(detail.new_value or '-')}"
                )
            if journal.notes:
                console.print(f"    {escape(journal.notes)}")


def print_projects_table(projects: list[Project], *, as_json: bool = False) -> None:
    if as_json:
        print_json(projects)
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Identifier")
    table.add_column("Name")
    table.add_column("Description")
    table.add_column("Created")

    for project in projects:
        table.add_row(
            str(project.id),
            escape(project.identifier or ""),
            escape(project.name),
            escape(_truncate(project.description or "")),
            _when(project.created_on),
        )

    console.print(table)


def print_users_table(users: list[User], *, show_all: bool = False, as_json: bool = False) -> None:
    """Users as a table; ``show_all`` adds e-mail and timestamps."""
    if as_json:
        exclude = None if show_all else {"mail", "created_on", "last_login_on"}
        print_json([user.model_dump(exclude=exclude) for user in users])
        return

    table = Table(title="Users")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Login")
    table.add_column("Name")
    if show_all:
        table.add_column("Email")
        table.add_column("Created")
        table.add_column("Last Login")

    for user in users:
        row = [str(user.id), escape(user.login or ""), escape(user.display_name)]
        if show_all:
            row += [escape(user.mail or ""), _when(user.created_on), _when(user.last_login_on)]
        table.add_row(*row)

    console.print(table)


def print_statuses_table(statuses: list[IssueStatus], *, as_json: bool = False) -> None:
    if as_json:
        print_json(statuses)
        return

    table = Table(title="Issue Statuses")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")
    table.add_column("Closed")

    for status in statuses:
        table.add_row(str(status.id), escape(status.name), "yes" if status.is_closed else "no")

    console.print(table)


def print_priorities_table(priorities: list[NamedRef], *, as_json: bool = False) -> None:
    if as_json:
        print_json(priorities)
        return

    table = Table(title="Priorities")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")

    for priority in priorities:
        table.add_row(str(priority.id), escape(priority.name))

    console.print(table)


def _ref(ref: NamedRef | None, fallback: str) -> str:
    return escape(ref.name) if ref and ref.name else fallback


def _when(value: date | datetime | None, fallback: str = "-") -> str:
    if value is None:
        return fallback
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    return value.isoformat()


def _truncate(text: str, length: int = 80) -> str:
    if len(text) <= length:
        return text
    return text[: length - 3] + "..."
