"""``rmcli issue`` — list, view, create and edit issues."""

from __future__ import annotations

import click

from rmcli.cli_commands._client import profile_option, run_with_client
from rmcli.cli_commands._output import console, print_issue_details, print_issues_table

json_option = click.option("--json", "as_json", is_flag=True, help="Output in JSON format.")


@click.group()
def issue() -> None:
    """Manage Redmine issues."""


@issue.command("list")
@click.option("--assignee", "-a", default=None, help="Filter by assignee (login, ID or @me).")
@click.option("--status", "-s", default=None, help="Filter by status (open, closed, *, name or ID).")
@click.option("--project", default=None, help="Filter by project (identifier or ID).")
@click.option("--limit", "-L", type=click.IntRange(min=1), default=None, help="Maximum number of issues.")
@click.option("--offset", type=click.IntRange(min=0), default=None, help="Offset for pagination.")
@json_option
@profile_option
@click.pass_context
def list_issues(
    ctx: click.Context,
    assignee: str | None,
    status: str | None,
    project: str | None,
    limit: int | None,
    offset: int | None,
    as_json: bool,
    profile: str | None,
) -> None:
    """List issues. Without filters, lists your open issues."""
    from rmcli.redmine.models import IssueFilter

    if not (assignee or status or project):
        assignee, status = "@me", "open"
    issue_filter = IssueFilter(
        assigned_to_id=assignee,
        status_id=status,
        project_id=project,
        limit=limit,
        offset=offset,
    )
    issues = run_with_client(ctx, profile, lambda client: client.get_issues(issue_filter))
    print_issues_table(issues, as_json=as_json)


@issue.command("view")
@click.argument("issue_id", type=click.IntRange(min=1))
@click.option("--journals", "-j", is_flag=True, help="Include the issue history.")
@json_option
@profile_option
@click.pass_context
def view(ctx: click.Context, issue_id: int, journals: bool, as_json: bool, profile: str | None) -> None:
    """Show ISSUE_ID in detail."""
    found = run_with_client(ctx, profile, lambda client: client.get_issue(issue_id, journals))
    print_issue_details(found, as_json=as_json)


@issue.command("create")
@click.option("--project", required=True, help="Project identifier or ID.")
@click.option("--title", "-t", "subject", required=True, help="Issue subject.")
@click.option("--description", "-d", default=None, help="Issue description.")
@click.option("--assignee", "-a", default=None, help="Assignee (login, ID or @me).")
@click.option("--priority", default=None, help="Priority name or ID.")
@json_option
@profile_option
@click.pass_context
def create(
    ctx: click.Context,
    project: str,
    subject: str,
    description: str | None,
    assignee: str | None,
    priority: str | None,
    as_json: bool,
    profile: str | None,
) -> None:
    """Create a new issue."""
    created = run_with_client(
        ctx,
        profile,
        lambda client: client.create_issue(
            project,
            subject,
            description=description,
            assigned_to=assignee,
            priority=priority,
        ),
    )
    if as_json:
        print_issue_details(created, as_json=True)
        return
    console.print(f"[green]Created issue #{created.id}[/green]")


@issue.command("edit")
@click.argument("issue_id", type=click.IntRange(min=1))
@click.option("--title", "-t", "subject", default=None, help="New subject.")
@click.option("--description", "-d", default=None, help="New description.")
@click.option("--status", "-s", default=None, help="New status (name or ID).")
@click.option("--assignee", "-a", default=None, help="New assignee (login, ID or @me).")
@click.option("--done-ratio", type=click.IntRange(0, 100), default=None, help="Progress in percent.")
@click.option("--notes", "-m", default=None, help="Note to add with the change.")
@json_option
@profile_option
@click.pass_context
def edit(
    ctx: click.Context,
    issue_id: int,
    subject: str | None,
    description: str | None,
    status: str | None,
    assignee: str | None,
    done_ratio: int | None,
    notes: str | None,
    as_json: bool,
    profile: str | None,
) -> None:
    """Update fields of ISSUE_ID."""
    updated = run_with_client(
        ctx,
        profile,
        lambda client: client.update_issue(
            issue_id,
            subject=subject,
            description=description,
            status=status,
            assigned_to=assignee,
            done_ratio=done_ratio,
            notes=notes,
        ),
    )
    if as_json:
        print_issue_details(updated, as_json=True)
        return
    console.print(f"[green]Updated issue #{updated.id}[/green]")


@issue.command("comment")
@click.argument("issue_id", type=click.IntRange(min=1))
@click.option("--message", "-m", required=True, help="Comment text.")
@profile_option
@click.pass_context
def comment(ctx: click.Context, issue_id: int, message: str, profile: str | None) -> None:
    """Add a comment to ISSUE_ID."""
    run_with_client(ctx, profile, lambda client: client.add_comment(issue_id, message))
    console.print(f"[green]Added comment to issue #{issue_id}[/green]")
