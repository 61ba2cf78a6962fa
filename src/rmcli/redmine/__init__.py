"""Redmine domain layer — models, service protocol and HTTP client."""

from rmcli.redmine.client import RedmineClient
from rmcli.redmine.models import (
    Issue,
    IssueFilter,
    IssueStatus,
    Journal,
    NamedRef,
    Project,
    User,
)
from rmcli.redmine.service import RedmineService

__all__ = [
    "Issue",
    "IssueFilter",
    "IssueStatus",
    "Journal",
    "NamedRef",
    "Project",
    "RedmineClient",
    "RedmineService",
    "User",
]
