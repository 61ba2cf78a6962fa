"""Shared error types for rmcli."""

from __future__ import annotations


class RmcliError(Exception):
    """Base error for all rmcli failures."""


class ConfigError(RmcliError):
    """Raised when the configuration file cannot be read or validated."""


class RedmineError(RmcliError):
    """Base error for failures talking to a Redmine server."""


class RedmineApiError(RedmineError):
    """The Redmine REST API answered with an error (or could not be reached)."""

    def __init__(self, status_code: int | None, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        prefix = f"Redmine API error ({status_code})" if status_code else "Redmine API error"
        super().__init__(f"{prefix}: {detail}" if detail else prefix)


class RedmineValidationError(RedmineError):
    """A user-supplied value could not be resolved (unknown status, user, project...)."""
