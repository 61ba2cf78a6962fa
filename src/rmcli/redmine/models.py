"""Redmine domain models as returned by the REST API."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class NamedRef(BaseModel):
    """An ``{id, name}`` reference embedded in another resource."""

    id: int
    name: str = ""


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    login: str | None = None
    firstname: str | None = None
    lastname: str | None = None
    name: str | None = None
    mail: str | None = None
    created_on: datetime | None = None
    last_login_on: datetime | None = None

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        full = " ".join(p for p in (self.firstname, self.lastname) if p)
        return full or self.login or str(self.id)


class Project(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    identifier: str | None = None
    description: str | None = None
    status: int | None = None
    created_on: datetime | None = None
    updated_on: datetime | None = None


class IssueStatus(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    is_closed: bool = False


class JournalDetail(BaseModel):
    property: str
    name: str
    old_value: str | None = None
    new_value: str | None = None


class Journal(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    user: NamedRef | None = None
    notes: str | None = None
    created_on: datetime | None = None
    details: list[JournalDetail] = []


class Issue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    subject: str = ""
    description: str | None = None
    project: NamedRef | None = None
    tracker: NamedRef | None = None
    status: NamedRef | None = None
    priority: NamedRef | None = None
    author: NamedRef | None = None
    assigned_to: NamedRef | None = None
    start_date: date | None = None
    due_date: date | None = None
    done_ratio: int | None = None
    created_on: datetime | None = None
    updated_on: datetime | None = None
    journals: list[Journal] | None = None


class IssueFilter(BaseModel):
    """Query filter for issue listings.

    ``assigned_to_id`` accepts a user id, a login or ``@me``; ``status_id``
    accepts ``open``, ``closed``, ``*``, a status id or a status name.
    """

    assigned_to_id: str | None = None
    project_id: str | None = None
    status_id: str | None = None
    limit: int | None = None
    offset: int | None = None
