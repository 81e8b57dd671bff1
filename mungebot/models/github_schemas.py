"""Pydantic models for the GitHub records a munger works on."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


def _login(user: dict | None) -> str | None:
    return (user or {}).get("login")


# --- Issue ---

class Label(BaseModel):
    name: str
    color: str | None = None


class Issue(BaseModel):
    number: int
    title: str = ""
    state: str = "open"
    user: str | None = None
    labels: list[Label] = Field(default_factory=list)
    # GitHub only sets this link object when the issue is a pull request
    pull_request: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request is not None

    def has_label(self, name: str) -> bool:
        return any(label.name == name for label in self.labels)

    @classmethod
    def from_api(cls, data: dict) -> Issue:
        return cls(
            number=data["number"],
            title=data.get("title") or "",
            state=data.get("state") or "open",
            user=_login(data.get("user")),
            labels=[
                Label(name=label["name"], color=label.get("color"))
                for label in data.get("labels") or []
            ],
            pull_request=data.get("pull_request"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


# --- Pull request ---

class PullRequest(BaseModel):
    number: int
    title: str = ""
    state: str = "open"
    merged: bool | None = None
    # None until GitHub has finished computing it
    mergeable: bool | None = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    head_sha: str | None = None
    base_ref: str | None = None

    @classmethod
    def from_api(cls, data: dict) -> PullRequest:
        return cls(
            number=data["number"],
            title=data.get("title") or "",
            state=data.get("state") or "open",
            merged=data.get("merged"),
            mergeable=data.get("mergeable"),
            additions=data.get("additions") or 0,
            deletions=data.get("deletions") or 0,
            changed_files=data.get("changed_files") or 0,
            head_sha=(data.get("head") or {}).get("sha"),
            base_ref=(data.get("base") or {}).get("ref"),
        )


# --- Commits ---

class CommitFile(BaseModel):
    filename: str
    status: str | None = None
    additions: int = 0
    deletions: int = 0


class Commit(BaseModel):
    sha: str
    message: str = ""
    author_login: str | None = None
    committed_at: datetime | None = None
    files: list[CommitFile] = Field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict) -> Commit:
        git_commit = data.get("commit") or {}
        committer = git_commit.get("committer") or {}
        return cls(
            sha=data["sha"],
            message=git_commit.get("message") or "",
            author_login=_login(data.get("author")),
            committed_at=committer.get("date"),
            files=[
                CommitFile(
                    filename=f["filename"],
                    status=f.get("status"),
                    additions=f.get("additions") or 0,
                    deletions=f.get("deletions") or 0,
                )
                for f in data.get("files") or []
            ],
        )


# --- Events ---

class Event(BaseModel):
    id: int
    event: str
    actor: str | None = None
    label_name: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict) -> Event:
        return cls(
            id=data["id"],
            event=data["event"],
            actor=_login(data.get("actor")),
            label_name=(data.get("label") or {}).get("name"),
            created_at=data.get("created_at"),
        )


# --- Munge object ---

class MungeObject(BaseModel):
    """One unit of work: an issue plus what the processor attached to it.

    ``pr``, ``commits`` and ``events`` stay ``None`` unless the issue turned
    out to be an open, unmerged pull request.
    """
    issue: Issue
    pr: PullRequest | None = None
    commits: list[Commit] | None = None
    events: list[Event] | None = None

    @property
    def number(self) -> int:
        return self.issue.number
