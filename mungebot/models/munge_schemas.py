"""Pydantic models for processing outcomes and cycle reports."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class PRResolution(str, Enum):
    """Result of asking the remote side whether an issue is a pull request."""
    NOT_A_PR = "not_a_pr"
    LOOKUP_FAILED = "lookup_failed"
    RESOLVED = "resolved"


class MungeOutcome(str, Enum):
    """How ``process_item`` finished for one issue."""
    NOT_A_PR = "not_a_pr"
    # The PR lookup raised; treated as nothing to do, not as an error
    LOOKUP_FAILED = "lookup_failed"
    MERGED = "merged"
    DISPATCHED = "dispatched"


class CycleReport(BaseModel):
    started_at: datetime
    finished_at: datetime | None = None
    issues_seen: int = 0
    outcomes: dict[MungeOutcome, int] = Field(
        default_factory=lambda: {outcome: 0 for outcome in MungeOutcome}
    )
    failed: list[int] = Field(default_factory=list)
    each_loop_error: str | None = None

    def record(self, outcome: MungeOutcome) -> None:
        self.outcomes[outcome] = self.outcomes.get(outcome, 0) + 1
