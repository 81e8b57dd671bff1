"""Shared test fixtures for mungebot tests."""

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add mungebot/ to Python path so imports work
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

# Disable Langfuse during tests so @observe traces don't go anywhere
os.environ.pop("LANGFUSE_PUBLIC_KEY", None)
os.environ.pop("LANGFUSE_SECRET_KEY", None)
os.environ["LANGFUSE_ENABLED"] = "false"
os.environ["LANGFUSE_TRACING_ENABLED"] = "false"
os.environ["LANGFUSE_OBSERVE_DECORATOR_IO_CAPTURE_ENABLED"] = "false"

from models.github_schemas import Issue, Label, MungeObject, PullRequest  # noqa: E402
from services.github_client import GithubClient  # noqa: E402


class RecordingMunger:
    """Munger that appends (name, hook) to a shared call log."""

    def __init__(self, name: str, calls: list, fail_on: str | None = None):
        self.name = name
        self.calls = calls
        self.fail_on = fail_on

    def _record(self, hook: str) -> None:
        self.calls.append((self.name, hook))
        if hook == self.fail_on:
            raise RuntimeError(f"{self.name} {hook} failed")

    def add_flags(self, parser, config):
        self._record("add_flags")

    def initialize(self, config):
        self._record("initialize")

    def each_loop(self, config):
        self._record("each_loop")

    def munge_pull_request(self, config, obj):
        self._record("munge")


def make_issue(number: int = 1, labels: list[str] | None = None, is_pr: bool = True, **overrides) -> Issue:
    """Factory for an open issue; a PR by default."""
    data = {
        "number": number,
        "title": f"Issue {number}",
        "labels": [Label(name=name) for name in labels or []],
        "pull_request": {"url": f"https://api.github.com/repos/o/r/pulls/{number}"} if is_pr else None,
    }
    data.update(overrides)
    return Issue(**data)


def make_pr(number: int = 1, **overrides) -> PullRequest:
    """Factory for an open, unmerged, mergeable PR."""
    data = {
        "number": number,
        "title": f"PR {number}",
        "merged": False,
        "mergeable": True,
        "additions": 5,
        "deletions": 2,
    }
    data.update(overrides)
    return PullRequest(**data)


def make_obj(labels: list[str] | None = None, **pr_overrides) -> MungeObject:
    """A MungeObject as mungers receive it: PR set, commits and events filled."""
    return MungeObject(
        issue=make_issue(labels=labels),
        pr=make_pr(**pr_overrides),
        commits=[],
        events=[],
    )


@pytest.fixture
def calls():
    return []


@pytest.fixture
def remote():
    """Mock GithubClient for an eligible PR with no commits or events."""
    config = MagicMock(spec=GithubClient)
    config.repo = "o/r"
    config.fetch_pull_request.return_value = make_pr()
    config.fetch_filled_commits.return_value = []
    config.fetch_all_events.return_value = []
    return config
