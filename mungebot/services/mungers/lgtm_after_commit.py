"""Drop ``lgtm`` when new commits were pushed after it was applied."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime

from core.config import Settings
from models.github_schemas import MungeObject
from services.github_client import GithubClient

logger = logging.getLogger(__name__)

LGTM_LABEL = "lgtm"

_COMMENT = (
    "PR changed after LGTM, removing LGTM. "
    "Please review the new commits and re-apply the `lgtm` label."
)


def last_labeled_at(obj: MungeObject, label: str) -> datetime | None:
    times = [
        event.created_at
        for event in obj.events or []
        if event.event == "labeled" and event.label_name == label and event.created_at
    ]
    return max(times, default=None)


def last_commit_at(obj: MungeObject) -> datetime | None:
    times = [commit.committed_at for commit in obj.commits or [] if commit.committed_at]
    return max(times, default=None)


class LgtmAfterCommitMunger:
    name = "lgtm-after-commit"

    def add_flags(self, parser: argparse.ArgumentParser, config: Settings) -> None:
        pass

    def initialize(self, config: GithubClient) -> None:
        pass

    def each_loop(self, config: GithubClient) -> None:
        pass

    def munge_pull_request(self, config: GithubClient, obj: MungeObject) -> None:
        if not obj.issue.has_label(LGTM_LABEL):
            return

        lgtm_time = last_labeled_at(obj, LGTM_LABEL)
        commit_time = last_commit_at(obj)
        if lgtm_time is None or commit_time is None:
            logger.debug("#%d: no lgtm event or commit time, skipping", obj.number)
            return

        if commit_time > lgtm_time:
            logger.info("#%d: commit at %s is newer than lgtm at %s", obj.number, commit_time, lgtm_time)
            config.remove_label(obj, LGTM_LABEL)
            config.write_comment(obj, _COMMENT)
