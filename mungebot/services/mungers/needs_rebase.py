"""Label PRs that no longer merge cleanly with ``needs-rebase``."""

from __future__ import annotations

import argparse
import logging

from core.config import Settings
from models.github_schemas import MungeObject
from services.github_client import GithubClient

logger = logging.getLogger(__name__)

NEEDS_REBASE_LABEL = "needs-rebase"


class NeedsRebaseMunger:
    name = "needs-rebase"

    def add_flags(self, parser: argparse.ArgumentParser, config: Settings) -> None:
        pass

    def initialize(self, config: GithubClient) -> None:
        pass

    def each_loop(self, config: GithubClient) -> None:
        pass

    def munge_pull_request(self, config: GithubClient, obj: MungeObject) -> None:
        mergeable = obj.pr.mergeable
        if mergeable is None:
            logger.debug("Mergeability of #%d still unknown, leaving labels alone", obj.number)
            return

        has_label = obj.issue.has_label(NEEDS_REBASE_LABEL)
        if mergeable is False and not has_label:
            config.add_labels(obj, [NEEDS_REBASE_LABEL])
        elif mergeable is True and has_label:
            config.remove_label(obj, NEEDS_REBASE_LABEL)
