"""Size labels (size/XS .. size/XXL) from the number of changed lines."""

from __future__ import annotations

import argparse
import logging

from core.config import Settings
from models.github_schemas import MungeObject
from services.github_client import GithubClient

logger = logging.getLogger(__name__)

# (upper bound exclusive, size) by additions + deletions
_THRESHOLDS = [
    (10, "XS"),
    (30, "S"),
    (100, "M"),
    (500, "L"),
    (1000, "XL"),
]
_LARGEST = "XXL"


def calculate_size(additions: int, deletions: int) -> str:
    changes = additions + deletions
    for limit, size in _THRESHOLDS:
        if changes < limit:
            return size
    return _LARGEST


class SizeMunger:
    name = "size"

    def __init__(self) -> None:
        self.label_prefix = "size/"

    def add_flags(self, parser: argparse.ArgumentParser, config: Settings) -> None:
        parser.add_argument(
            "--size-label-prefix",
            default=self.label_prefix,
            help="Prefix for size labels (default: %(default)s)",
        )

    def configure(self, args: argparse.Namespace) -> None:
        self.label_prefix = getattr(args, "size_label_prefix", self.label_prefix)

    def initialize(self, config: GithubClient) -> None:
        if not self.label_prefix:
            raise ValueError("size label prefix must not be empty")

    def each_loop(self, config: GithubClient) -> None:
        pass

    def munge_pull_request(self, config: GithubClient, obj: MungeObject) -> None:
        wanted = self.label_prefix + calculate_size(obj.pr.additions, obj.pr.deletions)

        stale = [
            label.name
            for label in obj.issue.labels
            if label.name.startswith(self.label_prefix) and label.name != wanted
        ]
        for name in stale:
            config.remove_label(obj, name)

        if not obj.issue.has_label(wanted):
            config.add_labels(obj, [wanted])
