"""PRMunger Protocol and the registry that activates mungers by name."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from core.config import Settings
from models.github_schemas import MungeObject

if TYPE_CHECKING:
    from services.github_client import GithubClient

logger = logging.getLogger(__name__)


class DuplicateMungerError(Exception):
    """A munger with the same name is already registered."""


class MungerNotFoundError(Exception):
    """A requested munger name is not in the registry."""


@runtime_checkable
class PRMunger(Protocol):
    """What every munger implements.

    ``munge_pull_request`` receives the fully prepared object: the issue,
    the PR record (github keeps labels on the issue with the same number),
    the filled commits and every event on the PR.

    A munger that declares flags in ``add_flags`` may also define
    ``configure(args)``; the CLI calls it with the parsed namespace.
    """
    name: str

    def add_flags(self, parser: argparse.ArgumentParser, config: Settings) -> None: ...

    def initialize(self, config: GithubClient) -> None: ...

    def each_loop(self, config: GithubClient) -> None: ...

    def munge_pull_request(self, config: GithubClient, obj: MungeObject) -> None: ...


class MungerRegistry:
    """All known mungers by name plus the ordered list selected for this run.

    Fill it with ``register`` during wiring, then call ``activate`` once.
    Nothing here is locked: registering or activating while items are being
    processed is not supported.
    """

    def __init__(self) -> None:
        self._mungers: dict[str, PRMunger] = {}
        self._active: list[PRMunger] = []

    def register(self, munger: PRMunger) -> None:
        if munger.name in self._mungers:
            raise DuplicateMungerError(
                f"a munger with that name ({munger.name}) already exists"
            )
        self._mungers[munger.name] = munger
        logger.info("Registered %r at %s", munger, munger.name)

    def register_or_fatal(self, munger: PRMunger) -> None:
        """Register *munger*; a failure ends the process."""
        try:
            self.register(munger)
        except DuplicateMungerError as exc:
            logger.critical("Failed to register munger: %s", exc)
            sys.exit(1)

    def get_all_registered(self) -> list[PRMunger]:
        """Every registered munger, whether or not it was activated."""
        return list(self._mungers.values())

    def get_active(self) -> list[PRMunger]:
        """Active mungers in activation order."""
        return list(self._active)

    def activate(self, requested: list[str], config: GithubClient) -> None:
        """Append each requested munger to the active list and initialize it.

        Stops at the first unknown name or failing ``initialize``; the caller
        must treat either as fatal since the active list is left half built.
        """
        for name in requested:
            munger = self._mungers.get(name)
            if munger is None:
                raise MungerNotFoundError(f"couldn't find a munger named: {name}")
            self._active.append(munger)
            munger.initialize(config)
            logger.info("Activated munger %s", name)

    def run_each_loop(self, config: GithubClient) -> None:
        """Run ``each_loop`` for every active munger, stopping at the first failure."""
        for munger in self._active:
            munger.each_loop(config)
