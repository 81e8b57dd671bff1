"""Per-issue processing: resolve the PR, wait for mergeability, enrich, dispatch.

States an issue moves through:

    unresolved -> not a PR | lookup failed | merged      (stop, no error)
    unresolved -> open -> mergeability known/unknown -> enriched -> dispatched
    enriched fetch raised                                (error propagated)

A failing PR lookup is reported as ``MungeOutcome.LOOKUP_FAILED`` and never
raised, so a transient API failure at that step skips the issue for this
cycle exactly like a plain issue would be skipped.  Enrichment failures are
raised to the caller.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterator

from langfuse import observe

from core.langfuse_config import trace_metadata
from models.github_schemas import MungeObject, PullRequest
from models.munge_schemas import MungeOutcome, PRResolution
from services.github_client import GithubClient
from services.mungers.base import MungerRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How long to wait for GitHub to compute mergeability.

    The default is one retry after a fixed two second pause.  ``backoff``
    multiplies the delay before each further retry.
    """
    max_retries: int = 1
    delay_seconds: float = 2.0
    backoff: float = 1.0
    sleep: Callable[[float], None] = time.sleep

    def delays(self) -> Iterator[float]:
        for attempt in range(self.max_retries):
            yield self.delay_seconds * self.backoff ** attempt


def resolve_pull_request(
    config: GithubClient, obj: MungeObject
) -> tuple[PRResolution, PullRequest | None]:
    try:
        pr = config.fetch_pull_request(obj)
    except Exception as exc:
        logger.warning("PR lookup for #%d failed, skipping: %s", obj.number, exc)
        return PRResolution.LOOKUP_FAILED, None
    if pr is None:
        return PRResolution.NOT_A_PR, None
    return PRResolution.RESOLVED, pr


class MungeProcessor:
    def __init__(self, registry: MungerRegistry, retry_policy: RetryPolicy | None = None) -> None:
        self.registry = registry
        self.retry_policy = retry_policy or RetryPolicy()

    @observe(name="process_item", capture_input=False)
    def process_item(self, config: GithubClient, obj: MungeObject) -> MungeOutcome:
        """Prepare *obj* and hand it to every active munger in order."""
        trace_metadata(repo=config.repo, issue_number=obj.number, tags=["munge"])

        resolution, pr = resolve_pull_request(config, obj)
        if resolution is PRResolution.LOOKUP_FAILED:
            return MungeOutcome.LOOKUP_FAILED
        if resolution is PRResolution.NOT_A_PR:
            logger.debug("Issue %d is not a PR, skipping", obj.number)
            return MungeOutcome.NOT_A_PR

        if pr.merged:
            logger.debug(
                "PR %d was merged, may want to reduce per_page so this happens less often",
                obj.number,
            )
            return MungeOutcome.MERGED
        obj.pr = self._wait_for_mergeability(config, obj, pr)

        obj.commits = config.fetch_filled_commits(obj)
        obj.events = config.fetch_all_events(obj)

        for munger in self.registry.get_active():
            munger.munge_pull_request(config, obj)
        return MungeOutcome.DISPATCHED

    def _wait_for_mergeability(
        self, config: GithubClient, obj: MungeObject, pr: PullRequest
    ) -> PullRequest:
        if pr.mergeable is not None:
            return pr

        for delay in self.retry_policy.delays():
            logger.debug("Waiting %.1fs for mergeability on %r %d", delay, pr.title, pr.number)
            self.retry_policy.sleep(delay)
            try:
                refreshed = config.fetch_pull_request(obj)
            except Exception as exc:
                logger.warning("Re-fetching PR %d failed, keeping last copy: %s", pr.number, exc)
                continue
            if refreshed is not None:
                pr = refreshed
            if pr.mergeable is not None:
                return pr

        logger.info("No mergeability for PR %d after pause. Maybe increase pause time?", pr.number)
        return pr
