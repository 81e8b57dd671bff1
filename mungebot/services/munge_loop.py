"""Polling loop: each cycle runs the munger hooks, then every open issue."""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone

from langfuse import observe

from core.langfuse_config import flush_langfuse
from models.github_schemas import MungeObject
from models.munge_schemas import CycleReport, MungeOutcome
from services.github_client import GithubClient
from services.munge_processor import MungeProcessor
from services.mungers.base import MungerRegistry

logger = logging.getLogger(__name__)


class CycleTracker:
    """Keeps the most recent cycle report for the status app."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last: CycleReport | None = None
        self.cycles = 0

    def update(self, report: CycleReport) -> None:
        with self._lock:
            self._last = report
            self.cycles += 1

    @property
    def last_report(self) -> CycleReport | None:
        with self._lock:
            return self._last


@observe(name="munge_cycle", capture_input=False)
def run_cycle(
    config: GithubClient,
    registry: MungerRegistry,
    processor: MungeProcessor,
) -> CycleReport:
    """Run one polling cycle and report what happened to each issue."""
    report = CycleReport(started_at=datetime.now(timezone.utc))

    try:
        registry.run_each_loop(config)
    except Exception as exc:
        logger.error("EachLoop failed, skipping this cycle: %s", exc)
        report.each_loop_error = str(exc)
        report.finished_at = datetime.now(timezone.utc)
        return report

    for issue in config.list_open_issues():
        report.issues_seen += 1
        obj = MungeObject(issue=issue)
        try:
            report.record(processor.process_item(config, obj))
        except Exception as exc:
            logger.error("Failed to munge #%d: %s", issue.number, exc)
            report.failed.append(issue.number)

    report.finished_at = datetime.now(timezone.utc)
    logger.info(
        "Cycle done: %d issues, %d dispatched, %d failed",
        report.issues_seen,
        report.outcomes.get(MungeOutcome.DISPATCHED, 0),
        len(report.failed),
    )
    return report


def run_forever(
    config: GithubClient,
    registry: MungerRegistry,
    processor: MungeProcessor,
    period_seconds: float,
    once: bool = False,
    tracker: CycleTracker | None = None,
    sleep=time.sleep,
) -> None:
    """Run cycles back to back, waiting so each one starts *period_seconds* apart."""
    while True:
        start = time.monotonic()
        try:
            report = run_cycle(config, registry, processor)
        except Exception as exc:
            # Listing issues failed; try again next period
            logger.error("Cycle failed: %s", exc)
        else:
            if tracker is not None:
                tracker.update(report)
        finally:
            flush_langfuse()

        if once:
            return
        remaining = period_seconds - (time.monotonic() - start)
        if remaining > 0:
            logger.info("Sleeping %.0fs until next cycle", remaining)
            sleep(remaining)
