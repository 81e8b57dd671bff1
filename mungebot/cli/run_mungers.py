"""CLI to run the munge loop against a GitHub repository.

Usage:
    cd mungebot && python -m cli.run_mungers --pr-mungers=needs-rebase,size --once
    mungebot --list-mungers
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path

# Ensure mungebot/ is on sys.path
_pkg_dir = str(Path(__file__).resolve().parent.parent)
if _pkg_dir not in sys.path:
    sys.path.insert(0, _pkg_dir)

from core.config import Settings, settings
from core.langfuse_config import flush_langfuse, init_langfuse
from services.github_client import GithubClient
from services.munge_loop import CycleTracker, run_forever
from services.munge_processor import MungeProcessor, RetryPolicy
from services.mungers import register_builtin_mungers
from services.mungers.base import MungerRegistry

logger = logging.getLogger(__name__)

# CLI dest -> Settings field
_OVERRIDES = {
    "pr_mungers": "pr_mungers",
    "once": "once",
    "period": "poll_period_seconds",
    "dry_run": "dry_run",
    "org": "github_org",
    "project": "github_project",
    "min_pr_number": "min_pr_number",
    "max_pr_number": "max_pr_number",
    "www_port": "www_port",
}


def _logging_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: %(default)s)",
    )
    return parser


def build_parser(registry: MungerRegistry, config: Settings) -> argparse.ArgumentParser:
    """Core flags plus the flags every registered munger declares."""
    parser = argparse.ArgumentParser(
        prog="mungebot",
        description="Run registered PR mungers over the open issues of a repository.",
        parents=[_logging_parser()],
    )
    parser.add_argument("--pr-mungers", default=None,
                        help="Comma separated list of mungers to activate, in order")
    parser.add_argument("--list-mungers", action="store_true",
                        help="Print every registered munger and exit")
    parser.add_argument("--once", action="store_true", default=None,
                        help="Run a single cycle and exit")
    parser.add_argument("--period", type=int, default=None,
                        help="Seconds between the start of two cycles")
    parser.add_argument("--dry-run", action=argparse.BooleanOptionalAction, default=None,
                        help="Log writes to GitHub instead of making them")
    parser.add_argument("--org", default=None, help="GitHub organization")
    parser.add_argument("--project", default=None, help="GitHub repository")
    parser.add_argument("--min-pr-number", type=int, default=None)
    parser.add_argument("--max-pr-number", type=int, default=None)
    parser.add_argument("--www-port", type=int, default=None,
                        help="Serve the status app on this port (0 disables it)")

    for munger in registry.get_all_registered():
        munger.add_flags(parser, config)
    return parser


def apply_overrides(config: Settings, args: argparse.Namespace) -> Settings:
    """Return a copy of *config* with every flag the operator actually passed."""
    update = {
        field: getattr(args, dest)
        for dest, field in _OVERRIDES.items()
        if getattr(args, dest, None) is not None
    }
    return config.model_copy(update=update)


def _serve_status(registry: MungerRegistry, tracker: CycleTracker, port: int) -> None:
    import uvicorn

    from index import create_app

    app = create_app(registry, tracker)
    thread = threading.Thread(
        target=uvicorn.run,
        args=(app,),
        kwargs={"host": "0.0.0.0", "port": port, "log_level": "warning"},
        daemon=True,
    )
    thread.start()
    logger.info("Status app listening on port %d", port)


def main(argv: list[str] | None = None) -> int:
    log_args, _ = _logging_parser().parse_known_args(argv)
    logging.basicConfig(
        level=log_args.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    registry = MungerRegistry()
    register_builtin_mungers(registry)

    args = build_parser(registry, settings).parse_args(argv)
    if args.list_mungers:
        for name in sorted(m.name for m in registry.get_all_registered()):
            print(name)
        return 0

    config = apply_overrides(settings, args)
    init_langfuse()

    for munger in registry.get_all_registered():
        configure = getattr(munger, "configure", None)
        if configure is not None:
            configure(args)

    client = GithubClient(config)
    try:
        requested = config.requested_mungers
        if not requested:
            logger.warning("No mungers requested; issues will be fetched but nothing will act on them")
        try:
            registry.activate(requested, client)
        except Exception as exc:
            logger.critical("Unable to initialize mungers: %s", exc)
            return 1

        processor = MungeProcessor(
            registry,
            RetryPolicy(
                max_retries=config.mergeability_retries,
                delay_seconds=config.mergeability_delay_seconds,
            ),
        )
        tracker = CycleTracker()
        if config.www_port:
            _serve_status(registry, tracker, config.www_port)

        logger.info(
            "Munging %s with %s (dry_run=%s)",
            client.repo, [m.name for m in registry.get_active()], config.dry_run,
        )
        run_forever(
            client,
            registry,
            processor,
            period_seconds=config.poll_period_seconds,
            once=config.once,
            tracker=tracker,
        )
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        client.close()
        flush_langfuse()
    return 0


if __name__ == "__main__":
    sys.exit(main())
