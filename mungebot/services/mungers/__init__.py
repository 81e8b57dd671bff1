"""Bundled mungers.

``register_builtin_mungers`` is called once while wiring the process; add
new mungers to ``BUILTIN_MUNGERS``.
"""

from .base import MungerRegistry
from .lgtm_after_commit import LgtmAfterCommitMunger
from .needs_rebase import NeedsRebaseMunger
from .size import SizeMunger

BUILTIN_MUNGERS = (NeedsRebaseMunger, SizeMunger, LgtmAfterCommitMunger)


def register_builtin_mungers(registry: MungerRegistry) -> None:
    for munger_cls in BUILTIN_MUNGERS:
        registry.register_or_fatal(munger_cls())
