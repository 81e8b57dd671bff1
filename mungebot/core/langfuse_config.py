"""Langfuse observability setup for mungebot (v3 API)."""

import logging
import os
from typing import Optional

from langfuse import get_client

from core.config import settings

logger = logging.getLogger(__name__)

_langfuse_enabled = False


def init_langfuse() -> None:
    """Initialize Langfuse by setting the required environment variables.

    Langfuse v3 reads from env vars automatically.  We set them from our
    settings so that ``@observe()`` decorators and ``get_client()`` work.

    If keys are not configured or LANGFUSE_ENABLED=false, Langfuse is
    disabled gracefully (no error).
    """
    global _langfuse_enabled

    # Allow explicitly disabling (e.g. during tests)
    if os.environ.get("LANGFUSE_ENABLED", "").lower() == "false":
        logger.info("Langfuse explicitly disabled via LANGFUSE_ENABLED=false")
        return

    if settings.langfuse_public_key and settings.langfuse_secret_key:
        os.environ["LANGFUSE_PUBLIC_KEY"] = settings.langfuse_public_key
        os.environ["LANGFUSE_SECRET_KEY"] = settings.langfuse_secret_key
        os.environ["LANGFUSE_HOST"] = settings.langfuse_base_url
        _langfuse_enabled = True
        logger.info("Langfuse enabled")
    else:
        logger.warning(
            "Langfuse keys not configured, tracing disabled. "
            "Set LANGFUSE_PUBLIC_KEY and LANGFUSE_SECRET_KEY to enable."
        )


def trace_metadata(
    repo: str,
    issue_number: Optional[int] = None,
    tags: Optional[list[str]] = None,
) -> None:
    """Update the current Langfuse trace with repository/issue metadata."""
    if not _langfuse_enabled:
        return
    try:
        env = settings.environment
        trace_tags = list(tags or [])
        trace_tags.append(env)

        metadata = {"repo": repo, "environment": env}
        if issue_number is not None:
            metadata["issue_number"] = issue_number

        client = get_client()
        client.update_current_trace(tags=trace_tags, metadata=metadata)
    except Exception as exc:
        logger.debug("Failed to attach trace metadata: %s", exc)


def flush_langfuse() -> None:
    """Flush pending Langfuse events so they are sent to the server."""
    if not _langfuse_enabled:
        return
    try:
        client = get_client()
        client.flush()
    except Exception as exc:
        logger.debug("Langfuse flush failed: %s", exc)
