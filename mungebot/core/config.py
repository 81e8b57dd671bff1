import os
from pathlib import Path

from pydantic_settings import BaseSettings

# Find local.env from project root (parent of mungebot/)
_env_file = Path(__file__).resolve().parent.parent.parent / "local.env"


def _detect_environment() -> str:
    """Detect runtime environment: production, ci, or development."""
    if os.environ.get("CI"):
        return "ci"
    return os.environ.get("MUNGEBOT_ENV", "") or "development"


class Settings(BaseSettings):
    # GitHub
    github_token: str = ""
    github_org: str = "kubernetes"
    github_project: str = "kubernetes"
    github_api_url: str = "https://api.github.com"
    github_timeout_seconds: float = 30

    # Mungers (comma separated, e.g. "needs-rebase,size")
    pr_mungers: str = ""

    # Polling
    dry_run: bool = True
    once: bool = False
    poll_period_seconds: int = 1800
    min_pr_number: int = 0
    max_pr_number: int = 2**31 - 1
    per_page: int = 100

    # Mergeability is computed asynchronously by GitHub
    mergeability_delay_seconds: float = 2.0
    mergeability_retries: int = 1

    # Status app (0 disables it)
    www_port: int = 0

    # Langfuse
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_base_url: str = "https://us.cloud.langfuse.com"

    # Environment (auto-detected)
    environment: str = ""

    @property
    def requested_mungers(self) -> list[str]:
        """Return the munger names from ``pr_mungers`` in the order given."""
        return [name.strip() for name in self.pr_mungers.split(",") if name.strip()]

    model_config = {"env_file": str(_env_file), "extra": "ignore"}


settings = Settings()
if not settings.environment:
    settings.environment = _detect_environment()
