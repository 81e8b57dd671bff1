"""Check that the configured GitHub token works before starting the munge loop.

Usage:
    python scripts/check_github_token.py

Reads GITHUB_TOKEN, GITHUB_ORG and GITHUB_PROJECT from local.env.
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import httpx
from dotenv import load_dotenv

# Load env from project root
env_path = Path(__file__).resolve().parent.parent / "local.env"
load_dotenv(env_path)

TOKEN = os.getenv("GITHUB_TOKEN", "")
ORG = os.getenv("GITHUB_ORG", "kubernetes")
PROJECT = os.getenv("GITHUB_PROJECT", "kubernetes")
API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")

if not TOKEN:
    print("Error: GITHUB_TOKEN not set in local.env")
    sys.exit(1)

HEADERS = {
    "Accept": "application/vnd.github+json",
    "Authorization": f"Bearer {TOKEN}",
    "User-Agent": "mungebot/1.0",
}


def show_rate_limit() -> None:
    """Print the token's core rate limit."""
    resp = httpx.get(f"{API_URL}/rate_limit", headers=HEADERS)
    if resp.status_code != 200:
        print(f"Token rejected ({resp.status_code}): {resp.text[:200]}")
        sys.exit(1)

    core = resp.json()["resources"]["core"]
    reset = datetime.fromtimestamp(core["reset"], tz=timezone.utc)
    print(f"Rate limit: {core['remaining']}/{core['limit']} remaining")
    print(f"Resets at: {reset.isoformat()}")


def check_repo_access() -> None:
    """Print whether the token can see and label the target repository."""
    resp = httpx.get(f"{API_URL}/repos/{ORG}/{PROJECT}", headers=HEADERS)
    if resp.status_code != 200:
        print(f"Cannot read {ORG}/{PROJECT} ({resp.status_code})")
        sys.exit(1)

    permissions = resp.json().get("permissions", {})
    print(f"\nRepository {ORG}/{PROJECT}:")
    print(f"  Open issues: {resp.json().get('open_issues_count', '?')}")
    print(f"  Push access: {permissions.get('push', False)}")
    if not permissions.get("push"):
        print("  Warning: without push access labels and comments will fail; use --dry-run")


if __name__ == "__main__":
    print(f"Checking token: ...{TOKEN[-4:]}")
    print()

    show_rate_limit()
    check_repo_access()
