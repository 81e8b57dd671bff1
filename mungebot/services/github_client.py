"""GitHub REST client used by the munge loop and the mungers.

Read calls (pull request, commits, events, issue listing) always go to the
API.  Write calls (labels, comments) are skipped and only logged when the
client runs in dry-run mode.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator
from urllib.parse import quote

import httpx

from core.config import Settings
from models.github_schemas import Commit, Event, Issue, MungeObject, PullRequest

logger = logging.getLogger(__name__)


class GithubAPIError(Exception):
    """A GitHub API call returned a non-2xx response."""

    def __init__(self, status_code: int, url: str, message: str = "") -> None:
        self.status_code = status_code
        self.url = url
        self.message = message
        super().__init__(f"GitHub API {status_code} for {url}: {message}")


class GithubClient:
    def __init__(self, config: Settings, http: httpx.Client | None = None) -> None:
        self.config = config
        self.org = config.github_org
        self.project = config.github_project
        self.dry_run = config.dry_run

        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "mungebot/1.0",
        }
        if config.github_token:
            headers["Authorization"] = f"Bearer {config.github_token}"

        self._http = http or httpx.Client(
            base_url=config.github_api_url,
            headers=headers,
            timeout=config.github_timeout_seconds,
        )

    @property
    def repo(self) -> str:
        return f"{self.org}/{self.project}"

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = self._http.request(method, path, **kwargs)
        if response.status_code == 403 and response.headers.get("x-ratelimit-remaining") == "0":
            logger.warning("GitHub API rate limited on %s %s", method, path)
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                message = body.get("message", "")
            else:
                message = response.text[:200]
            raise GithubAPIError(response.status_code, str(response.url), message)
        return response

    def _paginate(self, path: str, params: dict | None = None) -> Iterator[dict]:
        """Yield every item of a list endpoint, following ``rel="next"`` links."""
        query = {"per_page": self.config.per_page, **(params or {})}
        response = self._request("GET", path, params=query)
        while True:
            yield from response.json()
            next_link = response.links.get("next", {}).get("url")
            if not next_link:
                return
            response = self._request("GET", next_link)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_pull_request(self, obj: MungeObject) -> PullRequest | None:
        """Return the PR behind *obj*, or None when the issue is not a PR."""
        if not obj.issue.is_pull_request:
            return None
        response = self._request("GET", f"/repos/{self.repo}/pulls/{obj.number}")
        return PullRequest.from_api(response.json())

    def fetch_filled_commits(self, obj: MungeObject) -> list[Commit]:
        """Return the PR's commits, each re-fetched so that ``files`` is set."""
        commits = []
        for item in self._paginate(f"/repos/{self.repo}/pulls/{obj.number}/commits"):
            response = self._request("GET", f"/repos/{self.repo}/commits/{item['sha']}")
            commits.append(Commit.from_api(response.json()))
        return commits

    def fetch_all_events(self, obj: MungeObject) -> list[Event]:
        return [
            Event.from_api(item)
            for item in self._paginate(f"/repos/{self.repo}/issues/{obj.number}/events")
        ]

    def list_open_issues(self) -> list[Issue]:
        """Return open issues in creation order, limited to the configured number range."""
        issues = []
        params = {"state": "open", "sort": "created", "direction": "asc"}
        for item in self._paginate(f"/repos/{self.repo}/issues", params):
            number = item["number"]
            if number < self.config.min_pr_number or number > self.config.max_pr_number:
                continue
            issues.append(Issue.from_api(item))
        logger.info("Found %d open issues in %s", len(issues), self.repo)
        return issues

    def rate_limit(self) -> dict:
        response = self._request("GET", "/rate_limit")
        return response.json().get("resources", {}).get("core", {})

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_labels(self, obj: MungeObject, labels: list[str]) -> None:
        if self.dry_run:
            logger.info("(dry run) would add labels %s to #%d", labels, obj.number)
            return
        self._request(
            "POST", f"/repos/{self.repo}/issues/{obj.number}/labels", json={"labels": labels}
        )
        logger.info("Added labels %s to #%d", labels, obj.number)

    def remove_label(self, obj: MungeObject, label: str) -> None:
        if self.dry_run:
            logger.info("(dry run) would remove label %r from #%d", label, obj.number)
            return
        self._request(
            "DELETE", f"/repos/{self.repo}/issues/{obj.number}/labels/{quote(label, safe='')}"
        )
        logger.info("Removed label %r from #%d", label, obj.number)

    def write_comment(self, obj: MungeObject, body: str) -> None:
        if self.dry_run:
            logger.info("(dry run) would comment on #%d: %s", obj.number, body)
            return
        self._request(
            "POST", f"/repos/{self.repo}/issues/{obj.number}/comments", json={"body": body}
        )
        logger.info("Commented on #%d", obj.number)
