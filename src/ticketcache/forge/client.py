"""ForgeClient - Fetches pull request status over the forge REST API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ticketcache.forge.exceptions import ForgeError
from ticketcache.pending_changes import ChecksSummary, PRStatusPayload, ReviewsSummary

logger = logging.getLogger(__name__)


class ForgeClient:
    """Read-only client for PR status.

    Makes exactly the requests it is asked to make; callers decide when to
    refresh and whether to try again.
    """

    def __init__(self, token: str | None, base_url: str = "https://api.github.com") -> None:
        """Initialize the forge client.

        Args:
            token: Personal access token (anonymous requests when None)
            base_url: Forge API base URL (for testing/enterprise)
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client for the forge API."""
        if self._client is None:
            headers = {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.Client(base_url=self.base_url, headers=headers, timeout=30.0)
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _get_json(self, path: str) -> Any:
        try:
            response = self.client.get(path)
        except httpx.HTTPError as e:
            raise ForgeError(f"Request to {path} failed: {e}") from e
        if response.status_code != 200:
            raise ForgeError(
                f"GET {path}: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        return response.json()

    def get_pr_status(self, repo: str, pr_number: int) -> PRStatusPayload:
        """Get the current status of a pull request.

        Reads the pull request, the combined commit status of its head and
        its reviews.

        Args:
            repo: Repository in "owner/repo" format
            pr_number: The PR number

        Returns:
            Status payload in the current shape

        Raises:
            ForgeError: If any request fails
        """
        pr_data = self._get_json(f"/repos/{repo}/pulls/{pr_number}")
        head_sha = pr_data["head"]["sha"]

        status_data = self._get_json(f"/repos/{repo}/commits/{head_sha}/status")
        reviews_data = self._get_json(f"/repos/{repo}/pulls/{pr_number}/reviews")
        approvals = sum(1 for review in reviews_data if review.get("state") == "APPROVED")

        mergeable_state = pr_data.get("mergeable_state")
        logger.debug(
            "PR #%d in %s: state=%s merged=%s mergeable_state=%s checks=%s",
            pr_number,
            repo,
            pr_data.get("state"),
            pr_data.get("merged"),
            mergeable_state,
            status_data.get("state"),
        )
        return PRStatusPayload(
            pr_url=pr_data.get("html_url"),
            pr_number=pr_data.get("number", pr_number),
            state=pr_data.get("state"),
            merged=pr_data.get("merged"),
            mergeable=pr_data.get("mergeable"),
            mergeable_state=mergeable_state,
            checks=ChecksSummary(state=status_data.get("state") or "unknown"),
            reviews=ReviewsSummary(
                required=mergeable_state == "blocked",
                approvals_count=approvals,
            ),
            auto_merge=pr_data.get("auto_merge") is not None,
        )
