"""GitHub REST client wrapper.

Provides:
- one method per exposed operation, each issuing exactly one API request
- bounded retries with backoff; writes (POST/PUT) are resent only on 429 or when the
  connection was never established, reads also on 5xx and read failures
- finite timeouts
- error translation into GitHubAPIError, keeping GitHub's own message
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from .config import DEFAULT_API_BASE_URL, LimitsConfig

logger = logging.getLogger(__name__)

_IDEMPOTENT_METHODS = frozenset({"GET", "HEAD"})


@dataclass(frozen=True, slots=True)
class GitHubAPIError(Exception):
    """A failed GitHub API request."""

    message: str
    status_code: int | None = None
    hint: str | None = None

    def __str__(self) -> str:
        return self.message


def _network_message(exc: Exception) -> str:
    detail = str(exc)
    if detail:
        return f"Network request failed: {type(exc).__name__}: {detail}"
    return f"Network request failed: {type(exc).__name__}"


def _repo_path(arguments: dict[str, Any]) -> str:
    return f"/repos/{quote(arguments['owner'], safe='')}/{quote(arguments['repo'], safe='')}"


def _contents_path(arguments: dict[str, Any]) -> str:
    path = arguments["path"].lstrip("/")
    return f"{_repo_path(arguments)}/contents/{quote(path, safe='/')}"


def _without(arguments: dict[str, Any], *keys: str) -> dict[str, Any]:
    return {k: v for k, v in arguments.items() if k not in keys}


class GitHubClient:
    """Minimal GitHub REST client authenticated with a personal access token."""

    def __init__(
        self,
        *,
        token: str,
        limits: LimitsConfig,
        api_base_url: str = DEFAULT_API_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a GitHub REST client.

        Args:
            token: Personal access token sent as a bearer credential.
            limits: Timeouts/retry limits.
            api_base_url: REST API root, https only.
            transport: Optional httpx transport for tests.
        """
        self._token = token
        self._limits = limits
        self._api_base_url = api_base_url.rstrip("/")
        self._transport = transport

        if not self._api_base_url.startswith("https://"):
            raise ValueError("GitHub API base URL must use https")

    @property
    def api_base_url(self) -> str:
        return self._api_base_url

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "github-mcp-server",
        }

    def _compute_backoff_s(self, attempt_index: int) -> float:
        # attempt_index: 1 for first retry, 2 for second retry...
        base = min(self._limits.max_backoff_s, 0.5 * (2 ** (attempt_index - 1)))
        jitter = min(0.05, 0.01 * attempt_index)
        return min(self._limits.max_backoff_s, base + jitter)

    def _is_retryable_status(self, method: str, status_code: int) -> bool:
        # A 5xx on a write may arrive after GitHub already applied it.
        if status_code == 429:
            return True
        return method in _IDEMPOTENT_METHODS and 500 <= status_code <= 599

    def _is_retryable_exc(self, method: str, exc: Exception) -> bool:
        if method in _IDEMPOTENT_METHODS:
            return True
        # Writes are only resent when the request never left this process.
        return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))

    @staticmethod
    def _error_hint(resp: httpx.Response) -> str | None:
        try:
            payload = resp.json()
        except ValueError:
            return None
        if isinstance(payload, dict) and isinstance(payload.get("message"), str):
            return payload["message"]
        return None

    async def request_json(
        self,
        *,
        method: str,
        path: str,
        json_body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Make a request and return decoded JSON.

        GitHub APIs may return either an object (dict) or an array (list).
        """
        url = f"{self._api_base_url}{path}"
        timeout = httpx.Timeout(
            timeout=self._limits.total_timeout_s,
            connect=self._limits.connect_timeout_s,
            read=self._limits.read_timeout_s,
        )

        async with httpx.AsyncClient(
            follow_redirects=False,
            timeout=timeout,
            transport=self._transport,
        ) as client:
            for attempt in range(1, self._limits.max_attempts + 1):
                is_last = attempt == self._limits.max_attempts
                try:
                    resp = await client.request(
                        method,
                        url,
                        headers=self._headers(),
                        json=json_body,
                        params=params,
                    )
                except (httpx.TimeoutException, httpx.TransportError) as exc:
                    if not is_last and self._is_retryable_exc(method, exc):
                        logger.warning("%s %s failed (%s), retrying", method, path, type(exc).__name__)
                        await asyncio.sleep(self._compute_backoff_s(attempt))
                        continue
                    raise GitHubAPIError(message=_network_message(exc)) from exc

                if resp.status_code >= 400:
                    if not is_last and self._is_retryable_status(method, resp.status_code):
                        logger.warning("%s %s returned %s, retrying", method, path, resp.status_code)
                        await asyncio.sleep(self._compute_backoff_s(attempt))
                        continue
                    github_message = self._error_hint(resp)
                    message = f"GitHub request failed ({resp.status_code})"
                    if github_message:
                        message = f"{message}: {github_message}"
                    raise GitHubAPIError(
                        message=message,
                        status_code=resp.status_code,
                        hint=github_message,
                    )

                try:
                    return resp.json()
                except json.JSONDecodeError as exc:
                    raise GitHubAPIError(
                        message="GitHub returned invalid JSON", status_code=resp.status_code
                    ) from exc

        raise GitHubAPIError(message="GitHub request was not attempted")

    async def create_repository(self, arguments: dict[str, Any]) -> Any:
        """Create a repository for the authenticated user."""
        return await self.request_json(method="POST", path="/user/repos", json_body=dict(arguments))

    async def create_issue(self, arguments: dict[str, Any]) -> Any:
        return await self.request_json(
            method="POST",
            path=f"{_repo_path(arguments)}/issues",
            json_body=_without(arguments, "owner", "repo"),
        )

    async def create_or_update_file(self, arguments: dict[str, Any]) -> Any:
        """Create or update a file; ``content`` must already be base64 encoded."""
        return await self.request_json(
            method="PUT",
            path=_contents_path(arguments),
            json_body=_without(arguments, "owner", "repo", "path"),
        )

    async def get_file_contents(self, arguments: dict[str, Any]) -> Any:
        """Return a file object or a directory listing, as GitHub sends it."""
        params = None
        branch = arguments.get("branch")
        if branch:
            params = {"ref": branch}
        return await self.request_json(method="GET", path=_contents_path(arguments), params=params)

    async def create_pull_request(self, arguments: dict[str, Any]) -> Any:
        return await self.request_json(
            method="POST",
            path=f"{_repo_path(arguments)}/pulls",
            json_body=_without(arguments, "owner", "repo"),
        )

    async def fork_repository(self, arguments: dict[str, Any]) -> Any:
        """Fork into ``organization`` when given, else into the token's account."""
        body: dict[str, Any] = {}
        if arguments.get("organization") is not None:
            body["organization"] = arguments["organization"]
        return await self.request_json(
            method="POST",
            path=f"{_repo_path(arguments)}/forks",
            json_body=body,
        )
