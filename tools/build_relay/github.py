"""GitHub REST client for repository lookups and workflow dispatch.

Uses a single aiohttp ClientSession with bearer auth. Calls are never
retried; any failure surfaces as UpstreamError.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from build_relay.config import RelayConfig
from build_relay.errors import UpstreamError

logger = logging.getLogger(__name__)


class GitHubClient:
    """Thin async wrapper over the three GitHub endpoints the relay needs.

    The session is created lazily on first use and must be released with
    ``close()`` (or by using the client as an async context manager).
    """

    def __init__(self, config: RelayConfig):
        self.api_url = config.github_api_url.rstrip("/")
        self.build_org = config.build_org
        self.build_repo = config.build_repo
        self.build_ref = config.build_ref
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": config.api_version,
            "Authorization": f"Bearer {config.github_token}",
            "User-Agent": config.user_agent,
        }
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def build_repo_path(self) -> str:
        return f"/repos/{self.build_org}/{self.build_repo}"

    def actions_page_url(self, workflow: str) -> str:
        """Human-facing page listing all runs of a workflow."""
        return (
            f"https://github.com/{self.build_org}/{self.build_repo}"
            f"/actions/workflows/{workflow}"
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self.headers)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(self, method: str, path: str, **kwargs) -> Optional[Any]:
        url = f"{self.api_url}{path}"
        session = self._get_session()
        try:
            async with session.request(method, url, **kwargs) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    raise UpstreamError(method, url, resp.status, body[:200])
                if resp.status == 204:
                    return None
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise UpstreamError(method, url, detail=str(e) or e.__class__.__name__) from e

    async def get_repository(self, full_name: str) -> Dict[str, Any]:
        """Fetch repository metadata (``fork``, ``parent.full_name``, ...)."""
        data = await self._request("GET", f"/repos/{full_name}")
        if not isinstance(data, dict):
            raise UpstreamError("GET", f"{self.api_url}/repos/{full_name}", detail="unexpected body")
        return data

    async def dispatch_workflow(self, workflow: str, repository: str, branch: str) -> None:
        """Trigger a workflow_dispatch run on the build repository."""
        payload = {
            "ref": self.build_ref,
            "inputs": {
                "repository": repository,
                "ref": branch,
            },
        }
        await self._request(
            "POST",
            f"{self.build_repo_path}/actions/workflows/{workflow}/dispatches",
            json=payload,
        )
        logger.info(f"Dispatched {workflow} for {repository}@{branch}")

    async def latest_run_url(self) -> Optional[str]:
        """Web URL of the most recently listed run on the build repository.

        Best effort: nothing ties the listed run to a particular dispatch.
        """
        data = await self._request("GET", f"{self.build_repo_path}/actions/runs")
        runs = data.get("workflow_runs") if isinstance(data, dict) else None
        if not runs:
            return None
        return runs[0].get("html_url")
