"""BuildDispatcher - turns build commands into GitHub workflow runs.

Flow for a single message:
    parse command → resolve repository → compute image tags
    → dispatch workflow → fetch run URL → format reply

Stateless across messages; the only shared data is the read-only
workflow table and the GitHub client's HTTP session.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from build_relay.commands import parse_command
from build_relay.config import RelayConfig
from build_relay.errors import UnsupportedRepositoryError, UpstreamError, UserInputError
from build_relay.executors.base import Executor
from build_relay.formatting import format_failure, format_success, format_user_error, get_markup
from build_relay.resolver import resolve_repository
from build_relay.workflows import compute_image_tags, docker_base

logger = logging.getLogger(__name__)


class BuildDispatcher(Executor):
    """Executor that triggers image builds for `/build` commands.

    Args:
        config: Relay configuration (commands, registry, lookup delay).
        github: GitHubClient, or any object with the same coroutines.
    """

    def __init__(self, config: RelayConfig, github):
        self.config = config
        self.github = github
        self.commands = config.commands
        self.registry = config.image_registry
        self.run_lookup_delay = config.run_lookup_delay

    async def execute(self, order: Dict[str, Any]) -> Dict[str, Any]:
        payload = order.get("payload", "")
        channel = order.get("channel", "")
        return await self._process(payload, channel)

    async def process_message(self, text: str, channel: str = "") -> Optional[str]:
        """Handle one chat message; returns the reply, or None for no reply."""
        result = await self._process(text, channel)
        return result["response_text"]

    async def _process(self, text: str, channel: str) -> Dict[str, Any]:
        markup = get_markup(channel)

        try:
            request = parse_command(text, self.commands)
        except UserInputError as e:
            logger.info(f"Rejected command {text[:80]!r}: {e}")
            return {"success": False, "response_text": format_user_error(str(e), markup)}

        if request is None:
            return {"success": False, "response_text": None}

        repo = request.repository
        branch = request.branch

        try:
            resolution = await resolve_repository(repo, self.github)
            images = compute_image_tags(
                docker_base(resolution.workflow),
                branch,
                resolution.is_fork,
                repo.owner if resolution.is_fork else None,
                registry=self.registry,
            )

            await self.github.dispatch_workflow(resolution.workflow, repo.full_name, branch)

            if self.run_lookup_delay:
                await asyncio.sleep(self.run_lookup_delay)
            run_url = await self.github.latest_run_url()
        except UnsupportedRepositoryError as e:
            logger.info(f"Unsupported build request {repo}@{branch}: {e}")
            return {"success": False, "response_text": format_failure(markup), "error": str(e)}
        except UpstreamError as e:
            logger.error(f"GitHub call failed for {repo}@{branch}: {e}")
            return {"success": False, "response_text": format_failure(markup), "error": str(e)}

        if not run_url:
            run_url = self.github.actions_page_url(resolution.workflow)

        logger.info(
            f"Build triggered for {repo}@{branch} "
            f"[Run URL: {run_url} | Docker images: {', '.join(images)}]"
        )
        return {
            "success": True,
            "response_text": format_success(run_url, images, markup),
        }
