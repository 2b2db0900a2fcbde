"""Repository → workflow resolution with one hop of fork-parent lookup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from build_relay.errors import UnsupportedRepositoryError, UpstreamError
from build_relay.workflows import Repository, lookup_workflow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a repository to a build workflow.

    Attributes:
        workflow: Workflow file to dispatch.
        is_fork: True when resolved through the repository's fork parent.
        parent: The mapped parent repository, for forks only.
    """

    workflow: str
    is_fork: bool = False
    parent: Optional[Repository] = None


async def resolve_repository(repository: Repository, github) -> Resolution:
    """Resolve a repository to its build workflow.

    Mapped repositories resolve without any network call. Otherwise the
    repository metadata is fetched (never cached) and, if it is a fork,
    its parent is looked up instead.

    Raises:
        UpstreamError: The metadata lookup failed.
        UnsupportedRepositoryError: Not a fork, or the parent is unmapped.
    """
    workflow = lookup_workflow(repository)
    if workflow:
        return Resolution(workflow=workflow)

    logger.info(f"Repo {repository} not in the workflow map, checking for fork")
    meta = await github.get_repository(repository.full_name)

    if not meta.get("fork"):
        raise UnsupportedRepositoryError(repository.full_name)

    parent_name = (meta.get("parent") or {}).get("full_name")
    if not parent_name:
        raise UpstreamError(
            "GET", f"/repos/{repository.full_name}", detail="fork without parent.full_name"
        )

    parent = Repository(parent_name)
    workflow = lookup_workflow(parent)
    if not workflow:
        raise UnsupportedRepositoryError(repository.full_name, parent=parent.full_name)

    logger.info(f"Found valid parent repo {parent} for fork {repository}")
    return Resolution(workflow=workflow, is_fork=True, parent=parent)
