"""Error taxonomy for the build relay.

Every error is terminal for the single command being processed. The
dispatcher turns them into user-facing replies; nothing is retried.
"""

from __future__ import annotations

from typing import Optional


class RelayError(Exception):
    """Base class for all build relay errors."""


class ConfigError(RelayError):
    """Startup configuration is missing or invalid."""


class UserInputError(RelayError):
    """The command was recognised but its argument is unusable.

    ``str(exc)`` is the text shown to the user.
    """


class UnsupportedRepositoryError(RelayError):
    """Repository is unmapped and is not a fork of a mapped repository."""

    def __init__(self, repository: str, parent: Optional[str] = None):
        self.repository = repository
        self.parent = parent
        if parent:
            message = f"{repository} is a fork of unsupported repository {parent}"
        else:
            message = f"{repository} is not a supported repository"
        super().__init__(message)


class UpstreamError(RelayError):
    """A GitHub API call failed or returned a non-success status."""

    def __init__(self, method: str, url: str, status: Optional[int] = None, detail: str = ""):
        self.method = method
        self.url = url
        self.status = status
        self.detail = detail
        status_text = f"HTTP {status}" if status is not None else "no response"
        message = f"{method} {url} failed ({status_text})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
