"""Build command parsing.

Turns ``/build https://github.com/<owner>/<name>/tree/<branch>`` into a
BuildRequest. Anything that is not a build command yields ``None``.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple

from build_relay.errors import UserInputError
from build_relay.workflows import BuildRequest, Repository

DEFAULT_COMMANDS = ("/build", "/barnabas")

MISSING_URL_MESSAGE = "You need to supply a repository link with a branch."
BAD_URL_MESSAGE = (
    "Sorry. Was unable to get the repository and branch from the URL. "
    "Check your URL and try again."
)

# Branch is everything after /tree/, slashes included.
TREE_URL_PATTERN = re.compile(
    r"https://github\.com/(?P<repo>[^/\s]+/[^/\s]+)/tree/(?P<branch>\S+)"
)


def is_build_command(text: str, commands: Iterable[str] = DEFAULT_COMMANDS) -> bool:
    return any(text.startswith(command) for command in commands)


def parse_tree_url(url: str) -> Optional[Tuple[str, str]]:
    """Split a GitHub tree URL into ``(owner/name, branch)``."""
    match = TREE_URL_PATTERN.fullmatch(url.strip())
    if not match:
        return None

    branch = match.group("branch")
    if branch.endswith("/"):
        branch = branch[:-1]
    if not branch:
        return None
    return match.group("repo"), branch


def parse_command(
    text: str, commands: Iterable[str] = DEFAULT_COMMANDS
) -> Optional[BuildRequest]:
    """Parse a chat message into a BuildRequest.

    Returns None when the message is not a build command at all.

    Raises:
        UserInputError: The command has no URL, or the URL is not a
            ``github.com/<owner>/<name>/tree/<branch>`` link.
    """
    if not text or not is_build_command(text, commands):
        return None

    parts = text.split()
    if len(parts) < 2:
        raise UserInputError(MISSING_URL_MESSAGE)

    parsed = parse_tree_url(parts[1])
    if parsed is None:
        raise UserInputError(BAD_URL_MESSAGE)

    repo, branch = parsed
    return BuildRequest(repository=Repository(repo), branch=branch)
