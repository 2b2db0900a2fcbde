"""Executor interface for the build relay gateway."""

from abc import ABC, abstractmethod
from typing import Any, Dict


class Executor(ABC):
    """Backend that turns an inbound order into a reply.

    An order is a dict with at least ``payload`` (message text) and
    ``channel``. The result dict carries:
        - success (bool): Whether the order did what it asked
        - response_text (str | None): Reply for the user, None for no reply
        - error (str, optional): Operator-facing failure reason
    """

    @abstractmethod
    async def execute(self, order: Dict[str, Any]) -> Dict[str, Any]:
        pass
