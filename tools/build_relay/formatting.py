"""Reply formatting per chat transport markup dialect."""

from __future__ import annotations

from typing import List

import discord.utils
from telegram.helpers import escape_markdown

FAILURE_MESSAGE = "Sorry. Was unable to trigger your build. Likely the repository is not supported."
TRIGGERED_MESSAGE = "Your build was triggered."
RUN_LINK_LABEL = "View run on GitHub"
IMAGES_HEADER = "Docker Image(s) once run completed:"


class Markup:
    """Plain text; base class for transport dialects."""

    parse_mode = None

    def text(self, value: str) -> str:
        return value

    def code(self, value: str) -> str:
        return value

    def link(self, label: str, url: str) -> str:
        return f"{label}: {url}"


class TelegramMarkup(Markup):
    """Telegram MarkdownV2."""

    parse_mode = "MarkdownV2"

    def text(self, value: str) -> str:
        return escape_markdown(value, version=2)

    def code(self, value: str) -> str:
        return f"`{escape_markdown(value, version=2, entity_type='code')}`"

    def link(self, label: str, url: str) -> str:
        return f"[{self.text(label)}]({escape_markdown(url, version=2, entity_type='text_link')})"


class DiscordMarkup(Markup):
    """Discord flavoured markdown."""

    def text(self, value: str) -> str:
        return discord.utils.escape_markdown(value)

    def code(self, value: str) -> str:
        # Inline code spans cannot contain an escaped backtick.
        return f"`{value.replace('`', '')}`"

    def link(self, label: str, url: str) -> str:
        return f"[{self.text(label)}]({url})"


MARKUPS = {
    "telegram": TelegramMarkup(),
    "discord": DiscordMarkup(),
}


def get_markup(channel: str) -> Markup:
    return MARKUPS.get(channel, Markup())


def format_user_error(message: str, markup: Markup) -> str:
    return markup.text(message)


def format_failure(markup: Markup) -> str:
    return markup.text(FAILURE_MESSAGE)


def format_success(run_url: str, images: List[str], markup: Markup) -> str:
    lines = [
        f"{markup.text(TRIGGERED_MESSAGE)} {markup.link(RUN_LINK_LABEL, run_url)}",
        markup.text(IMAGES_HEADER),
    ]
    lines.extend(markup.code(image) for image in images)
    return "\n".join(lines)
