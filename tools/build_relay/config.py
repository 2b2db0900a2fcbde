"""Relay configuration.

Loaded once at startup from an optional JSON file, then overridden by
environment variables, and handed to every component explicitly.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from build_relay.commands import DEFAULT_COMMANDS
from build_relay.errors import ConfigError
from build_relay.workflows import DEFAULT_REGISTRY

ENV_OVERRIDES = {
    "TELEGRAM_TOKEN": "telegram_token",
    "DISCORD_TOKEN": "discord_token",
    "GITHUB_TOKEN": "github_token",
    "GITHUB_API_URL": "github_api_url",
}

PLACEHOLDER = "CHANGE-ME"


@dataclass(frozen=True)
class RelayConfig:
    github_token: str
    telegram_token: str = ""
    discord_token: str = ""
    github_api_url: str = "https://api.github.com"
    build_org: str = "ethpandaops"
    build_repo: str = "eth-client-docker-image-builder"
    build_ref: str = "master"
    image_registry: str = DEFAULT_REGISTRY
    commands: Tuple[str, ...] = DEFAULT_COMMANDS
    run_lookup_delay: float = 1.5
    user_agent: str = "build-bot/1"
    api_version: str = "2022-11-28"

    @property
    def telegram_enabled(self) -> bool:
        return is_configured(self.telegram_token)

    @property
    def discord_enabled(self) -> bool:
        return is_configured(self.discord_token)


def is_configured(token: str) -> bool:
    return isinstance(token, str) and bool(token) and PLACEHOLDER not in token


def load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Read the JSON config file, or return an empty dict when not given."""
    if not config_path:
        return {}

    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config not found at {path}")

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config root in {path} must be an object")
    return data


def build_config(
    values: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None
) -> RelayConfig:
    """Merge file values with environment overrides and validate.

    Raises:
        ConfigError: Unknown keys, no GitHub token, or no chat transport.
    """
    environ = os.environ if environ is None else environ
    merged = dict(values)
    for env_name, key in ENV_OVERRIDES.items():
        env_value = environ.get(env_name, "").strip()
        if env_value:
            merged[key] = env_value

    for key in ENV_OVERRIDES.values():
        if key in merged and not isinstance(merged[key], str):
            raise ConfigError(f"{key} must be a string")

    known = {f.name for f in fields(RelayConfig)}
    unknown = sorted(set(merged) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    if "commands" in merged:
        commands = merged["commands"]
        if isinstance(commands, str):
            commands = [commands]
        merged["commands"] = tuple(commands)
        if not merged["commands"]:
            raise ConfigError("commands must list at least one command")

    if "run_lookup_delay" in merged:
        try:
            merged["run_lookup_delay"] = float(merged["run_lookup_delay"])
        except (TypeError, ValueError) as e:
            raise ConfigError("run_lookup_delay must be a number") from e
        if merged["run_lookup_delay"] < 0:
            raise ConfigError("run_lookup_delay must be >= 0")

    if not is_configured(merged.get("github_token", "")):
        raise ConfigError("GITHUB_TOKEN not set")

    config = RelayConfig(**merged)
    if not (config.telegram_enabled or config.discord_enabled):
        raise ConfigError("Neither TELEGRAM_TOKEN nor DISCORD_TOKEN is set")
    return config


def load_config(
    config_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> RelayConfig:
    return build_config(load_config_file(config_path), environ)
