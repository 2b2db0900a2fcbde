#!/usr/bin/env python3
"""Unit tests for relay configuration loading."""

import dataclasses
import json
import sys
import tempfile
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

from build_relay.config import RelayConfig, build_config, load_config, load_config_file
from build_relay.errors import ConfigError


class TestBuildConfig:
    def test_from_environment(self):
        config = build_config(
            {}, {"GITHUB_TOKEN": "gh", "TELEGRAM_TOKEN": "tg", "DISCORD_TOKEN": "dc"}
        )
        assert config.github_token == "gh"
        assert config.telegram_enabled is True
        assert config.discord_enabled is True

    def test_defaults(self):
        config = build_config({"github_token": "gh", "telegram_token": "tg"}, {})
        assert config.github_api_url == "https://api.github.com"
        assert config.build_org == "ethpandaops"
        assert config.build_repo == "eth-client-docker-image-builder"
        assert config.build_ref == "master"
        assert config.image_registry == "ethpandaops"
        assert config.commands == ("/build", "/barnabas")
        assert config.run_lookup_delay == 1.5
        assert config.discord_enabled is False

    def test_environment_overrides_file(self):
        config = build_config(
            {"github_token": "from-file", "telegram_token": "tg"}, {"GITHUB_TOKEN": "from-env"}
        )
        assert config.github_token == "from-env"

    def test_blank_environment_ignored(self):
        config = build_config({"github_token": "gh", "telegram_token": "tg"}, {"GITHUB_TOKEN": "  "})
        assert config.github_token == "gh"

    def test_missing_github_token(self):
        with pytest.raises(ConfigError, match="GITHUB_TOKEN"):
            build_config({"telegram_token": "tg"}, {})

    def test_placeholder_tokens(self):
        with pytest.raises(ConfigError, match="GITHUB_TOKEN"):
            build_config({"github_token": "CHANGE-ME", "telegram_token": "tg"}, {})
        with pytest.raises(ConfigError, match="DISCORD_TOKEN"):
            build_config({"github_token": "gh", "telegram_token": "CHANGE-ME"}, {})

    def test_no_channel(self):
        with pytest.raises(ConfigError):
            build_config({"github_token": "gh"}, {})

    def test_non_string_token(self):
        with pytest.raises(ConfigError, match="telegram_token"):
            build_config({"github_token": "gh", "telegram_token": 123}, {})

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="machines"):
            build_config({"github_token": "gh", "telegram_token": "tg", "machines": {}}, {})

    def test_commands_normalised(self):
        config = build_config(
            {"github_token": "gh", "telegram_token": "tg", "commands": ["/img", "/image"]}, {}
        )
        assert config.commands == ("/img", "/image")
        config = build_config({"github_token": "gh", "telegram_token": "tg", "commands": "/img"}, {})
        assert config.commands == ("/img",)

    def test_empty_commands(self):
        with pytest.raises(ConfigError):
            build_config({"github_token": "gh", "telegram_token": "tg", "commands": []}, {})

    def test_bad_delay(self):
        with pytest.raises(ConfigError):
            build_config({"github_token": "gh", "telegram_token": "tg", "run_lookup_delay": "soon"}, {})
        with pytest.raises(ConfigError):
            build_config({"github_token": "gh", "telegram_token": "tg", "run_lookup_delay": -1}, {})

    def test_config_is_frozen(self):
        config = RelayConfig(github_token="gh")
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.github_token = "other"


class TestLoadConfigFile:
    def test_no_path(self):
        assert load_config_file(None) == {}

    def test_missing_file(self):
        with pytest.raises(ConfigError, match="not found"):
            load_config_file("/nonexistent/relay.json")

    def test_invalid_json(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "relay.json"
            path.write_text("{not json")
            with pytest.raises(ConfigError, match="Invalid JSON"):
                load_config_file(str(path))

    def test_non_object_root(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "relay.json"
            path.write_text("[]")
            with pytest.raises(ConfigError):
                load_config_file(str(path))

    def test_load_config(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "relay.json"
            path.write_text(json.dumps({
                "github_token": "gh",
                "discord_token": "dc",
                "build_ref": "main",
            }))
            config = load_config(str(path), environ={})

        assert config.build_ref == "main"
        assert config.discord_enabled is True
        assert config.telegram_enabled is False
