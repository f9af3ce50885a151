"""
Tests for settings loading from the environment and config/*.json.
"""

import json
import os

from assistabot.config import Settings, load_settings
from assistabot.core.services import DEFAULT_POLL_INTERVAL, DEFAULT_GRACE_PERIOD


def write_config(config_dir, name, data):
    (config_dir / name).write_text(json.dumps(data), encoding="utf-8")


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults(self, tmp_path):
        settings = load_settings(env={}, config_dir=str(tmp_path), dotenv=False)

        assert settings.discord_token is None
        assert settings.data_dir == "data"
        assert settings.poll_seconds == DEFAULT_POLL_INTERVAL
        assert settings.grace_seconds == DEFAULT_GRACE_PERIOD
        assert not settings.twitch_configured
        assert not settings.youtube_configured

    def test_environment(self, tmp_path):
        env = {
            "DISCORD_TOKEN": "env-token",
            "TWITCH_CLIENT_ID": "cid",
            "TWITCH_CLIENT_SECRET": "secret",
            "YOUTUBE_API_KEY": "key",
            "ASSISTABOT_DATA_DIR": str(tmp_path / "state"),
            "ASSISTABOT_POLL_SECONDS": "60",
            "ASSISTABOT_GRACE_SECONDS": "0",
        }

        settings = load_settings(env=env, config_dir=str(tmp_path), dotenv=False)

        assert settings.discord_token == "env-token"
        assert settings.twitch_configured
        assert settings.youtube_configured
        assert settings.poll_seconds == 60
        assert settings.grace_seconds == 0
        assert settings.streams_path == os.path.join(str(tmp_path / "state"), "streams.json")
        assert settings.state_path == os.path.join(str(tmp_path / "state"), "stream-state.json")

    def test_json_fallbacks(self, tmp_path):
        write_config(tmp_path, "config.json", {"token": "file-token", "poll_seconds": 90, "status_message": "streams"})
        write_config(tmp_path, "twitch.json", {"twitch_client_id": "cid", "twitch_client_secret": "secret"})
        write_config(tmp_path, "youtube.json", {"youtube_api_key": "key"})

        settings = load_settings(env={}, config_dir=str(tmp_path), dotenv=False)

        assert settings.discord_token == "file-token"
        assert settings.twitch_client_id == "cid"
        assert settings.youtube_api_key == "key"
        assert settings.poll_seconds == 90
        assert settings.status_message == "streams"

    def test_environment_wins_over_files(self, tmp_path):
        write_config(tmp_path, "config.json", {"token": "file-token"})
        write_config(tmp_path, "youtube.json", {"youtube_api_key": "file-key"})

        settings = load_settings(
            env={"DISCORD_TOKEN": "env-token", "YOUTUBE_API_KEY": ""},
            config_dir=str(tmp_path),
            dotenv=False,
        )

        assert settings.discord_token == "env-token"
        # Empty variables do not mask the file value
        assert settings.youtube_api_key == "file-key"

    def test_invalid_numbers_fall_back(self, tmp_path):
        env = {"ASSISTABOT_POLL_SECONDS": "soon", "ASSISTABOT_GRACE_SECONDS": "-5"}

        settings = load_settings(env=env, config_dir=str(tmp_path), dotenv=False)

        assert settings.poll_seconds == DEFAULT_POLL_INTERVAL
        assert settings.grace_seconds == 0

    def test_malformed_config_file_is_ignored(self, tmp_path):
        (tmp_path / "config.json").write_text("[1, 2", encoding="utf-8")

        settings = load_settings(env={}, config_dir=str(tmp_path), dotenv=False)

        assert settings.discord_token is None

    def test_settings_properties(self):
        settings = Settings(twitch_client_id="cid")

        assert not settings.twitch_configured
        assert settings.streams_path == os.path.join("data", "streams.json")
