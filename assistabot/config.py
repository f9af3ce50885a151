"""
Runtime configuration for AssistaBot.

Values come from the environment (a .env file is loaded first) and fall
back to the JSON files under config/:
- config/config.json: general settings (token, data_dir, poll_seconds, ...)
- config/twitch.json: twitch_client_id, twitch_client_secret
- config/youtube.json: youtube_api_key
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .core.services import DEFAULT_POLL_INTERVAL, DEFAULT_GRACE_PERIOD
from .utils import get_logger, read_json_file, safe_int


logger = get_logger("config")

CONFIG_DIR = "config"


@dataclass
class Settings:
    """
    Resolved bot settings.

    Attributes:
        discord_token: Bot token
        twitch_client_id: Twitch application client id
        twitch_client_secret: Twitch application client secret
        youtube_api_key: YouTube Data API key
        data_dir: Directory holding streams.json and stream-state.json
        poll_seconds: Delay between poll ticks
        grace_seconds: Offline grace period
        log_file: Optional log file path
        status_message: Bot "watching" status
    """

    discord_token: Optional[str] = None
    twitch_client_id: Optional[str] = None
    twitch_client_secret: Optional[str] = None
    youtube_api_key: Optional[str] = None
    data_dir: str = "data"
    poll_seconds: int = DEFAULT_POLL_INTERVAL
    grace_seconds: int = DEFAULT_GRACE_PERIOD
    log_file: Optional[str] = None
    status_message: Optional[str] = "live streams"

    @property
    def streams_path(self) -> str:
        return os.path.join(self.data_dir, "streams.json")

    @property
    def state_path(self) -> str:
        return os.path.join(self.data_dir, "stream-state.json")

    @property
    def twitch_configured(self) -> bool:
        return bool(self.twitch_client_id and self.twitch_client_secret)

    @property
    def youtube_configured(self) -> bool:
        return bool(self.youtube_api_key)


def _load_config_file(config_dir: str, name: str) -> Dict[str, Any]:
    path = os.path.join(config_dir, name)
    try:
        data = read_json_file(path, default={})
    except ValueError as e:
        logger.warning(f"Ignoring malformed config file {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def _pick(env: Dict[str, str], key: str, *fallbacks: Any) -> Optional[str]:
    """Return the first non-empty value among the env var and fallbacks."""
    value = env.get(key)
    if value:
        return value
    for fallback in fallbacks:
        if fallback:
            return str(fallback)
    return None


def load_settings(
    env: Optional[Dict[str, str]] = None,
    config_dir: str = CONFIG_DIR,
    dotenv: bool = True,
) -> Settings:
    """
    Load settings from the environment and config files.

    Environment variables win over the JSON files.

    Args:
        env: Environment mapping (defaults to os.environ)
        config_dir: Directory holding the JSON config files
        dotenv: Load a .env file into os.environ first

    Returns:
        Settings instance
    """
    if dotenv:
        load_dotenv()
    if env is None:
        env = dict(os.environ)

    general = _load_config_file(config_dir, "config.json")
    twitch = _load_config_file(config_dir, "twitch.json")
    youtube = _load_config_file(config_dir, "youtube.json")

    return Settings(
        discord_token=_pick(env, "DISCORD_TOKEN", general.get("token"), general.get("discord_token")),
        twitch_client_id=_pick(env, "TWITCH_CLIENT_ID", twitch.get("twitch_client_id")),
        twitch_client_secret=_pick(env, "TWITCH_CLIENT_SECRET", twitch.get("twitch_client_secret")),
        youtube_api_key=_pick(env, "YOUTUBE_API_KEY", youtube.get("youtube_api_key")),
        data_dir=_pick(env, "ASSISTABOT_DATA_DIR", general.get("data_dir")) or "data",
        poll_seconds=max(1, safe_int(
            _pick(env, "ASSISTABOT_POLL_SECONDS", general.get("poll_seconds")),
            DEFAULT_POLL_INTERVAL,
        )),
        grace_seconds=max(0, safe_int(
            _pick(env, "ASSISTABOT_GRACE_SECONDS", general.get("grace_seconds")),
            DEFAULT_GRACE_PERIOD,
        )),
        log_file=_pick(env, "ASSISTABOT_LOG_FILE", general.get("log_file")),
        status_message=general.get("status_message", "live streams"),
    )
