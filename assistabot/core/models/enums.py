"""
Core enums for AssistaBot.

This module defines the supported streaming platforms and the live status
values used throughout the stream notifier.
"""

from enum import Enum
from typing import Optional


class Platform(str, Enum):
    """Supported streaming platforms, in poll order."""
    TWITCH = "twitch"
    YOUTUBE = "youtube"
    RUMBLE = "rumble"
    TIKTOK = "tiktok"
    KICK = "kick"
    INSTAGRAM = "instagram"
    DISCORD = "discord"
    FACEBOOK = "facebook"
    X = "x"

    @property
    def display_name(self) -> str:
        """Human-readable platform name."""
        return _DISPLAY_NAMES[self]

    @property
    def is_api_backed(self) -> bool:
        """True if live status comes from a platform REST API."""
        return self in (Platform.TWITCH, Platform.YOUTUBE)

    @classmethod
    def all_platforms(cls) -> list[str]:
        """Get list of all platform codes."""
        return [platform.value for platform in cls]

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional['Platform']:
        """Convert string to Platform enum (case-insensitive)."""
        if not value:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None

    @classmethod
    def presence_platforms(cls) -> list['Platform']:
        """Platforms detected only through Discord presence/voice state."""
        return [platform for platform in cls if not platform.is_api_backed]


_DISPLAY_NAMES = {
    Platform.TWITCH: "Twitch",
    Platform.YOUTUBE: "YouTube",
    Platform.RUMBLE: "Rumble",
    Platform.TIKTOK: "TikTok",
    Platform.KICK: "Kick",
    Platform.INSTAGRAM: "Instagram",
    Platform.DISCORD: "Discord",
    Platform.FACEBOOK: "Facebook",
    Platform.X: "X",
}


class LiveStatus(str, Enum):
    """Last known status of a tracked streamer."""
    LIVE = "live"
    OFFLINE = "offline"

    @classmethod
    def from_bool(cls, live: bool) -> 'LiveStatus':
        return cls.LIVE if live else cls.OFFLINE
