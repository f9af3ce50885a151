"""
Platform metadata for Discord embeds.

Centralizes the color, display name and icon used for each streaming
platform so every notification looks consistent.
"""

from dataclasses import dataclass
from typing import Optional

import discord


@dataclass(frozen=True)
class PlatformMeta:
    """Embed styling for one platform."""
    color: discord.Color
    name: str
    icon: Optional[str]


PLATFORM_META = {
    "twitch": PlatformMeta(
        discord.Color(0x9146FF), "Twitch",
        "https://static.twitchcdn.net/assets/favicon-32-e29e246c157142c94346.png",
    ),
    "youtube": PlatformMeta(
        discord.Color(0xFF0000), "YouTube",
        "https://www.youtube.com/s/desktop/c653c3bb/img/favicon_32x32.png",
    ),
    "rumble": PlatformMeta(
        discord.Color(0x85C742), "Rumble",
        "https://rumble.com/favicon.ico",
    ),
    "tiktok": PlatformMeta(
        discord.Color(0xFF0050), "TikTok",
        "https://sf16-website-login.neutral.ttwstatic.com/obj/tiktok_web_login_static/tiktok/webapp/main/webapp-desktop/8152caf0c8e8bc67ae0d.ico",
    ),
    "kick": PlatformMeta(
        discord.Color(0x53FC18), "Kick",
        "https://kick.com/favicon.ico",
    ),
    "instagram": PlatformMeta(
        discord.Color(0xE4405F), "Instagram",
        "https://www.instagram.com/static/images/ico/favicon-192.png/68d99ba29cc8.png",
    ),
    "discord": PlatformMeta(
        discord.Color(0x5865F2), "Discord",
        "https://discord.com/assets/847541504914fd33810e70a0ea73177e.ico",
    ),
    "facebook": PlatformMeta(
        discord.Color(0x1877F2), "Facebook",
        "https://facebook.com/favicon.ico",
    ),
    "x": PlatformMeta(
        discord.Color(0x000000), "X",
        "https://abs.twimg.com/favicons/twitter.3.ico",
    ),
}

# Used when the platform is unknown
DEFAULT_META = PlatformMeta(discord.Color(0x2F3136), "Stream", None)


def get_platform_meta(platform: Optional[str]) -> PlatformMeta:
    """
    Get the embed styling for a platform.

    Args:
        platform: Platform code (e.g., "twitch")

    Returns:
        PlatformMeta for the platform, or DEFAULT_META
    """
    return PLATFORM_META.get(str(platform or '').lower(), DEFAULT_META)


def get_platform_color(platform: Optional[str]) -> discord.Color:
    """Get the embed color for a platform."""
    return get_platform_meta(platform).color
