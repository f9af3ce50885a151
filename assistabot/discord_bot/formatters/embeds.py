"""
Embed builders for Discord messages.

Provides the builder and factory functions for stream notification embeds.
"""

import discord
from typing import Optional

from ...core.models import StreamInfo
from ...utils import truncate, EMBED_TITLE_LIMIT, EMBED_AUTHOR_LIMIT, EMBED_DESCRIPTION_LIMIT
from .colors import get_platform_meta


class EmbedBuilder:
    """
    Builder class for creating Discord embeds with consistent styling.

    Usage:
        embed = EmbedBuilder() \
            .set_title("Live now", url) \
            .set_color_for_platform("twitch") \
            .set_image(thumbnail_url) \
            .build()
    """

    def __init__(self):
        """Initialize a new embed builder."""
        self._title: Optional[str] = None
        self._url: Optional[str] = None
        self._description: Optional[str] = None
        self._color: discord.Color = discord.Color.blurple()
        self._image_url: Optional[str] = None
        self._author_name: Optional[str] = None
        self._author_icon: Optional[str] = None
        self._author_url: Optional[str] = None

    def set_title(self, title: str, url: Optional[str] = None) -> 'EmbedBuilder':
        """Set the embed title and the link it points to."""
        self._title = truncate(title, EMBED_TITLE_LIMIT)
        self._url = url if url and url.startswith("http") else None
        return self

    def set_description(self, description: Optional[str]) -> 'EmbedBuilder':
        """Set the embed description."""
        self._description = truncate(description, EMBED_DESCRIPTION_LIMIT) if description else None
        return self

    def set_color(self, color: discord.Color) -> 'EmbedBuilder':
        """Set the embed color directly."""
        self._color = color
        return self

    def set_color_for_platform(self, platform: str) -> 'EmbedBuilder':
        """Set color based on streaming platform."""
        self._color = get_platform_meta(platform).color
        return self

    def set_image(self, url: Optional[str]) -> 'EmbedBuilder':
        """Set the embed image."""
        if url and url.startswith("http"):
            self._image_url = url
        return self

    def set_author(
        self,
        name: str,
        icon_url: Optional[str] = None,
        url: Optional[str] = None,
    ) -> 'EmbedBuilder':
        """Set the embed author."""
        self._author_name = truncate(name, EMBED_AUTHOR_LIMIT)
        self._author_icon = icon_url
        self._author_url = url if url and url.startswith("http") else None
        return self

    def build(self) -> discord.Embed:
        """Build and return the Discord embed."""
        embed = discord.Embed(
            title=self._title,
            url=self._url,
            description=self._description,
            color=self._color,
        )

        if self._image_url:
            embed.set_image(url=self._image_url)

        if self._author_name:
            embed.set_author(name=self._author_name, icon_url=self._author_icon, url=self._author_url)

        return embed


# =============================================================================
# Factory Functions
# =============================================================================

def pick_image(info: StreamInfo) -> Optional[str]:
    """
    Choose the embed image: stream thumbnail, then avatar, then platform icon.

    Args:
        info: Stream metadata

    Returns:
        Image URL or None when nothing is available
    """
    return info.thumbnail_url or info.avatar_url or get_platform_meta(info.platform).icon


def build_stream_embed(info: StreamInfo) -> discord.Embed:
    """
    Create the notification embed for a live stream or upload.

    Args:
        info: Stream metadata

    Returns:
        Discord embed
    """
    meta = get_platform_meta(info.platform)

    return EmbedBuilder() \
        .set_color(meta.color) \
        .set_author(info.name or 'Streamer', icon_url=info.avatar_url or meta.icon, url=info.url) \
        .set_title(info.title or 'Live now', info.url) \
        .set_description(f"Activity: {info.game}" if info.game else None) \
        .set_image(pick_image(info)) \
        .build()
