"""
Discord formatting utilities for AssistaBot.

This package provides:
- colors: Per-platform embed color, name and icon
- embeds: Embed builder and the stream notification embed factory
"""

from .colors import (
    PlatformMeta,
    PLATFORM_META,
    DEFAULT_META,
    get_platform_meta,
    get_platform_color,
)

from .embeds import (
    EmbedBuilder,
    build_stream_embed,
    pick_image,
)


__all__ = [
    # Colors
    'PlatformMeta',
    'PLATFORM_META',
    'DEFAULT_META',
    'get_platform_meta',
    'get_platform_color',
    # Embeds
    'EmbedBuilder',
    'build_stream_embed',
    'pick_image',
]
