"""
Discord Bot package for AssistaBot.

This package contains the Discord presentation layer:
- formatters: Platform colors and the stream notification embed
- notifier: Notifier implementation (send, delete, live roles)
- presence: Presence source backed by the member cache
- handlers: Event handlers
"""

from .formatters import (
    # Colors
    PlatformMeta,
    PLATFORM_META,
    get_platform_meta,
    get_platform_color,
    # Embeds
    EmbedBuilder,
    build_stream_embed,
)

from .notifier import DiscordNotifier
from .presence import DiscordPresenceSource, snapshot_member, snapshot_activity

from .handlers import (
    BaseHandler,
    ReadyHandler,
    PresenceHandler,
    setup_handlers,
    register_handlers,
)


__all__ = [
    # Formatters
    'PlatformMeta',
    'PLATFORM_META',
    'get_platform_meta',
    'get_platform_color',
    'EmbedBuilder',
    'build_stream_embed',
    # Adapters
    'DiscordNotifier',
    'DiscordPresenceSource',
    'snapshot_member',
    'snapshot_activity',
    # Handlers
    'BaseHandler',
    'ReadyHandler',
    'PresenceHandler',
    'setup_handlers',
    'register_handlers',
]
