"""
AssistaBot - stream live notifications for Discord.

Package structure:
- core/: Core business logic (models, interfaces, repositories, services)
- platforms/: Per-platform live-status probers
- integrations/: Twitch Helix and YouTube Data API clients
- discord_bot/: Discord-specific code (embeds, notifier, presence source, handlers)
- utils/: Shared utilities (logging, expiring cache, retry, dates, constants)

Usage:
    from assistabot.core import JsonStreamRegistry, NotifierService
    from assistabot.platforms import create_probers
    from assistabot.app import create_bot, create_bot_app
"""

__version__ = "1.0.0"

# Convenience imports for common use cases
from assistabot.core.models import Platform, LiveStatus, StreamEntry, PresenceRule, LiveState, StreamInfo
from assistabot.core.repositories import JsonStreamRegistry, JsonLiveStateRepository
from assistabot.core.services import NotifierService, TemplateService
from assistabot.utils import setup_logging, get_logger, BOT_VERSION

__all__ = [
    # Version
    '__version__',
    # Models
    'Platform',
    'LiveStatus',
    'StreamEntry',
    'PresenceRule',
    'LiveState',
    'StreamInfo',
    # Repositories
    'JsonStreamRegistry',
    'JsonLiveStateRepository',
    # Services
    'NotifierService',
    'TemplateService',
    # Utils
    'setup_logging',
    'get_logger',
    'BOT_VERSION',
]
