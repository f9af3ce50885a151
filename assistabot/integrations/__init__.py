"""
External integrations for AssistaBot.

This package contains async REST clients for the platforms with a public
live-status API:
- twitch: Twitch Helix (app access token)
- youtube: YouTube Data API v3 (API key)

Both share one aiohttp session and one ExpiringCache.
"""

from .base import BaseApiClient, RetryableRequestError, REQUEST_TIMEOUT_SECONDS
from .twitch import TwitchClient, parse_twitch_login, default_avatar_url
from .youtube import YouTubeClient, best_thumbnail

__all__ = [
    # Base
    'BaseApiClient',
    'RetryableRequestError',
    'REQUEST_TIMEOUT_SECONDS',
    # Twitch
    'TwitchClient',
    'parse_twitch_login',
    'default_avatar_url',
    # YouTube
    'YouTubeClient',
    'best_thumbnail',
]
