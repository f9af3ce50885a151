"""
Platform probers for AssistaBot.

This package contains platform-specific implementations of the Prober
interface defined in the core package.

Available probers:
- Twitch - Helix REST API
- YouTube - Data API v3 (live broadcasts and new uploads)
- Kick, TikTok, Rumble, Instagram, Facebook, X - Discord presence activities
- Discord - voice channel membership
"""

from .twitch import TwitchProber
from .youtube import YouTubeProber
from .presence import (
    PresenceSignature,
    PRESENCE_SIGNATURES,
    PresenceProber,
    DiscordVoiceProber,
    classify_activity,
    create_presence_prober,
)
from .factory import create_probers, create_presence_probers

__all__ = [
    # API-backed
    'TwitchProber',
    'YouTubeProber',
    # Presence-backed
    'PresenceSignature',
    'PRESENCE_SIGNATURES',
    'PresenceProber',
    'DiscordVoiceProber',
    'classify_activity',
    'create_presence_prober',
    # Factories
    'create_probers',
    'create_presence_probers',
]
