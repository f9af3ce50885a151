"""
Prober selection for the notifier service.

Registry entries use the API-backed prober for Twitch and YouTube and the
presence-backed prober everywhere else. Guild-wide presence rules always use
presence detection, including for Twitch and YouTube.
"""

from typing import Dict, Optional

from assistabot.core.interfaces import Prober, PresenceSource
from assistabot.core.models import Platform
from assistabot.integrations import TwitchClient, YouTubeClient
from .twitch import TwitchProber
from .youtube import YouTubeProber
from .presence import create_presence_prober


def create_probers(
    presence_source: Optional[PresenceSource],
    twitch_client: Optional[TwitchClient] = None,
    youtube_client: Optional[YouTubeClient] = None,
) -> Dict[Platform, Prober]:
    """
    Create the prober used for registry entries of each platform.

    Args:
        presence_source: Gateway presence cache adapter
        twitch_client: Helix client (Twitch entries are skipped without one)
        youtube_client: Data API client (YouTube entries are skipped without one)

    Returns:
        Mapping of platform to prober, in Platform order
    """
    probers: Dict[Platform, Prober] = {}
    for platform in Platform:
        if platform == Platform.TWITCH:
            if twitch_client is not None:
                probers[platform] = TwitchProber(twitch_client)
        elif platform == Platform.YOUTUBE:
            if youtube_client is not None:
                probers[platform] = YouTubeProber(youtube_client)
        elif presence_source is not None:
            probers[platform] = create_presence_prober(platform, presence_source)
    return probers


def create_presence_probers(presence_source: Optional[PresenceSource]) -> Dict[Platform, Prober]:
    """
    Create the probers used for guild presence rules.

    Returns:
        Mapping of platform to presence-backed prober (empty without a source)
    """
    if presence_source is None:
        return {}
    return {platform: create_presence_prober(platform, presence_source) for platform in Platform}
