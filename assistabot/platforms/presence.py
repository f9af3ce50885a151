"""
Presence-based probers for platforms without a usable public API.

Kick, TikTok, Rumble, Instagram, Facebook and X are detected from the bound
member's Discord presence activities; Discord itself is detected from voice
channel membership. Twitch and YouTube signatures exist as well so guild-wide
presence rules can cover them without API credentials.

No network calls happen here: results depend entirely on how fresh the
gateway's cached presence data is.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple
from urllib.parse import urlparse

from assistabot.core.interfaces import Prober, PresenceSource, ProberNotFoundError
from assistabot.core.models import (
    Platform,
    StreamEntry,
    StreamInfo,
    ProbeResult,
    ActivitySnapshot,
    MemberPresence,
)


def _url_host(url: Optional[str]) -> str:
    if not url:
        return ''
    url = url.strip().lower()
    if '://' not in url:
        url = 'https://' + url
    try:
        return urlparse(url).hostname or ''
    except ValueError:
        return ''


@dataclass(frozen=True)
class PresenceSignature:
    """
    How to recognise a platform in a presence activity.

    Attributes:
        platform: Platform the signature identifies
        url_hosts: Hosts (and their subdomains) matched against the activity URL
        names: Activity names matched case-insensitively
        watch_url: Format string for the channel URL ({id} placeholder)
    """
    platform: Platform
    url_hosts: Tuple[str, ...]
    names: Tuple[str, ...]
    watch_url: str

    def matches(self, activity: ActivitySnapshot) -> bool:
        host = _url_host(activity.url)
        if host and any(host == h or host.endswith('.' + h) for h in self.url_hosts):
            return True
        name = (activity.name or '').strip().lower()
        return bool(name) and name in self.names


PRESENCE_SIGNATURES: Dict[Platform, PresenceSignature] = {
    Platform.TWITCH: PresenceSignature(
        Platform.TWITCH, ('twitch.tv',), ('twitch',), "https://twitch.tv/{id}",
    ),
    Platform.YOUTUBE: PresenceSignature(
        Platform.YOUTUBE, ('youtube.com', 'youtu.be'), ('youtube',), "https://www.youtube.com/@{id}",
    ),
    Platform.RUMBLE: PresenceSignature(
        Platform.RUMBLE, ('rumble.com',), ('rumble',), "https://rumble.com/user/{id}",
    ),
    Platform.TIKTOK: PresenceSignature(
        Platform.TIKTOK, ('tiktok.com',), ('tiktok', 'tiktok live'), "https://tiktok.com/@{id}",
    ),
    Platform.KICK: PresenceSignature(
        Platform.KICK, ('kick.com',), ('kick',), "https://kick.com/{id}",
    ),
    Platform.INSTAGRAM: PresenceSignature(
        Platform.INSTAGRAM, ('instagram.com',), ('instagram',), "https://instagram.com/{id}",
    ),
    Platform.FACEBOOK: PresenceSignature(
        Platform.FACEBOOK, ('facebook.com', 'fb.gg'), ('facebook', 'facebook gaming', 'fb.gg'), "https://facebook.com/{id}",
    ),
    Platform.X: PresenceSignature(
        Platform.X, ('x.com', 'twitter.com'), ('x', 'twitter'), "https://x.com/{id}",
    ),
}


def classify_activity(activity: ActivitySnapshot) -> Optional[Platform]:
    """
    Find the platform an activity points at.

    Returns:
        First matching platform in PRESENCE_SIGNATURES order, or None
    """
    for signature in PRESENCE_SIGNATURES.values():
        if signature.matches(activity):
            return signature.platform
    return None


def _find_member(source: PresenceSource, guild_id: str, entry: StreamEntry) -> MemberPresence:
    if not entry.bound_discord_user_id:
        raise ProberNotFoundError(f"{entry.platform}:{entry.external_id} has no bound Discord user")
    member = source.get_member(guild_id, entry.bound_discord_user_id)
    if member is None:
        raise ProberNotFoundError(
            f"Member {entry.bound_discord_user_id} not cached in guild {guild_id}"
        )
    return member


def _display_name(entry: StreamEntry, member: MemberPresence) -> str:
    if entry.is_presence_member:
        return member.display_name
    return entry.external_id


class PresenceProber(Prober):
    """Detects a live stream from a matching presence activity."""

    def __init__(self, signature: PresenceSignature, source: PresenceSource):
        self.signature = signature
        self.platform = signature.platform
        self.source = source

    def is_configured(self) -> bool:
        return self.source is not None

    async def probe(self, guild_id: str, entry: StreamEntry, fresh: bool = False) -> ProbeResult:
        member = _find_member(self.source, guild_id, entry)

        # Streaming activities win over any other matching activity
        matches = [a for a in member.activities if self.signature.matches(a)]
        if not matches:
            return ProbeResult.offline()
        activity = next((a for a in matches if a.is_streaming), matches[0])

        fallback_url = None
        if not entry.is_presence_member:
            fallback_url = self.signature.watch_url.format(id=entry.external_id.lstrip('@'))

        info = StreamInfo(
            platform=self.platform.value,
            name=_display_name(entry, member),
            url=activity.url or fallback_url,
            title=activity.details or f"Live on {self.platform.display_name}",
            game=activity.state or activity.game,
            thumbnail_url=activity.image_url,
            avatar_url=member.avatar_url,
        )
        return ProbeResult(live=True, info=info)


class DiscordVoiceProber(Prober):
    """Treats a member connected to a voice channel as live on Discord."""

    platform = Platform.DISCORD

    def __init__(self, source: PresenceSource):
        self.source = source

    def is_configured(self) -> bool:
        return self.source is not None

    async def probe(self, guild_id: str, entry: StreamEntry, fresh: bool = False) -> ProbeResult:
        member = _find_member(self.source, guild_id, entry)
        if not member.in_voice:
            return ProbeResult.offline()

        info = StreamInfo(
            platform=self.platform.value,
            name=_display_name(entry, member),
            url=f"https://discord.com/users/{member.member_id}",
            title=f"In voice: {member.voice_channel_name}" if member.voice_channel_name else 'Live now',
            avatar_url=member.avatar_url,
        )
        return ProbeResult(live=True, info=info)


# =============================================================================
# Factory Functions
# =============================================================================

def create_presence_prober(platform: Platform, source: PresenceSource) -> Prober:
    """Create the presence-backed prober for one platform."""
    if platform == Platform.DISCORD:
        return DiscordVoiceProber(source)
    return PresenceProber(PRESENCE_SIGNATURES[platform], source)
