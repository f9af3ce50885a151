"""
Probe result and presence snapshot models for AssistaBot.

Probers report what they saw as plain dataclasses so the notifier service
never touches platform payloads or discord.py objects directly.
"""

from dataclasses import dataclass, field
from typing import List, Optional


# Discord ActivityType.streaming
STREAMING_ACTIVITY_TYPE = 1


@dataclass
class StreamInfo:
    """
    Metadata about a live stream (or upload) used to render notifications.

    Attributes:
        platform: Platform code
        name: Streamer display name
        url: Watch URL
        title: Stream title
        game: Game or activity name
        thumbnail_url: Stream preview image
        avatar_url: Streamer avatar image
        started_at: UNIX timestamp the stream started, if known
        video_id: Platform video/stream id, if known
    """

    platform: str
    name: str
    url: Optional[str] = None
    title: Optional[str] = None
    game: Optional[str] = None
    thumbnail_url: Optional[str] = None
    avatar_url: Optional[str] = None
    started_at: Optional[int] = None
    video_id: Optional[str] = None


@dataclass
class ProbeResult:
    """Outcome of a single live-status probe."""

    live: bool
    info: Optional[StreamInfo] = None

    @classmethod
    def offline(cls) -> 'ProbeResult':
        return cls(live=False)


@dataclass
class ActivitySnapshot:
    """Plain copy of one Discord presence activity."""

    name: Optional[str] = None
    activity_type: Optional[int] = None
    url: Optional[str] = None
    details: Optional[str] = None
    state: Optional[str] = None
    game: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def is_streaming(self) -> bool:
        return self.activity_type == STREAMING_ACTIVITY_TYPE


@dataclass
class MemberPresence:
    """
    Plain copy of a guild member's cached presence and voice state.

    Attributes:
        member_id: Discord user id
        display_name: Member display name
        avatar_url: Member avatar URL
        bot: True for bot accounts
        role_ids: Role ids held by the member
        activities: Current presence activities
        voice_channel_id: Voice channel the member is connected to
        voice_channel_name: Name of that voice channel
    """

    member_id: str
    display_name: str
    avatar_url: Optional[str] = None
    bot: bool = False
    role_ids: List[str] = field(default_factory=list)
    activities: List[ActivitySnapshot] = field(default_factory=list)
    voice_channel_id: Optional[str] = None
    voice_channel_name: Optional[str] = None

    @property
    def in_voice(self) -> bool:
        return self.voice_channel_id is not None

    def passes_whitelist(self, whitelist_role_ids: List[str]) -> bool:
        """An empty whitelist admits every member."""
        if not whitelist_role_ids:
            return True
        held = set(self.role_ids)
        return any(role_id in held for role_id in whitelist_role_ids)
