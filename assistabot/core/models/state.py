"""
Live state entity model for AssistaBot.

This module defines the LiveState dataclass persisted in
``data/stream-state.json``, one row per tracked (guild, platform, id).
"""

import time
from dataclasses import dataclass
from typing import Optional

from .enums import LiveStatus


def state_key(guild_id, platform: str, external_id: str, suffix: Optional[str] = None) -> str:
    """
    Build the lower-cased state key for a tracked entry.

    Args:
        guild_id: Discord guild id
        platform: Platform code
        external_id: Streamer id on the platform
        suffix: Optional qualifier (e.g. "vod") for auxiliary rows

    Returns:
        Key of the form "guild:platform:id[:suffix]"
    """
    parts = [str(guild_id), str(platform), str(external_id)]
    if suffix:
        parts.append(suffix)
    return ':'.join(parts).lower()


@dataclass
class LiveState:
    """
    Last known status of a tracked streamer.

    Attributes:
        status: LiveStatus value ("live" / "offline")
        last_transition_at: UNIX timestamp of the last status change
        last_message_id: Discord message id of the last live notification
        last_channel_id: Channel the last notification was posted to
        last_notified_at: UNIX timestamp of the last notification
        offline_since: UNIX timestamp of the first offline reading while live
        last_video_id: Last announced upload (VOD rows only)
    """

    status: str = LiveStatus.OFFLINE.value
    last_transition_at: int = 0
    last_message_id: Optional[str] = None
    last_channel_id: Optional[str] = None
    last_notified_at: Optional[int] = None
    offline_since: Optional[int] = None
    last_video_id: Optional[str] = None

    @property
    def is_live(self) -> bool:
        return self.status == LiveStatus.LIVE.value

    @property
    def pending_offline(self) -> bool:
        """True while an offline reading waits out the grace period."""
        return self.is_live and self.offline_since is not None

    def grace_elapsed(self, grace_seconds: int, current_time: Optional[int] = None) -> bool:
        """
        Check if a pending offline reading has outlasted the grace period.

        Args:
            grace_seconds: Grace period length in seconds
            current_time: UNIX timestamp to check against (defaults to now)

        Returns:
            True if the transition may be re-verified and applied
        """
        if self.offline_since is None:
            return False
        if current_time is None:
            current_time = int(time.time())
        return current_time - self.offline_since >= grace_seconds

    def to_dict(self) -> dict:
        return {
            'status': self.status,
            'lastTransitionAt': self.last_transition_at,
            'lastMessageId': self.last_message_id,
            'lastChannelId': self.last_channel_id,
            'lastNotifiedAt': self.last_notified_at,
            'offlineSince': self.offline_since,
            'lastVideoId': self.last_video_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LiveState':
        status = str(data.get('status') or LiveStatus.OFFLINE.value).lower()
        if status not in (LiveStatus.LIVE.value, LiveStatus.OFFLINE.value):
            status = LiveStatus.OFFLINE.value
        return cls(
            status=status,
            last_transition_at=int(data.get('lastTransitionAt') or 0),
            last_message_id=data.get('lastMessageId'),
            last_channel_id=data.get('lastChannelId'),
            last_notified_at=data.get('lastNotifiedAt'),
            offline_since=data.get('offlineSince'),
            last_video_id=data.get('lastVideoId'),
        )
