"""
Stream registry entity models for AssistaBot.

This module defines the StreamEntry and PresenceRule dataclasses stored in
``data/streams.json``. The JSON keys keep the historical camelCase names so
files written by earlier versions of the bot still load.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from .enums import Platform


_NON_DIGITS = re.compile(r'\D+')

# Prefix for synthetic entries created from presence rules
MEMBER_ID_PREFIX = 'member:'


def normalize_role_ids(values: Union[None, str, int, Iterable]) -> List[str]:
    """
    Clean a role-id list: strip non-digits, drop empties, dedupe in order.

    Args:
        values: A single id, an iterable of ids, or None

    Returns:
        Normalized list of role id strings
    """
    if values is None:
        return []
    if isinstance(values, (str, int)):
        values = [values]

    seen = set()
    cleaned = []
    for value in values:
        if value is None:
            continue
        digits = _NON_DIGITS.sub('', str(value))
        if digits and digits not in seen:
            seen.add(digits)
            cleaned.append(digits)
    return cleaned


def _optional_str(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass
class StreamEntry:
    """
    One tracked streamer configuration for a guild.

    Attributes:
        platform: Platform code (see Platform)
        external_id: Streamer id on the platform (login, channel id, handle or URL)
        discord_channel_id: Channel receiving notifications (None = no post)
        live_message_template: Message template for live notifications
        vod_message_template: Message template for new YouTube uploads
        bound_discord_user_id: Guild member the stream belongs to
        live_role_ids: Roles assigned to the bound member while live
        whitelist_role_ids: Roles required for role assignment (empty = everyone)
        cleanup: Delete the live notification when the stream ends
    """

    # Required fields
    platform: str
    external_id: str

    # Optional fields with defaults
    discord_channel_id: Optional[str] = None
    live_message_template: Optional[str] = None
    vod_message_template: Optional[str] = None
    bound_discord_user_id: Optional[str] = None
    live_role_ids: List[str] = field(default_factory=list)
    whitelist_role_ids: List[str] = field(default_factory=list)
    cleanup: bool = False

    def __post_init__(self):
        """Normalize identifiers after initialization."""
        self.platform = str(self.platform or '').strip().lower()
        self.external_id = str(self.external_id or '').strip()
        self.live_role_ids = normalize_role_ids(self.live_role_ids)
        self.whitelist_role_ids = normalize_role_ids(self.whitelist_role_ids)

    @property
    def key(self) -> str:
        """Uniqueness key within a guild (case-insensitive id)."""
        return f"{self.platform}:{self.external_id.lower()}"

    @property
    def platform_enum(self) -> Optional[Platform]:
        return Platform.from_string(self.platform)

    @property
    def is_presence_member(self) -> bool:
        """True for synthetic entries generated from presence rules."""
        return self.external_id.startswith(MEMBER_ID_PREFIX)

    def matches(self, platform: str, external_id: str) -> bool:
        return (
            self.platform == str(platform).strip().lower()
            and self.external_id.lower() == str(external_id).strip().lower()
        )

    def to_dict(self) -> dict:
        """Convert entry to its JSON representation."""
        return {
            'platform': self.platform,
            'id': self.external_id,
            'channelId': self.discord_channel_id,
            'message': self.live_message_template,
            'vodMessage': self.vod_message_template,
            'discordUser': self.bound_discord_user_id,
            'liveRoleIds': list(self.live_role_ids),
            'whitelistRoleIds': list(self.whitelist_role_ids),
            'cleanup': self.cleanup,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'StreamEntry':
        """Create StreamEntry from its JSON representation."""
        live_roles = data.get('liveRoleIds')
        if live_roles is None and data.get('liveRoleId'):
            # Single-role field from older files
            live_roles = [data['liveRoleId']]

        return cls(
            platform=data.get('platform', ''),
            external_id=data.get('id', ''),
            discord_channel_id=_optional_str(data.get('channelId')),
            live_message_template=data.get('message') or None,
            vod_message_template=data.get('vodMessage') or None,
            bound_discord_user_id=_optional_str(data.get('discordUser')),
            live_role_ids=live_roles or [],
            whitelist_role_ids=data.get('whitelistRoleIds') or [],
            cleanup=bool(data.get('cleanup', False)),
        )

    def __repr__(self) -> str:
        return (
            f"StreamEntry(platform={self.platform}, id='{self.external_id}', "
            f"channel={self.discord_channel_id})"
        )


@dataclass
class PresenceRule:
    """
    Guild-wide rule for a presence-detected platform.

    Every member passing the whitelist is watched for a matching activity.
    """

    platform: str
    discord_channel_id: Optional[str] = None
    message_template: Optional[str] = None
    live_role_ids: List[str] = field(default_factory=list)
    whitelist_role_ids: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.platform = str(self.platform or '').strip().lower()
        self.live_role_ids = normalize_role_ids(self.live_role_ids)
        self.whitelist_role_ids = normalize_role_ids(self.whitelist_role_ids)

    def entry_for_member(self, member_id: str) -> StreamEntry:
        """Build the synthetic registry entry used to track one member."""
        return StreamEntry(
            platform=self.platform,
            external_id=f"{MEMBER_ID_PREFIX}{member_id}",
            discord_channel_id=self.discord_channel_id,
            live_message_template=self.message_template,
            bound_discord_user_id=str(member_id),
            live_role_ids=list(self.live_role_ids),
            whitelist_role_ids=list(self.whitelist_role_ids),
        )

    def to_dict(self) -> dict:
        return {
            'channelId': self.discord_channel_id,
            'message': self.message_template,
            'liveRoleIds': list(self.live_role_ids),
            'whitelistRoleIds': list(self.whitelist_role_ids),
        }

    @classmethod
    def from_dict(cls, platform: str, data: dict) -> 'PresenceRule':
        return cls(
            platform=platform,
            discord_channel_id=_optional_str(data.get('channelId')),
            message_template=data.get('message') or None,
            live_role_ids=data.get('liveRoleIds') or [],
            whitelist_role_ids=data.get('whitelistRoleIds') or [],
        )
