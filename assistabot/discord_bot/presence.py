"""
Discord presence source.

Copies cached guild members (activities, roles, voice state) into plain
MemberPresence snapshots for the presence-backed probers.
"""

from typing import List, Optional

import discord
from discord.ext import commands

from ..core.interfaces import PresenceSource
from ..core.models import ActivitySnapshot, MemberPresence


def snapshot_activity(activity) -> ActivitySnapshot:
    """
    Copy the fields the probers need from a discord.py activity.

    Args:
        activity: Any discord.py activity (Activity, Streaming, Game, ...)

    Returns:
        ActivitySnapshot
    """
    activity_type = getattr(activity, 'type', None)
    return ActivitySnapshot(
        name=getattr(activity, 'name', None),
        activity_type=activity_type.value if isinstance(activity_type, discord.ActivityType) else None,
        url=getattr(activity, 'url', None),
        details=getattr(activity, 'details', None),
        state=getattr(activity, 'state', None),
        game=getattr(activity, 'game', None),
        image_url=getattr(activity, 'large_image_url', None),
    )


def snapshot_member(member: discord.Member) -> MemberPresence:
    """Copy a guild member into a MemberPresence."""
    voice_channel = member.voice.channel if member.voice else None
    return MemberPresence(
        member_id=str(member.id),
        display_name=member.display_name,
        avatar_url=member.display_avatar.url,
        bot=member.bot,
        role_ids=[str(role.id) for role in member.roles],
        activities=[snapshot_activity(activity) for activity in member.activities],
        voice_channel_id=str(voice_channel.id) if voice_channel else None,
        voice_channel_name=voice_channel.name if voice_channel else None,
    )


class DiscordPresenceSource(PresenceSource):
    """Reads presences from the bot's member cache (requires the presences intent)."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    def _guild(self, guild_id: str) -> Optional[discord.Guild]:
        try:
            return self.bot.get_guild(int(guild_id))
        except (TypeError, ValueError):
            return None

    def get_member(self, guild_id: str, member_id: str) -> Optional[MemberPresence]:
        guild = self._guild(guild_id)
        if guild is None:
            return None
        try:
            member = guild.get_member(int(member_id))
        except (TypeError, ValueError):
            return None
        return snapshot_member(member) if member else None

    def list_members(self, guild_id: str) -> List[MemberPresence]:
        guild = self._guild(guild_id)
        if guild is None:
            return []
        return [snapshot_member(member) for member in guild.members]
