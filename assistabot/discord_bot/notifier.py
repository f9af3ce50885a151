"""
Discord implementation of the Notifier interface.

Posts live notifications with their embed, deletes old notifications and
applies live roles. Discord failures are logged and reported through the
return value, never raised to the notifier service.
"""

from typing import List, Optional

import discord
from discord.ext import commands

from ..core.interfaces import Notifier, NotifierSendError
from ..core.models import StreamInfo
from ..utils import get_logger, truncate, MESSAGE_CONTENT_LIMIT
from .formatters import build_stream_embed


logger = get_logger("discord.notifier")

# Live notifications ping the streamer and any roles in the template
NOTIFY_MENTIONS = discord.AllowedMentions(everyone=False, users=True, roles=True)


def _to_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class DiscordNotifier(Notifier):
    """
    Notifier backed by a discord.py bot.

    Args:
        bot: Connected bot instance
    """

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def _resolve_channel(self, channel_id: str) -> discord.abc.Messageable:
        """
        Look up a channel from the cache, falling back to the API.

        Raises:
            NotifierSendError: If the id is invalid or the channel cannot receive messages
        """
        snowflake = _to_int(channel_id)
        if snowflake is None:
            raise NotifierSendError(f"Invalid channel id: {channel_id!r}")

        channel = self.bot.get_channel(snowflake)
        if channel is None:
            channel = await self.bot.fetch_channel(snowflake)

        if not isinstance(channel, discord.abc.Messageable):
            raise NotifierSendError(f"Channel {channel_id} cannot receive messages")
        return channel

    async def _resolve_member(self, guild_id: str, member_id: str) -> Optional[discord.Member]:
        guild = self.bot.get_guild(_to_int(guild_id) or 0)
        snowflake = _to_int(member_id)
        if guild is None or snowflake is None:
            return None

        member = guild.get_member(snowflake)
        if member is None:
            try:
                member = await guild.fetch_member(snowflake)
            except (discord.NotFound, discord.HTTPException) as e:
                logger.warning(f"Could not fetch member {member_id} in guild {guild_id}: {e}")
                return None
        return member

    async def send_notification(
        self,
        channel_id: str,
        content: str,
        info: StreamInfo,
    ) -> Optional[str]:
        try:
            channel = await self._resolve_channel(channel_id)
            message = await channel.send(
                content=truncate(content, MESSAGE_CONTENT_LIMIT) if content else None,
                embed=build_stream_embed(info),
                allowed_mentions=NOTIFY_MENTIONS,
            )
        except NotifierSendError as e:
            logger.warning(str(e))
            return None
        except discord.Forbidden:
            logger.warning(f"Missing permission to post in channel {channel_id}")
            return None
        except discord.NotFound:
            logger.warning(f"Channel {channel_id} not found")
            return None
        except discord.HTTPException as e:
            logger.error(f"Failed to send notification to {channel_id}: {e}")
            return None

        return str(message.id)

    async def delete_message(self, channel_id: str, message_id: str) -> bool:
        snowflake = _to_int(message_id)
        if snowflake is None:
            return False

        try:
            channel = await self._resolve_channel(channel_id)
            if not hasattr(channel, "get_partial_message"):
                raise NotifierSendError(f"Channel {channel_id} does not support message deletion")
            await channel.get_partial_message(snowflake).delete()
        except NotifierSendError as e:
            logger.warning(str(e))
            return False
        except discord.NotFound:
            # Already deleted
            return False
        except discord.Forbidden:
            logger.warning(f"Missing permission to delete message {message_id} in {channel_id}")
            return False
        except discord.HTTPException as e:
            logger.error(f"Failed to delete message {message_id}: {e}")
            return False

        return True

    async def _edit_roles(self, guild_id: str, member_id: str, role_ids: List[str], add: bool) -> bool:
        if not role_ids:
            return True

        member = await self._resolve_member(guild_id, member_id)
        if member is None:
            return False

        roles = []
        for role_id in role_ids:
            role = member.guild.get_role(_to_int(role_id) or 0)
            if role is None:
                logger.warning(f"Role {role_id} not found in guild {guild_id}")
                continue
            roles.append(role)

        if not roles:
            return False

        try:
            if add:
                await member.add_roles(*roles, reason="Stream went live")
            else:
                await member.remove_roles(*roles, reason="Stream ended")
        except discord.Forbidden:
            logger.warning(f"Missing permission to edit roles of {member_id} in guild {guild_id}")
            return False
        except discord.HTTPException as e:
            logger.error(f"Failed to edit roles of {member_id}: {e}")
            return False

        return len(roles) == len(role_ids)

    async def add_roles(self, guild_id: str, member_id: str, role_ids: List[str]) -> bool:
        return await self._edit_roles(guild_id, member_id, role_ids, add=True)

    async def remove_roles(self, guild_id: str, member_id: str, role_ids: List[str]) -> bool:
        return await self._edit_roles(guild_id, member_id, role_ids, add=False)
