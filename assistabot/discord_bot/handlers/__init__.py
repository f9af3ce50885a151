"""
Discord event handlers module.

This module provides event handler classes for Discord bot events:
- Ready handling (status update, notifier startup)
- Presence handling (real-time live detection from presence and voice updates)

These handlers are designed to be registered with the bot instance
and delegate business logic to the notifier service.
"""

from typing import Optional, Callable, Dict, List
from abc import ABC, abstractmethod
import inspect
import discord
from discord.ext import commands

from ...core.services import NotifierService
from ...utils import get_logger


logger = get_logger("discord.handlers")


class BaseHandler(ABC):
    """Abstract base class for Discord event handlers."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @abstractmethod
    async def setup(self) -> None:
        """Register this handler with the bot."""
        pass


class ReadyHandler(BaseHandler):
    """
    Handles bot ready event for initialization tasks.

    Supports:
    - Status updates
    - Startup callbacks (e.g. starting the notifier loop)
    """

    def __init__(
        self,
        bot: commands.Bot,
        startup_callbacks: Optional[List[Callable]] = None,
        status_message: Optional[str] = None,
    ):
        super().__init__(bot)
        self.startup_callbacks = startup_callbacks or []
        self.status_message = status_message

    async def setup(self) -> None:
        """Register ready handler with the bot."""
        self.bot.add_listener(self.on_ready, 'on_ready')

    async def on_ready(self) -> None:
        """Handle bot ready event."""
        logger.info(f"Logged in as {self.bot.user} (ID: {self.bot.user.id})")

        if self.status_message:
            await self.bot.change_presence(
                activity=discord.Activity(
                    type=discord.ActivityType.watching,
                    name=self.status_message,
                )
            )

        # on_ready fires again after reconnects; callbacks must be idempotent
        for callback in self.startup_callbacks:
            try:
                if inspect.iscoroutinefunction(callback):
                    await callback(self.bot)
                else:
                    callback(self.bot)
            except Exception:
                logger.exception("Startup callback failed")

        logger.info("Bot is ready!")


class PresenceHandler(BaseHandler):
    """
    Runs live detection for a single member as soon as their presence or
    voice state changes, instead of waiting for the next poll tick.
    """

    def __init__(self, bot: commands.Bot, service: NotifierService):
        super().__init__(bot)
        self.service = service

    async def setup(self) -> None:
        """Register presence handlers with the bot."""
        self.bot.add_listener(self.on_presence_update, 'on_presence_update')
        self.bot.add_listener(self.on_voice_state_update, 'on_voice_state_update')

    async def on_presence_update(self, before: discord.Member, after: discord.Member) -> None:
        """Handle activity changes."""
        if after.bot or before.activities == after.activities:
            return
        await self._check(after)

    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        """Handle voice channel joins, leaves and moves."""
        if member.bot or before.channel == after.channel:
            return
        await self._check(member)

    async def _check(self, member: discord.Member) -> None:
        try:
            await self.service.check_member(str(member.guild.id), str(member.id))
        except Exception:
            logger.exception(f"Presence check failed for member {member.id}")


def setup_handlers(
    bot: commands.Bot,
    *,
    service: Optional[NotifierService] = None,
    startup_callbacks: Optional[List[Callable]] = None,
    status_message: Optional[str] = None,
) -> Dict[str, BaseHandler]:
    """
    Set up all handlers for the bot.

    Args:
        bot: The Discord bot instance
        service: Notifier service for real-time presence checks
        startup_callbacks: Functions to call when bot is ready
        status_message: Bot status message to display

    Returns:
        Dictionary of handler name -> handler instance
    """
    handlers = {}

    handlers['ready'] = ReadyHandler(
        bot,
        startup_callbacks,
        status_message,
    )

    if service is not None:
        handlers['presence'] = PresenceHandler(bot, service)

    return handlers


async def register_handlers(handlers: Dict[str, BaseHandler]) -> None:
    """
    Register all handlers with the bot.

    Args:
        handlers: Dictionary of handlers from setup_handlers()
    """
    for name, handler in handlers.items():
        try:
            await handler.setup()
            logger.info(f"Registered {name} handler")
        except Exception as e:
            logger.error(f"Failed to register {name} handler: {e}")


__all__ = [
    'BaseHandler',
    'ReadyHandler',
    'PresenceHandler',
    'setup_handlers',
    'register_handlers',
]
