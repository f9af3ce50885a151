"""
Application initialization module.

This module wires repositories, API clients, probers and the notifier
service to a discord.py bot.

Usage:
    from assistabot.app import create_bot, create_bot_app

    bot = create_bot()
    repos, services = await create_bot_app(bot, settings, session)
    await bot.start(settings.discord_token)
"""

import asyncio
import signal
import sys
from typing import Any, Dict, Optional, Set, Tuple

import aiohttp
import discord
from discord.ext import commands

from .config import Settings, load_settings
from .core.repositories import JsonStreamRegistry, JsonLiveStateRepository
from .core.services import NotifierService, TemplateService
from .discord_bot import (
    DiscordNotifier,
    DiscordPresenceSource,
    setup_handlers,
    register_handlers,
)
from .integrations import TwitchClient, YouTubeClient
from .integrations.base import REQUEST_TIMEOUT_SECONDS, USER_AGENT
from .platforms import create_probers, create_presence_probers
from .utils import BOT_VERSION, get_logger, setup_logging
from .utils.cache import ExpiringCache


logger = get_logger("app")


def create_intents() -> discord.Intents:
    """Gateway intents needed for presence and voice detection."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.members = True
    intents.presences = True
    intents.voice_states = True
    return intents


def create_bot() -> commands.Bot:
    """Create the bot instance."""
    return commands.Bot(
        command_prefix=commands.when_mentioned,
        intents=create_intents(),
        help_command=None,
    )


def create_http_session() -> aiohttp.ClientSession:
    """Create the HTTP session shared by the API clients."""
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS),
        headers={'User-Agent': USER_AGENT},
    )


def initialize_repositories(settings: Settings) -> Dict[str, Any]:
    """
    Initialize all repositories.

    Args:
        settings: Resolved settings (data_dir decides the file paths)

    Returns:
        Dictionary containing initialized repository instances
    """
    repos = {
        "registry": JsonStreamRegistry(settings.streams_path),
        "state": JsonLiveStateRepository(settings.state_path),
    }

    logger.info(
        f"Loaded {len(repos['registry'].guild_ids())} guild(s) from {settings.streams_path}"
    )
    return repos


def initialize_services(
    bot: commands.Bot,
    repos: Dict[str, Any],
    settings: Settings,
    session: Optional[aiohttp.ClientSession] = None,
) -> Dict[str, Any]:
    """
    Initialize all services with their dependencies.

    Args:
        bot: Discord bot instance
        repos: Dictionary of initialized repositories
        settings: Resolved settings
        session: Shared HTTP session

    Returns:
        Dictionary containing initialized service instances
    """
    cache = ExpiringCache()
    presence_source = DiscordPresenceSource(bot)

    twitch = TwitchClient(
        settings.twitch_client_id,
        settings.twitch_client_secret,
        cache=cache,
        session=session,
    )
    youtube = YouTubeClient(settings.youtube_api_key, cache=cache, session=session)

    if not twitch.is_configured():
        logger.warning("Twitch credentials missing; Twitch entries will be skipped")
    if not youtube.is_configured():
        logger.warning("YouTube API key missing; YouTube entries will be skipped")

    notifier_service = NotifierService(
        registry=repos["registry"],
        state_repo=repos["state"],
        notifier=DiscordNotifier(bot),
        probers=create_probers(presence_source, twitch_client=twitch, youtube_client=youtube),
        presence_probers=create_presence_probers(presence_source),
        presence_source=presence_source,
        cache=cache,
        templates=TemplateService(),
        poll_interval=settings.poll_seconds,
        grace_period=settings.grace_seconds,
    )

    return {
        "cache": cache,
        "twitch": twitch,
        "youtube": youtube,
        "presence": presence_source,
        "notifier": notifier_service,
    }


async def create_bot_app(
    bot: commands.Bot,
    settings: Settings,
    session: Optional[aiohttp.ClientSession] = None,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Create and initialize the full bot application.

    Args:
        bot: Discord bot instance
        settings: Resolved settings
        session: Shared HTTP session

    Returns:
        Tuple of (repos, services)
    """
    repos = initialize_repositories(settings)
    services = initialize_services(bot, repos, settings, session)

    notifier_service: NotifierService = services["notifier"]

    async def start_notifier(_bot):
        await notifier_service.start()

    handlers = setup_handlers(
        bot,
        service=notifier_service,
        startup_callbacks=[start_notifier],
        status_message=settings.status_message or f"v{BOT_VERSION}",
    )
    await register_handlers(handlers)

    return repos, services


async def shutdown_app(services: Dict[str, Any]) -> None:
    """Stop the poll loop and close the API clients."""
    await services["notifier"].stop()
    for name in ("twitch", "youtube"):
        try:
            await services[name].close()
        except Exception as e:
            logger.error(f"Error closing {name} client: {e}")


def install_signal_handlers(loop: asyncio.AbstractEventLoop, bot: commands.Bot) -> Set[asyncio.Task]:
    """
    Close the bot on SIGINT/SIGTERM.

    Args:
        loop: Running event loop
        bot: Bot to close

    Returns:
        Set holding the pending close tasks until they finish
    """
    pending: Set[asyncio.Task] = set()

    def handle(signum: int) -> None:
        task = loop.create_task(_close(bot, signum))
        pending.add(task)
        task.add_done_callback(pending.discard)

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, handle, signum)
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass
    return pending


async def run_bot(settings: Settings) -> None:
    """
    Run the bot until it is closed or the process is signalled.

    Args:
        settings: Resolved settings (discord_token is required)
    """
    bot = create_bot()
    install_signal_handlers(asyncio.get_running_loop(), bot)

    async with create_http_session() as session:
        _, services = await create_bot_app(bot, settings, session)
        try:
            async with bot:
                await bot.start(settings.discord_token)
        finally:
            logger.info("Shutting down...")
            await shutdown_app(services)
            logger.info("Shutdown complete.")


async def _close(bot: commands.Bot, signum: int) -> None:
    logger.info(f"Received signal {signum}, shutting down gracefully...")
    await bot.close()


def main() -> None:
    """Process entry point."""
    settings = load_settings()
    setup_logging(log_file=settings.log_file)

    if not settings.discord_token:
        logger.error("DISCORD_TOKEN is not set")
        sys.exit(1)

    asyncio.run(run_bot(settings))


if __name__ == "__main__":
    main()
