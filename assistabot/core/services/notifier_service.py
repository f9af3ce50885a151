"""
Notifier Service for AssistaBot.

Owns the live-status poll loop and the per-entry state machine:

    Offline --live reading--> Live          (notify, assign roles)
    Live --offline reading--> Live, pending (offline_since set)
    Live, pending --live reading--> Live    (pending cleared)
    Live, pending --grace elapsed, fresh probe still offline--> Offline
                                            (remove roles, optional cleanup)

A notification is sent only on the Offline -> Live edge. Probe errors never
change state.
"""

import asyncio
import inspect
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from ..models import (
    Platform,
    LiveStatus,
    LiveState,
    StreamEntry,
    StreamInfo,
    ProbeResult,
    state_key,
)
from ..interfaces import (
    StreamRegistry,
    LiveStateRepository,
    Notifier,
    Prober,
    PresenceSource,
    ProberError,
    ProberConfigError,
    ProberRateLimitError,
    ProberNotFoundError,
)
from .template_service import TemplateService
from assistabot.utils import get_logger
from assistabot.utils.cache import ExpiringCache


logger = get_logger('notifier')

# Defaults (seconds)
DEFAULT_POLL_INTERVAL = 180
DEFAULT_GRACE_PERIOD = 5 * 60
DEFAULT_RATE_LIMIT_COOLDOWN = 60 * 60
DEFAULT_VOD_COOLDOWN = 30 * 60
DEFAULT_VOD_MAX_AGE = 24 * 60 * 60

# listener(guild_id, entry, status, info)
StreamListener = Callable[[str, StreamEntry, LiveStatus, Optional[StreamInfo]], object]


@dataclass
class TickStats:
    """Counters for one poll tick."""
    probed: int = 0
    went_live: int = 0
    went_offline: int = 0
    uploads_posted: int = 0
    errors: int = 0
    skipped_platforms: List[str] = field(default_factory=list)


class NotifierService:
    """
    Service driving live detection, notifications and live roles.

    Responsibilities:
    - Run the fixed-delay poll loop (one tick at a time)
    - Probe every registry entry with its platform's Prober
    - Apply the edge-triggered Live/Offline state machine
    - Suspend a platform after a rate-limit response
    - Scan guild presence rules and handle real-time presence events
    - Announce new YouTube uploads
    """

    def __init__(
        self,
        registry: StreamRegistry,
        state_repo: LiveStateRepository,
        notifier: Notifier,
        probers: Dict[Platform, Prober],
        presence_probers: Optional[Dict[Platform, Prober]] = None,
        presence_source: Optional[PresenceSource] = None,
        cache: Optional[ExpiringCache] = None,
        templates: Optional[TemplateService] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        grace_period: int = DEFAULT_GRACE_PERIOD,
        rate_limit_cooldown: int = DEFAULT_RATE_LIMIT_COOLDOWN,
        vod_cooldown: int = DEFAULT_VOD_COOLDOWN,
        vod_max_age: int = DEFAULT_VOD_MAX_AGE,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the NotifierService.

        Args:
            registry: Tracked entries and presence rules
            state_repo: Persisted live state
            notifier: Delivery backend (Discord)
            probers: Prober per platform for registry entries
            presence_probers: Prober per platform for presence rules
            presence_source: Gateway presence cache adapter
            cache: Shared expiring cache, swept at the start of every tick
            templates: Message template renderer
            poll_interval: Delay between the end of one tick and the next
            grace_period: How long an offline reading must persist
            rate_limit_cooldown: Platform suspension after a rate limit
            vod_cooldown: Minimum time between upload announcements
            vod_max_age: Uploads older than this are never announced
            clock: Wall clock in seconds
        """
        self.registry = registry
        self.state = state_repo
        self.notifier = notifier
        self.probers = dict(probers)
        self.presence_probers = dict(presence_probers or {})
        self.presence_source = presence_source
        self.cache = cache if cache is not None else ExpiringCache()
        self.templates = templates or TemplateService()
        self.poll_interval = poll_interval
        self.grace_period = grace_period
        self.rate_limit_cooldown = rate_limit_cooldown
        self.vod_cooldown = vod_cooldown
        self.vod_max_age = vod_max_age
        self._clock = clock

        self._suspended_until: Dict[Platform, int] = {}
        self._listeners: List[StreamListener] = []
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    def _now(self) -> int:
        return int(self._clock())

    # ==================== Lifecycle ====================

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the poll loop. The first tick runs immediately."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Stream notifier started (interval {self.poll_interval}s)")

    async def stop(self) -> None:
        """Cancel the poll loop and wait for it to finish."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Stream notifier stopped")

    async def _run_loop(self) -> None:
        # Fixed delay: the next tick is scheduled only after this one finished
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Stream notifier tick failed")
            await asyncio.sleep(self.poll_interval)

    async def run_once(self) -> TickStats:
        """
        Run one full tick: every platform, then every presence rule.

        Returns:
            TickStats for the tick
        """
        stats = TickStats()
        async with self._lock:
            swept = self.cache.sweep()
            if swept:
                logger.debug(f"Swept {swept} expired cache entries")

            for platform in Platform:
                await self._check_platform(platform, stats)
            await self._check_presence_rules(stats)

        if stats.went_live or stats.went_offline or stats.errors:
            logger.info(
                f"Tick: probed={stats.probed} live={stats.went_live} "
                f"offline={stats.went_offline} errors={stats.errors}"
            )
        return stats

    def clear_cache(self) -> None:
        """Reset the probe cache, the stored live state and platform suspensions."""
        self.cache.clear()
        self.state.clear()
        self._suspended_until.clear()
        logger.info("Stream notifier cache and state cleared")

    # ==================== Listeners ====================

    def add_listener(self, callback: StreamListener) -> None:
        """
        Register a stream start/end hook.

        The callback receives ``(guild_id, entry, status, info)`` and may be
        a plain function or a coroutine function.
        """
        self._listeners.append(callback)

    def remove_listener(self, callback: StreamListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    async def _fire(self, guild_id: str, entry: StreamEntry, status: LiveStatus, info: Optional[StreamInfo]):
        for callback in list(self._listeners):
            try:
                result = callback(guild_id, entry, status, info)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Stream listener {callback!r} failed")

    # ==================== Suspension ====================

    def suspend(self, platform: Platform, seconds: Optional[int] = None) -> None:
        """Skip a platform until ``now + seconds`` (default: rate_limit_cooldown)."""
        seconds = self.rate_limit_cooldown if seconds is None else seconds
        self._suspended_until[platform] = self._now() + int(seconds)
        logger.warning(f"{platform.display_name} checks suspended for {int(seconds)}s")

    def is_suspended(self, platform: Platform) -> bool:
        until = self._suspended_until.get(platform)
        if until is None:
            return False
        if self._now() >= until:
            del self._suspended_until[platform]
            return False
        return True

    def suspended_until(self, platform: Platform) -> Optional[int]:
        return self._suspended_until.get(platform)

    # ==================== Registry entries ====================

    async def _check_platform(self, platform: Platform, stats: TickStats) -> None:
        prober = self.probers.get(platform)
        if prober is None or not prober.is_configured():
            return
        if self.is_suspended(platform):
            stats.skipped_platforms.append(platform.value)
            return

        for guild_id in self.registry.guild_ids():
            for entry in self.registry.list(guild_id, platform.value):
                if not await self._process_safely(guild_id, entry, prober, stats):
                    return

    async def _process_safely(self, guild_id: str, entry: StreamEntry, prober: Prober, stats: TickStats) -> bool:
        """
        Probe one entry and apply the result, isolating every failure.

        Returns:
            False if the platform must not be probed again this tick
        """
        stats.probed += 1
        try:
            await self._process_entry(guild_id, entry, prober, stats)
        except ProberRateLimitError as e:
            stats.errors += 1
            cooldown = max(self.rate_limit_cooldown, int(e.retry_after or 0))
            logger.warning(f"{entry.platform} rate limited while checking {entry.external_id}: {e}")
            self.suspend(prober.platform, cooldown)
            return False
        except ProberConfigError as e:
            stats.errors += 1
            logger.warning(f"{entry.platform} is not configured: {e}")
            return False
        except ProberNotFoundError as e:
            logger.debug(f"Skipping {entry.platform}:{entry.external_id} in guild {guild_id}: {e}")
        except ProberError as e:
            stats.errors += 1
            logger.warning(f"Check failed for {entry.platform}:{entry.external_id} in guild {guild_id}: {e}")
        except Exception:
            stats.errors += 1
            logger.exception(f"Unexpected error checking {entry.platform}:{entry.external_id} in guild {guild_id}")
        return True

    async def _process_entry(self, guild_id: str, entry: StreamEntry, prober: Prober, stats: TickStats) -> None:
        result = await prober.probe(guild_id, entry)
        await self._apply(guild_id, entry, prober, result, stats)
        if entry.vod_message_template:
            await self._check_upload(guild_id, entry, prober, stats)

    async def _apply(
        self,
        guild_id: str,
        entry: StreamEntry,
        prober: Prober,
        result: ProbeResult,
        stats: TickStats,
    ) -> None:
        """Apply one probe reading to the entry's state."""
        key = state_key(guild_id, entry.platform, entry.external_id)
        state = self.state.get(key)
        now = self._now()

        if result.live:
            if state is None or not state.is_live:
                await self._go_live(guild_id, entry, key, result.info, now)
                stats.went_live += 1
            elif state.offline_since is not None:
                logger.debug(f"{key} is live again within the grace period")
                state.offline_since = None
                self.state.set(key, state)
            return

        # No row already means offline
        if state is None or not state.is_live:
            return

        if state.offline_since is None:
            state.offline_since = now
            self.state.set(key, state)
            logger.debug(f"{key} reported offline, waiting {self.grace_period}s before ending")
            return
        if not state.grace_elapsed(self.grace_period, now):
            return

        recheck = await prober.probe(guild_id, entry, fresh=True)
        if recheck.live:
            state.offline_since = None
            self.state.set(key, state)
            return

        await self._go_offline(guild_id, entry, key, state, now)
        stats.went_offline += 1

    async def _go_live(self, guild_id: str, entry: StreamEntry, key: str, info: Optional[StreamInfo], now: int) -> None:
        if info is None:
            info = StreamInfo(platform=entry.platform, name=entry.external_id)

        message_id = None
        if entry.discord_channel_id:
            content = self.templates.render_live(entry, info)
            message_id = await self.notifier.send_notification(entry.discord_channel_id, content, info)
        else:
            logger.debug(f"{key} went live but has no notification channel")

        await self._assign_roles(guild_id, entry)

        self.state.set(key, LiveState(
            status=LiveStatus.LIVE.value,
            last_transition_at=now,
            last_message_id=message_id,
            last_channel_id=entry.discord_channel_id,
            last_notified_at=now if message_id else None,
        ))
        logger.info(f"{entry.platform}:{entry.external_id} went live in guild {guild_id}")
        await self._fire(guild_id, entry, LiveStatus.LIVE, info)

    async def _go_offline(self, guild_id: str, entry: StreamEntry, key: str, state: LiveState, now: int) -> None:
        if entry.bound_discord_user_id and entry.live_role_ids:
            await self.notifier.remove_roles(guild_id, entry.bound_discord_user_id, entry.live_role_ids)

        if entry.cleanup and state.last_message_id:
            channel_id = state.last_channel_id or entry.discord_channel_id
            if channel_id:
                await self.notifier.delete_message(channel_id, state.last_message_id)

        self.state.set(key, LiveState(
            status=LiveStatus.OFFLINE.value,
            last_transition_at=now,
            last_notified_at=state.last_notified_at,
        ))
        logger.info(f"{entry.platform}:{entry.external_id} went offline in guild {guild_id}")
        await self._fire(guild_id, entry, LiveStatus.OFFLINE, None)

    async def _assign_roles(self, guild_id: str, entry: StreamEntry) -> None:
        if not entry.bound_discord_user_id or not entry.live_role_ids:
            return

        if entry.whitelist_role_ids:
            member = None
            if self.presence_source is not None:
                member = self.presence_source.get_member(guild_id, entry.bound_discord_user_id)
            if member is None or not member.passes_whitelist(entry.whitelist_role_ids):
                logger.debug(
                    f"Member {entry.bound_discord_user_id} lacks a whitelist role, "
                    f"not assigning live roles"
                )
                return

        await self.notifier.add_roles(guild_id, entry.bound_discord_user_id, entry.live_role_ids)

    # ==================== Uploads ====================

    async def _check_upload(self, guild_id: str, entry: StreamEntry, prober: Prober, stats: TickStats) -> None:
        """Announce the newest upload once, if recent and outside the cooldown."""
        upload = await prober.latest_upload(entry)
        if upload is None or not upload.video_id:
            return

        key = state_key(guild_id, entry.platform, entry.external_id, suffix='vod')
        state = self.state.get(key) or LiveState()
        if state.last_video_id == upload.video_id:
            return

        now = self._now()
        if upload.started_at is None or now - upload.started_at > self.vod_max_age:
            # Too old to announce; remember it so it is not reconsidered
            state.last_video_id = upload.video_id
            self.state.set(key, state)
            return
        if state.last_notified_at and now - state.last_notified_at < self.vod_cooldown:
            return

        message_id = None
        if entry.discord_channel_id:
            content = self.templates.render_upload(entry, upload)
            message_id = await self.notifier.send_notification(entry.discord_channel_id, content, upload)

        state.last_video_id = upload.video_id
        state.last_notified_at = now
        state.last_message_id = message_id
        state.last_channel_id = entry.discord_channel_id
        self.state.set(key, state)
        stats.uploads_posted += 1
        logger.info(f"Announced upload {upload.video_id} for {entry.external_id} in guild {guild_id}")

    # ==================== Presence rules ====================

    async def _check_presence_rules(self, stats: TickStats) -> None:
        if self.presence_source is None:
            return
        for guild_id in self.registry.guild_ids():
            rules = self.registry.get_presence(guild_id)
            if not rules:
                continue
            members = self.presence_source.list_members(guild_id)
            for platform_code, rule in rules.items():
                prober = self.presence_probers.get(Platform.from_string(platform_code))
                if prober is None:
                    continue
                for member in members:
                    entry = rule.entry_for_member(member.member_id)
                    if not self._rule_applies(guild_id, entry, member):
                        continue
                    await self._process_safely(guild_id, entry, prober, stats)

    def _rule_applies(self, guild_id: str, entry: StreamEntry, member) -> bool:
        if member.bot:
            return False
        if member.passes_whitelist(entry.whitelist_role_ids):
            return True
        # Members who lost the whitelist role still need their live state ended
        state = self.state.get(state_key(guild_id, entry.platform, entry.external_id))
        return state is not None and state.is_live

    async def check_member(self, guild_id: str, member_id: str) -> TickStats:
        """
        Re-check one member right away (presence or voice state changed).

        Covers the member's presence-rule matches and any registry entry
        bound to them on a presence-detected platform.

        Returns:
            TickStats for this check
        """
        stats = TickStats()
        if self.presence_source is None:
            return stats

        guild_id = str(guild_id)
        member_id = str(member_id)
        async with self._lock:
            member = self.presence_source.get_member(guild_id, member_id)
            if member is None or member.bot:
                return stats

            for entry in self.registry.list(guild_id):
                platform = Platform.from_string(entry.platform)
                if platform is None or platform.is_api_backed:
                    continue
                if entry.bound_discord_user_id != member_id:
                    continue
                prober = self.probers.get(platform)
                if prober is not None:
                    await self._process_safely(guild_id, entry, prober, stats)

            for platform_code, rule in self.registry.get_presence(guild_id).items():
                prober = self.presence_probers.get(Platform.from_string(platform_code))
                if prober is None:
                    continue
                entry = rule.entry_for_member(member_id)
                if self._rule_applies(guild_id, entry, member):
                    await self._process_safely(guild_id, entry, prober, stats)
        return stats
