"""
Tests for the service layer.

These tests drive the notifier service through full poll ticks with fake
probers and a fake notifier, checking the live/offline state machine and
its side effects.
"""

import asyncio
import pytest

from assistabot.core.interfaces import (
    ProberConfigError,
    ProberNotFoundError,
    ProberRateLimitError,
    ProberTransientError,
)
from assistabot.core.models import (
    Platform,
    LiveStatus,
    LiveState,
    StreamEntry,
    StreamInfo,
    PresenceRule,
    MemberPresence,
    ActivitySnapshot,
)
from assistabot.core.services import NotifierService, TemplateService
from assistabot.platforms import create_probers, create_presence_probers
from assistabot.utils.cache import ExpiringCache

from conftest import FakeProber


GUILD = "g1"


@pytest.fixture
def make_service(registry, state_repo, notifier, presence_source, clock):
    """Build a NotifierService around the shared fakes."""
    def _make(*probers, presence_probers=None, **kwargs):
        return NotifierService(
            registry=registry,
            state_repo=state_repo,
            notifier=notifier,
            probers={prober.platform: prober for prober in probers},
            presence_probers=presence_probers,
            presence_source=presence_source,
            cache=ExpiringCache(clock=clock),
            clock=clock,
            **kwargs,
        )
    return _make


@pytest.fixture
def twitch():
    return FakeProber(Platform.TWITCH)


def track(registry, external_id="foo", platform="twitch", **kwargs) -> StreamEntry:
    kwargs.setdefault('discord_channel_id', '111')
    return registry.add(GUILD, StreamEntry(platform=platform, external_id=external_id, **kwargs))


# =============================================================================
# Live Transition Tests
# =============================================================================

class TestLiveTransitions:
    """Tests for the Offline -> Live edge."""

    @pytest.mark.asyncio
    async def test_goes_live_and_notifies_once(self, make_service, registry, state_repo, notifier, twitch):
        """A streamer that stays live is announced exactly once."""
        track(registry, "foo")
        twitch.set_live("foo", title="T", url="https://twitch.tv/foo")
        service = make_service(twitch)

        stats = await service.run_once()

        assert stats.went_live == 1
        assert len(notifier.sent) == 1
        channel_id, content, info = notifier.sent[0]
        assert channel_id == "111"
        assert content == "foo is live on Twitch: T https://twitch.tv/foo"
        assert info.title == "T"

        state = state_repo.get("g1:twitch:foo")
        assert state.is_live
        assert state.last_message_id == "1001"
        assert state.last_notified_at is not None

        stats = await service.run_once()
        assert stats.went_live == 0
        assert len(notifier.sent) == 1

    @pytest.mark.asyncio
    async def test_custom_template(self, make_service, registry, notifier, twitch):
        """Entry templates are rendered with the stream metadata."""
        track(registry, "foo", live_message_template="{user} started {game}!", bound_discord_user_id="42")
        twitch.set_live("foo", game="Chess")
        service = make_service(twitch)

        await service.run_once()

        assert notifier.sent[0][1] == "<@42> started Chess!"

    @pytest.mark.asyncio
    async def test_offline_reading_without_row_writes_nothing(self, make_service, registry, state_repo, notifier, twitch):
        """A missing row already means offline, so nothing is stored."""
        track(registry, "foo")
        twitch.set_offline("foo")
        service = make_service(twitch)

        stats = await service.run_once()

        assert stats.went_live == 0
        assert notifier.sent == []
        assert state_repo.get("g1:twitch:foo") is None

    @pytest.mark.asyncio
    async def test_no_channel_still_tracks_state(self, make_service, registry, state_repo, notifier, twitch):
        """Entries without a channel go live without posting."""
        registry.add(GUILD, StreamEntry(platform="twitch", external_id="foo"))
        twitch.set_live("foo")
        service = make_service(twitch)

        await service.run_once()

        assert notifier.sent == []
        assert state_repo.get("g1:twitch:foo").is_live

    @pytest.mark.asyncio
    async def test_failed_send_is_not_retried(self, make_service, registry, state_repo, notifier, twitch):
        """A failed send still records Live, so the next tick does not repost."""
        track(registry, "foo")
        twitch.set_live("foo")
        notifier.fail_sends = True
        service = make_service(twitch)

        await service.run_once()
        await service.run_once()

        assert len(notifier.sent) == 1
        state = state_repo.get("g1:twitch:foo")
        assert state.is_live
        assert state.last_message_id is None


# =============================================================================
# Grace Period Tests
# =============================================================================

class TestGracePeriod:
    """Tests for the Live -> Offline transition."""

    @pytest.fixture
    async def live_service(self, make_service, registry, twitch):
        track(registry, "foo", bound_discord_user_id="42", live_role_ids=["900"], cleanup=True)
        twitch.set_live("foo")
        service = make_service(twitch, grace_period=300)
        await service.run_once()
        return service

    @pytest.mark.asyncio
    async def test_offline_within_grace_keeps_live(self, live_service, state_repo, notifier, twitch, clock):
        """The first offline reading only marks the pending transition."""
        twitch.set_offline("foo")

        stats = await live_service.run_once()

        assert stats.went_offline == 0
        state = state_repo.get("g1:twitch:foo")
        assert state.is_live
        assert state.offline_since == int(clock.now)

        clock.advance(120)
        await live_service.run_once()
        assert state_repo.get("g1:twitch:foo").is_live
        assert notifier.roles_removed == []

    @pytest.mark.asyncio
    async def test_offline_after_grace_is_reverified(self, live_service, state_repo, notifier, twitch, clock):
        """After the grace period a fresh probe confirms and ends the stream."""
        twitch.set_offline("foo")
        await live_service.run_once()
        clock.advance(300)

        stats = await live_service.run_once()

        assert stats.went_offline == 1
        assert ("g1", "foo", True) in twitch.calls
        state = state_repo.get("g1:twitch:foo")
        assert state.status == LiveStatus.OFFLINE.value
        assert state.offline_since is None
        assert notifier.roles_removed == [("g1", "42", ["900"])]
        assert notifier.deleted == [("111", "1001")]

    @pytest.mark.asyncio
    async def test_live_again_clears_pending(self, live_service, state_repo, notifier, twitch, clock):
        """A live reading inside the grace period cancels the transition."""
        twitch.set_offline("foo")
        await live_service.run_once()
        twitch.set_live("foo")
        clock.advance(60)

        stats = await live_service.run_once()

        assert stats.went_live == 0
        state = state_repo.get("g1:twitch:foo")
        assert state.is_live
        assert state.offline_since is None
        assert len(notifier.sent) == 1

    @pytest.mark.asyncio
    async def test_relive_after_offline_notifies_again(self, live_service, notifier, twitch, clock):
        """A new stream after a completed offline transition is announced."""
        twitch.set_offline("foo")
        await live_service.run_once()
        clock.advance(300)
        await live_service.run_once()

        twitch.set_live("foo", title="Second")
        await live_service.run_once()

        assert len(notifier.sent) == 2
        assert notifier.sent[1][2].title == "Second"

    @pytest.mark.asyncio
    async def test_no_cleanup_keeps_message(self, make_service, registry, notifier, twitch, clock):
        """Without cleanup the notification is left in place."""
        track(registry, "foo")
        twitch.set_live("foo")
        service = make_service(twitch, grace_period=0)
        await service.run_once()

        twitch.set_offline("foo")
        await service.run_once()
        await service.run_once()

        assert notifier.deleted == []


# =============================================================================
# Role Tests
# =============================================================================

class TestLiveRoles:
    """Tests for live role assignment."""

    @pytest.mark.asyncio
    async def test_roles_assigned_to_bound_member(self, make_service, registry, notifier, twitch):
        track(registry, "foo", bound_discord_user_id="42", live_role_ids=["900", "901"])
        twitch.set_live("foo")

        await make_service(twitch).run_once()

        assert notifier.roles_added == [("g1", "42", ["900", "901"])]

    @pytest.mark.asyncio
    async def test_whitelist_blocks_member_without_role(
        self, make_service, registry, notifier, presence_source, twitch
    ):
        """Members lacking every whitelist role get no live role, but the post still goes out."""
        track(registry, "foo", bound_discord_user_id="42", live_role_ids=["900"], whitelist_role_ids=["500"])
        presence_source.add(GUILD, MemberPresence("42", "Alice", role_ids=["777"]))
        twitch.set_live("foo")

        await make_service(twitch).run_once()

        assert notifier.roles_added == []
        assert len(notifier.sent) == 1

    @pytest.mark.asyncio
    async def test_whitelist_admits_member_with_role(
        self, make_service, registry, notifier, presence_source, twitch
    ):
        track(registry, "foo", bound_discord_user_id="42", live_role_ids=["900"], whitelist_role_ids=["500"])
        presence_source.add(GUILD, MemberPresence("42", "Alice", role_ids=["500"]))
        twitch.set_live("foo")

        await make_service(twitch).run_once()

        assert notifier.roles_added == [("g1", "42", ["900"])]


# =============================================================================
# Error Isolation Tests
# =============================================================================

class TestErrorIsolation:
    """Tests that probe failures never change state or halt a tick."""

    @pytest.mark.asyncio
    async def test_probe_error_means_no_change(self, make_service, registry, state_repo, notifier, twitch):
        track(registry, "foo", bound_discord_user_id="42", live_role_ids=["900"])
        twitch.set_live("foo")
        service = make_service(twitch)
        await service.run_once()

        twitch.errors["foo"] = ProberTransientError("HTTP 502")
        stats = await service.run_once()

        assert stats.errors == 1
        state = state_repo.get("g1:twitch:foo")
        assert state.is_live
        assert state.offline_since is None
        assert notifier.roles_removed == []

    @pytest.mark.asyncio
    async def test_error_does_not_stop_other_entries(self, make_service, registry, notifier, twitch):
        track(registry, "foo")
        track(registry, "bar")
        twitch.errors["foo"] = RuntimeError("boom")
        twitch.set_live("bar")

        stats = await make_service(twitch).run_once()

        assert stats.errors == 1
        assert stats.went_live == 1
        assert notifier.sent[0][2].name == "bar"

    @pytest.mark.asyncio
    async def test_not_found_is_skipped_quietly(self, make_service, registry, state_repo, twitch):
        track(registry, "ghost")
        twitch.errors["ghost"] = ProberNotFoundError("no such user")

        stats = await make_service(twitch).run_once()

        assert stats.errors == 0
        assert state_repo.get("g1:twitch:ghost") is None

    @pytest.mark.asyncio
    async def test_rate_limit_suspends_platform(self, make_service, registry, twitch, clock):
        """After a rate limit the platform is skipped until the cooldown ends."""
        track(registry, "foo")
        track(registry, "bar")
        twitch.errors["foo"] = ProberRateLimitError("quota")
        service = make_service(twitch, rate_limit_cooldown=3600)

        await service.run_once()

        assert service.is_suspended(Platform.TWITCH)
        assert service.suspended_until(Platform.TWITCH) == int(clock.now) + 3600
        assert [call[1] for call in twitch.calls] == ["foo"]

        stats = await service.run_once()
        assert stats.skipped_platforms == ["twitch"]
        assert len(twitch.calls) == 1

        clock.advance(3600)
        del twitch.errors["foo"]
        await service.run_once()
        assert not service.is_suspended(Platform.TWITCH)
        assert len(twitch.calls) == 3

    @pytest.mark.asyncio
    async def test_retry_after_extends_suspension(self, make_service, registry, twitch, clock):
        track(registry, "foo")
        twitch.errors["foo"] = ProberRateLimitError("slow down", retry_after=7200)
        service = make_service(twitch, rate_limit_cooldown=3600)

        await service.run_once()

        assert service.suspended_until(Platform.TWITCH) == int(clock.now) + 7200

    @pytest.mark.asyncio
    async def test_suspension_is_per_platform(self, make_service, registry, notifier, twitch):
        youtube = FakeProber(Platform.YOUTUBE)
        track(registry, "foo")
        track(registry, "UCchannel", platform="youtube")
        twitch.errors["foo"] = ProberRateLimitError("quota")
        youtube.set_live("UCchannel")

        await make_service(twitch, youtube).run_once()

        assert len(notifier.sent) == 1
        assert notifier.sent[0][2].platform == "youtube"

    @pytest.mark.asyncio
    async def test_config_error_skips_platform_for_tick(self, make_service, registry, twitch):
        track(registry, "foo")
        track(registry, "bar")
        twitch.errors["foo"] = ProberConfigError("no credentials")
        service = make_service(twitch)

        await service.run_once()

        assert len(twitch.calls) == 1
        assert not service.is_suspended(Platform.TWITCH)

    @pytest.mark.asyncio
    async def test_unconfigured_platform_is_skipped(self, make_service, registry):
        prober = FakeProber(Platform.TWITCH, configured=False)
        track(registry, "foo")

        await make_service(prober).run_once()

        assert prober.calls == []


# =============================================================================
# Presence Rule Tests
# =============================================================================

def kick_member(member_id="42", name="Alice", **kwargs) -> MemberPresence:
    activity = ActivitySnapshot(
        name="Kick",
        activity_type=1,
        url=f"https://kick.com/{name.lower()}",
        details="Speedrun",
    )
    return MemberPresence(member_id, name, activities=[activity], **kwargs)


class TestPresenceRules:
    """Tests for guild-wide presence rules and real-time member checks."""

    @pytest.mark.asyncio
    async def test_rule_announces_matching_member(
        self, make_service, registry, state_repo, notifier, presence_source
    ):
        registry.set_presence(GUILD, "kick", PresenceRule("kick", discord_channel_id="222", live_role_ids=["900"]))
        presence_source.add(GUILD, kick_member("42", "Alice"))
        presence_source.add(GUILD, kick_member("43", "Robot", bot=True))
        presence_source.add(GUILD, MemberPresence("44", "Idle"))
        service = make_service(presence_probers=create_presence_probers(presence_source))

        stats = await service.run_once()

        assert stats.went_live == 1
        channel_id, content, info = notifier.sent[0]
        assert channel_id == "222"
        assert content == "Alice is live on Kick: Speedrun https://kick.com/alice"
        assert state_repo.get("g1:kick:member:42").is_live
        assert notifier.roles_added == [("g1", "42", ["900"])]
        assert state_repo.get("g1:kick:member:43") is None

    @pytest.mark.asyncio
    async def test_rule_whitelist_filters_members(self, make_service, registry, notifier, presence_source):
        registry.set_presence(GUILD, "kick", PresenceRule("kick", discord_channel_id="222", whitelist_role_ids=["500"]))
        presence_source.add(GUILD, kick_member("42", "Alice", role_ids=["500"]))
        presence_source.add(GUILD, kick_member("43", "Bob"))
        service = make_service(presence_probers=create_presence_probers(presence_source))

        await service.run_once()

        assert [sent[2].name for sent in notifier.sent] == ["Alice"]

    @pytest.mark.asyncio
    async def test_idle_members_cause_no_state_writes(
        self, make_service, registry, state_repo, presence_source, monkeypatch
    ):
        """Scanning idle members under several rules never rewrites the state file."""
        for platform in ("kick", "tiktok", "rumble"):
            registry.set_presence(GUILD, platform, PresenceRule(platform, discord_channel_id="222"))
        for member_id in range(300):
            presence_source.add(GUILD, MemberPresence(str(member_id), f"Member {member_id}"))
        service = make_service(presence_probers=create_presence_probers(presence_source))

        writes = []
        monkeypatch.setattr(
            "assistabot.core.repositories.base.write_json_atomic",
            lambda path, data: writes.append(path),
        )

        stats = await service.run_once()
        await service.check_member(GUILD, "7")

        assert stats.probed == 900
        assert stats.went_live == 0
        assert writes == []
        assert state_repo.all() == {}

    @pytest.mark.asyncio
    async def test_member_losing_whitelist_role_still_goes_offline(
        self, make_service, registry, state_repo, presence_source, clock
    ):
        registry.set_presence(GUILD, "kick", PresenceRule("kick", whitelist_role_ids=["500"]))
        presence_source.add(GUILD, MemberPresence("43", "Bob"))
        state_repo.set("g1:kick:member:43", LiveState(status="live", last_transition_at=int(clock.now)))
        service = make_service(presence_probers=create_presence_probers(presence_source))

        await service.run_once()

        assert state_repo.get("g1:kick:member:43").offline_since == int(clock.now)

    @pytest.mark.asyncio
    async def test_check_member_runs_immediately(self, registry, state_repo, notifier, presence_source, twitch):
        """A presence update checks the member's bound entries without a tick."""
        track(registry, "alice", platform="kick", bound_discord_user_id="42")
        track(registry, "foo", bound_discord_user_id="42")
        presence_source.add(GUILD, kick_member("42", "Alice"))
        probers = create_probers(presence_source)
        probers[Platform.TWITCH] = twitch
        service = NotifierService(
            registry=registry,
            state_repo=state_repo,
            notifier=notifier,
            probers=probers,
            presence_source=presence_source,
        )

        stats = await service.check_member(GUILD, "42")

        assert stats.went_live == 1
        assert notifier.sent[0][2].platform == "kick"
        assert notifier.sent[0][2].name == "alice"
        assert twitch.calls == []

    @pytest.mark.asyncio
    async def test_check_member_ignores_unknown_member(self, make_service, registry, notifier, presence_source):
        registry.set_presence(GUILD, "kick", PresenceRule("kick", discord_channel_id="222"))
        service = make_service(presence_probers=create_presence_probers(presence_source))

        stats = await service.check_member(GUILD, "404")

        assert stats.probed == 0
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_voice_rule(self, make_service, registry, notifier, presence_source):
        registry.set_presence(GUILD, "discord", PresenceRule("discord", discord_channel_id="222"))
        presence_source.add(GUILD, MemberPresence("42", "Alice", voice_channel_id="7", voice_channel_name="Stage"))
        service = make_service(presence_probers=create_presence_probers(presence_source))

        await service.run_once()

        info = notifier.sent[0][2]
        assert info.title == "In voice: Stage"
        assert info.url == "https://discord.com/users/42"


# =============================================================================
# Upload Announcement Tests
# =============================================================================

class TestUploads:
    """Tests for new-upload announcements."""

    @pytest.fixture
    def youtube(self):
        return FakeProber(Platform.YOUTUBE)

    def upload(self, video_id, published_at) -> StreamInfo:
        return StreamInfo(
            platform="youtube",
            name="Chan",
            url=f"https://www.youtube.com/watch?v={video_id}",
            title=f"Video {video_id}",
            started_at=int(published_at),
            video_id=video_id,
        )

    @pytest.mark.asyncio
    async def test_recent_upload_posted_once(self, make_service, registry, state_repo, notifier, youtube, clock):
        track(registry, "UCchan", platform="youtube", vod_message_template="New: {title} {url}")
        youtube.uploads["UCchan"] = self.upload("v1", clock.now - 600)
        service = make_service(youtube)

        stats = await service.run_once()
        await service.run_once()

        assert stats.uploads_posted == 1
        assert [sent[1] for sent in notifier.sent] == ["New: Video v1 https://www.youtube.com/watch?v=v1"]
        assert state_repo.get("g1:youtube:ucchan:vod").last_video_id == "v1"

    @pytest.mark.asyncio
    async def test_old_upload_is_remembered_not_posted(
        self, make_service, registry, state_repo, notifier, youtube, clock
    ):
        track(registry, "UCchan", platform="youtube", vod_message_template="New: {title}")
        youtube.uploads["UCchan"] = self.upload("old", clock.now - 3 * 24 * 3600)

        await make_service(youtube).run_once()

        assert notifier.sent == []
        assert state_repo.get("g1:youtube:ucchan:vod").last_video_id == "old"

    @pytest.mark.asyncio
    async def test_cooldown_delays_next_upload(self, make_service, registry, notifier, youtube, clock):
        track(registry, "UCchan", platform="youtube", vod_message_template="New: {title}")
        youtube.uploads["UCchan"] = self.upload("v1", clock.now - 60)
        service = make_service(youtube, vod_cooldown=1800)
        await service.run_once()

        clock.advance(600)
        youtube.uploads["UCchan"] = self.upload("v2", clock.now)
        await service.run_once()
        assert len(notifier.sent) == 1

        clock.advance(1800)
        await service.run_once()
        assert [sent[1] for sent in notifier.sent] == ["New: Video v1", "New: Video v2"]

    @pytest.mark.asyncio
    async def test_entries_without_vod_template_skip_uploads(self, make_service, registry, notifier, youtube, clock):
        track(registry, "UCchan", platform="youtube")
        youtube.uploads["UCchan"] = self.upload("v1", clock.now)

        await make_service(youtube).run_once()

        assert notifier.sent == []


# =============================================================================
# Listener and Lifecycle Tests
# =============================================================================

class TestListenersAndLifecycle:
    """Tests for stream hooks, the poll loop and cache resets."""

    @pytest.mark.asyncio
    async def test_listeners_receive_transitions(self, make_service, registry, twitch):
        track(registry, "foo")
        events = []

        def broken(*args):
            raise RuntimeError("listener bug")

        async def on_stream(guild_id, entry, status, info):
            events.append((guild_id, entry.external_id, status, info is not None))

        service = make_service(twitch, grace_period=0)
        service.add_listener(broken)
        service.add_listener(on_stream)

        twitch.set_live("foo")
        await service.run_once()
        twitch.set_offline("foo")
        await service.run_once()
        await service.run_once()

        assert events == [
            ("g1", "foo", LiveStatus.LIVE, True),
            ("g1", "foo", LiveStatus.OFFLINE, False),
        ]

        service.remove_listener(on_stream)
        twitch.set_live("foo")
        await service.run_once()
        assert len(events) == 2

    @pytest.mark.asyncio
    async def test_start_runs_first_tick_and_stop_cancels(self, make_service, registry, twitch):
        track(registry, "foo")
        service = make_service(twitch, poll_interval=3600)

        await service.start()
        await asyncio.sleep(0)
        assert service.is_running

        await service.stop()
        assert not service.is_running
        assert len(twitch.calls) == 1

    @pytest.mark.asyncio
    async def test_clear_cache_resets_state_and_suspensions(self, make_service, registry, state_repo, twitch):
        track(registry, "foo")
        twitch.set_live("foo")
        service = make_service(twitch)
        await service.run_once()
        service.suspend(Platform.TWITCH)
        service.cache.set(("twitch", "stream", "foo"), {}, 60)

        service.clear_cache()

        assert state_repo.all() == {}
        assert not service.is_suspended(Platform.TWITCH)
        assert len(service.cache) == 0


# =============================================================================
# Template Service Tests
# =============================================================================

class TestTemplateService:
    """Tests for TemplateService."""

    @pytest.fixture
    def templates(self):
        return TemplateService()

    def test_literal_replacement(self, templates):
        result = templates.render("{name} plays {game} {name}", name="foo", game="Chess")
        assert result == "foo plays Chess foo"

    def test_unknown_braces_untouched(self, templates):
        assert templates.render("{name} {unknown} {", name="foo") == "foo {unknown} {"

    def test_none_renders_empty(self, templates):
        assert templates.render("[{title}]", title=None) == "[]"

    def test_no_escaping(self, templates):
        assert templates.render("{title}", title="<b>{name}</b>") == "<b>{name}</b>"

    def test_default_live_template(self, templates):
        assert templates.default_live_template("youtube") == "{name} is live on YouTube: {title} {url}"
        assert templates.default_live_template("tiktok") == "{name} is live on TikTok: {title} {url}"

    def test_platform_and_user_tokens(self, templates):
        entry = StreamEntry(platform="kick", external_id="alice", live_message_template="{platform} {user}")
        info = StreamInfo(platform="kick", name="Alice")
        assert templates.render_live(entry, info) == "Kick Alice"

        entry.bound_discord_user_id = "42"
        assert templates.render_live(entry, info) == "Kick <@42>"
