"""
Pytest configuration and shared fixtures for testing.

This file contains fakes for the notifier, probers, presence cache and
HTTP session so nothing talks to Discord or a real API.
"""

import pytest
from typing import Dict, List, Optional

from assistabot.core.interfaces import Notifier, Prober, PresenceSource
from assistabot.core.models import (
    Platform,
    StreamInfo,
    ProbeResult,
    MemberPresence,
)
from assistabot.core.repositories import JsonStreamRegistry, JsonLiveStateRepository


# =============================================================================
# Fakes
# =============================================================================

class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_700_000_000):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeNotifier(Notifier):
    """Records every delivery call."""

    def __init__(self):
        self.sent = []
        self.deleted = []
        self.roles_added = []
        self.roles_removed = []
        self.fail_sends = False
        self._next_id = 1000

    async def send_notification(self, channel_id, content, info) -> Optional[str]:
        self.sent.append((channel_id, content, info))
        if self.fail_sends:
            return None
        self._next_id += 1
        return str(self._next_id)

    async def delete_message(self, channel_id, message_id) -> bool:
        self.deleted.append((channel_id, message_id))
        return True

    async def add_roles(self, guild_id, member_id, role_ids) -> bool:
        self.roles_added.append((guild_id, member_id, list(role_ids)))
        return True

    async def remove_roles(self, guild_id, member_id, role_ids) -> bool:
        self.roles_removed.append((guild_id, member_id, list(role_ids)))
        return True


class FakeProber(Prober):
    """
    Prober whose readings are set per external id.

    ``live`` maps external ids to a StreamInfo (live) or None (offline);
    ``errors`` maps external ids to an exception raised on probe.
    """

    def __init__(self, platform: Platform, configured: bool = True):
        self.platform = platform
        self.configured = configured
        self.live: Dict[str, Optional[StreamInfo]] = {}
        self.errors: Dict[str, Exception] = {}
        self.uploads: Dict[str, StreamInfo] = {}
        self.calls: List[tuple] = []

    def is_configured(self) -> bool:
        return self.configured

    def set_live(self, external_id: str, title: str = "Live now", **kwargs) -> StreamInfo:
        info = StreamInfo(
            platform=self.platform.value,
            name=kwargs.pop('name', external_id),
            url=kwargs.pop('url', f"https://example.com/{external_id}"),
            title=title,
            **kwargs,
        )
        self.live[external_id] = info
        return info

    def set_offline(self, external_id: str) -> None:
        self.live[external_id] = None

    async def probe(self, guild_id, entry, fresh=False) -> ProbeResult:
        self.calls.append((guild_id, entry.external_id, fresh))
        if entry.external_id in self.errors:
            raise self.errors[entry.external_id]
        info = self.live.get(entry.external_id)
        if info is None:
            return ProbeResult.offline()
        return ProbeResult(live=True, info=info)

    async def latest_upload(self, entry) -> Optional[StreamInfo]:
        return self.uploads.get(entry.external_id)


class FakePresenceSource(PresenceSource):
    """In-memory member cache keyed by guild id."""

    def __init__(self):
        self.members: Dict[str, Dict[str, MemberPresence]] = {}

    def add(self, guild_id: str, member: MemberPresence) -> MemberPresence:
        self.members.setdefault(guild_id, {})[member.member_id] = member
        return member

    def get_member(self, guild_id, member_id) -> Optional[MemberPresence]:
        return self.members.get(str(guild_id), {}).get(str(member_id))

    def list_members(self, guild_id) -> List[MemberPresence]:
        return list(self.members.get(str(guild_id), {}).values())


class FakeResponse:
    """Async context manager mimicking an aiohttp response."""

    def __init__(self, status: int = 200, payload=None, headers: Optional[dict] = None):
        self.status = status
        self._payload = payload
        self.headers = headers or {}

    async def json(self, content_type=None):
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Stand-in for aiohttp.ClientSession.

    ``handler(method, url, params)`` returns a FakeResponse (or raises).
    """

    closed = False

    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def request(self, method, url, params=None, headers=None, data=None):
        self.calls.append({
            'method': method,
            'url': url,
            'params': dict(params or {}),
            'headers': dict(headers or {}),
            'data': dict(data or {}),
        })
        return self.handler(method, url, params or {})

    def calls_to(self, fragment: str) -> list:
        return [call for call in self.calls if fragment in call['url']]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def presence_source():
    return FakePresenceSource()


@pytest.fixture
def registry(tmp_path):
    """Registry backed by a temporary streams.json."""
    return JsonStreamRegistry(str(tmp_path / "streams.json"))


@pytest.fixture
def state_repo(tmp_path):
    """State store backed by a temporary stream-state.json."""
    return JsonLiveStateRepository(str(tmp_path / "stream-state.json"))
