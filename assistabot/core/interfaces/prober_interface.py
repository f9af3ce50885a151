"""
Abstract live-status probing interfaces for AssistaBot.

A Prober answers "is this entry live right now?" for one platform, either by
calling a platform API or by reading the Discord gateway's cached presence
data through a PresenceSource.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from assistabot.core.models import (
    Platform,
    StreamEntry,
    StreamInfo,
    ProbeResult,
    MemberPresence,
)


class Prober(ABC):
    """
    Abstract base class for per-platform live-status probes.

    One instance exists per platform; the notifier service selects it by
    ``platform`` when iterating registry entries.
    """

    platform: Platform

    @abstractmethod
    def is_configured(self) -> bool:
        """
        Check that credentials and dependencies are available.

        Returns:
            False if the platform should be skipped entirely
        """
        pass

    @abstractmethod
    async def probe(self, guild_id: str, entry: StreamEntry, fresh: bool = False) -> ProbeResult:
        """
        Probe the live status of an entry.

        Args:
            guild_id: Discord guild id
            entry: Tracked entry
            fresh: Bypass cached probe results (used for re-verification)

        Returns:
            ProbeResult with stream metadata when live

        Raises:
            ProberRateLimitError: If the platform reported quota exhaustion
            ProberTransientError: On network/HTTP failures
            ProberNotFoundError: If the streamer or member cannot be found
        """
        pass

    async def latest_upload(self, entry: StreamEntry) -> Optional[StreamInfo]:
        """
        Get the newest upload for VOD announcements.

        Platforms without uploads return None.
        """
        return None

    async def close(self) -> None:
        """Release held resources."""
        return None


class PresenceSource(ABC):
    """Read access to the gateway's cached member presence and voice state."""

    @abstractmethod
    def get_member(self, guild_id: str, member_id: str) -> Optional[MemberPresence]:
        """
        Get a snapshot of one member.

        Returns:
            MemberPresence or None if the guild or member is not cached
        """
        pass

    @abstractmethod
    def list_members(self, guild_id: str) -> List[MemberPresence]:
        """Get snapshots of every cached member of a guild."""
        pass


class ProberError(Exception):
    """Base exception for prober errors."""
    pass


class ProberConfigError(ProberError):
    """Raised when credentials for a platform are missing."""
    pass


class ProberRateLimitError(ProberError):
    """Raised when a platform reports rate limiting or quota exhaustion."""

    def __init__(self, message: str = "rate limited", retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class ProberNotFoundError(ProberError):
    """Raised when the streamer, channel or bound member cannot be found."""
    pass


class ProberTransientError(ProberError):
    """Raised on network errors and unexpected HTTP responses."""
    pass
