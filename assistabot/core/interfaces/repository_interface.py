"""
Abstract persistence interfaces for AssistaBot.

This module defines abstract base classes for the stream registry and the
live-state store, following the Interface Segregation Principle (ISP).
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from assistabot.core.models import StreamEntry, PresenceRule, LiveState


class StreamRegistry(ABC):
    """Abstract interface for tracked stream entries and presence rules."""

    @abstractmethod
    def add(self, guild_id: str, entry: StreamEntry) -> StreamEntry:
        """
        Add a tracked stream to a guild.

        Args:
            guild_id: Discord guild id
            entry: Entry to add

        Returns:
            The stored (normalized) entry

        Raises:
            InvalidPlatformError: If the platform is not supported
            DuplicateEntryError: If (platform, id) is already tracked
            RegistryError: If platform or id is missing
        """
        pass

    @abstractmethod
    def remove(self, guild_id: str, platform: str, external_id: str) -> int:
        """
        Remove a tracked stream.

        Args:
            guild_id: Discord guild id
            platform: Platform code
            external_id: Streamer id (case-insensitive)

        Returns:
            Number of entries removed (0 or 1)
        """
        pass

    @abstractmethod
    def update(self, guild_id: str, platform: str, external_id: str, patch: dict) -> StreamEntry:
        """
        Partially update a tracked stream.

        Args:
            guild_id: Discord guild id
            platform: Platform code
            external_id: Streamer id (case-insensitive)
            patch: Fields to change, keyed by StreamEntry attribute name

        Returns:
            The updated entry

        Raises:
            EntryNotFoundError: If no matching entry exists
        """
        pass

    @abstractmethod
    def list(self, guild_id: str, platform: Optional[str] = None) -> List[StreamEntry]:
        """
        List tracked streams for a guild.

        Args:
            guild_id: Discord guild id
            platform: Optional platform filter

        Returns:
            Entries in insertion order
        """
        pass

    @abstractmethod
    def guild_ids(self) -> List[str]:
        """Get every guild id with entries or presence rules."""
        pass

    @abstractmethod
    def get_presence(self, guild_id: str) -> Dict[str, PresenceRule]:
        """Get presence rules for a guild, keyed by platform."""
        pass

    @abstractmethod
    def set_presence(self, guild_id: str, platform: str, rule: PresenceRule) -> PresenceRule:
        """
        Create or replace the presence rule for a platform.

        Raises:
            InvalidPlatformError: If the platform is not supported
        """
        pass

    @abstractmethod
    def clear_presence(self, guild_id: str, platform: Optional[str] = None) -> None:
        """Remove one presence rule, or every rule of the guild if platform is None."""
        pass


class LiveStateRepository(ABC):
    """Abstract interface for the per-entry live state store."""

    @abstractmethod
    def get(self, key: str) -> Optional[LiveState]:
        """Get the state row for a key, or None."""
        pass

    @abstractmethod
    def set(self, key: str, state: LiveState) -> None:
        """Create or replace the state row for a key."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete the state row for a key. Returns True if it existed."""
        pass

    @abstractmethod
    def all(self) -> Dict[str, LiveState]:
        """Get a copy of every state row."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Delete every state row."""
        pass


class RegistryError(Exception):
    """Base exception for stream registry errors."""
    pass


class DuplicateEntryError(RegistryError):
    """Raised when (platform, id) is already tracked in the guild."""
    pass


class InvalidPlatformError(RegistryError):
    """Raised when the platform is not supported."""
    pass


class EntryNotFoundError(RegistryError):
    """Raised when no matching entry exists."""
    pass
