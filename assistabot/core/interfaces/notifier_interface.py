"""
Abstract notifier interface for AssistaBot.

This module defines the abstract base class for delivering live
notifications and applying live roles, so the notifier service stays
platform-agnostic and testable without a Discord connection.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from assistabot.core.models import StreamInfo


class Notifier(ABC):
    """
    Abstract base class for notification delivery.

    Implementations never raise on delivery failures; they log and report
    the failure through their return value.
    """

    @abstractmethod
    async def send_notification(
        self,
        channel_id: str,
        content: str,
        info: StreamInfo,
    ) -> Optional[str]:
        """
        Post a live notification.

        Args:
            channel_id: Target channel ID
            content: Rendered message text
            info: Stream metadata for the embed

        Returns:
            ID of the posted message, or None if sending failed
        """
        pass

    @abstractmethod
    async def delete_message(self, channel_id: str, message_id: str) -> bool:
        """
        Delete a previously posted notification.

        Returns:
            True if deleted, False otherwise
        """
        pass

    @abstractmethod
    async def add_roles(self, guild_id: str, member_id: str, role_ids: List[str]) -> bool:
        """
        Assign roles to a guild member.

        Returns:
            True if every role was applied, False otherwise
        """
        pass

    @abstractmethod
    async def remove_roles(self, guild_id: str, member_id: str, role_ids: List[str]) -> bool:
        """
        Remove roles from a guild member.

        Returns:
            True if every role was removed, False otherwise
        """
        pass


class NotifierError(Exception):
    """Base exception for notifier errors."""
    pass


class NotifierSendError(NotifierError):
    """Raised when notification sending fails."""
    pass
