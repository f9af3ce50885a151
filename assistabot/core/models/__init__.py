"""
Core models package for AssistaBot.

This package contains domain models (entities) used throughout the application.
"""

from .enums import Platform, LiveStatus
from .stream import StreamEntry, PresenceRule, normalize_role_ids, MEMBER_ID_PREFIX
from .state import LiveState, state_key
from .probe import (
    StreamInfo,
    ProbeResult,
    ActivitySnapshot,
    MemberPresence,
    STREAMING_ACTIVITY_TYPE,
)

__all__ = [
    # Enums
    'Platform',
    'LiveStatus',
    # Registry models
    'StreamEntry',
    'PresenceRule',
    'normalize_role_ids',
    'MEMBER_ID_PREFIX',
    # State
    'LiveState',
    'state_key',
    # Probing
    'StreamInfo',
    'ProbeResult',
    'ActivitySnapshot',
    'MemberPresence',
    'STREAMING_ACTIVITY_TYPE',
]
