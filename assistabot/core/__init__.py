"""
Core package for AssistaBot.

This package contains the core business logic following SOLID principles:
- models: Domain entities (StreamEntry, LiveState, etc.)
- interfaces: Abstract base classes (registry, state store, probers, notifier)
- repositories: JSON file implementations
- services: Business logic layer
"""

from .models import (
    # Enums
    Platform,
    LiveStatus,
    # Models
    StreamEntry,
    PresenceRule,
    LiveState,
    StreamInfo,
    ProbeResult,
    ActivitySnapshot,
    MemberPresence,
)

from .interfaces import (
    # Persistence interfaces
    StreamRegistry,
    LiveStateRepository,
    # Probing interfaces
    Prober,
    PresenceSource,
    # Notifier interface
    Notifier,
    # Errors
    RegistryError,
    DuplicateEntryError,
    InvalidPlatformError,
    EntryNotFoundError,
    ProberError,
    ProberConfigError,
    ProberRateLimitError,
    ProberNotFoundError,
    ProberTransientError,
    NotifierError,
    NotifierSendError,
)

from .repositories import (
    JsonStreamRegistry,
    JsonLiveStateRepository,
)

from .services import (
    NotifierService,
    TickStats,
    TemplateService,
)

__all__ = [
    # Models
    'Platform',
    'LiveStatus',
    'StreamEntry',
    'PresenceRule',
    'LiveState',
    'StreamInfo',
    'ProbeResult',
    'ActivitySnapshot',
    'MemberPresence',
    # Interfaces
    'StreamRegistry',
    'LiveStateRepository',
    'Prober',
    'PresenceSource',
    'Notifier',
    # Errors
    'RegistryError',
    'DuplicateEntryError',
    'InvalidPlatformError',
    'EntryNotFoundError',
    'ProberError',
    'ProberConfigError',
    'ProberRateLimitError',
    'ProberNotFoundError',
    'ProberTransientError',
    'NotifierError',
    'NotifierSendError',
    # Repositories
    'JsonStreamRegistry',
    'JsonLiveStateRepository',
    # Services
    'NotifierService',
    'TickStats',
    'TemplateService',
]
