"""
Core interfaces package for AssistaBot.

This package contains abstract interfaces following SOLID principles,
specifically the Dependency Inversion Principle (DIP) and Interface Segregation Principle (ISP).
"""

from .repository_interface import (
    StreamRegistry,
    LiveStateRepository,
    RegistryError,
    DuplicateEntryError,
    InvalidPlatformError,
    EntryNotFoundError,
)
from .prober_interface import (
    Prober,
    PresenceSource,
    ProberError,
    ProberConfigError,
    ProberRateLimitError,
    ProberNotFoundError,
    ProberTransientError,
)
from .notifier_interface import (
    Notifier,
    NotifierError,
    NotifierSendError,
)

__all__ = [
    # Persistence interfaces
    'StreamRegistry',
    'LiveStateRepository',
    'RegistryError',
    'DuplicateEntryError',
    'InvalidPlatformError',
    'EntryNotFoundError',
    # Prober interfaces
    'Prober',
    'PresenceSource',
    'ProberError',
    'ProberConfigError',
    'ProberRateLimitError',
    'ProberNotFoundError',
    'ProberTransientError',
    # Notifier interfaces
    'Notifier',
    'NotifierError',
    'NotifierSendError',
]
