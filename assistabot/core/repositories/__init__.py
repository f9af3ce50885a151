"""
Repository implementations for AssistaBot.

This package contains concrete JSON-file implementations of the repository
interfaces, following the Repository Pattern for data access.
"""

from .base import BaseJsonRepository
from .stream_registry import JsonStreamRegistry, PRESENCE_KEY
from .state_repository import JsonLiveStateRepository

__all__ = [
    # Base
    'BaseJsonRepository',
    # Registry
    'JsonStreamRegistry',
    'PRESENCE_KEY',
    # Live state
    'JsonLiveStateRepository',
]
