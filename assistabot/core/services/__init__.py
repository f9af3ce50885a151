"""
Services package for AssistaBot.

This package contains the business logic layer following SOLID principles:
- notifier_service: Live-status poll loop and notification state machine
- template_service: Message template rendering
"""

from .template_service import TemplateService, TEMPLATE_TOKENS

from .notifier_service import (
    NotifierService,
    TickStats,
    StreamListener,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_GRACE_PERIOD,
    DEFAULT_RATE_LIMIT_COOLDOWN,
    DEFAULT_VOD_COOLDOWN,
    DEFAULT_VOD_MAX_AGE,
)


__all__ = [
    # Templates
    'TemplateService',
    'TEMPLATE_TOKENS',
    # Notifier
    'NotifierService',
    'TickStats',
    'StreamListener',
    'DEFAULT_POLL_INTERVAL',
    'DEFAULT_GRACE_PERIOD',
    'DEFAULT_RATE_LIMIT_COOLDOWN',
    'DEFAULT_VOD_COOLDOWN',
    'DEFAULT_VOD_MAX_AGE',
]
