"""
JSON implementation of the Stream Registry.

This module provides the concrete StreamRegistry backed by
``data/streams.json``. The document maps guild ids to entry lists and keeps
presence rules under the reserved ``_presence`` key:

    {
        "_presence": {"<guild>": {"<platform>": {...rule...}}},
        "<guild>": [{...entry...}, ...]
    }
"""

from typing import Dict, List, Optional

from assistabot.core.interfaces import (
    StreamRegistry,
    RegistryError,
    DuplicateEntryError,
    InvalidPlatformError,
    EntryNotFoundError,
)
from assistabot.core.models import Platform, StreamEntry, PresenceRule, normalize_role_ids
from assistabot.utils import get_logger
from .base import BaseJsonRepository


logger = get_logger('registry')

PRESENCE_KEY = '_presence'

# Attributes an update patch may change
PATCHABLE_FIELDS = (
    'discord_channel_id',
    'live_message_template',
    'vod_message_template',
    'bound_discord_user_id',
    'live_role_ids',
    'whitelist_role_ids',
    'cleanup',
)


class JsonStreamRegistry(BaseJsonRepository, StreamRegistry):
    """
    JSON file implementation of StreamRegistry.

    The whole registry is held in memory; every mutation rewrites the file
    atomically before returning, and memory only changes once that write
    has succeeded.
    """

    def __init__(self, file_path: str = "data/streams.json"):
        """
        Initialize the registry and load the backing file.

        Args:
            file_path: Path to the streams JSON file
        """
        super().__init__(file_path)
        self._entries: Dict[str, List[StreamEntry]] = {}
        self._presence: Dict[str, Dict[str, PresenceRule]] = {}
        self.load()

    # ==================== Persistence ====================

    def load(self) -> None:
        """Load the registry from disk, migrating older layouts."""
        data = self._load_document({})

        self._presence = {}
        presence_raw = data.pop(PRESENCE_KEY, None)
        if isinstance(presence_raw, dict):
            for guild_id, rules in presence_raw.items():
                if not isinstance(rules, dict):
                    continue
                self._presence[str(guild_id)] = {
                    str(platform).lower(): PresenceRule.from_dict(platform, rule or {})
                    for platform, rule in rules.items()
                    if isinstance(rule, dict) or rule is None
                }

        self._entries = {}
        for guild_id, raw_entries in data.items():
            if isinstance(raw_entries, dict):
                # Older files stored each guild as an object of entries
                raw_entries = list(raw_entries.values())
            elif not isinstance(raw_entries, list):
                raw_entries = []

            entries = []
            for raw in raw_entries:
                if isinstance(raw, dict):
                    entries.append(StreamEntry.from_dict(raw))
            self._entries[str(guild_id)] = entries

        logger.debug(
            f"Loaded {sum(len(e) for e in self._entries.values())} stream entries "
            f"across {len(self._entries)} guilds"
        )

    def save(self) -> None:
        """Atomically write the registry to disk."""
        self._write(self._entries, self._presence)

    def _write(
        self,
        entries: Dict[str, List[StreamEntry]],
        presence: Dict[str, Dict[str, PresenceRule]],
    ) -> None:
        document = {
            PRESENCE_KEY: {
                guild_id: {platform: rule.to_dict() for platform, rule in rules.items()}
                for guild_id, rules in presence.items()
            }
        }
        for guild_id, guild_entries in entries.items():
            document[guild_id] = [entry.to_dict() for entry in guild_entries]
        self._save_document(document)

    def _commit_entries(self, guild_id: str, guild_entries: List[StreamEntry]) -> None:
        """Persist a guild's new entry list, then swap it into memory."""
        entries = dict(self._entries)
        entries[guild_id] = guild_entries
        self._write(entries, self._presence)
        self._entries = entries

    def _commit_presence(self, guild_id: str, rules: Optional[Dict[str, PresenceRule]]) -> None:
        """Persist a guild's new presence rules (None drops the guild), then swap them in."""
        presence = dict(self._presence)
        if rules is None:
            presence.pop(guild_id, None)
        else:
            presence[guild_id] = rules
        self._write(self._entries, presence)
        self._presence = presence

    # ==================== Entry Methods ====================

    def add(self, guild_id: str, entry: StreamEntry) -> StreamEntry:
        """Add a tracked stream to a guild."""
        if not entry.platform or not entry.external_id:
            raise RegistryError("missing platform or id")
        if Platform.from_string(entry.platform) is None:
            raise InvalidPlatformError(f"invalid platform: {entry.platform}")

        guild_id = str(guild_id)
        entries = self._entries.get(guild_id, [])
        if any(existing.key == entry.key for existing in entries):
            raise DuplicateEntryError(
                f"{entry.platform}:{entry.external_id} is already tracked in guild {guild_id}"
            )

        stored = StreamEntry.from_dict(entry.to_dict())
        self._commit_entries(guild_id, entries + [stored])
        logger.info(f"Added {stored.platform}:{stored.external_id} to guild {guild_id}")
        return stored

    def remove(self, guild_id: str, platform: str, external_id: str) -> int:
        """Remove a tracked stream. Returns the number removed."""
        guild_id = str(guild_id)
        entries = self._entries.get(guild_id, [])
        kept = [entry for entry in entries if not entry.matches(platform, external_id)]
        removed = len(entries) - len(kept)
        if removed:
            self._commit_entries(guild_id, kept)
            logger.info(f"Removed {platform}:{external_id} from guild {guild_id}")
        return removed

    def update(self, guild_id: str, platform: str, external_id: str, patch: dict) -> StreamEntry:
        """Partially update a tracked stream."""
        guild_id = str(guild_id)
        entries = self._entries.get(guild_id, [])
        index = next(
            (i for i, entry in enumerate(entries) if entry.matches(platform, external_id)),
            None,
        )
        if index is None:
            raise EntryNotFoundError(f"{platform}:{external_id} not found in guild {guild_id}")

        updated = StreamEntry.from_dict(entries[index].to_dict())
        for field_name in PATCHABLE_FIELDS:
            if field_name not in patch:
                continue
            value = patch[field_name]
            if field_name in ('live_role_ids', 'whitelist_role_ids'):
                value = normalize_role_ids(value)
            elif field_name == 'cleanup':
                value = bool(value)
            setattr(updated, field_name, value)

        new_entries = list(entries)
        new_entries[index] = updated
        self._commit_entries(guild_id, new_entries)
        return updated

    def get(self, guild_id: str, platform: str, external_id: str) -> Optional[StreamEntry]:
        """Get a single entry, or None."""
        for entry in self._entries.get(str(guild_id), []):
            if entry.matches(platform, external_id):
                return entry
        return None

    def list(self, guild_id: str, platform: Optional[str] = None) -> List[StreamEntry]:
        """List tracked streams for a guild."""
        entries = self._entries.get(str(guild_id), [])
        if platform is None:
            return list(entries)
        platform = str(platform).lower()
        return [entry for entry in entries if entry.platform == platform]

    def guild_ids(self) -> List[str]:
        """Get every guild id with entries or presence rules."""
        ids = list(self._entries.keys())
        ids.extend(gid for gid in self._presence.keys() if gid not in self._entries)
        return ids

    # ==================== Presence Rule Methods ====================

    def get_presence(self, guild_id: str) -> Dict[str, PresenceRule]:
        return dict(self._presence.get(str(guild_id), {}))

    def set_presence(self, guild_id: str, platform: str, rule: PresenceRule) -> PresenceRule:
        """Create or replace the presence rule for a platform."""
        platform_enum = Platform.from_string(platform)
        if platform_enum is None:
            raise InvalidPlatformError(f"invalid platform: {platform}")

        stored = PresenceRule.from_dict(platform_enum.value, rule.to_dict())
        rules = self.get_presence(guild_id)
        rules[platform_enum.value] = stored
        self._commit_presence(str(guild_id), rules)
        return stored

    def clear_presence(self, guild_id: str, platform: Optional[str] = None) -> None:
        """Remove one presence rule, or all of them for the guild."""
        guild_id = str(guild_id)
        if guild_id not in self._presence:
            return
        if platform is None:
            self._commit_presence(guild_id, None)
        else:
            rules = self.get_presence(guild_id)
            rules.pop(str(platform).lower(), None)
            self._commit_presence(guild_id, rules)
