"""
JSON implementation of the Live State Repository.

Stores one LiveState row per tracked entry in ``data/stream-state.json``.
"""

from typing import Dict, Optional

from assistabot.core.interfaces import LiveStateRepository
from assistabot.core.models import LiveState
from .base import BaseJsonRepository


class JsonLiveStateRepository(BaseJsonRepository, LiveStateRepository):
    """JSON file implementation of LiveStateRepository."""

    def __init__(self, file_path: str = "data/stream-state.json"):
        super().__init__(file_path)
        self._rows: Dict[str, LiveState] = {}
        self.load()

    def load(self) -> None:
        data = self._load_document({})
        self._rows = {
            str(key).lower(): LiveState.from_dict(row)
            for key, row in data.items()
            if isinstance(row, dict)
        }

    def save(self) -> None:
        self._save_document({key: row.to_dict() for key, row in self._rows.items()})

    def get(self, key: str) -> Optional[LiveState]:
        return self._rows.get(key.lower())

    def set(self, key: str, state: LiveState) -> None:
        self._rows[key.lower()] = state
        self.save()

    def delete(self, key: str) -> bool:
        if self._rows.pop(key.lower(), None) is None:
            return False
        self.save()
        return True

    def all(self) -> Dict[str, LiveState]:
        return dict(self._rows)

    def clear(self) -> None:
        self._rows = {}
        self.save()
