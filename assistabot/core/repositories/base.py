"""
Base repository class with common JSON file utilities.

This module provides a base class for repositories backed by a single JSON
document that is read once and rewritten atomically on every mutation.
"""

import os
from typing import Any

from assistabot.utils import get_logger, read_json_file, write_json_atomic


logger = get_logger('repositories')


class BaseJsonRepository:
    """
    Base class for JSON file repositories.

    Provides document loading and atomic saving.
    All concrete repositories should inherit from this class.
    """

    def __init__(self, file_path: str):
        """
        Initialize the repository.

        Args:
            file_path: Path to the JSON file
        """
        self.file_path = file_path
        self._ensure_directory()

    def _ensure_directory(self):
        """Ensure the directory for the JSON file exists."""
        directory = os.path.dirname(self.file_path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)

    def _load_document(self, default: Any) -> Any:
        """
        Read the backing file.

        A missing file yields ``default``. A corrupt file is logged and also
        yields ``default`` so the bot keeps running with an empty store.

        Args:
            default: Value used when the file is missing or unreadable

        Returns:
            Parsed document
        """
        try:
            data = read_json_file(self.file_path, default=None)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {self.file_path}, starting empty: {e}")
            return default

        if data is None:
            return default
        if not isinstance(data, type(default)):
            logger.warning(
                f"Unexpected document type in {self.file_path} "
                f"({type(data).__name__}), starting empty"
            )
            return default
        return data

    def _save_document(self, data: Any) -> None:
        """
        Atomically replace the backing file.

        Args:
            data: JSON-serializable document
        """
        write_json_atomic(self.file_path, data)

