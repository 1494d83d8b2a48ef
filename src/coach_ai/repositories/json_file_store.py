"""JSON file implementation of KeyValueStore.

Each key is one JSON document inside a directory. Writes go to a temporary
file that is then renamed over the target, so a crash mid-write never leaves
a half-written document behind.
"""

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from coach_ai.config import settings
from coach_ai.exceptions import StorageError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileStore:
    """Directory-backed document store.

    This class satisfies the KeyValueStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(self, directory: str | Path | None = None) -> None:
        """Initialize the store.

        Args:
            directory: Directory holding the documents. Defaults to
                settings.storage_path. Created on first write.
        """
        self._directory = Path(directory or settings.storage_path)

    @classmethod
    def create(cls, directory: str | Path | None = None) -> "JsonFileStore":
        return cls(directory=directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{_UNSAFE_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(value, f, default=str)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        logger.debug("Wrote %s", path)

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e
