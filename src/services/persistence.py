"""
Game Data Persistence

Stores the {stats, version} record in a key-value blob store.

Key Features:
- Pluggable stores (JSON files on disk, in-memory for tests/embedding)
- Atomic file writes (temp file + rename)
- Forward-compatible reads: missing fields default, unknown fields ignored
- Write failures are reported, never raised past the repository
"""

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from config import config
from models import SCHEMA_VERSION, GameStatistics, PersistedGameData, PersistedStats

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Base class for storage failures"""

    pass


class PersistenceReadError(PersistenceError):
    """Stored data is unreadable or malformed"""

    pass


class PersistenceWriteError(PersistenceError):
    """Store unavailable or write rejected"""

    pass


class KeyValueStore(ABC):
    """Minimal string blob store keyed by name"""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent.

        Raises:
            PersistenceReadError: If the store cannot be read
        """

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key.

        Raises:
            PersistenceWriteError: If the value cannot be written
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""


class InMemoryStore(KeyValueStore):
    """Dict-backed store for tests and embedding."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """One JSON file per key inside a directory."""

    def __init__(self, directory: Path | str | None = None):
        """
        Args:
            directory: Storage directory (default: config FILES data_dir)
        """
        if directory is None:
            directory = config.FILES["data_dir"]
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceReadError(f"Could not read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # Write atomically (write to temp file, then rename)
            temp_file = path.with_suffix(".tmp")
            temp_file.write_text(value, encoding="utf-8")
            temp_file.replace(path)
        except OSError as e:
            raise PersistenceWriteError(f"Could not write {path}: {e}") from e

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


class GameDataRepository:
    """Encodes and decodes GameStatistics under a fixed storage key."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str | None = None,
        version: str | None = None,
        history_limit: int | None = None,
    ):
        self.store = store
        self.key = key or config.get("storage", "storage_key")
        self.version = version or config.get("storage", "schema_version", SCHEMA_VERSION)
        if history_limit is None:
            history_limit = config.get("game", "history_limit")
        if history_limit < 1:
            raise ValueError(f"history_limit must be at least 1, got {history_limit}")
        self.history_limit = history_limit

    def encode(self, stats: GameStatistics) -> str:
        record = PersistedGameData(stats=PersistedStats.from_statistics(stats), version=self.version)
        return record.model_dump_json()

    def decode(self, raw: str) -> GameStatistics:
        """
        Decode a stored record, merging it over default statistics.

        Raises:
            PersistenceReadError: If raw is not valid JSON or violates the schema
        """
        try:
            record = PersistedGameData.model_validate_json(raw)
        except ValidationError as e:
            raise PersistenceReadError(
                f"Malformed game data ({e.error_count()} error(s)): {e}"
            ) from e

        if record.version != self.version:
            logger.warning(
                f"Stored game data has version {record.version!r}, expected {self.version!r}; "
                f"loading with defaults for missing fields"
            )

        if len(record.stats.history) > self.history_limit:
            logger.info(
                f"Truncating stored history from {len(record.stats.history)} "
                f"to {self.history_limit} entries"
            )
        return record.stats.to_statistics(self.history_limit)

    def load(self) -> GameStatistics | None:
        """
        Load statistics from the store.

        Returns:
            Restored statistics, or None if nothing is stored

        Raises:
            PersistenceReadError: If stored data is unreadable or malformed
        """
        raw = self.store.get(self.key)
        if raw is None:
            return None
        return self.decode(raw)

    def save(self, stats: GameStatistics) -> bool:
        """
        Save statistics to the store.

        Returns:
            True if saved successfully, False on error (logged, not raised)
        """
        try:
            payload = self.encode(stats)
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"Could not encode game data: {e}")
            return False

        try:
            self.store.set(self.key, payload)
        except PersistenceWriteError as e:
            logger.warning(f"Could not save game data: {e}")
            return False

        logger.debug(
            f"Saved game data: flips={stats.total_flips}, history={len(stats.history)}"
        )
        return True
