"""
Key-Value Store for social-session.

This module provides a standardized interface for the small amount of state
that must survive app restarts (user id, user name, deferred-login flag),
with an in-memory store for tests and a local JSON file store for persistence.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Abstract base class for persisted session values."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get the value stored under key, or default."""
        pass

    @abstractmethod
    def update(self, values: Mapping[str, Any]) -> None:
        """Store several values in one write."""
        pass

    @abstractmethod
    def delete(self, *keys: str) -> None:
        """Remove keys; missing keys are ignored."""
        pass

    def set(self, key: str, value: Any) -> None:
        """Store a single value."""
        self.update({key: value})

    def get_bool(self, key: str) -> bool:
        """Get a flag; anything unset reads as False."""
        return bool(self.get(key, False))

    def get_str(self, key: str) -> Optional[str]:
        """Get a string value, or None if unset or not a string."""
        value = self.get(key)
        return value if isinstance(value, str) else None


class InMemoryKeyValueStore(KeyValueStore):
    """Store that keeps values for the lifetime of the process only."""

    def __init__(self, initial: Optional[Mapping[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(initial or {})
        self._lock = RLock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def update(self, values: Mapping[str, Any]) -> None:
        with self._lock:
            self._values.update(values)

    def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._values.pop(key, None)

    def snapshot(self) -> Dict[str, Any]:
        """Copy of all stored values."""
        with self._lock:
            return dict(self._values)


class JsonFileKeyValueStore(KeyValueStore):
    """Store that persists values to a local JSON file.

    Every write is flushed to disk before returning, so a value set right
    before a crash is still there on the next launch.
    """

    def __init__(self, path: str) -> None:
        """
        Initialize the JSON file store.

        Args:
            path: File to persist values in. Parent directories are created.
        """
        self.path = path
        self._values: Dict[str, Any] = {}
        self._lock = RLock()
        self._ensure_dir_exists()
        self._load_from_disk()
        logger.info(f"JsonFileKeyValueStore initialized: {path}")

    def _ensure_dir_exists(self) -> None:
        """Ensure the store directory exists."""
        target_dir = os.path.dirname(self.path)
        if target_dir and not os.path.exists(target_dir):
            os.makedirs(target_dir, exist_ok=True)
            logger.info(f"Created store directory: {target_dir}")

    def _load_from_disk(self) -> None:
        """Load persisted values, starting empty if the file is absent or unreadable."""
        if not os.path.exists(self.path):
            logger.debug("No persisted session store found")
            return

        try:
            with open(self.path, "r") as f:
                persisted = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("Failed to parse session store %s: %s", self.path, e)
            return
        except IOError as e:
            logger.warning("Failed to read session store %s: %s", self.path, e)
            return

        if not isinstance(persisted, dict):
            logger.warning("Invalid session store format, ignoring")
            return

        self._values = persisted
        logger.debug("Loaded %d values from %s", len(persisted), self.path)

    def _save_to_disk(self, values: Dict[str, Any]) -> None:
        """Persist values to disk atomically. Caller must hold lock."""
        target_dir = os.path.dirname(self.path) or "."
        fd, temp_path = tempfile.mkstemp(dir=target_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(values, f, indent=2)
            os.replace(temp_path, self.path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

        logger.debug("Persisted %d values to %s", len(values), self.path)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def update(self, values: Mapping[str, Any]) -> None:
        with self._lock:
            staged = dict(self._values)
            staged.update(values)
            self._save_to_disk(staged)
            self._values = staged

    def delete(self, *keys: str) -> None:
        with self._lock:
            removed = [key for key in keys if key in self._values]
            if not removed:
                return
            staged = {k: v for k, v in self._values.items() if k not in removed}
            self._save_to_disk(staged)
            self._values = staged
