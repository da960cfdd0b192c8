"""
Local Key-Value Store with Concurrency Control

Durable storage scoped to one client process. Each key is a JSON file in
the data directory; every read and write holds a per-key file lock so two
processes sharing a data directory (two tabs of the same client) never see
a half-written document.

Keys used by the state layer:
    - master snapshot (settings.state_storage_key)
    - active identity (settings.session_storage_key)
    - order-placed alert log (settings.notification_log_key)

Author: Khalil Bannouri
Version: 4.0.0
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from filelock import FileLock, Timeout

from app.core.config import get_settings
from app.core.exceptions import LocalStoreError

logger = logging.getLogger(__name__)


class LocalStore:
    """File-backed JSON key-value store."""

    SUFFIX = ".json"

    def __init__(
        self,
        directory: Optional[Path] = None,
        lock_timeout: Optional[int] = None,
    ):
        settings = get_settings()
        self.directory = Path(directory) if directory is not None else settings.data_path
        self.lock_timeout = lock_timeout if lock_timeout is not None else settings.storage_lock_timeout

    def _ensure_directory(self) -> None:
        """Create data directory if needed."""
        if not self.directory.exists():
            self.directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {self.directory}")

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}{self.SUFFIX}"

    def _lock(self, key: str) -> FileLock:
        return FileLock(str(self.directory / f"{key}{self.SUFFIX}.lock"), timeout=self.lock_timeout)

    def get(self, key: str) -> Optional[Any]:
        """
        Read a stored value.

        Returns:
            The decoded JSON value, or None when the key was never written.

        Raises:
            LocalStoreError: The file exists but cannot be read or decoded.
        """
        path = self._path(key)
        if not path.exists():
            return None

        try:
            with self._lock(key):
                with open(path, "r", encoding="utf-8") as fh:
                    return json.load(fh)
        except Timeout:
            raise LocalStoreError(f"Timed out waiting for lock on '{key}'")
        except (OSError, ValueError) as e:
            raise LocalStoreError(f"Could not read '{key}': {e}")

    def set(self, key: str, value: Any) -> None:
        """
        Write a value, replacing any previous one atomically.

        Raises:
            LocalStoreError: The value could not be written.
        """
        self._ensure_directory()
        path = self._path(key)
        tmp_path = path.with_suffix(path.suffix + ".tmp")

        try:
            with self._lock(key):
                with open(tmp_path, "w", encoding="utf-8") as fh:
                    json.dump(value, fh, ensure_ascii=False)
                os.replace(tmp_path, path)
        except Timeout:
            raise LocalStoreError(f"Timed out waiting for lock on '{key}'")
        except (OSError, TypeError, ValueError) as e:
            raise LocalStoreError(f"Could not write '{key}': {e}")

        logger.debug(f"Local store wrote '{key}'")

    def remove(self, key: str) -> None:
        """Delete a key. Missing keys are ignored."""
        path = self._path(key)
        if not self.directory.exists():
            return
        try:
            with self._lock(key):
                path.unlink(missing_ok=True)
        except Timeout:
            raise LocalStoreError(f"Timed out waiting for lock on '{key}'")
        except OSError as e:
            raise LocalStoreError(f"Could not remove '{key}': {e}")

    def clear(self) -> None:
        """Delete every key held by this store."""
        if not self.directory.exists():
            return
        for path in self.directory.glob(f"*{self.SUFFIX}"):
            self.remove(path.name[: -len(self.SUFFIX)])
        logger.info(f"Local store cleared: {self.directory}")

    def keys(self) -> list[str]:
        if not self.directory.exists():
            return []
        return sorted(p.name[: -len(self.SUFFIX)] for p in self.directory.glob(f"*{self.SUFFIX}"))
