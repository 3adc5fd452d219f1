"""
File-backed cache holding one payload and the epoch second it was stored.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Callable, Optional, Union

from shared.logging import get_logger


class PersistentCache:
    """
    In-memory payload mirrored to a JSON file as ``{payload, epoch_timestamp}``.

    Loading never raises: a missing or unreadable file leaves the cache empty.
    Saving is best effort; write failures are logged and ignored.
    """

    def __init__(
        self,
        path: Union[str, Path],
        *,
        name: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._path = Path(path)
        self.name = name or self._path.stem
        self._clock = clock
        self.payload: Optional[Any] = None
        self.epoch_timestamp: Optional[int] = None
        self.logger = get_logger("catalog.persistent_cache")

    @property
    def path(self) -> Path:
        return self._path

    def now(self) -> int:
        return int(self._clock())

    def load(self) -> None:
        """Populate memory state from disk."""
        self.payload = None
        self.epoch_timestamp = None
        if not self._path.exists():
            self.logger.debug("Cache file not found", cache=self.name, path=str(self._path))
            return

        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (ValueError, OSError) as exc:
            self.logger.warning("Failed to read cache file", cache=self.name, path=str(self._path), error=str(exc))
            return

        if not isinstance(data, dict):
            self.logger.warning("Ignoring malformed cache file", cache=self.name, path=str(self._path))
            return
        timestamp = data.get("epoch_timestamp")
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)) or "payload" not in data:
            self.logger.warning("Ignoring malformed cache file", cache=self.name, path=str(self._path))
            return

        self.payload = data["payload"]
        self.epoch_timestamp = int(timestamp)
        self.logger.info("Cache loaded", cache=self.name, epoch_timestamp=self.epoch_timestamp)

    def is_fresh(self, ttl: int) -> bool:
        """True iff a payload exists and its age is strictly below ``ttl``."""
        if self.payload is None or self.epoch_timestamp is None:
            return False
        return self.now() - self.epoch_timestamp < ttl

    def age(self) -> Optional[int]:
        if self.epoch_timestamp is None:
            return None
        return self.now() - self.epoch_timestamp

    def store(self, payload: Any, epoch_timestamp: Optional[int] = None) -> None:
        """Replace the payload in memory; call ``save`` to persist it."""
        self.payload = payload
        self.epoch_timestamp = self.now() if epoch_timestamp is None else epoch_timestamp

    def save(self) -> bool:
        """Write the current state to disk; returns False on failure."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("w", encoding="utf-8") as handle:
                json.dump(
                    {"payload": self.payload, "epoch_timestamp": self.epoch_timestamp},
                    handle,
                    ensure_ascii=False,
                    indent=2,
                )
        except (OSError, TypeError, ValueError) as exc:
            self.logger.error("Failed to save cache", cache=self.name, path=str(self._path), error=str(exc))
            return False
        self.logger.debug("Cache saved", cache=self.name, path=str(self._path))
        return True

    def clear(self) -> None:
        """Drop memory state and remove the file."""
        self.payload = None
        self.epoch_timestamp = None
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            self.logger.error("Failed to remove cache file", cache=self.name, path=str(self._path), error=str(exc))
