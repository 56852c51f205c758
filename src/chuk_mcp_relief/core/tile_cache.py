"""
Injectable in-memory LRU cache for raw tile payloads.

A TileCache is an explicit object handed to the tile source; nothing is
cached at module level. Eviction is least-recently-used, bounded by a total
byte budget, and payloads larger than the per-item limit are never stored.
"""

import logging
import threading

from ..constants import TILE_CACHE_MAX_BYTES, TILE_CACHE_MAX_ITEM

logger = logging.getLogger(__name__)


class TileCache:
    """Byte-budgeted LRU cache keyed by tile URL (or any string)."""

    def __init__(
        self,
        max_bytes: int = TILE_CACHE_MAX_BYTES,
        max_item: int = TILE_CACHE_MAX_ITEM,
    ) -> None:
        self.max_bytes = max_bytes
        self.max_item = max_item

        # dicts preserve insertion order: first key is least recently used
        self._data: dict[str, bytes] = {}
        self._total: int = 0
        # tile fetches run in worker threads
        self._lock = threading.Lock()

    @property
    def total_bytes(self) -> int:
        return self._total

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str) -> bytes | None:
        """Get cached payload, marking it most recently used."""
        with self._lock:
            if key not in self._data:
                return None
            data = self._data.pop(key)
            self._data[key] = data
            return data

    def put(self, key: str, data: bytes) -> None:
        """Cache payload with LRU eviction."""
        size = len(data)
        if size > self.max_item:
            return

        with self._lock:
            if key in self._data:
                self._total -= len(self._data.pop(key))

            while self._total + size > self.max_bytes and self._data:
                oldest_key = next(iter(self._data))
                self._total -= len(self._data.pop(oldest_key))
                logger.debug(f"Evicted tile {oldest_key} from cache")

            self._data[key] = data
            self._total += size

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._total = 0
