"""
In-memory cache of volume lookups.

Entries expire a fixed time after they were last written. The cache is
owned by a StorageClient instance and shared by every task using it.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from common.constants import LOOKUP_CACHE_TTL_SECONDS
from storage_client.schemas.master import LookupResult

logger = logging.getLogger(__name__)


@dataclass
class LocationCacheEntry:
    """
    Single cache entry.

    Attributes:
        result: Lookup result for the volume
        expires_at: Clock reading after which the entry is stale
    """
    result: LookupResult
    expires_at: float


class LocationCache:
    """
    Thread-safe volume ID -> LookupResult cache with a fixed TTL.

    Concurrent writers for the same volume race; the last write wins.
    """

    def __init__(
        self,
        ttl_seconds: float = LOOKUP_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize location cache.

        Args:
            ttl_seconds: Lifetime of an entry after its last write
            clock: Monotonic time source (injectable for tests)
        """
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, LocationCacheEntry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def get(self, volume_id: str) -> Optional[LookupResult]:
        """
        Return the cached result for a volume, or None if absent or expired.

        Expired entries are removed on access.
        """
        with self._lock:
            entry = self._entries.get(volume_id)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[volume_id]
                logger.debug(f"Location cache entry expired [volume_id={volume_id}]")
                return None
            return entry.result

    def set(self, volume_id: str, result: LookupResult) -> None:
        """Store a result, resetting its expiry."""
        with self._lock:
            self._entries[volume_id] = LocationCacheEntry(
                result=result,
                expires_at=self._clock() + self._ttl_seconds,
            )

    def invalidate(self, volume_id: str) -> None:
        with self._lock:
            self._entries.pop(volume_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for entry in self._entries.values() if now < entry.expires_at)
