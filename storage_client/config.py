"""Configuration settings for the storage client."""

import os
from dataclasses import dataclass

from common.constants import (
    CHUNK_SIZE_BYTES,
    DEFAULT_MASTER,
    DEFAULT_SCHEME,
    DEFAULT_TIMEOUT_SECONDS,
    LOOKUP_CACHE_TTL_SECONDS,
)


STORAGE_MASTER = os.environ.get("STORAGE_MASTER", DEFAULT_MASTER)

STORAGE_SCHEME = os.environ.get("STORAGE_SCHEME", DEFAULT_SCHEME)

STORAGE_CHUNK_SIZE = int(os.environ.get("STORAGE_CHUNK_SIZE", str(CHUNK_SIZE_BYTES)))

STORAGE_TIMEOUT = float(os.environ.get("STORAGE_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS)))

STORAGE_CACHE_TTL = int(os.environ.get("STORAGE_CACHE_TTL", str(LOOKUP_CACHE_TTL_SECONDS)))


@dataclass(frozen=True)
class ClientSettings:
    """
    Settings for a StorageClient.

    Attributes:
        master: Master server address (host:port)
        scheme: URL scheme used for master and volume servers
        chunk_size: Chunking threshold in bytes (0 disables chunking)
        timeout: Per-request transport timeout in seconds
        cache_ttl_seconds: Lifetime of cached volume lookups
    """
    master: str = DEFAULT_MASTER
    scheme: str = DEFAULT_SCHEME
    chunk_size: int = CHUNK_SIZE_BYTES
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    cache_ttl_seconds: int = LOOKUP_CACHE_TTL_SECONDS

    @classmethod
    def from_env(cls) -> 'ClientSettings':
        """Build settings from STORAGE_* environment variables."""
        return cls(
            master=STORAGE_MASTER,
            scheme=STORAGE_SCHEME,
            chunk_size=STORAGE_CHUNK_SIZE,
            timeout=STORAGE_TIMEOUT,
            cache_ttl_seconds=STORAGE_CACHE_TTL,
        )
