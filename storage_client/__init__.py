"""Async client for a master/volume-server blob storage cluster."""

from storage_client.client import StorageClient
from storage_client.config import ClientSettings
from storage_client.exceptions import (
    AssignmentError,
    ChunkCleanupError,
    DeleteError,
    InvalidFileIDError,
    ManifestError,
    RemoteFileNotFoundError,
    StorageClientError,
    TransportError,
    UploadError,
    VolumeLookupError,
)

__all__ = [
    "StorageClient",
    "ClientSettings",
    "StorageClientError",
    "InvalidFileIDError",
    "RemoteFileNotFoundError",
    "VolumeLookupError",
    "AssignmentError",
    "TransportError",
    "UploadError",
    "DeleteError",
    "ManifestError",
    "ChunkCleanupError",
]
