"""Custom exception classes for the storage client."""

from typing import Dict, List, Optional


class StorageClientError(Exception):
    """
    Base exception class for all storage client errors.

    ``cleanup_error`` is set when a compensating cleanup ran after this
    error and itself failed.
    """
    cleanup_error: Optional[Exception] = None


class InvalidFileIDError(StorageClientError, ValueError):
    """
    Raised when a file ID does not split into exactly volume ID and file key.
    """
    pass


class RemoteFileNotFoundError(StorageClientError):
    """
    Raised when a volume lookup returns no locations for a file.
    """
    pass


class VolumeLookupError(StorageClientError):
    """
    Raised when the master reports an error for a volume lookup.
    """
    pass


class AssignmentError(StorageClientError):
    """
    Raised when the master refuses to assign a file ID (zero count or error).

    For batch uploads ``results`` holds one result slot per input file,
    each marked with this error.
    """

    def __init__(self, message: str, results: Optional[List] = None):
        super().__init__(message)
        self.results = results if results is not None else []


class TransportError(StorageClientError):
    """
    Raised when a request can't be completed (network failure, timeout,
    unexpected status, unparseable response).
    """

    def __init__(self, operation: str, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{operation} {url}: {message}")
        self.operation = operation
        self.url = url
        self.status_code = status_code


class UploadError(StorageClientError):
    """
    Raised when a volume server rejects uploaded content.
    """
    pass


class DeleteError(StorageClientError):
    """
    Raised when a volume server refuses a delete.
    """
    pass


class ManifestError(StorageClientError):
    """
    Raised when a chunk manifest can't be decoded or fails validation.
    """
    pass


class ChunkCleanupError(StorageClientError):
    """
    Raised when one or more chunks could not be deleted.

    ``failures`` maps each chunk file ID to the error its delete raised.
    """

    def __init__(self, failures: Dict[str, Exception]):
        super().__init__(f"Not all chunks deleted: {len(failures)} failed ({', '.join(sorted(failures))})")
        self.failures = failures
