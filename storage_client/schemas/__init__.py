"""Pydantic schemas for cluster responses."""

from storage_client.schemas.common import ErrorResponse, WireModel
from storage_client.schemas.master import (
    AssignResult,
    ClusterStatus,
    LookupResult,
    SystemStatus,
    VolumeLocation,
)
from storage_client.schemas.volume import SubmitResult, UploadResult

__all__ = [
    "WireModel",
    "ErrorResponse",
    "AssignResult",
    "ClusterStatus",
    "LookupResult",
    "SystemStatus",
    "VolumeLocation",
    "SubmitResult",
    "UploadResult",
]
