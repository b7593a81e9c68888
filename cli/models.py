"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class UploadCommand:
    """Upload one or more local files."""

    file_list: tuple[str, ...]
    collection: str = ""
    ttl: str = ""
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class DownloadCommand:
    """Download file by file ID."""

    file_id: str
    output_path: str | None = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class DeleteCommand:
    """Delete file by file ID."""

    file_id: str
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class LookupCommand:
    """Resolve the URL of a file."""

    file_id: str
    command: Literal["lookup"] = "lookup"


@dataclass(frozen=True)
class StatusCommand:
    """Show master and cluster status."""

    command: Literal["status"] = "status"


CommandRequest = (
    UploadCommand
    | DownloadCommand
    | DeleteCommand
    | LookupCommand
    | StatusCommand
)
