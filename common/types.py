"""Shared data type definitions (FilePart and local file helpers)."""

import mimetypes
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Optional


@dataclass
class FilePart:
    """
    Transient upload descriptor.

    Consumed exactly once by the upload pipeline, which closes ``reader``
    when it is done with it. ``server`` and ``file_id`` are filled in either
    by the caller (replace, batch) or by the pipeline after assignment.

    Attributes:
        reader: Binary stream holding the content
        file_name: Name reported to the cluster
        file_size: Declared content size in bytes
        mime_type: Content type ('' lets the encoder guess from the name)
        mod_time: Modification time in unix seconds (0 = unknown)
        collection: Target collection
        ttl: Time to live (e.g. '3m', '4h', '5d')
        is_gzipped: True when the content is already gzip-compressed
        server: Volume server owning ``file_id``
        file_id: Assigned file ID
    """
    reader: BinaryIO
    file_name: str
    file_size: int
    mime_type: str = ""
    mod_time: int = 0
    collection: str = ""
    ttl: str = ""
    is_gzipped: bool = False
    server: str = ""
    file_id: str = ""

    @classmethod
    def from_path(cls, path: str) -> 'FilePart':
        """
        Open a local file as a FilePart.

        Args:
            path: Local file path

        Returns:
            FilePart reading from the opened file

        Raises:
            OSError: If the file can't be opened or stat'ed
        """
        fh = open(path, 'rb')
        try:
            stat = os.fstat(fh.fileno())
        except OSError:
            fh.close()
            raise

        ext = Path(path).suffix.lower()
        mime_type = ""
        if ext:
            mime_type = mimetypes.types_map.get(ext, "")

        return cls(
            reader=fh,
            file_name=path,
            file_size=stat.st_size,
            mime_type=mime_type,
            mod_time=int(stat.st_mtime),
            is_gzipped=ext == '.gz',
        )

    @classmethod
    def from_reader(cls, reader: BinaryIO, file_name: str, file_size: int) -> 'FilePart':
        """Wrap an already-open stream."""
        return cls(reader=reader, file_name=file_name, file_size=file_size)

    def close(self) -> None:
        """Release the underlying reader, if it can be closed."""
        close = getattr(self.reader, 'close', None)
        if callable(close):
            close()


def file_parts_from_paths(paths: List[str]) -> List[FilePart]:
    """
    Open every path as a FilePart.

    Already-opened parts are closed again if a later path fails to open.

    Raises:
        OSError: If any path can't be opened
    """
    parts: List[FilePart] = []
    try:
        for path in paths:
            parts.append(FilePart.from_path(path))
    except OSError:
        for part in parts:
            part.close()
        raise
    return parts


def base_name(file_name: Optional[str]) -> str:
    """Last path component of a file name ('' stays '')."""
    if not file_name:
        return ""
    return os.path.basename(file_name.rstrip('/')) or file_name
