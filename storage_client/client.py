"""StorageClient: the public entry point to the cluster."""

import random
from typing import Any, BinaryIO, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import httpx

from common.logging_config import get_logger
from common.protocol import ChunkInfo, ChunkManifest
from common.types import FilePart, file_parts_from_paths
from storage_client.batch_uploader import BatchUploader
from storage_client.chunk_cleanup import delete_chunks
from storage_client.config import ClientSettings
from storage_client.exceptions import StorageClientError
from storage_client.http_client import BodyConsumer, HTTPClient
from storage_client.location_cache import LocationCache
from storage_client.location_resolver import LocationResolver
from storage_client.master import MasterClient
from storage_client.schemas.master import AssignResult, ClusterStatus, LookupResult, SystemStatus
from storage_client.schemas.volume import SubmitResult
from storage_client.uploader import FileUploader
from storage_client.utils import build_args

logger = get_logger(__name__)


class StorageClient:
    """
    Async client for a master/volume-server storage cluster.

    Owns the HTTP session and the location cache; use it as an async
    context manager, or call close() when done.

    Example:
        async with StorageClient(ClientSettings(master="localhost:9333")) as client:
            manifest, fid = await client.upload_file("/tmp/report.pdf")
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize client.

        Args:
            settings: Client settings (default: from STORAGE_* environment)
            transport: Optional httpx transport, used by tests
            rng: Random source for read-replica selection
        """
        self.settings = settings or ClientSettings.from_env()
        self.http = HTTPClient(self.settings.timeout, transport=transport)
        self.cache = LocationCache(self.settings.cache_ttl_seconds)
        self.resolver = LocationResolver(self.http, self.settings.scheme, self.settings.master, self.cache, rng)
        self.master = MasterClient(self.http, self.settings.scheme, self.settings.master)
        self.uploader = FileUploader(
            self.http, self.master, self.resolver, self.settings.scheme, self.settings.chunk_size, self.delete_file,
        )
        self.batch_uploader = BatchUploader(self.master, self.uploader)

    async def __aenter__(self) -> 'StorageClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session."""
        await self.http.close()

    # Master

    async def assign(self, args: Optional[Mapping[str, Any]] = None) -> AssignResult:
        return await self.master.assign(args)

    async def grow(self, count: int = 0, collection: str = '', replication: str = '', data_center: str = '') -> None:
        await self.master.grow(count, collection, replication, data_center)

    async def grow_args(self, args: Optional[Mapping[str, Any]] = None) -> None:
        await self.master.grow_args(args)

    async def gc(self, threshold: float) -> None:
        await self.master.gc(threshold)

    async def status(self) -> SystemStatus:
        return await self.master.status()

    async def cluster_status(self) -> ClusterStatus:
        return await self.master.cluster_status()

    # Lookup

    async def lookup(self, volume_id: str, args: Optional[Mapping[str, Any]] = None) -> LookupResult:
        return await self.resolver.lookup(volume_id, args)

    async def lookup_no_cache(self, volume_id: str, args: Optional[Mapping[str, Any]] = None) -> LookupResult:
        return await self.resolver.lookup_no_cache(volume_id, args)

    async def lookup_volume_ids(self, volume_ids: List[str]) -> Dict[str, LookupResult]:
        return await self.resolver.resolve_many(volume_ids)

    async def lookup_server_by_file_id(
        self,
        file_id: str,
        args: Optional[Mapping[str, Any]] = None,
        readonly: bool = False,
    ) -> str:
        return await self.resolver.resolve_server_for_file(file_id, args, readonly)

    async def lookup_file_id(
        self,
        file_id: str,
        args: Optional[Mapping[str, Any]] = None,
        readonly: bool = False,
    ) -> str:
        """Full URL of a file (write owner, or a random replica when readonly)."""
        return await self.resolver.resolve_file_url(file_id, args, readonly)

    # Upload

    async def upload_file_part(self, file_part: FilePart) -> Tuple[Optional[ChunkManifest], str]:
        return await self.uploader.upload_file_part(file_part)

    async def upload_file(
        self,
        path: str,
        collection: str = '',
        ttl: str = '',
    ) -> Tuple[Optional[ChunkManifest], str]:
        """
        Upload a local file.

        Returns:
            Tuple of (manifest if the file was chunked else None, file_id)

        Raises:
            OSError: If the file can't be opened
            StorageClientError: If the upload failed
        """
        file_part = FilePart.from_path(path)
        file_part.collection, file_part.ttl = collection, ttl
        return await self.uploader.upload_file_part(file_part)

    async def upload(
        self,
        reader: BinaryIO,
        file_name: str,
        size: int,
        collection: str = '',
        ttl: str = '',
    ) -> Tuple[FilePart, str]:
        """Upload content from an open stream; returns the file part and its file ID."""
        file_part = FilePart.from_reader(reader, file_name, size)
        file_part.collection, file_part.ttl = collection, ttl
        _, file_id = await self.uploader.upload_file_part(file_part)
        return file_part, file_id

    async def submit(
        self,
        path: str,
        collection: str = '',
        ttl: str = '',
        args: Optional[Mapping[str, Any]] = None,
    ) -> SubmitResult:
        """Upload a local file through the master's /submit endpoint."""
        file_part = FilePart.from_path(path)
        file_part.collection, file_part.ttl = collection, ttl
        return await self.master.submit(file_part, args)

    async def submit_file_part(self, file_part: FilePart, args: Optional[Mapping[str, Any]] = None) -> SubmitResult:
        return await self.master.submit(file_part, args)

    async def upload_batch(self, files: List[FilePart], collection: str = '', ttl: str = '') -> List[SubmitResult]:
        return await self.batch_uploader.upload_batch(files, collection, ttl)

    async def batch_upload_files(self, paths: List[str], collection: str = '', ttl: str = '') -> List[SubmitResult]:
        """
        Open local files and upload them as one batch.

        Raises:
            OSError: If any path can't be opened (nothing is uploaded)
            AssignmentError: If the batch assignment failed
        """
        return await self.batch_uploader.upload_batch(file_parts_from_paths(paths), collection, ttl)

    # Replace

    async def replace_file_part(self, file_part: FilePart, delete_first: bool = False) -> str:
        """
        Upload new content under an existing file ID.

        With ``delete_first`` the old file is deleted beforehand; a failure
        to do so is logged and the upload goes ahead.

        Returns:
            The file ID
        """
        if delete_first and file_part.file_id:
            try:
                await self.delete_file(file_part.file_id, build_args(collection=file_part.collection))
            except StorageClientError as e:
                logger.warning(f"Delete before replace failed, continuing [fid={file_part.file_id}]: {e}")

        _, file_id = await self.uploader.upload_file_part(file_part)
        return file_id

    async def replace(
        self,
        file_id: str,
        reader: BinaryIO,
        file_name: str,
        size: int,
        collection: str = '',
        ttl: str = '',
        delete_first: bool = False,
    ) -> str:
        file_part = FilePart.from_reader(reader, file_name, size)
        file_part.collection, file_part.ttl = collection, ttl
        file_part.file_id = file_id
        return await self.replace_file_part(file_part, delete_first)

    async def replace_file(self, file_id: str, path: str, delete_first: bool = False) -> str:
        file_part = FilePart.from_path(path)
        file_part.file_id = file_id
        return await self.replace_file_part(file_part, delete_first)

    # Delete / download

    async def delete_file(self, file_id: str, args: Optional[Mapping[str, Any]] = None) -> None:
        """
        Delete a file from its write owner.

        A file that is already gone counts as deleted.

        Raises:
            InvalidFileIDError: If the file ID is malformed
            StorageClientError: If the lookup or the delete failed
        """
        url = await self.resolver.resolve_file_url(file_id, args, readonly=False)
        await self.http.delete(url)
        logger.info(f"File deleted [fid={file_id}]")

    async def delete_chunks(
        self,
        chunks: Union[ChunkManifest, Iterable[ChunkInfo], None],
        args: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """
        Delete every chunk of a manifest concurrently.

        Raises:
            ChunkCleanupError: If any chunk could not be deleted
        """
        await delete_chunks(chunks, args, self.delete_file)

    async def download(
        self,
        file_id: str,
        consumer: BodyConsumer,
        args: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """
        Stream a file from any replica to ``consumer``.

        Returns:
            Filename reported by the server ('' if none)
        """
        url = await self.resolver.resolve_file_url(file_id, args, readonly=True)
        return await self.http.download(url, consumer)
