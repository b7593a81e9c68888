"""Single-shot and chunked upload of one file part."""

from typing import List, Optional, Tuple

from common.constants import PARAM_COUNT, PARAM_TIMESTAMP
from common.logging_config import get_logger
from common.protocol import ChunkInfo, ChunkManifest
from common.types import FilePart, base_name
from storage_client.chunk_cleanup import DeleteFile, delete_chunks
from storage_client.chunk_planner import ChunkPlan, plan_chunks
from storage_client.chunk_uploader import ChunkUploader
from storage_client.exceptions import StorageClientError
from storage_client.http_client import HTTPClient, parse_upload_result
from storage_client.location_resolver import LocationResolver
from storage_client.manifest import build_manifest, persist_manifest
from storage_client.master import MasterClient
from storage_client.utils import build_args, make_url

logger = get_logger(__name__)


class FileUploader:
    """
    Uploads a FilePart, chunking it when it exceeds the chunk size.

    Chunks go up strictly one after another. If a chunk or the manifest
    fails, every chunk already stored is deleted again and the original
    error is raised.
    """

    def __init__(
        self,
        http: HTTPClient,
        master: MasterClient,
        resolver: LocationResolver,
        scheme: str,
        chunk_size: int,
        delete_file: DeleteFile,
    ):
        """
        Initialize uploader.

        Args:
            http: Transport for volume server uploads
            master: Master client used for assignment
            resolver: Resolver used when a file part has no server yet
            scheme: URL scheme for volume servers
            chunk_size: Chunking threshold in bytes (0 disables chunking)
            delete_file: Coroutine function deleting a file ID, used for cleanup
        """
        self.http = http
        self.master = master
        self.resolver = resolver
        self.scheme = scheme
        self.chunk_size = chunk_size
        self.delete_file = delete_file
        self.chunk_uploader = ChunkUploader(http, master, scheme, chunk_size)

    async def upload_file_part(self, file_part: FilePart) -> Tuple[Optional[ChunkManifest], str]:
        """
        Upload a file part, assigning a file ID and server if it has none.

        The part's reader is closed when this returns, whatever the outcome.

        Returns:
            Tuple of (manifest or None for a single-shot upload, file_id)

        Raises:
            StorageClientError: On assignment, lookup, upload or manifest failure
        """
        try:
            if not file_part.file_id:
                assign = await self.master.assign(
                    build_args(collection=file_part.collection, ttl=file_part.ttl, **{PARAM_COUNT: '1'})
                )
                file_part.server, file_part.file_id = assign.url, assign.file_id

            if not file_part.server:
                file_part.server = await self.resolver.resolve_server_for_file(
                    file_part.file_id, build_args(collection=file_part.collection),
                )

            plan = plan_chunks(file_part.file_size, self.chunk_size)
            if plan.needs_chunking:
                manifest = await self._upload_chunked(file_part, plan)
                return manifest, file_part.file_id

            await self._upload_single(file_part)
            return None, file_part.file_id
        finally:
            file_part.close()

    async def _upload_single(self, file_part: FilePart) -> None:
        params = {}
        if file_part.mod_time:
            params[PARAM_TIMESTAMP] = str(file_part.mod_time)

        url = make_url(self.scheme, file_part.server, file_part.file_id, params)
        body, status_code = await self.http.upload(
            url, base_name(file_part.file_name), file_part.reader, file_part.mime_type, file_part.is_gzipped,
        )

        parse_upload_result(url, body, status_code)
        logger.info(f"File uploaded [fid={file_part.file_id}, name={file_part.file_name}, size={file_part.file_size}]")

    async def _upload_chunked(self, file_part: FilePart, plan: ChunkPlan) -> ChunkManifest:
        name = base_name(file_part.file_name)
        uploaded: List[Tuple[str, int]] = []

        logger.info(f"Uploading in chunks [fid={file_part.file_id}, name={name}, chunks={len(plan.ranges())}]")
        try:
            for index, _ in enumerate(plan.ranges()):
                _, fid, size = await self.chunk_uploader.upload_chunk(file_part, f"{name}_{index + 1}")
                uploaded.append((fid, size))

            manifest = build_manifest(file_part, self.chunk_size, uploaded)
            await persist_manifest(self.http, self.scheme, file_part, manifest)
        except Exception as e:
            logger.error(f"Chunked upload failed [fid={file_part.file_id}, uploaded={len(uploaded)}]: {e}")
            await self._cleanup_chunks(file_part, uploaded, e)
            raise

        return manifest

    async def _cleanup_chunks(self, file_part: FilePart, uploaded: List[Tuple[str, int]], error: Exception) -> None:
        """Delete stored chunks, recording a cleanup failure on ``error``."""
        chunks = [
            ChunkInfo(fid=fid, offset=index * self.chunk_size, size=size)
            for index, (fid, size) in enumerate(uploaded)
        ]
        try:
            await delete_chunks(chunks, build_args(collection=file_part.collection), self.delete_file)
        except StorageClientError as cleanup_error:
            logger.warning(f"Chunk cleanup incomplete [fid={file_part.file_id}]: {cleanup_error}")
            error.cleanup_error = cleanup_error
