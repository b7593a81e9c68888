"""Command handler functions for CLI operations."""

import os
import tempfile
from pathlib import Path
from typing import AsyncIterator, List, Optional

from common.logging_config import get_logger
from common.types import FilePart, base_name
from cli.config import Config
from cli.constants import DEFAULT_CONFIG_PATH
from cli.models import (
    DeleteCommand,
    DownloadCommand,
    LookupCommand,
    StatusCommand,
    UploadCommand,
)
from cli.utils import ProgressReader, format_file_size
from storage_client import StorageClient
from storage_client.exceptions import AssignmentError, StorageClientError
from storage_client.schemas.volume import SubmitResult

logger = get_logger(__name__)


_config: Optional[Config] = None
_client: Optional[StorageClient] = None


def get_config() -> Config:
    """
    Get or create global Config instance.

    Returns:
        Config loaded from ~/.storage-client/config.json
    """
    global _config
    if _config is None:
        _config = Config(DEFAULT_CONFIG_PATH)
    return _config


def get_client() -> StorageClient:
    """
    Get or create global StorageClient instance.

    Returns:
        StorageClient configured from the CLI config file
    """
    global _client
    if _client is None:
        logger.debug("Creating new StorageClient instance")
        _client = StorageClient(get_config().to_settings())
    return _client


async def close_client() -> None:
    """Close the global StorageClient, if one was created."""
    global _client
    if _client is not None:
        await _client.close()
        _client = None


async def handle_upload(
    cmd: UploadCommand,
    client: Optional[StorageClient] = None,
    config: Optional[Config] = None,
) -> str:
    """
    Handle 'upload' command.

    One file goes through the single/chunked upload with a progress line;
    several files are uploaded concurrently as one batch.

    Args:
        cmd: UploadCommand with file_list and optional collection/ttl
        client: Optional StorageClient for dependency injection (testing)
        config: Optional Config supplying default collection/ttl (testing)

    Returns:
        Success or error message with upload results
    """
    logger.info(f"Executing upload command: {len(cmd.file_list)} files")
    if client is None:
        client = get_client()
    if config is None:
        config = get_config()

    collection = cmd.collection or config.get_collection()
    ttl = cmd.ttl or config.get_ttl()

    if len(cmd.file_list) == 1:
        return await _upload_single(client, cmd.file_list[0], collection, ttl)
    return await _upload_batch(client, list(cmd.file_list), collection, ttl)


async def _upload_single(client: StorageClient, path: str, collection: str, ttl: str) -> str:
    try:
        file_part = FilePart.from_path(path)
    except OSError as e:
        return f"Error: cannot open {path}: {e}"

    name = base_name(path)
    file_part.collection, file_part.ttl = collection, ttl
    file_part.reader = ProgressReader(file_part.reader, file_part.file_size, name)

    try:
        manifest, file_id = await client.upload_file_part(file_part)
    except StorageClientError as e:
        return f"Error: {e}"

    message = f"Uploaded: {name} ({format_file_size(file_part.file_size)})\nFile ID: {file_id}"
    if manifest is not None:
        message += f"\nChunks: {len(manifest.chunks)}"
    logger.debug("Upload command completed")
    return message


async def _upload_batch(client: StorageClient, paths: List[str], collection: str, ttl: str) -> str:
    try:
        results = await client.batch_upload_files(paths, collection, ttl)
    except OSError as e:
        return f"Error: cannot open file: {e}"
    except AssignmentError as e:
        return f"Error: {e}\n" + _format_batch_results(e.results)

    return _format_batch_results(results)


def _format_batch_results(results: List[SubmitResult]) -> str:
    lines = []
    for result in results:
        name = base_name(result.file_name)
        if result.error:
            lines.append(f"Failed: {name}: {result.error}")
        else:
            lines.append(f"Uploaded: {name} ({format_file_size(result.size)}) -> {result.file_id}")

    failed = sum(1 for result in results if result.error)
    lines.append(f"{len(results) - failed} of {len(results)} file(s) uploaded.")
    return "\n".join(lines)


async def handle_download(cmd: DownloadCommand, client: Optional[StorageClient] = None) -> str:
    """
    Handle 'download' command.

    The body is written to a temporary file next to the destination and
    renamed once complete. Without an output path the file is named after
    the server-provided filename, falling back to the file ID.

    Args:
        cmd: DownloadCommand with file_id and optional output_path
        client: Optional StorageClient for dependency injection (testing)

    Returns:
        Success or error message with download details
    """
    logger.info(f"Executing download command: fid={cmd.file_id} output_path={cmd.output_path}")
    if client is None:
        client = get_client()

    target_dir = Path(cmd.output_path).parent if cmd.output_path else Path.cwd()
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target_dir, prefix='.download-')
    except OSError as e:
        return f"Error writing file: {e}"

    downloaded = 0

    try:
        with os.fdopen(fd, 'wb') as f:
            async def write_body(body: AsyncIterator[bytes]) -> None:
                nonlocal downloaded
                async for chunk in body:
                    f.write(chunk)
                    downloaded += len(chunk)

            filename = await client.download(cmd.file_id, write_body)

        if cmd.output_path:
            output_file = Path(cmd.output_path)
        else:
            output_file = target_dir / (base_name(filename) or cmd.file_id.replace(',', '_').replace('/', '_'))
        os.replace(tmp_name, output_file)
    except StorageClientError as e:
        _discard(tmp_name)
        return f"Error: {e}"
    except OSError as e:
        _discard(tmp_name)
        return f"Error writing file: {e}"

    logger.debug("Download command completed")
    return f"Downloaded: {cmd.file_id} ({format_file_size(downloaded)})\nSaved to: {output_file.absolute()}"


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


async def handle_delete(cmd: DeleteCommand, client: Optional[StorageClient] = None) -> str:
    """
    Handle 'delete' command.

    Args:
        cmd: DeleteCommand with file_id
        client: Optional StorageClient for dependency injection (testing)

    Returns:
        Success or error message
    """
    if client is None:
        client = get_client()
    try:
        await client.delete_file(cmd.file_id)
    except StorageClientError as e:
        return f"Error: {e}"
    return f"Deleted: {cmd.file_id}"


async def handle_lookup(cmd: LookupCommand, client: Optional[StorageClient] = None) -> str:
    """
    Handle 'lookup' command.

    Args:
        cmd: LookupCommand with file_id
        client: Optional StorageClient for dependency injection (testing)

    Returns:
        File URL or error message
    """
    if client is None:
        client = get_client()
    try:
        url = await client.lookup_file_id(cmd.file_id)
    except StorageClientError as e:
        return f"Error: {e}"
    return f"File ID: {cmd.file_id}\nURL: {url}"


async def handle_status(cmd: StatusCommand, client: Optional[StorageClient] = None) -> str:
    """
    Handle 'status' command.

    Args:
        cmd: StatusCommand
        client: Optional StorageClient for dependency injection (testing)

    Returns:
        Formatted master and cluster status
    """
    if client is None:
        client = get_client()
    try:
        status = await client.status()
        cluster = await client.cluster_status()
    except StorageClientError as e:
        return f"Error: {e}"

    topology = status.topology
    lines = [
        f"Version: {status.version or 'unknown'}",
        f"Volumes: {topology.free} free / {topology.max} max",
        f"Data centers: {len(topology.data_centers)}",
        f"Leader: {cluster.leader or 'unknown'}{' (this master)' if cluster.is_leader else ''}",
    ]
    if cluster.peers:
        lines.append(f"Peers: {', '.join(cluster.peers)}")
    return "\n".join(lines)
