"""Concurrent deletion of the chunks behind a manifest."""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Iterable, Mapping, Optional, Union

from common.logging_config import get_logger
from common.protocol import ChunkInfo, ChunkManifest
from storage_client.exceptions import ChunkCleanupError

logger = get_logger(__name__)

DeleteFile = Callable[[str, Optional[Mapping[str, Any]]], Awaitable[Any]]


async def delete_chunks(
    chunks: Union[ChunkManifest, Iterable[ChunkInfo], None],
    args: Optional[Mapping[str, Any]],
    delete_file: DeleteFile,
) -> None:
    """
    Delete every chunk, one task per chunk, and wait for all of them.

    Args:
        chunks: Manifest or chunk list; None or empty is a no-op
        args: Lookup args passed to each delete (e.g. collection)
        delete_file: Coroutine function deleting one file ID

    Raises:
        ChunkCleanupError: If any delete failed; ``failures`` maps fid -> error
    """
    if chunks is None:
        return
    if isinstance(chunks, ChunkManifest):
        chunks = chunks.chunks
    fids = [chunk.fid for chunk in chunks]
    if not fids:
        return

    logger.debug(f"Deleting chunks [count={len(fids)}]")
    outcomes = await asyncio.gather(
        *(delete_file(fid, args) for fid in fids),
        return_exceptions=True,
    )

    failures: Dict[str, Exception] = {}
    for fid, outcome in zip(fids, outcomes):
        if isinstance(outcome, Exception):
            logger.warning(f"Chunk delete failed [fid={fid}]: {outcome}")
            failures[fid] = outcome

    if failures:
        raise ChunkCleanupError(failures)

    logger.info(f"Chunks deleted [count={len(fids)}]")
