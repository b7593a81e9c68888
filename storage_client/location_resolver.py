"""Resolves volume IDs and file IDs to the servers hosting them."""

import random
from typing import Any, Dict, List, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from common.constants import LOOKUP_MANY_PATH, LOOKUP_PATH, PARAM_VOLUME_ID
from common.logging_config import get_logger
from storage_client.exceptions import RemoteFileNotFoundError, TransportError, VolumeLookupError
from storage_client.http_client import HTTPClient, parse_response
from storage_client.location_cache import LocationCache
from storage_client.schemas.master import LookupResult
from storage_client.utils import build_args, make_url, split_file_id

logger = get_logger(__name__)

_LOOKUP_MAP = TypeAdapter(Dict[str, LookupResult])


class LocationResolver:
    """
    Read-through resolver in front of the master's lookup endpoints.

    Successful lookups are written to the LocationCache; lookups that
    carry an error never are.
    """

    def __init__(
        self,
        http: HTTPClient,
        scheme: str,
        master: str,
        cache: LocationCache,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize resolver.

        Args:
            http: Transport used for master requests
            scheme: URL scheme for master and volume servers
            master: Master server address
            cache: Cache shared by everything using this client
            rng: Random source for read-replica selection
        """
        self.http = http
        self.scheme = scheme
        self.master = master
        self.cache = cache
        self.rng = rng

    async def lookup(self, volume_id: str, args: Optional[Mapping[str, Any]] = None) -> LookupResult:
        """
        Look up the locations of a volume, answering from cache when possible.

        Raises:
            VolumeLookupError: If the master reports an error
            TransportError: If the master can't be reached
        """
        cached = self.cache.get(volume_id)
        if cached is not None:
            logger.debug(f"Location cache hit [volume_id={volume_id}]")
            return cached

        result = await self._do_lookup(volume_id, args)
        self.cache.set(volume_id, result)
        return result

    async def lookup_no_cache(self, volume_id: str, args: Optional[Mapping[str, Any]] = None) -> LookupResult:
        """Look up a volume at the master, bypassing but refreshing the cache."""
        result = await self._do_lookup(volume_id, args)
        self.cache.set(volume_id, result)
        return result

    async def _do_lookup(self, volume_id: str, args: Optional[Mapping[str, Any]]) -> LookupResult:
        url = make_url(self.scheme, self.master, LOOKUP_PATH)
        form = build_args(args)
        form[PARAM_VOLUME_ID] = volume_id

        body, _ = await self.http.post_form(url, form)
        result = parse_response(LookupResult, body, 'Lookup', url)

        if result.error:
            logger.error(f"Volume lookup failed [volume_id={volume_id}]: {result.error}")
            raise VolumeLookupError(result.error)

        logger.debug(f"Volume looked up [volume_id={volume_id}, locations={len(result.locations)}]")
        return result

    async def resolve_many(self, volume_ids: List[str]) -> Dict[str, LookupResult]:
        """
        Look up several volumes with at most one master call.

        Cached volumes are answered locally; the rest go to the master in a
        single request. Entries reporting an error are returned but not
        cached. Volumes the master does not mention are left out.

        Returns:
            Mapping of volume ID to lookup result

        Raises:
            TransportError: If the master can't be reached or replies garbage
        """
        results: Dict[str, LookupResult] = {}
        unknown: List[str] = []

        for volume_id in volume_ids:
            cached = self.cache.get(volume_id)
            if cached is not None:
                results[volume_id] = cached
            elif volume_id not in unknown:
                unknown.append(volume_id)

        if not unknown:
            return results

        url = make_url(self.scheme, self.master, LOOKUP_MANY_PATH)
        body, _ = await self.http.post_form(url, {PARAM_VOLUME_ID: unknown})

        try:
            fetched = _LOOKUP_MAP.validate_json(body)
        except ValidationError as e:
            raise TransportError('Lookup', url, f"result JSON unmarshal error: {e.error_count()} error(s)") from e

        for volume_id, result in fetched.items():
            if not result.error:
                self.cache.set(volume_id, result)
            results[volume_id] = result

        logger.debug(f"Volumes looked up [requested={len(unknown)}, returned={len(fetched)}]")
        return results

    async def resolve_server_for_file(
        self,
        file_id: str,
        args: Optional[Mapping[str, Any]] = None,
        readonly: bool = False,
    ) -> str:
        """
        Find a server holding a file.

        Args:
            file_id: File ID ('3,01637037d6' or '3/01637037d6')
            args: Extra lookup form args
            readonly: Pick any replica at random instead of the write owner

        Returns:
            Server address (host:port)

        Raises:
            InvalidFileIDError: If the file ID is malformed (no request made)
            RemoteFileNotFoundError: If the volume has no locations
        """
        volume_id, _ = split_file_id(file_id)
        result = await self.lookup(volume_id, args)

        if readonly:
            location = result.random_pick_for_read(self.rng)
        else:
            location = result.head()

        if location is None:
            raise RemoteFileNotFoundError(f"File not found [fid={file_id}]")
        return location.url

    async def resolve_file_url(
        self,
        file_id: str,
        args: Optional[Mapping[str, Any]] = None,
        readonly: bool = False,
    ) -> str:
        """Full URL of a file on a server that holds it."""
        server = await self.resolve_server_for_file(file_id, args, readonly)
        return make_url(self.scheme, server, file_id)
