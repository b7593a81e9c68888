"""Shared pytest fixtures for all tests."""

import asyncio
import json
import re
from typing import Dict, List, Optional, Set
from urllib.parse import parse_qs

import httpx
import pytest

from cli.config import Config
from storage_client import StorageClient
from storage_client.config import ClientSettings

MASTER = "master:9333"

_FILENAME_RE = re.compile(r'filename="([^"]*)"')


def parse_multipart(request: httpx.Request) -> tuple[Dict[str, str], bytes]:
    """
    Split a single-part multipart request into (part headers, content).

    Args:
        request: Request whose body has already been read

    Returns:
        Tuple of (lower-cased part headers plus 'filename', raw content)
    """
    boundary = request.headers['content-type'].split('boundary=', 1)[1]
    body = request.content

    header_end = body.index(b'\r\n\r\n') + 4
    content_end = body.rindex(f'\r\n--{boundary}--'.encode())

    headers: Dict[str, str] = {}
    for line in body[:header_end].decode().split('\r\n')[1:]:
        if ':' in line:
            key, value = line.split(':', 1)
            headers[key.strip().lower()] = value.strip()

    match = _FILENAME_RE.search(headers.get('content-disposition', ''))
    headers['filename'] = match.group(1) if match else ''
    return headers, body[header_end:content_end]


class FakeCluster:
    """
    In-memory master plus volume servers behind an httpx.MockTransport.

    Every volume-server upload is recorded in ``uploads`` (in arrival
    order) and stored in ``files``; deletes are recorded in ``deleted``.
    Failure injection:
        assign_error: Error string returned by /dir/assign
        fail_upload_at: 1-based upload numbers answered with a 500
        fail_delete: File IDs whose delete is answered with a 500
        upload_delays: File ID -> seconds to sleep before answering
    """

    def __init__(self):
        self.volumes: Dict[str, List[dict]] = {
            "3": [
                {"url": "vol1:8080", "publicUrl": "pub1:8080"},
                {"url": "vol2:8080", "publicUrl": "pub2:8080"},
            ],
        }
        self.next_key = 1
        self.assign_volume = "3"
        self.assign_error = ""
        self.fail_upload_at: Set[int] = set()
        self.fail_delete: Set[str] = set()
        self.upload_delays: Dict[str, float] = {}

        self.requests: List[httpx.Request] = []
        self.assign_calls: List[Dict[str, List[str]]] = []
        self.lookup_calls: List[Dict[str, List[str]]] = []
        self.uploads: List[dict] = []
        self.files: Dict[str, bytes] = {}
        self.deleted: List[str] = []

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def client(self, chunk_size: int = 0, rng=None) -> StorageClient:
        settings = ClientSettings(master=MASTER, scheme="http", chunk_size=chunk_size, timeout=5.0)
        return StorageClient(settings, transport=self.transport(), rng=rng)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = f"{request.url.host}:{request.url.port}"
        if host == MASTER:
            return self._handle_master(request)
        return await self._handle_volume(request)

    def _form(self, request: httpx.Request) -> Dict[str, List[str]]:
        return parse_qs(request.content.decode())

    def _handle_master(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path

        if path == "/dir/assign":
            form = self._form(request)
            self.assign_calls.append(form)
            if self.assign_error:
                return httpx.Response(200, json={"error": self.assign_error})
            count = int(form.get("count", ["1"])[0])
            fid = f"{self.assign_volume},{self.next_key:08x}"
            self.next_key += 1
            location = self.volumes[self.assign_volume][0]
            return httpx.Response(200, json={
                "fid": fid, "url": location["url"], "publicUrl": location["publicUrl"], "count": count,
            })

        if path == "/dir/lookup":
            form = self._form(request)
            self.lookup_calls.append(form)
            return httpx.Response(200, json=self._lookup(form["volumeId"][0]))

        if path == "/vol/lookup":
            form = self._form(request)
            self.lookup_calls.append(form)
            return httpx.Response(200, json={vid: self._lookup(vid) for vid in form["volumeId"] if vid in self.volumes})

        if path == "/dir/status":
            return httpx.Response(200, json={
                "Topology": {"DataCenters": [{"Free": 5, "Max": 7, "Racks": []}], "Free": 5, "Max": 7, "Layouts": []},
                "Version": "3.59",
            })

        if path == "/cluster/status":
            return httpx.Response(200, json={"IsLeader": True, "Leader": MASTER, "Peers": ["master2:9333"]})

        if path in ("/vol/grow", "/vol/vacuum"):
            return httpx.Response(200, json={})

        if path == "/submit":
            headers, content = parse_multipart(request)
            fid = f"{self.assign_volume},{self.next_key:08x}"
            self.next_key += 1
            self.files[fid] = content
            return httpx.Response(201, json={
                "fileName": headers["filename"], "fileUrl": f"pub1:8080/{fid}", "fid": fid, "size": len(content),
            })

        return httpx.Response(404, json={"error": f"no route {path}"})

    def _lookup(self, volume_id: str) -> dict:
        if volume_id not in self.volumes:
            return {"volumeId": volume_id, "error": f"volume id {volume_id} not found"}
        return {"volumeId": volume_id, "locations": self.volumes[volume_id]}

    async def _handle_volume(self, request: httpx.Request) -> httpx.Response:
        fid = request.url.path.lstrip("/")

        if request.method == "POST":
            headers, content = parse_multipart(request)
            self.uploads.append({
                "fid": fid,
                "host": request.url.host,
                "filename": headers["filename"],
                "content_type": headers.get("content-type", ""),
                "content_encoding": headers.get("content-encoding", ""),
                "params": dict(request.url.params),
                "content": content,
            })
            delay = self.upload_delays.get(fid)
            if delay:
                await asyncio.sleep(delay)
            if len(self.uploads) in self.fail_upload_at:
                return httpx.Response(500, json={"error": "disk full"})
            self.files[fid] = content
            return httpx.Response(201, json={"name": headers["filename"], "size": len(content)})

        if request.method == "DELETE":
            self.deleted.append(fid)
            if fid in self.fail_delete:
                return httpx.Response(500, json={"error": "volume is read only"})
            if fid not in self.files:
                return httpx.Response(404)
            del self.files[fid]
            return httpx.Response(202, json={"size": 0})

        if request.method == "GET":
            if fid not in self.files:
                return httpx.Response(404)
            return httpx.Response(
                200,
                content=self.files[fid],
                headers={"Content-Disposition": f'inline; filename="{fid.replace(",", "_")}.bin"'},
            )

        return httpx.Response(405)

    def chunk_uploads(self) -> List[dict]:
        """Uploads that carried chunk data (not manifests)."""
        return [u for u in self.uploads if u["params"].get("cm") != "true"]

    def manifest_uploads(self) -> List[dict]:
        return [u for u in self.uploads if u["params"].get("cm") == "true"]

    def manifest(self, index: int = -1) -> Optional[dict]:
        uploads = self.manifest_uploads()
        return json.loads(uploads[index]["content"]) if uploads else None


@pytest.fixture
def cluster():
    """Fresh in-memory cluster."""
    return FakeCluster()


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .storage-client directory
    """
    config_dir = tmp_path / '.storage-client'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path


@pytest.fixture
def multiple_sample_files(tmp_path):
    """
    Create multiple sample files for testing batch operations.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        List of Paths to sample files
    """
    files = []
    for i in range(3):
        file_path = tmp_path / f'test{i}.txt'
        file_path.write_text(f'Sample content {i}')
        files.append(file_path)
    return files
