"""Tests for single-shot and chunked uploads."""

import io

import httpx
import pytest

from common.types import FilePart
from storage_client.exceptions import AssignmentError, ChunkCleanupError, UploadError


class TrackingReader(io.BytesIO):
    """BytesIO that counts close() calls."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.close_calls = 0

    def close(self):
        self.close_calls += 1
        super().close()


def make_part(data: bytes, name: str = "movie.mp4", **kwargs) -> FilePart:
    part = FilePart.from_reader(TrackingReader(data), name, len(data))
    for key, value in kwargs.items():
        setattr(part, key, value)
    return part


class TestSingleUpload:
    """Files at or below the chunk size."""

    @pytest.mark.asyncio
    async def test_assigns_and_uploads(self, cluster):
        part = make_part(b"small file", name="/tmp/notes.txt", mod_time=1700000000, collection="docs")

        async with cluster.client(chunk_size=100) as client:
            manifest, fid = await client.upload_file_part(part)

        assert manifest is None
        assert fid == "3,00000001"
        assert cluster.assign_calls[0]["count"] == ["1"]
        assert cluster.assign_calls[0]["collection"] == ["docs"]

        upload = cluster.uploads[0]
        assert upload["fid"] == fid
        assert upload["host"] == "vol1"
        assert upload["filename"] == "notes.txt"
        assert upload["params"] == {"ts": "1700000000"}
        assert cluster.files[fid] == b"small file"
        assert part.reader.close_calls == 1

    @pytest.mark.asyncio
    async def test_known_file_id_without_server_is_resolved(self, cluster):
        part = make_part(b"data", file_id="3,0000abcd")

        async with cluster.client() as client:
            _, fid = await client.upload_file_part(part)

        assert fid == "3,0000abcd"
        assert cluster.assign_calls == []
        assert len(cluster.lookup_calls) == 1
        assert cluster.uploads[0]["host"] == "vol1"

    @pytest.mark.asyncio
    async def test_assign_failure_closes_reader(self, cluster):
        cluster.assign_error = "No free volumes left!"
        part = make_part(b"data")

        async with cluster.client() as client:
            with pytest.raises(AssignmentError, match="No free volumes"):
                await client.upload_file_part(part)

        assert part.reader.close_calls == 1
        assert cluster.uploads == []

    @pytest.mark.asyncio
    async def test_volume_error_raises(self, cluster):
        cluster.fail_upload_at = {1}
        part = make_part(b"data")

        async with cluster.client() as client:
            with pytest.raises(UploadError, match="disk full"):
                await client.upload_file_part(part)

        assert part.reader.close_calls == 1

    @pytest.mark.asyncio
    async def test_upload_from_path(self, cluster, sample_file):
        async with cluster.client() as client:
            manifest, fid = await client.upload_file(str(sample_file), collection="docs", ttl="3m")

        assert manifest is None
        assert cluster.files[fid] == sample_file.read_bytes()
        assert cluster.uploads[0]["content_type"] == "text/plain"
        assert cluster.assign_calls[0]["ttl"] == ["3m"]


class TestChunkedUpload:
    """Files larger than the chunk size."""

    @pytest.mark.asyncio
    async def test_chunks_and_manifest(self, cluster):
        data = bytes(range(250))
        part = make_part(data, name="/videos/movie.mp4", mime_type="video/mp4", mod_time=1700000000)

        async with cluster.client(chunk_size=100) as client:
            manifest, fid = await client.upload_file_part(part)

        chunks = cluster.chunk_uploads()
        assert [u["filename"] for u in chunks] == ["movie.mp4_1", "movie.mp4_2", "movie.mp4_3"]
        assert b"".join(u["content"] for u in chunks) == data
        assert all(u["content_type"] == "application/octet-stream" for u in chunks)

        assert fid == "3,00000001"
        assert [c.offset for c in manifest.chunks] == [0, 100, 200]
        assert [c.size for c in manifest.chunks] == [100, 100, 50]
        assert [c.fid for c in manifest.chunks] == [u["fid"] for u in chunks]

        stored = cluster.manifest_uploads()
        assert len(stored) == 1
        assert stored[0]["fid"] == fid
        assert stored[0]["params"] == {"ts": "1700000000", "cm": "true"}
        assert stored[0]["content_type"] == "application/json"
        assert cluster.manifest() == {
            "name": "movie.mp4",
            "mime": "video/mp4",
            "size": 250,
            "chunks": [c.to_dict() for c in manifest.chunks],
        }
        assert part.reader.close_calls == 1

    @pytest.mark.asyncio
    async def test_exact_multiple_uploads_no_empty_chunk(self, cluster):
        part = make_part(b"x" * 300)

        async with cluster.client(chunk_size=100) as client:
            manifest, _ = await client.upload_file_part(part)

        assert len(cluster.chunk_uploads()) == 3
        assert [c.size for c in manifest.chunks] == [100, 100, 100]

    @pytest.mark.asyncio
    async def test_chunk_failure_deletes_earlier_chunks(self, cluster):
        # chunk 3 of 5 fails
        cluster.fail_upload_at = {3}
        part = make_part(b"y" * 450)

        async with cluster.client(chunk_size=100) as client:
            with pytest.raises(UploadError, match="disk full") as excinfo:
                await client.upload_file_part(part)

        uploaded = [u["fid"] for u in cluster.chunk_uploads()]
        assert len(uploaded) == 3
        assert sorted(cluster.deleted) == sorted(uploaded[:2])
        assert cluster.manifest_uploads() == []
        assert excinfo.value.cleanup_error is None
        assert part.reader.close_calls == 1

    @pytest.mark.asyncio
    async def test_original_error_kept_when_cleanup_fails(self, cluster):
        cluster.fail_upload_at = {3}
        part = make_part(b"z" * 450)

        async with cluster.client(chunk_size=100) as client:
            # the second chunk will be assigned key 3
            cluster.fail_delete = {"3,00000003"}
            with pytest.raises(UploadError, match="disk full") as excinfo:
                await client.upload_file_part(part)

        cleanup_error = excinfo.value.cleanup_error
        assert isinstance(cleanup_error, ChunkCleanupError)
        assert list(cleanup_error.failures) == ["3,00000003"]
        assert sorted(cluster.deleted) == ["3,00000002", "3,00000003"]

    @pytest.mark.asyncio
    async def test_manifest_failure_deletes_all_chunks(self, cluster):
        # three chunk uploads, then the manifest
        cluster.fail_upload_at = {4}
        part = make_part(b"m" * 250)

        async with cluster.client(chunk_size=100) as client:
            with pytest.raises(UploadError):
                await client.upload_file_part(part)

        chunk_fids = [u["fid"] for u in cluster.chunk_uploads()]
        assert len(chunk_fids) == 3
        assert sorted(cluster.deleted) == sorted(chunk_fids)

    @pytest.mark.asyncio
    async def test_manifest_error_body_deletes_all_chunks(self, cluster):
        original_volume = cluster._handle_volume

        async def reject_manifest(request):
            if request.method == "POST" and request.url.params.get("cm") == "true":
                return httpx.Response(200, json={"error": "volume is read only"})
            return await original_volume(request)

        cluster._handle_volume = reject_manifest
        part = make_part(b"m" * 250)

        async with cluster.client(chunk_size=100) as client:
            with pytest.raises(UploadError, match="volume is read only"):
                await client.upload_file_part(part)

        chunk_fids = [u["fid"] for u in cluster.chunk_uploads()]
        assert len(chunk_fids) == 3
        assert sorted(cluster.deleted) == sorted(chunk_fids)

    @pytest.mark.asyncio
    async def test_chunk_assign_failure_cleans_up(self, cluster):
        part = make_part(b"a" * 250)

        async with cluster.client(chunk_size=100) as client:
            original_handle = cluster._handle_master
            calls = {"n": 0}

            def flaky_master(request):
                if request.url.path == "/dir/assign":
                    calls["n"] += 1
                    if calls["n"] == 3:
                        cluster.assign_error = "No writable volumes"
                return original_handle(request)

            cluster._handle_master = flaky_master
            with pytest.raises(AssignmentError):
                await client.upload_file_part(part)

        assert len(cluster.chunk_uploads()) == 1
        assert cluster.deleted == [cluster.chunk_uploads()[0]["fid"]]


class TestReplace:
    """Replace content under an existing file ID."""

    @pytest.mark.asyncio
    async def test_delete_first_then_upload(self, cluster):
        cluster.files["3,0000abcd"] = b"old"
        part = make_part(b"new", file_id="3,0000abcd")

        async with cluster.client() as client:
            fid = await client.replace_file_part(part, delete_first=True)

        assert fid == "3,0000abcd"
        assert cluster.deleted == ["3,0000abcd"]
        assert cluster.files["3,0000abcd"] == b"new"

    @pytest.mark.asyncio
    async def test_failed_delete_first_is_ignored(self, cluster):
        cluster.fail_delete = {"3,0000abcd"}

        async with cluster.client() as client:
            fid = await client.replace("3,0000abcd", io.BytesIO(b"new"), "a.txt", 3, delete_first=True)

        assert fid == "3,0000abcd"
        assert cluster.files["3,0000abcd"] == b"new"
