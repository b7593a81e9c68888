"""Tests for concurrent batch uploads."""

import io

import pytest

from common.types import FilePart
from storage_client.exceptions import AssignmentError


def make_parts(count: int) -> list:
    return [
        FilePart.from_reader(io.BytesIO(f"content {i}".encode()), f"file{i}.txt", len(f"content {i}"))
        for i in range(count)
    ]


class TestUploadBatch:
    """upload_batch: one assignment, concurrent uploads, ordered results."""

    @pytest.mark.asyncio
    async def test_single_assign_with_derived_ids(self, cluster):
        async with cluster.client() as client:
            results = await client.upload_batch(make_parts(3), collection="docs", ttl="1d")

        assert len(cluster.assign_calls) == 1
        assert cluster.assign_calls[0]["count"] == ["3"]
        assert cluster.assign_calls[0]["collection"] == ["docs"]
        assert cluster.assign_calls[0]["ttl"] == ["1d"]

        assert [r.file_id for r in results] == ["3,00000001", "3,00000001_1", "3,00000001_2"]
        assert [r.file_url for r in results] == [f"pub1:8080/{r.file_id}" for r in results]
        assert all(u["host"] == "vol1" for u in cluster.uploads)
        assert all(not r.error for r in results)
        assert cluster.files["3,00000001_2"] == b"content 2"

    @pytest.mark.asyncio
    async def test_results_keep_input_order_despite_completion_order(self, cluster):
        # earlier files finish later
        cluster.upload_delays = {"3,00000001": 0.05, "3,00000001_1": 0.03, "3,00000001_2": 0.01}

        async with cluster.client() as client:
            results = await client.upload_batch(make_parts(4))

        assert [r.file_name for r in results] == ["file0.txt", "file1.txt", "file2.txt", "file3.txt"]
        assert [r.size for r in results] == [9, 9, 9, 9]
        assert list(cluster.files) == ["3,00000001_3", "3,00000001_2", "3,00000001_1", "3,00000001"]
        assert results[0].file_id == "3,00000001"
        assert results[3].file_id == "3,00000001_3"

    @pytest.mark.asyncio
    async def test_failure_is_isolated_to_its_slot(self, cluster):
        parts = make_parts(4)
        parts[2].reader = _FailingReader()

        async with cluster.client() as client:
            results = await client.upload_batch(parts)

        assert [bool(r.error) for r in results] == [False, False, True, False]
        assert "disk read error" in results[2].error
        assert results[2].file_id == "3,00000001_2"
        assert results[2].size == parts[2].file_size
        assert set(cluster.files) == {"3,00000001", "3,00000001_1", "3,00000001_3"}

    @pytest.mark.asyncio
    async def test_assign_failure_marks_every_slot(self, cluster):
        cluster.assign_error = "No free volumes left!"
        parts = make_parts(3)

        async with cluster.client() as client:
            with pytest.raises(AssignmentError) as excinfo:
                await client.upload_batch(parts)

        results = excinfo.value.results
        assert [r.file_name for r in results] == ["file0.txt", "file1.txt", "file2.txt"]
        assert all(r.error == "No free volumes left!" for r in results)
        assert cluster.uploads == []
        assert all(part.reader.closed for part in parts)

    @pytest.mark.asyncio
    async def test_empty_batch(self, cluster):
        async with cluster.client() as client:
            assert await client.upload_batch([]) == []

        assert cluster.requests == []

    @pytest.mark.asyncio
    async def test_batch_upload_files_from_paths(self, cluster, multiple_sample_files):
        async with cluster.client() as client:
            results = await client.batch_upload_files([str(p) for p in multiple_sample_files])

        assert [r.file_name for r in results] == [str(p) for p in multiple_sample_files]
        assert [cluster.files[r.file_id] for r in results] == [p.read_bytes() for p in multiple_sample_files]

    @pytest.mark.asyncio
    async def test_batch_upload_files_missing_path(self, cluster, sample_file, tmp_path):
        async with cluster.client() as client:
            with pytest.raises(OSError):
                await client.batch_upload_files([str(sample_file), str(tmp_path / "missing.txt")])

        assert cluster.requests == []


class _FailingReader:
    def read(self, size=-1):
        raise OSError("disk read error")

    def close(self):
        pass
