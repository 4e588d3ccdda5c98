"""Tests for LocalFileStorage."""

import builtins
from io import BytesIO

import pytest
from starlette.datastructures import Headers, UploadFile

from noteledger.core import storage as storage_module
from noteledger.core.exceptions import InvalidArgumentError
from noteledger.core.storage import LocalFileStorage


def make_upload(data: bytes, filename="photo.png", content_type="image/png") -> UploadFile:
    return UploadFile(
        file=BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(str(tmp_path / "uploads"), max_size_bytes=16, allowed_mime_types=["image/png"])


@pytest.mark.asyncio
async def test_save_writes_file_with_generated_name(storage, tmp_path):
    stored = await storage.save(make_upload(b"pngdata"))

    assert stored.size == 7
    assert stored.original_filename == "photo.png"
    assert stored.filename.endswith(".png")
    assert stored.filename != "photo.png"
    with open(stored.path, "rb") as fh:
        assert fh.read() == b"pngdata"


@pytest.mark.asyncio
async def test_rejects_disallowed_type(storage):
    with pytest.raises(InvalidArgumentError) as exc_info:
        await storage.save(make_upload(b"text", filename="a.txt", content_type="text/plain"))

    assert exc_info.value.code == "invalid_file_type"


@pytest.mark.asyncio
async def test_oversize_upload_leaves_no_file(storage, tmp_path):
    with pytest.raises(InvalidArgumentError) as exc_info:
        await storage.save(make_upload(b"x" * 17))

    assert exc_info.value.code == "file_too_large"
    assert list((tmp_path / "uploads").iterdir()) == []


def test_delete_missing_file_is_quiet(storage, tmp_path):
    storage.delete(str(tmp_path / "nope.png"))


@pytest.mark.asyncio
async def test_file_io_runs_in_threadpool(storage, monkeypatch):
    offloaded = []
    real_run_in_threadpool = storage_module.run_in_threadpool

    async def recording(func, *args, **kwargs):
        offloaded.append(func)
        return await real_run_in_threadpool(func, *args, **kwargs)

    monkeypatch.setattr(storage_module, "run_in_threadpool", recording)

    await storage.save(make_upload(b"pngdata"))

    assert builtins.open in offloaded
    assert any(getattr(func, "__name__", "") == "write" for func in offloaded)
    assert any(getattr(func, "__name__", "") == "close" for func in offloaded)
