"""Local filesystem storage for note attachments."""

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from .exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StoredFile:
    filename: str
    original_filename: str
    mime_type: str
    size: int
    path: str


class LocalFileStorage:
    """Writes uploads under a base directory with generated unique names."""

    def __init__(self, base_dir: str, max_size_bytes: int, allowed_mime_types: Iterable[str]):
        self.base_dir = Path(base_dir)
        self.max_size_bytes = max_size_bytes
        self.allowed_mime_types = frozenset(allowed_mime_types)

    def _validate_type(self, upload: UploadFile) -> str:
        mime_type = (upload.content_type or "").lower()
        if mime_type not in self.allowed_mime_types:
            raise InvalidArgumentError(
                "Invalid file type. Only images and videos are allowed.",
                code="invalid_file_type",
                details={"mime_type": mime_type},
            )
        return mime_type

    def _target_path(self, original_filename: str) -> Path:
        suffix = Path(original_filename).suffix.lower()[:16]
        return self.base_dir / f"{uuid.uuid4().hex}{suffix}"

    async def save(self, upload: UploadFile) -> StoredFile:
        """Validate and persist an upload; partially written files are removed on failure."""
        mime_type = self._validate_type(upload)
        original_filename = os.path.basename(upload.filename or "upload")
        target = self._target_path(original_filename)
        await run_in_threadpool(self.base_dir.mkdir, parents=True, exist_ok=True)

        size = 0
        try:
            out = await run_in_threadpool(open, target, "wb")
            try:
                while chunk := await upload.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > self.max_size_bytes:
                        raise InvalidArgumentError(
                            "File too large",
                            code="file_too_large",
                            details={"max_size_bytes": self.max_size_bytes},
                        )
                    await run_in_threadpool(out.write, chunk)
            finally:
                await run_in_threadpool(out.close)
        except BaseException:
            await run_in_threadpool(self.delete, str(target))
            raise

        logger.info(f"Stored attachment {target.name} ({size} bytes)")
        return StoredFile(
            filename=target.name,
            original_filename=original_filename,
            mime_type=mime_type,
            size=size,
            path=str(target),
        )

    def delete(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
