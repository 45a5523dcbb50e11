"""Contract document storage.

A contract carries at most one uploaded document (a signed copy or the final
PDF/DOCX). The database keeps only its metadata and an opaque key; the bytes
live behind `DocumentStorage`. Only the local filesystem backend exists today.
"""

from __future__ import annotations

import hashlib
import os
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from app.core.settings import Settings

_CHUNK_BYTES = 256 * 1024


class StorageIOError(Exception):
    pass


class PayloadTooLargeError(Exception):
    pass


class UnsupportedStorageBackendError(Exception):
    pass


@dataclass(frozen=True)
class StoredFile:
    key: str
    size_bytes: int
    sha256_hex: str


class DocumentStorage:
    async def save(
        self, *, contract_id: uuid.UUID, upload: UploadFile, max_bytes: int
    ) -> StoredFile:
        raise NotImplementedError

    def resolve(self, *, key: str) -> Path:
        raise NotImplementedError

    async def delete(self, *, key: str) -> None:
        raise NotImplementedError


def _copy_limited(*, source: BinaryIO, target: BinaryIO, max_bytes: int) -> tuple[int, str]:
    digest = hashlib.sha256()
    written = 0
    for chunk in iter(lambda: source.read(_CHUNK_BYTES), b""):
        written += len(chunk)
        if written > max_bytes:
            raise PayloadTooLargeError(f"document larger than {max_bytes} bytes")
        digest.update(chunk)
        target.write(chunk)
    return written, digest.hexdigest()


class LocalFileStorage(DocumentStorage):
    """Documents on disk as `<base_dir>/<contract_id>/<random uuid>`.

    Keys never contain titles or client file names. Uploads are written to a
    temporary file in the contract's directory and renamed into place, so a
    failed or oversized upload never leaves a partial document behind.
    """

    def __init__(self, *, base_dir: Path):
        self._root = base_dir.resolve()

    def _path_for(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if path == self._root or self._root not in path.parents:
            raise StorageIOError("storage key escapes the document directory")
        return path

    def _write(self, *, upload: UploadFile, target: Path, max_bytes: int) -> tuple[int, str]:
        target.parent.mkdir(parents=True, exist_ok=True)
        upload.file.seek(0)
        handle, scratch = tempfile.mkstemp(dir=target.parent, prefix=".upload-")
        try:
            with os.fdopen(handle, "wb") as out:
                result = _copy_limited(source=upload.file, target=out, max_bytes=max_bytes)
                out.flush()
                os.fsync(out.fileno())
            os.replace(scratch, target)
        except BaseException:
            Path(scratch).unlink(missing_ok=True)
            raise
        return result

    async def save(
        self, *, contract_id: uuid.UUID, upload: UploadFile, max_bytes: int
    ) -> StoredFile:
        key = f"{contract_id}/{uuid.uuid4()}"
        target = self._path_for(key)
        try:
            size_bytes, sha256_hex = await run_in_threadpool(
                self._write, upload=upload, target=target, max_bytes=max_bytes
            )
        except OSError as exc:
            raise StorageIOError("could not write contract document") from exc
        return StoredFile(key=key, size_bytes=size_bytes, sha256_hex=sha256_hex)

    def resolve(self, *, key: str) -> Path:
        path = self._path_for(key)
        if not path.is_file():
            raise StorageIOError("contract document is missing on disk")
        return path

    async def delete(self, *, key: str) -> None:
        path = self._path_for(key)
        try:
            await run_in_threadpool(path.unlink, missing_ok=True)
        except OSError as exc:
            raise StorageIOError("could not delete contract document") from exc


def get_document_storage(*, settings: Settings) -> DocumentStorage:
    backend = settings.document_storage_backend.strip().lower()
    if backend == "local":
        return LocalFileStorage(base_dir=Path(settings.local_storage_base_path))
    raise UnsupportedStorageBackendError(settings.document_storage_backend)
