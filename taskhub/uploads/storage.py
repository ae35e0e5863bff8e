import logging
import os
import secrets
import time
from dataclasses import dataclass
from typing import Protocol

from fastapi import UploadFile

from taskhub.config import settings
from taskhub.errors import ValidationError

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"


@dataclass
class IncomingFile:
    filename: str
    content_type: str | None
    data: bytes


@dataclass
class StoredFile:
    filename: str
    path: str
    original_name: str


class BlobStorage(Protocol):
    def put(self, data: bytes, original_name: str) -> StoredFile: ...
    def url(self, filename: str) -> str: ...
    def delete(self, filename: str) -> None: ...


class LocalDiskStorage:
    """Stores uploads as files in one directory, served as static assets."""

    def __init__(self, directory: str, url_prefix: str = "/uploads"):
        self.directory = directory
        self.url_prefix = url_prefix.rstrip("/")
        os.makedirs(self.directory, exist_ok=True)

    def _unique_name(self, original_name: str) -> str:
        ext = os.path.splitext(original_name or "")[1].lower()
        return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"

    def put(self, data: bytes, original_name: str) -> StoredFile:
        filename = self._unique_name(original_name)
        path = os.path.join(self.directory, filename)
        with open(path, "xb") as fh:
            fh.write(data)
        return StoredFile(filename=filename, path=path, original_name=original_name or "")

    def url(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    def delete(self, filename: str) -> None:
        path = os.path.join(self.directory, os.path.basename(filename))
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug("stored file already gone: %s", filename)


def get_storage() -> BlobStorage:
    return LocalDiskStorage(settings.upload_dir, settings.uploads_url_prefix)


async def read_uploads(files: list[UploadFile] | None) -> list[IncomingFile]:
    """Buffer a multipart batch; checks happen later in ``validate_uploads``.

    Each file is read up to one byte past the size limit, which is enough to
    tell an oversized file apart without holding all of it.
    """
    limit = settings.max_upload_mb * 1024 * 1024
    incoming = []
    for f in files or []:
        if f is None or not f.filename:
            continue
        data = await f.read(limit + 1)
        incoming.append(IncomingFile(filename=f.filename, content_type=f.content_type, data=data))
    return incoming


def validate_uploads(files: list[IncomingFile]) -> None:
    if len(files) > settings.max_files_per_request:
        raise ValidationError(f"Too many files. Maximum is {settings.max_files_per_request} files")
    limit = settings.max_upload_mb * 1024 * 1024
    for f in files:
        if f.content_type != PDF_MIME:
            raise ValidationError("Only PDF files are allowed")
        if len(f.data) > limit:
            raise ValidationError(f"File size too large. Maximum size is {settings.max_upload_mb}MB")


def store_all(storage: BlobStorage, files: list[IncomingFile]) -> list[StoredFile]:
    stored: list[StoredFile] = []
    try:
        for f in files:
            stored.append(storage.put(f.data, f.filename))
    except OSError:
        logger.exception("failed to store upload batch")
        discard(storage, stored)
        raise
    return stored


def discard(storage: BlobStorage, stored: list[StoredFile]) -> None:
    for s in stored:
        try:
            storage.delete(s.filename)
        except OSError:
            logger.warning("could not remove stored file %s", s.filename, exc_info=True)
