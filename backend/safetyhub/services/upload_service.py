# Overview: Service-layer operations for asset uploads; validates content and fans out to storage.

"""
Upload Service

Validates uploaded files and stores them concurrently.

VALIDATION:
- Content is sniffed from the file header: PNG / JPEG / WebP through
  Pillow, PDF by its "%PDF-" signature, otherwise text/plain (UTF-8) or
  application/octet-stream
- A file is accepted only if the sniffed type AND the declared type
  (when the client sent a specific one) are both in the allow-list;
  application/octet-stream counts as no declaration
- Every file is validated before the first upload starts

CONCURRENCY:
- Uploads run on a thread pool of min(len(files), UPLOAD_MAX_WORKERS)
- The first failure cancels uploads that have not started and fails the
  whole request; no partial results are returned
"""

from __future__ import annotations

import io
import logging
import re
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from ..errors import StorageError, UnsupportedFileTypeError, ValidationError
from .storage_service import StorageBackend


SNIFF_BYTES = 512

ALLOWED_CONTENT_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "application/pdf": ".pdf",
}

_PIL_FORMATS = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
}

_BUCKET_RE = re.compile(r"^[a-z0-9][a-z0-9_-]{0,62}$")


@dataclass(frozen=True)
class IncomingFile:
    filename: str
    data: bytes
    declared_type: str | None = None


@dataclass(frozen=True)
class UploadResult:
    url: str
    key: str
    content_type: str
    size: int

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "key": self.key,
            "content_type": self.content_type,
            "size": self.size,
        }


def sniff_content_type(data: bytes) -> str:
    """Best-effort content type from the file's bytes."""
    head = data[:SNIFF_BYTES]
    if head.startswith(b"%PDF-"):
        return "application/pdf"

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        fmt = None
    if fmt in _PIL_FORMATS:
        return _PIL_FORMATS[fmt]

    try:
        head.decode("utf-8")
    except UnicodeDecodeError:
        return "application/octet-stream"
    return "text/plain"


# Sent by clients that could not guess a type; treated as no declaration
GENERIC_DECLARED_TYPES = frozenset({"application/octet-stream", "binary/octet-stream"})


def _normalize_declared(declared: str | None) -> str | None:
    if not declared:
        return None
    declared = declared.split(";", 1)[0].strip().lower()
    if not declared or declared in GENERIC_DECLARED_TYPES:
        return None
    return declared


class UploadService:
    def __init__(
        self,
        storage: StorageBackend,
        max_workers: int = 8,
        logger: logging.Logger | None = None,
    ):
        self.storage = storage
        self.max_workers = max(1, max_workers)
        self.logger = logger or logging.getLogger("safetyhub.uploads")
        self._clock_lock = threading.Lock()
        self._last_ns = 0

    def _next_timestamp_ns(self) -> int:
        # Strictly increasing, so concurrent files never share a key
        with self._clock_lock:
            now = max(time.time_ns(), self._last_ns + 1)
            self._last_ns = now
            return now

    def build_key(self, bucket: str, content_type: str) -> str:
        return f"{bucket}/{self._next_timestamp_ns()}{ALLOWED_CONTENT_TYPES[content_type]}"

    def validate(self, file: IncomingFile) -> str:
        """Return the accepted content type or raise UnsupportedFileTypeError."""
        if not file.data:
            raise ValidationError(f"File {file.filename or '(unnamed)'} is empty")

        sniffed = sniff_content_type(file.data)
        declared = _normalize_declared(file.declared_type)

        if sniffed not in ALLOWED_CONTENT_TYPES:
            self.logger.warning(
                "Rejected upload %s: sniffed %s (declared %s)", file.filename, sniffed, declared
            )
            raise UnsupportedFileTypeError()
        if declared is not None and declared not in ALLOWED_CONTENT_TYPES:
            self.logger.warning("Rejected upload %s: declared %s", file.filename, declared)
            raise UnsupportedFileTypeError()
        return sniffed

    def upload(self, files: list[IncomingFile], bucket: str) -> list[UploadResult]:
        """
        Validate then store all files; results keep input order.

        Raises:
            ValidationError: no files, bad bucket name, empty file
            UnsupportedFileTypeError: a file failed content validation
            StorageError: any upload failed
        """
        if not bucket or not _BUCKET_RE.match(bucket):
            raise ValidationError("A valid bucket name is required")
        if not files:
            raise ValidationError("At least one file is required")

        planned = []
        for file in files:
            content_type = self.validate(file)
            planned.append((file, content_type, self.build_key(bucket, content_type)))

        workers = min(len(planned), self.max_workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="upload") as pool:
            futures = [
                pool.submit(self.storage.put, key, file.data, content_type)
                for file, content_type, key in planned
            ]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in pending:
                future.cancel()

            for future in futures:
                if future in done and future.exception() is not None:
                    exc = future.exception()
                    self.logger.error("Upload to bucket %s failed: %s", bucket, exc)
                    if isinstance(exc, StorageError):
                        raise exc
                    raise StorageError("Upload failed") from exc

        results = [
            UploadResult(url=future.result(), key=key, content_type=content_type, size=len(file.data))
            for future, (file, content_type, key) in zip(futures, planned)
        ]
        self.logger.info("Uploaded %d file(s) to bucket %s", len(results), bucket)
        return results
