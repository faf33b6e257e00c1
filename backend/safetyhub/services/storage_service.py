# Overview: Object storage backends for uploaded catalog assets.

"""
Storage backends.

A backend exposes put(key, data, content_type) -> public URL. The key's
first path segment names the bucket ("{bucket}/{name}"); the rest is the
object path inside it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from supabase import Client, create_client

from ..errors import StorageError


class StorageBackend(ABC):
    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store data under key and return its public URL."""


def split_key(key: str) -> tuple[str, str]:
    bucket, _, path = key.partition("/")
    if not bucket or not path:
        raise StorageError(f"Invalid storage key: {key}")
    return bucket, path


class SupabaseStorage(StorageBackend):
    """Supabase Storage (S3-compatible) client."""

    def __init__(self, url: str, key: str, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("safetyhub.uploads")
        self.client: Optional[Client] = None

        if not url or not key:
            self.logger.warning("Supabase credentials not set. Storage service disabled.")
        else:
            self.client = create_client(url, key)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def put(self, key: str, data: bytes, content_type: str) -> str:
        if self.client is None:
            raise StorageError("Object storage is not configured")

        bucket, path = split_key(key)
        try:
            self.client.storage.from_(bucket).upload(
                path=path,
                file=data,
                file_options={"content-type": content_type},
            )
            return self.client.storage.from_(bucket).get_public_url(path)
        except Exception as exc:
            self.logger.error("Failed to upload %s to Supabase: %s", key, exc)
            raise StorageError(f"Upload failed for {key}") from exc
