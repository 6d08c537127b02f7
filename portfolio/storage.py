"""
Storage abstraction for Supabase Storage (S3-compatible) and in-memory testing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

PUBLIC_OBJECT_PREFIX = "/storage/v1/object/public"


class StorageError(RuntimeError):
    """Raised when an object cannot be stored or removed."""


def public_object_url(base_url: str, bucket: str, path: str) -> str:
    return f"{base_url.rstrip('/')}{PUBLIC_OBJECT_PREFIX}/{bucket}/{path.lstrip('/')}"


def media_public_url(image_path: Optional[str], base_url: str, bucket: str = "media") -> str:
    """
    Build a usable image URL from the value stored in photos.image_path.

    Absolute URLs and site-relative paths are returned untouched; anything else
    is treated as an object path inside the media bucket.
    """
    if not image_path:
        return ""
    if image_path.startswith(("http://", "https://", "/")):
        return image_path
    return public_object_url(base_url, bucket, image_path)


def _split_extension(filename: str) -> tuple[str, str]:
    base, dot, ext = filename.rpartition(".")
    if not dot or not base:
        return filename, "jpg"
    return base, ext or "jpg"


def build_upload_path(category: str, filename: str, timestamp_ms: int) -> str:
    """e.g. ``food/1732320000000-salmon-bowl.jpg``"""
    base, ext = _split_extension(filename)
    safe_base = re.sub(r"\s+", "-", base.lower())
    safe_base = re.sub(r"[^a-z0-9\-]", "", safe_base)
    return f"{category}/{timestamp_ms}-{safe_base}.{ext}"


def cover_path(anime_id: str, filename: str) -> str:
    _, ext = _split_extension(filename)
    return f"{anime_id}/cover.{ext}"


class StorageClient(Protocol):
    """Defines the operations the site needs from object storage."""

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
        upsert: bool = False,
    ) -> str:
        ...

    def public_url(self, bucket: str, path: str) -> str:
        ...

    def remove(self, bucket: str, path: str) -> None:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test"
    stored_objects: dict = field(default_factory=dict)

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
        upsert: bool = False,
    ) -> str:
        key = (bucket, path)
        if key in self.stored_objects and not upsert:
            raise StorageError(f"The resource already exists: {bucket}/{path}")
        self.stored_objects[key] = {"data": data, "content_type": content_type}
        return path

    def public_url(self, bucket: str, path: str) -> str:
        return public_object_url(self.base_url, bucket, path)

    def remove(self, bucket: str, path: str) -> None:
        self.stored_objects.pop((bucket, path), None)


@dataclass
class SupabaseStorageClient:
    """
    S3-compatible client for Supabase Storage.
    """

    base_url: str
    region: str
    access_key_id: str
    secret_access_key: str
    cache_control: str = "max-age=3600"

    def __post_init__(self):
        # Supabase only serves path-style addressing on the S3 endpoint.
        config = Config(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=f"{self.base_url.rstrip('/')}/storage/v1/s3",
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def _exists(self, bucket: str, path: str) -> bool:
        try:
            self._client.head_object(Bucket=bucket, Key=path)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise
        return True

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
        upsert: bool = False,
    ) -> str:
        try:
            if not upsert and self._exists(bucket, path):
                raise StorageError(f"The resource already exists: {bucket}/{path}")
            self._client.put_object(
                Bucket=bucket,
                Key=path,
                Body=data,
                ContentType=content_type or "application/octet-stream",
                CacheControl=self.cache_control,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(str(exc)) from exc
        return path

    def public_url(self, bucket: str, path: str) -> str:
        return public_object_url(self.base_url, bucket, path)

    def remove(self, bucket: str, path: str) -> None:
        try:
            self._client.delete_object(Bucket=bucket, Key=path)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(str(exc)) from exc
