"""
Photo Browser API — Image Storage Backends
============================================

What:  Stores rendered JPEGs and hands back their public URL.
How:   `ImageStorage` is the narrow interface PhotoService depends on.
       Two implementations:
       - LocalImageStorage: files on disk (aiofiles), served by
         GET /api/files/{key}
       - S3ImageStorage: any S3-compatible bucket through boto3, calls run
         in the thread pool and uploads are retried with tenacity
Who:   Selected by `settings.storage_backend`; `get_image_storage()` is the
       FastAPI dependency (tests override it).

Keys look like `<folder>/<uuid>.jpg`, e.g.
`photo-browser/3f2a….jpg` and `photo-browser/thumbnails/9c1d….jpg`.
The key is recovered from the stored URL when a photo is deleted.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import aiofiles
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from photo_browser.config import settings
from photo_browser.exceptions import StorageError

logger = logging.getLogger(__name__)

JPEG_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True)
class StoredAsset:
    url: str
    key: str


def new_key(folder: str) -> str:
    return f"{folder.strip('/')}/{uuid.uuid4().hex}.jpg"


class ImageStorage(ABC):
    """Where rendered images live. Implementations raise `StorageError`."""

    @abstractmethod
    async def upload(self, content: bytes, folder: str) -> StoredAsset:
        ...

    @abstractmethod
    async def delete(self, url: str) -> None:
        """Remove the asset behind `url`. Unknown or already-missing assets are ignored."""

    @abstractmethod
    def key_from_url(self, url: str) -> Optional[str]:
        ...


# ══════════════════════════════════════════════════════════════════════════
# Local disk
# ══════════════════════════════════════════════════════════════════════════


class LocalImageStorage(ImageStorage):
    def __init__(self, root: str, url_prefix: str):
        self.root = Path(root).resolve()
        self.url_prefix = url_prefix.rstrip("/")

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def resolve(self, key: str) -> Optional[Path]:
        """
        Absolute path for `key`, or None if it escapes the storage root.

        Rejects `..` segments and absolute keys (path traversal).
        """
        candidate = (self.root / key).resolve()
        try:
            candidate.relative_to(self.root)
        except ValueError:
            return None
        if candidate == self.root:
            return None
        return candidate

    def key_from_url(self, url: str) -> Optional[str]:
        prefix = self.url_prefix + "/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):] or None

    async def upload(self, content: bytes, folder: str) -> StoredAsset:
        key = new_key(folder)
        path = self.resolve(key)
        if path is None:
            raise StorageError(context={"key": key, "reason": "outside storage root"})
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", path, str(e))
            raise StorageError(context={"path": str(path), "os_error": str(e)})

        logger.info("Image stored: %s (%d bytes)", key, len(content))
        return StoredAsset(url=f"{self.url_prefix}/{key}", key=key)

    async def delete(self, url: str) -> None:
        key = self.key_from_url(url)
        path = self.resolve(key) if key else None
        if path is None:
            logger.warning("Not a local storage URL, nothing deleted: %s", url)
            return
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("Image already gone: %s", key)
        except OSError as e:
            raise StorageError(context={"path": str(path), "os_error": str(e)})
        else:
            logger.info("Image deleted: %s", key)


# ══════════════════════════════════════════════════════════════════════════
# S3-compatible bucket
# ══════════════════════════════════════════════════════════════════════════


class S3ImageStorage(ImageStorage):
    """
    boto3 is synchronous; every call runs in the thread pool.

    Uploads are retried on network and service errors with exponential
    backoff (retry_* settings). Deletes are not retried: photo deletion
    treats them as best effort anyway.
    """

    def __init__(
        self,
        bucket: str,
        region: str,
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.client = client or boto3.client("s3", region_name=region, endpoint_url=endpoint_url)
        default_base = (
            f"{endpoint_url.rstrip('/')}/{bucket}"
            if endpoint_url
            else f"https://{bucket}.s3.{region}.amazonaws.com"
        )
        self.public_base_url = (public_base_url or default_base).rstrip("/")

    def key_from_url(self, url: str) -> Optional[str]:
        prefix = self.public_base_url + "/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):] or None

    @retry(
        retry=retry_if_exception_type((BotoCoreError, ClientError)),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _put_with_retry(self, key: str, content: bytes) -> None:
        await run_in_threadpool(
            self.client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=content,
            ContentType=JPEG_CONTENT_TYPE,
        )

    async def upload(self, content: bytes, folder: str) -> StoredAsset:
        key = new_key(folder)
        try:
            await self._put_with_retry(key, content)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload of %s failed after retries: %s", key, str(e))
            raise StorageError(context={"bucket": self.bucket, "key": key, "error": str(e)})

        logger.info("Image uploaded to s3://%s/%s (%d bytes)", self.bucket, key, len(content))
        return StoredAsset(url=f"{self.public_base_url}/{key}", key=key)

    async def delete(self, url: str) -> None:
        key = self.key_from_url(url)
        if key is None:
            logger.warning("Not a URL of bucket %s, nothing deleted: %s", self.bucket, url)
            return
        try:
            await run_in_threadpool(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(context={"bucket": self.bucket, "key": key, "error": str(e)})
        logger.info("Image deleted from s3://%s/%s", self.bucket, key)


# ══════════════════════════════════════════════════════════════════════════
# Factory & dependency
# ══════════════════════════════════════════════════════════════════════════


def build_image_storage() -> ImageStorage:
    if settings.storage_backend == "s3":
        if not settings.s3_bucket:
            raise StorageError("S3 storage selected but S3_BUCKET is not set")
        return S3ImageStorage(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            public_base_url=settings.s3_public_base_url,
        )
    return LocalImageStorage(settings.storage_root, settings.files_url_prefix)


_storage: Optional[ImageStorage] = None


def get_image_storage() -> ImageStorage:
    """FastAPI dependency returning the process-wide storage backend."""
    global _storage
    if _storage is None:
        _storage = build_image_storage()
    return _storage
