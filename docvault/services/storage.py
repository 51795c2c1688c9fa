# docvault/services/storage.py
"""
Blob storage for uploaded documents.

- S3BlobStorage: any S3-compatible endpoint (AWS, Cloudflare R2, MinIO) via boto3
- LocalBlobStorage: filesystem directory, used when no S3 endpoint is configured

Keys look like ``<user_id>/<random id>``; see DocumentAccessPolicy.
"""
import asyncio
import logging
from functools import partial
from pathlib import Path
from typing import Optional, Protocol

import aiofiles
import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from docvault.core.config import Settings

logger = logging.getLogger(__name__)


class BlobStorage(Protocol):
    async def put(self, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``path`` and return its public locator."""
        ...

    async def delete(self, path: str) -> None: ...


def _get_s3_client(settings: Settings):
    # Use signature s3v4 for compatibility (Cloudflare R2 & MinIO)
    return boto3.client(
        "s3",
        endpoint_url=str(settings.S3_ENDPOINT),
        aws_access_key_id=settings.S3_ACCESS_KEY,
        aws_secret_access_key=settings.S3_SECRET_KEY,
        config=Config(signature_version="s3v4"),
        region_name=(settings.S3_REGION or None),
    )


def ensure_bucket(client, bucket: str) -> bool:
    """
    Ensure the bucket exists. For MinIO this may be necessary in dev.
    Returns True if bucket exists or was created successfully.
    """
    try:
        client.head_bucket(Bucket=bucket)
        return True
    except ClientError:
        try:
            client.create_bucket(Bucket=bucket)
            return True
        except ClientError:
            # R2 buckets are created out of band
            return False


class S3BlobStorage:
    def __init__(self, client, bucket: str, public_base_url: Optional[str] = None) -> None:
        self._client = client
        self._bucket = bucket
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self._bucket_checked = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3BlobStorage":
        return cls(_get_s3_client(settings), settings.S3_BUCKET, settings.S3_PUBLIC_BASE_URL)

    def locator_for(self, path: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{path}"
        return f"s3://{self._bucket}/{path}"

    def _put_blocking(self, path: str, data: bytes, content_type: str) -> None:
        if not self._bucket_checked:
            self._bucket_checked = ensure_bucket(self._client, self._bucket)
        self._client.put_object(Bucket=self._bucket, Key=path, Body=data, ContentType=content_type)

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        # boto3 is blocking; run it in the default thread pool
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, partial(self._put_blocking, path, data, content_type))
        return self.locator_for(path)

    async def delete(self, path: str) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, partial(self._client.delete_object, Bucket=self._bucket, Key=path))


class LocalBlobStorage:
    def __init__(self, root: Path) -> None:
        self._root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        target = (self._root / path).resolve()
        if self._root not in target.parents:
            raise ValueError(f"storage path escapes root: {path}")
        return target

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(target, "wb") as out:
            await out.write(data)
        return target.as_uri()

    async def delete(self, path: str) -> None:
        target = self._resolve(path)
        if not target.exists():
            raise FileNotFoundError(path)
        target.unlink()


def build_blob_storage(settings: Settings) -> BlobStorage:
    if settings.s3_configured:
        logger.info("Using S3 blob storage (bucket=%s)", settings.S3_BUCKET)
        return S3BlobStorage.from_settings(settings)
    logger.info("S3 not configured; storing blobs under %s", settings.LOCAL_UPLOAD_DIR)
    return LocalBlobStorage(Path(settings.LOCAL_UPLOAD_DIR))
