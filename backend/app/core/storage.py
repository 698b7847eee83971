import asyncio
import logging
import os
import tempfile
import uuid
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, AsyncIterator
from pathlib import Path

import aiofiles
import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings
from app.core.exceptions import BlobStorageError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class BlobStore(ABC):
    """Byte payloads keyed by video id."""

    @abstractmethod
    async def put(self, key: int, chunks: AsyncIterable[bytes]) -> None:
        """Store the payload, replacing any previous one for the key."""

    @abstractmethod
    async def exists(self, key: int) -> bool:
        """Whether a payload was stored for the key."""

    @abstractmethod
    def stream(self, key: int) -> AsyncIterator[bytes]:
        """Iterate over the stored payload. Call exists() first."""


class LocalBlobStore(BlobStore):
    """영상 파일을 로컬 디렉터리에 저장."""

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: int) -> Path:
        return self.root / f"video{key}.mpg"

    async def put(self, key: int, chunks: AsyncIterable[bytes]) -> None:
        target = self.path_for(key)
        # 임시 파일에 쓴 뒤 rename: 다운로드 중인 요청은 이전 파일을 끝까지 읽는다
        tmp = target.with_name(f".{target.name}.{uuid.uuid4().hex}.part")
        try:
            async with aiofiles.open(tmp, "wb") as f:
                async for chunk in chunks:
                    await f.write(chunk)
            os.replace(tmp, target)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

    async def exists(self, key: int) -> bool:
        return self.path_for(key).is_file()

    async def stream(self, key: int) -> AsyncIterator[bytes]:
        async with aiofiles.open(self.path_for(key), "rb") as f:
            while chunk := await f.read(CHUNK_SIZE):
                yield chunk


class S3BlobStore(BlobStore):
    """S3 bucket backend. boto3 is blocking, so every call runs in a worker thread."""

    def __init__(self, client, bucket: str, prefix: str = "videos/"):
        self.client = client
        self.bucket = bucket
        self.prefix = prefix

    def key_for(self, key: int) -> str:
        return f"{self.prefix}video{key}.mpg"

    async def put(self, key: int, chunks: AsyncIterable[bytes]) -> None:
        with tempfile.SpooledTemporaryFile(max_size=8 * 1024 * 1024) as buffer:
            async for chunk in chunks:
                buffer.write(chunk)
            buffer.seek(0)
            try:
                await asyncio.to_thread(
                    self.client.upload_fileobj,
                    buffer,
                    self.bucket,
                    self.key_for(key),
                    ExtraArgs={"ContentType": "video/mpeg"},
                )
            except (ClientError, BotoCoreError) as e:
                raise BlobStorageError(f"S3 업로드 실패: {e}") from e

    async def exists(self, key: int) -> bool:
        try:
            await asyncio.to_thread(
                self.client.head_object, Bucket=self.bucket, Key=self.key_for(key)
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise BlobStorageError(f"S3 조회 실패: {e}") from e
        except BotoCoreError as e:
            raise BlobStorageError(f"S3 조회 실패: {e}") from e
        return True

    async def stream(self, key: int) -> AsyncIterator[bytes]:
        try:
            response = await asyncio.to_thread(
                self.client.get_object, Bucket=self.bucket, Key=self.key_for(key)
            )
        except (ClientError, BotoCoreError) as e:
            raise BlobStorageError(f"S3 다운로드 실패: {e}") from e

        body = response["Body"]
        try:
            while chunk := await asyncio.to_thread(body.read, CHUNK_SIZE):
                yield chunk
        finally:
            body.close()


def _get_s3_client(settings: Settings):
    return boto3.client(
        "s3",
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.aws_region,
    )


def create_blob_store(settings: Settings) -> BlobStore:
    """S3 설정이 없으면 로컬 저장."""
    if settings.aws_access_key_id:
        logger.info(f"Using S3 blob store: bucket={settings.s3_bucket_name}")
        return S3BlobStore(
            _get_s3_client(settings),
            bucket=settings.s3_bucket_name,
            prefix=settings.s3_prefix,
        )
    logger.info(f"Using local blob store: {settings.storage_dir}")
    return LocalBlobStore(settings.storage_dir)
