import logging
from collections.abc import AsyncIterator

from fastapi import UploadFile

from app.core.exceptions import (
    BlobStorageError,
    MediaNotFoundError,
    MediaUnavailableError,
    VideoNotFoundError,
)
from app.core.storage import CHUNK_SIZE, BlobStore
from app.repositories.base import VideoCatalog
from app.schemas.video import VideoState, VideoStatus

logger = logging.getLogger(__name__)


async def iter_upload(file: UploadFile) -> AsyncIterator[bytes]:
    while chunk := await file.read(CHUNK_SIZE):
        yield chunk


class MediaService:
    """Binary payload of a video, kept in a blob store under the video id."""

    def __init__(self, catalog: VideoCatalog, blob_store: BlobStore):
        self.catalog = catalog
        self.blob_store = blob_store

    async def attach(self, video_id: int, chunks) -> VideoStatus:
        """Store the payload for an existing video, replacing any earlier one."""
        if not await self.catalog.exists(video_id):
            raise VideoNotFoundError(video_id)
        try:
            await self.blob_store.put(video_id, chunks)
        except (OSError, BlobStorageError) as e:
            logger.exception(f"영상 데이터 저장 실패: video_id={video_id}")
            raise MediaUnavailableError(video_id) from e
        logger.info(f"Media stored for video {video_id}")
        return VideoStatus(state=VideoState.READY)

    async def fetch(self, video_id: int) -> AsyncIterator[bytes]:
        """Return an iterator over the stored payload.

        Raises:
            VideoNotFoundError: If the video does not exist
            MediaNotFoundError: If nothing was uploaded for the video
            MediaUnavailableError: If the blob store could not be queried
        """
        if not await self.catalog.exists(video_id):
            raise VideoNotFoundError(video_id)
        try:
            found = await self.blob_store.exists(video_id)
        except (OSError, BlobStorageError) as e:
            logger.exception(f"영상 데이터 조회 실패: video_id={video_id}")
            raise MediaUnavailableError(video_id) from e
        if not found:
            raise MediaNotFoundError(video_id)
        return self._guarded_stream(video_id)

    async def _guarded_stream(self, video_id: int) -> AsyncIterator[bytes]:
        stream = self.blob_store.stream(video_id)
        try:
            async for chunk in stream:
                yield chunk
        except (OSError, BlobStorageError):
            # 응답 헤더는 이미 전송됨: 로그만 남기고 연결을 끊는다
            logger.exception(f"영상 데이터 전송 실패: video_id={video_id}")
            raise
        finally:
            await stream.aclose()
