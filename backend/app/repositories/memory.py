import threading

from app.core.exceptions import (
    ConcurrentUpdateError,
    DuplicateVideoIdError,
    VideoNotFoundError,
)
from app.repositories.base import VideoCatalog
from app.schemas.video import VideoRecord


class InMemoryCatalog(VideoCatalog):
    """Process-local catalog, lost on restart.

    Copy-on-write: writers build a new tuple under a lock and swap it in,
    readers iterate whatever tuple is current without taking the lock.
    Stored records are never mutated in place.
    """

    accepts_client_ids = True

    def __init__(self):
        self._videos: tuple[VideoRecord, ...] = ()
        self._write_lock = threading.Lock()

    async def insert(self, video: VideoRecord) -> VideoRecord:
        stored = video.model_copy(deep=True)
        with self._write_lock:
            if any(v.id == stored.id for v in self._videos):
                raise DuplicateVideoIdError(stored.id)
            self._videos = self._videos + (stored,)
        return stored.model_copy(deep=True)

    async def save(self, video: VideoRecord) -> VideoRecord:
        with self._write_lock:
            videos = list(self._videos)
            for i, current in enumerate(videos):
                if current.id == video.id:
                    break
            else:
                raise VideoNotFoundError(video.id)

            if current.version != video.version:
                raise ConcurrentUpdateError(video.id)

            stored = video.model_copy(update={"version": video.version + 1}, deep=True)
            videos[i] = stored
            self._videos = tuple(videos)
        return stored.model_copy(deep=True)

    async def find_all(self) -> list[VideoRecord]:
        return [v.model_copy(deep=True) for v in self._videos]

    async def find_by_id(self, video_id: int) -> VideoRecord:
        for v in self._videos:
            if v.id == video_id:
                return v.model_copy(deep=True)
        raise VideoNotFoundError(video_id)

    async def find_by_title(self, title: str) -> list[VideoRecord]:
        return [v.model_copy(deep=True) for v in self._videos if v.title == title]

    async def find_by_duration_less_than(self, duration: int) -> list[VideoRecord]:
        return [v.model_copy(deep=True) for v in self._videos if v.duration < duration]

    async def max_id(self) -> int:
        return max((v.id for v in self._videos), default=0)

    async def exists(self, video_id: int) -> bool:
        return any(v.id == video_id for v in self._videos)
