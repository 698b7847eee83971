"""Abstract catalog interface for video metadata records."""

from abc import ABC, abstractmethod

from app.schemas.video import VideoRecord


class VideoCatalog(ABC):
    """Storage contract shared by the in-memory and the database catalog.

    Records handed out are copies: mutating them has no effect until they
    are passed back to save().
    """

    #: whether a nonzero id supplied by the client is kept on creation
    accepts_client_ids: bool = False

    @abstractmethod
    async def insert(self, video: VideoRecord) -> VideoRecord:
        """Store a new record. Raises DuplicateVideoIdError if the id is taken."""

    @abstractmethod
    async def save(self, video: VideoRecord) -> VideoRecord:
        """Overwrite an existing record and return it with its new version.

        Raises VideoNotFoundError for unknown ids and ConcurrentUpdateError
        when ``video.version`` is not the stored version.
        """

    @abstractmethod
    async def find_all(self) -> list[VideoRecord]:
        """Every stored record."""

    @abstractmethod
    async def find_by_id(self, video_id: int) -> VideoRecord:
        """Raises VideoNotFoundError when no record has the id."""

    @abstractmethod
    async def find_by_title(self, title: str) -> list[VideoRecord]:
        """Records whose title equals ``title`` exactly."""

    @abstractmethod
    async def find_by_duration_less_than(self, duration: int) -> list[VideoRecord]:
        """Records with a duration strictly below ``duration``."""

    @abstractmethod
    async def max_id(self) -> int:
        """Largest stored id, 0 when empty."""

    async def exists(self, video_id: int) -> bool:
        return any(v.id == video_id for v in await self.find_all())

    async def close(self) -> None:
        pass
