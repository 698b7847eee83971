"""Per-user like tracking for videos."""

import logging

from app.core.exceptions import AlreadyLikedError, ConcurrentUpdateError, NotLikedError
from app.core.locks import KeyedLock
from app.repositories.base import VideoCatalog
from app.schemas.video import VideoRecord

logger = logging.getLogger(__name__)


class ReactionService:
    """
    Enforces at most one like per user and video.

    like/unlike/likers for one video run one at a time inside this process.
    Writers in other processes are caught by the catalog's version check,
    in which case the whole read-check-save cycle is repeated.
    """

    def __init__(self, catalog: VideoCatalog, max_retries: int = 5):
        self.catalog = catalog
        self.max_retries = max_retries
        self._locks = KeyedLock()

    async def like(self, video_id: int, username: str) -> VideoRecord:
        """
        Add username to the likers of a video.

        Raises:
            VideoNotFoundError: If the video does not exist
            AlreadyLikedError: If the user already likes the video
        """
        async with self._locks.hold(video_id):
            for attempt in range(self.max_retries):
                video = await self.catalog.find_by_id(video_id)
                if username in video.liked_by:
                    raise AlreadyLikedError(video_id, username)

                video.likes += 1
                video.liked_by.append(username)
                try:
                    saved = await self.catalog.save(video)
                except ConcurrentUpdateError:
                    logger.info(f"Concurrent update on video {video_id}, retry {attempt + 1}")
                    continue
                logger.info(f"User {username} liked video {video_id} (likes={saved.likes})")
                return saved
        raise ConcurrentUpdateError(video_id)

    async def unlike(self, video_id: int, username: str) -> VideoRecord:
        """
        Remove username from the likers of a video.

        Raises:
            VideoNotFoundError: If the video does not exist
            NotLikedError: If the user does not currently like the video
        """
        async with self._locks.hold(video_id):
            for attempt in range(self.max_retries):
                video = await self.catalog.find_by_id(video_id)
                if username not in video.liked_by:
                    raise NotLikedError(video_id, username)

                video.likes -= 1
                video.liked_by.remove(username)
                try:
                    saved = await self.catalog.save(video)
                except ConcurrentUpdateError:
                    logger.info(f"Concurrent update on video {video_id}, retry {attempt + 1}")
                    continue
                logger.info(f"User {username} unliked video {video_id} (likes={saved.likes})")
                return saved
        raise ConcurrentUpdateError(video_id)

    async def liked_by(self, video_id: int) -> list[str]:
        async with self._locks.hold(video_id):
            video = await self.catalog.find_by_id(video_id)
            return list(video.liked_by)
