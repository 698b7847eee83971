import logging

from app.core.exceptions import DuplicateVideoIdError
from app.core.ids import IdentityAllocator
from app.repositories.base import VideoCatalog
from app.schemas.video import VideoCreate, VideoRecord

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}


def build_base_url(scheme: str, host: str, port: int | None) -> str:
    """``scheme://host[:port]``, leaving out the port when it is the scheme default."""
    if port is None or port == DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def build_data_url(base_url: str, video_id: int, api_prefix: str = "") -> str:
    return f"{base_url.rstrip('/')}{api_prefix}/video/{video_id}/data"


class VideoService:
    """Video creation and catalog queries."""

    def __init__(self, catalog: VideoCatalog, allocator: IdentityAllocator, api_prefix: str = ""):
        self.catalog = catalog
        self.allocator = allocator
        self.api_prefix = api_prefix

    async def create_video(self, video_in: VideoCreate, base_url: str) -> VideoRecord:
        """
        Store a new video with a server-assigned id, zero likes and its data URL.

        A nonzero client id is kept only if the catalog accepts client ids
        and the id is not already taken; otherwise a fresh one is allocated.
        """
        video_id = 0
        if video_in.id > 0 and self.catalog.accepts_client_ids:
            video_id = video_in.id
            self.allocator.advance_to(video_id)

        while True:
            if video_id <= 0:
                video_id = self.allocator.next_id()
            video = VideoRecord(
                id=video_id,
                title=video_in.title,
                duration=video_in.duration,
                data_url=build_data_url(base_url, video_id, self.api_prefix),
                likes=0,
                liked_by=[],
            )
            try:
                stored = await self.catalog.insert(video)
            except DuplicateVideoIdError:
                # 다른 프로세스가 같은 id를 먼저 저장한 경우
                logger.warning(f"Video id {video_id} already taken, allocating a new one")
                self.allocator.advance_to(await self.catalog.max_id())
                video_id = 0
                continue
            logger.info(f"Video created: id={stored.id}, title={stored.title!r}")
            return stored

    async def list_videos(self) -> list[VideoRecord]:
        return await self.catalog.find_all()

    async def get_video(self, video_id: int) -> VideoRecord:
        return await self.catalog.find_by_id(video_id)

    async def find_by_title(self, title: str) -> list[VideoRecord]:
        return await self.catalog.find_by_title(title)

    async def find_by_duration_less_than(self, duration: int) -> list[VideoRecord]:
        return await self.catalog.find_by_duration_less_than(duration)
