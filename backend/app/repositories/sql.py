from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from app.core.database import create_session_factory
from app.core.exceptions import (
    ConcurrentUpdateError,
    DuplicateVideoIdError,
    VideoNotFoundError,
)
from app.models.video import Video
from app.repositories.base import VideoCatalog
from app.schemas.video import VideoRecord


class SqlCatalog(VideoCatalog):
    """Durable catalog on top of async SQLAlchemy. Ids are always server-generated."""

    accepts_client_ids = False

    def __init__(self, engine: AsyncEngine, session_factory: async_sessionmaker | None = None):
        self.engine = engine
        self.session_factory = session_factory or create_session_factory(engine)

    async def insert(self, video: VideoRecord) -> VideoRecord:
        row = Video(
            id=video.id,
            title=video.title,
            duration=video.duration,
            data_url=video.data_url,
            likes=video.likes,
            liked_by=list(video.liked_by),
            version=video.version,
        )
        async with self.session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise DuplicateVideoIdError(video.id)
            return VideoRecord.model_validate(row)

    async def save(self, video: VideoRecord) -> VideoRecord:
        stmt = (
            update(Video)
            .where(Video.id == video.id, Video.version == video.version)
            .values(
                title=video.title,
                duration=video.duration,
                data_url=video.data_url,
                likes=video.likes,
                liked_by=list(video.liked_by),
                version=video.version + 1,
            )
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            if result.rowcount == 0:
                await session.rollback()
                # 버전 불일치인지 레코드가 없는지 구분
                exists = await session.scalar(select(Video.id).where(Video.id == video.id))
                if exists is None:
                    raise VideoNotFoundError(video.id)
                raise ConcurrentUpdateError(video.id)
            await session.commit()
        return video.model_copy(update={"version": video.version + 1}, deep=True)

    async def find_all(self) -> list[VideoRecord]:
        return await self._query(select(Video).order_by(Video.id))

    async def find_by_id(self, video_id: int) -> VideoRecord:
        async with self.session_factory() as session:
            row = await session.get(Video, video_id)
            if row is None:
                raise VideoNotFoundError(video_id)
            return VideoRecord.model_validate(row)

    async def find_by_title(self, title: str) -> list[VideoRecord]:
        return await self._query(select(Video).where(Video.title == title).order_by(Video.id))

    async def find_by_duration_less_than(self, duration: int) -> list[VideoRecord]:
        return await self._query(
            select(Video).where(Video.duration < duration).order_by(Video.id)
        )

    async def max_id(self) -> int:
        async with self.session_factory() as session:
            result = await session.scalar(select(func.max(Video.id)))
            return result or 0

    async def exists(self, video_id: int) -> bool:
        async with self.session_factory() as session:
            return await session.scalar(select(Video.id).where(Video.id == video_id)) is not None

    async def close(self) -> None:
        await self.engine.dispose()

    async def _query(self, stmt) -> list[VideoRecord]:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [VideoRecord.model_validate(row) for row in result.scalars().all()]
