import asyncio

import pytest

from app.core.exceptions import (
    AlreadyLikedError,
    ConcurrentUpdateError,
    NotLikedError,
    VideoNotFoundError,
)
from app.repositories.memory import InMemoryCatalog
from app.schemas.video import VideoRecord
from app.services import ReactionService


class SlowCatalog(InMemoryCatalog):
    """Yields to the event loop between read and write so requests interleave."""

    async def find_by_id(self, video_id):
        video = await super().find_by_id(video_id)
        await asyncio.sleep(0)
        return video

    async def save(self, video):
        await asyncio.sleep(0)
        return await super().save(video)


class ConflictingCatalog(InMemoryCatalog):
    """Every save looks like it lost a race against another process."""

    def __init__(self, conflicts: int):
        super().__init__()
        self.conflicts = conflicts
        self.save_calls = 0

    async def save(self, video):
        self.save_calls += 1
        if self.conflicts > 0:
            self.conflicts -= 1
            raise ConcurrentUpdateError(video.id)
        return await super().save(video)


async def make_service(catalog=None, **kwargs) -> tuple[ReactionService, InMemoryCatalog]:
    catalog = catalog or InMemoryCatalog()
    await catalog.insert(VideoRecord(id=1, title="Dogs", duration=120))
    return ReactionService(catalog, **kwargs), catalog


def assert_consistent(video: VideoRecord):
    assert video.likes == len(video.liked_by)
    assert len(set(video.liked_by)) == len(video.liked_by)


async def test_like_unlike_scenario():
    service, catalog = await make_service()

    video = await service.like(1, "alice")
    assert video.likes == 1
    assert video.liked_by == ["alice"]

    with pytest.raises(AlreadyLikedError):
        await service.like(1, "alice")
    assert (await catalog.find_by_id(1)).likes == 1

    with pytest.raises(NotLikedError):
        await service.unlike(1, "bob")

    video = await service.unlike(1, "alice")
    assert video.likes == 0
    assert video.liked_by == []
    assert_consistent(await catalog.find_by_id(1))


async def test_unknown_video():
    service, _ = await make_service()

    with pytest.raises(VideoNotFoundError):
        await service.like(999, "alice")
    with pytest.raises(VideoNotFoundError):
        await service.unlike(999, "alice")
    with pytest.raises(VideoNotFoundError):
        await service.liked_by(999)


async def test_like_again_after_unlike():
    service, _ = await make_service()
    await service.like(1, "alice")
    await service.unlike(1, "alice")
    with pytest.raises(NotLikedError):
        await service.unlike(1, "alice")

    video = await service.like(1, "alice")
    assert video.liked_by == ["alice"]


async def test_liked_by_lists_every_user():
    service, _ = await make_service()
    for user in ("alice", "bob", "carol"):
        await service.like(1, user)

    assert sorted(await service.liked_by(1)) == ["alice", "bob", "carol"]


async def test_concurrent_likes_by_same_user_count_once():
    service, catalog = await make_service(SlowCatalog())

    results = await asyncio.gather(
        *(service.like(1, "alice") for _ in range(20)), return_exceptions=True
    )

    successes = [r for r in results if isinstance(r, VideoRecord)]
    failures = [r for r in results if isinstance(r, AlreadyLikedError)]
    assert len(successes) == 1
    assert len(failures) == 19

    video = await catalog.find_by_id(1)
    assert video.likes == 1
    assert_consistent(video)


async def test_concurrent_likes_by_many_users():
    service, catalog = await make_service(SlowCatalog())
    users = [f"user{i}" for i in range(25)]

    await asyncio.gather(*(service.like(1, u) for u in users))
    video = await catalog.find_by_id(1)
    assert video.likes == 25
    assert sorted(video.liked_by) == sorted(users)

    await asyncio.gather(*(service.unlike(1, u) for u in users[:10]))
    video = await catalog.find_by_id(1)
    assert video.likes == 15
    assert_consistent(video)


async def test_concurrent_like_and_unlike_do_not_double_count():
    service, catalog = await make_service(SlowCatalog())
    await service.like(1, "alice")

    results = await asyncio.gather(
        service.unlike(1, "alice"),
        service.like(1, "bob"),
        service.unlike(1, "alice"),
        return_exceptions=True,
    )

    assert sum(isinstance(r, NotLikedError) for r in results) == 1
    video = await catalog.find_by_id(1)
    assert video.liked_by == ["bob"]
    assert_consistent(video)


async def test_retries_after_version_conflict():
    catalog = ConflictingCatalog(conflicts=2)
    service, _ = await make_service(catalog, max_retries=5)

    video = await service.like(1, "alice")
    assert video.likes == 1
    assert catalog.save_calls == 3


async def test_gives_up_after_max_retries():
    catalog = ConflictingCatalog(conflicts=10)
    service, _ = await make_service(catalog, max_retries=3)

    with pytest.raises(ConcurrentUpdateError):
        await service.like(1, "alice")
    assert catalog.save_calls == 3
    assert (await catalog.find_by_id(1)).likes == 0


async def test_locks_are_released():
    service, _ = await make_service(SlowCatalog())
    await asyncio.gather(service.like(1, "alice"), service.like(1, "bob"), service.liked_by(1))
    with pytest.raises(AlreadyLikedError):
        await service.like(1, "alice")

    assert len(service._locks) == 0
