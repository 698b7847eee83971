import logging

from typing import Annotated

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Path,
    Query,
    Request,
    Response,
    UploadFile,
)
from fastapi.responses import StreamingResponse

from app.api.deps import (
    get_app_settings,
    get_current_username,
    get_media_service,
    get_reaction_service,
    get_video_service,
)
from app.config import Settings
from app.core.exceptions import (
    AlreadyLikedError,
    ConcurrentUpdateError,
    MediaNotFoundError,
    MediaUnavailableError,
    NotLikedError,
    VideoNotFoundError,
)
from app.schemas.video import INT64_MAX, INT64_MIN, VideoCreate, VideoRecord, VideoStatus
from app.services import MediaService, ReactionService, VideoService
from app.services.media_service import iter_upload
from app.services.video_service import build_base_url

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_FOUND = "영상을 찾을 수 없습니다"

VideoId = Annotated[int, Path(ge=INT64_MIN, le=INT64_MAX)]


@router.get("", response_model=list[VideoRecord])
async def list_videos(service: VideoService = Depends(get_video_service)):
    """List every video in the catalog."""
    return await service.list_videos()


@router.post("", response_model=VideoRecord)
async def create_video(
    video_in: VideoCreate,
    request: Request,
    service: VideoService = Depends(get_video_service),
    settings: Settings = Depends(get_app_settings),
):
    """Create a video record. The server assigns id, likes and dataUrl."""
    base_url = settings.public_base_url or build_base_url(
        request.url.scheme, request.url.hostname or "localhost", request.url.port
    )
    return await service.create_video(video_in, base_url=base_url)


@router.get("/search/findByName", response_model=list[VideoRecord])
async def find_by_name(title: str, service: VideoService = Depends(get_video_service)):
    """Videos whose title matches exactly. Empty list when none match."""
    return await service.find_by_title(title)


@router.get("/search/findByDurationLessThan", response_model=list[VideoRecord])
async def find_by_duration_less_than(
    duration: Annotated[int, Query(ge=INT64_MIN, le=INT64_MAX)],
    service: VideoService = Depends(get_video_service),
):
    """Videos shorter than ``duration``. Empty list when none match."""
    return await service.find_by_duration_less_than(duration)


@router.get("/{video_id}", response_model=VideoRecord)
async def get_video(video_id: VideoId, service: VideoService = Depends(get_video_service)):
    try:
        return await service.get_video(video_id)
    except VideoNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND)


@router.post("/{video_id}/data", response_model=VideoStatus)
async def upload_video_data(
    video_id: VideoId,
    data: UploadFile = File(...),
    media: MediaService = Depends(get_media_service),
    settings: Settings = Depends(get_app_settings),
):
    """Upload the binary content of a video (multipart field ``data``)."""
    try:
        return await media.attach(video_id, iter_upload(data))
    except VideoNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    except MediaUnavailableError:
        raise HTTPException(
            status_code=settings.storage_error_status, detail="영상 데이터를 저장하지 못했습니다"
        )
    finally:
        await data.close()


@router.get("/{video_id}/data")
async def download_video_data(
    video_id: VideoId,
    media: MediaService = Depends(get_media_service),
    settings: Settings = Depends(get_app_settings),
):
    """Stream the binary content of a video."""
    try:
        stream = await media.fetch(video_id)
    except (VideoNotFoundError, MediaNotFoundError):
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    except MediaUnavailableError:
        raise HTTPException(
            status_code=settings.storage_error_status, detail="영상 데이터를 읽지 못했습니다"
        )
    return StreamingResponse(stream, media_type="application/octet-stream")


@router.post("/{video_id}/like")
async def like_video(
    video_id: VideoId,
    username: str = Depends(get_current_username),
    reactions: ReactionService = Depends(get_reaction_service),
):
    """Like a video. 400 if the caller already likes it."""
    try:
        await reactions.like(video_id, username)
    except VideoNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    except AlreadyLikedError:
        raise HTTPException(status_code=400, detail="이미 좋아요를 누른 영상입니다")
    except ConcurrentUpdateError:
        logger.warning(f"Like on video {video_id} by {username} gave up after retries")
        raise HTTPException(status_code=409, detail="잠시 후 다시 시도해주세요")
    return Response(status_code=200)


@router.post("/{video_id}/unlike")
async def unlike_video(
    video_id: VideoId,
    username: str = Depends(get_current_username),
    reactions: ReactionService = Depends(get_reaction_service),
):
    """Withdraw a like. 400 if the caller does not like the video."""
    try:
        await reactions.unlike(video_id, username)
    except VideoNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    except NotLikedError:
        raise HTTPException(status_code=400, detail="좋아요를 누르지 않은 영상입니다")
    except ConcurrentUpdateError:
        logger.warning(f"Unlike on video {video_id} by {username} gave up after retries")
        raise HTTPException(status_code=409, detail="잠시 후 다시 시도해주세요")
    return Response(status_code=200)


@router.get("/{video_id}/likedby", response_model=list[str])
async def liked_by(
    video_id: VideoId, reactions: ReactionService = Depends(get_reaction_service)
):
    """Usernames of everyone who currently likes the video."""
    try:
        return await reactions.liked_by(video_id)
    except VideoNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
