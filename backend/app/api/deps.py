from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials

from app.config import Settings
from app.core.security import bearer_scheme, decode_access_token
from app.services import MediaService, ReactionService, VideoService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_video_service(request: Request) -> VideoService:
    return request.app.state.video_service


def get_reaction_service(request: Request) -> ReactionService:
    return request.app.state.reaction_service


def get_media_service(request: Request) -> MediaService:
    return request.app.state.media_service


async def get_current_username(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Caller identity: the ``sub`` claim of the bearer token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="인증이 필요합니다",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_access_token(credentials.credentials, settings)
    username = payload.get("sub")
    if not username:
        raise HTTPException(status_code=401, detail="유효하지 않은 인증 토큰입니다")
    return str(username)
