"""Business logic services layer."""

from .video_service import VideoService
from .reaction_service import ReactionService
from .media_service import MediaService

__all__ = ["VideoService", "ReactionService", "MediaService"]
