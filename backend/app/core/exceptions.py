"""Custom exception classes for the application."""


class VideoNotFoundError(Exception):
    """Raised when no video record has the requested id."""

    def __init__(self, video_id: int):
        self.video_id = video_id
        super().__init__(f"Video not found: {video_id}")


class MediaNotFoundError(Exception):
    """Raised when a video exists but no binary payload was ever attached."""

    def __init__(self, video_id: int):
        self.video_id = video_id
        super().__init__(f"No media data for video: {video_id}")


class AlreadyLikedError(Exception):
    """Raised when a user likes a video they already like."""

    def __init__(self, video_id: int, username: str):
        self.video_id = video_id
        self.username = username
        super().__init__(f"User {username} already likes video {video_id}")


class NotLikedError(Exception):
    """Raised when a user unlikes a video they never liked."""

    def __init__(self, video_id: int, username: str):
        self.video_id = video_id
        self.username = username
        super().__init__(f"User {username} has not liked video {video_id}")


class BlobStorageError(Exception):
    """Raised by a blob store when reading or writing a payload fails."""


class MediaUnavailableError(Exception):
    """Raised when the media payload of a video could not be transferred."""

    def __init__(self, video_id: int):
        self.video_id = video_id
        super().__init__(f"Media transfer failed for video: {video_id}")


class DuplicateVideoIdError(Exception):
    """Raised when inserting a record whose id is already stored."""

    def __init__(self, video_id: int):
        self.video_id = video_id
        super().__init__(f"Video id already in use: {video_id}")


class ConcurrentUpdateError(Exception):
    """Raised when a save is based on an outdated version of the record."""

    def __init__(self, video_id: int):
        self.video_id = video_id
        super().__init__(f"Video {video_id} was modified concurrently")
