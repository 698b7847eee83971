from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ids and durations are stored as signed 64-bit integers
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

Int64 = Annotated[int, Field(ge=INT64_MIN, le=INT64_MAX)]


class VideoCreate(BaseModel):
    """Client-supplied metadata. likes, likedBy and dataUrl are computed by the server."""

    id: Annotated[int, Field(ge=0, le=INT64_MAX)] = 0
    title: str
    duration: Int64

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VideoRecord(BaseModel):
    id: int
    title: str
    duration: int
    data_url: str | None = None
    likes: int = 0
    liked_by: list[str] = Field(default_factory=list)
    # optimistic locking counter, never sent to clients
    version: int = Field(default=0, exclude=True)

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class VideoState(str, Enum):
    PROCESSING = "PROCESSING"
    READY = "READY"
    FAILED = "FAILED"


class VideoStatus(BaseModel):
    state: VideoState
