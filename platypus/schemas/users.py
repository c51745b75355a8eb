import uuid

from pydantic import BaseModel, Field


class ProfileUpdate(BaseModel):
    username: str | None = Field(default=None, min_length=1, max_length=255)
    handle: str | None = Field(default=None, min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.]+$")
    avatar_url: str | None = Field(default=None, max_length=1024)


class PrivacyUpdate(BaseModel):
    block_friend_requests: bool | None = None
    lock_photo_downloads: bool | None = None
    hide_location: bool | None = None


class UserSummary(BaseModel):
    id: uuid.UUID
    username: str
    handle: str
    avatar_url: str | None

    model_config = {"from_attributes": True}


class UserStats(BaseModel):
    photo_count: int
    friend_count: int
