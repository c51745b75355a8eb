import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class RefreshRequest(BaseModel):
    refresh_token: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    username: str | None = Field(default=None, max_length=255)
    handle: str | None = Field(default=None, min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.]+$")


class EmailLoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    username: str
    handle: str
    avatar_url: str | None
    block_friend_requests: bool
    lock_photo_downloads: bool
    hide_location: bool
    last_sync_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
