import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class FriendRequestCreate(BaseModel):
    friend_id: uuid.UUID


class FriendshipResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    friend_id: uuid.UUID
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class FriendResponse(BaseModel):
    friendship_id: uuid.UUID
    user_id: uuid.UUID
    username: str
    handle: str
    avatar_url: str | None
    nickname: str | None = None
    since: datetime


class FriendRequestEntry(BaseModel):
    friendship_id: uuid.UUID
    user_id: uuid.UUID
    username: str
    handle: str
    avatar_url: str | None
    created_at: datetime


class PendingRequestsResponse(BaseModel):
    received: list[FriendRequestEntry] = []
    sent: list[FriendRequestEntry] = []


class StatusLookupRequest(BaseModel):
    user_ids: list[uuid.UUID] = Field(max_length=100)


class FriendshipStatusEntry(BaseModel):
    friendship_id: uuid.UUID
    status: str
    direction: str  # "sent" or "received"


class NicknameUpdate(BaseModel):
    nickname: str = Field(min_length=1, max_length=100)


class NicknameResponse(BaseModel):
    friend_id: uuid.UUID
    nickname: str

    model_config = {"from_attributes": True}
