import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class PhotoCreate(BaseModel):
    url: str = Field(max_length=2048)
    date_taken: datetime
    location: str | None = Field(default=None, max_length=255)
    file_hash: str | None = Field(default=None, max_length=128)


class PhotoUpdate(BaseModel):
    date_taken: datetime | None = None
    location: str | None = Field(default=None, max_length=255)


class PhotoResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    url: str
    date_taken: datetime
    location: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class SharedPhotoResponse(PhotoResponse):
    author: str | None = None  # None for the viewer's own photos
    download_allowed: bool = True


class DuplicateCheckRequest(BaseModel):
    hashes: list[str] = Field(max_length=500)


class DuplicateCheckResponse(BaseModel):
    duplicates: list[str]
