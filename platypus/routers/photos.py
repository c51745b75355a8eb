import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from platypus.database import get_db
from platypus.dependencies import get_current_user
from platypus.models.user import User
from platypus.schemas.photos import (
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    PhotoCreate,
    PhotoResponse,
    PhotoUpdate,
    SharedPhotoResponse,
)
from platypus.services import photo_service

router = APIRouter(prefix="/photos", tags=["photos"])


@router.get("", response_model=list[PhotoResponse])
async def list_photos(
    location: str | None = Query(default=None, max_length=255),
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    sort_field: str = Query(default="date_taken", pattern=r"^(date_taken|created_at)$"),
    sort_order: str = Query(default="desc", pattern=r"^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await photo_service.get_photos(
        db, user.id, location=location, start_date=start_date, end_date=end_date,
        sort_field=sort_field, sort_order=sort_order, limit=limit, offset=offset,
    )


@router.post("", response_model=PhotoResponse, status_code=201)
async def create_photo(
    data: PhotoCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await photo_service.create_photo(db, user.id, data.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/duplicates", response_model=DuplicateCheckResponse)
async def check_duplicates(
    data: DuplicateCheckRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    duplicates = await photo_service.check_duplicate_hashes(db, user.id, data.hashes)
    return {"duplicates": duplicates}


@router.get("/friends", response_model=list[SharedPhotoResponse])
async def list_friends_photos(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await photo_service.get_friends_photos(db, user.id, limit=limit, offset=offset)


@router.get("/{photo_id}", response_model=SharedPhotoResponse)
async def get_photo(
    photo_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    photo = await photo_service.get_photo(db, user.id, photo_id)
    if photo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found")
    return photo


@router.patch("/{photo_id}", response_model=PhotoResponse)
async def update_photo(
    photo_id: uuid.UUID,
    data: PhotoUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    photo = await photo_service.update_photo(
        db, user.id, photo_id, data.model_dump(exclude_unset=True)
    )
    if photo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found")
    return photo


@router.delete("/{photo_id}", status_code=204)
async def delete_photo(
    photo_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not await photo_service.delete_photo(db, user.id, photo_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found")
