from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from platypus.database import get_db
from platypus.dependencies import get_current_user
from platypus.models.user import User
from platypus.schemas.auth import UserResponse
from platypus.schemas.users import PrivacyUpdate, ProfileUpdate, UserStats, UserSummary
from platypus.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=list[UserSummary])
async def search_users(
    q: str = Query(min_length=1, max_length=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.search_users(db, q)


@router.get("/me/stats", response_model=UserStats)
async def get_my_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_user_stats(db, user.id)


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    db_user = await db.get(User, user.id)
    try:
        return await user_service.update_profile(db, db_user, data.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.patch("/me/privacy", response_model=UserResponse)
async def update_privacy(
    data: PrivacyUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    db_user = await db.get(User, user.id)
    return await user_service.update_privacy(db, db_user, data.model_dump(exclude_unset=True))


@router.post("/me/sync", response_model=UserResponse)
async def mark_synced(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    db_user = await db.get(User, user.id)
    return await user_service.update_last_sync(db, db_user)
