import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from platypus.config import settings
from platypus.models.friend_nickname import FriendNickname
from platypus.models.friendship import Friendship, FriendshipStatus
from platypus.models.photo import Photo
from platypus.models.user import User

logger = logging.getLogger(__name__)

PRIVACY_FIELDS = ("block_friend_requests", "lock_photo_downloads", "hide_location")
PROFILE_FIELDS = ("username", "handle", "avatar_url")


async def get_profile(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    return await db.get(User, user_id)


async def update_profile(db: AsyncSession, user: User, data: dict) -> User:
    handle = data.get("handle")
    if handle and handle != user.handle:
        taken = await db.execute(select(User.id).where(User.handle == handle))
        if taken.first() is not None:
            raise ValueError("Handle already taken")

    for key in PROFILE_FIELDS:
        if data.get(key) is not None:
            setattr(user, key, data[key])
    user.updated_at = datetime.now(timezone.utc)

    await db.flush()
    await db.refresh(user)
    return user


async def update_privacy(db: AsyncSession, user: User, data: dict) -> User:
    """Partial update of the privacy flags. Unset flags keep their value."""
    for key in PRIVACY_FIELDS:
        if data.get(key) is not None:
            setattr(user, key, bool(data[key]))
    user.updated_at = datetime.now(timezone.utc)

    await db.flush()
    await db.refresh(user)
    logger.info("Privacy settings updated for %s", user.id)
    return user


async def update_last_sync(db: AsyncSession, user: User) -> User:
    user.last_sync_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(user)
    return user


async def search_users(db: AsyncSession, term: str) -> list[User]:
    """Case-insensitive substring match on username or handle."""
    term = term.strip()
    if not term:
        return []
    pattern = f"%{term}%"
    result = await db.execute(
        select(User)
        .where(or_(User.username.ilike(pattern), User.handle.ilike(pattern)))
        .order_by(User.username)
        .limit(settings.USER_SEARCH_LIMIT)
    )
    return list(result.scalars().all())


async def get_user_stats(db: AsyncSession, user_id: uuid.UUID) -> dict:
    photo_count = await db.scalar(
        select(func.count(Photo.id)).where(Photo.user_id == user_id)
    )
    friend_count = await db.scalar(
        select(func.count(Friendship.id)).where(
            or_(Friendship.user_id == user_id, Friendship.friend_id == user_id),
            Friendship.status == FriendshipStatus.ACCEPTED.value,
        )
    )
    return {
        "photo_count": photo_count or 0,
        "friend_count": friend_count or 0,
    }


async def delete_account(db: AsyncSession, user_id: uuid.UUID) -> bool:
    """Delete the user and everything hanging off it, in both edge directions."""
    user = await db.get(User, user_id)
    if user is None:
        return False

    await db.execute(
        delete(Friendship).where(
            or_(Friendship.user_id == user_id, Friendship.friend_id == user_id)
        )
    )
    await db.execute(
        delete(FriendNickname).where(
            or_(FriendNickname.user_id == user_id, FriendNickname.friend_id == user_id)
        )
    )
    await db.execute(delete(Photo).where(Photo.user_id == user_id))
    await db.delete(user)
    await db.flush()

    logger.info("Account %s deleted", user_id)
    return True
