import logging
import uuid
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from platypus.database import violates_constraint
from platypus.models.photo import Photo
from platypus.models.user import User
from platypus.policies import accepted_friend_ids, photo_visible_to, photo_writable_by

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "date_taken": Photo.date_taken,
    "created_at": Photo.created_at,
}


def present_photo(photo: Photo, owner: User, viewer_id: uuid.UUID) -> dict:
    """Shape a photo for ``viewer_id``, applying the owner's privacy flags."""
    own = photo.user_id == viewer_id
    return {
        "id": photo.id,
        "user_id": photo.user_id,
        "url": photo.url,
        "date_taken": photo.date_taken,
        "created_at": photo.created_at,
        "location": photo.location if own or not owner.hide_location else None,
        "author": None if own else owner.username,
        "download_allowed": own or not owner.lock_photo_downloads,
    }


async def create_photo(db: AsyncSession, user_id: uuid.UUID, data: dict) -> Photo:
    photo = Photo(user_id=user_id, **data)
    try:
        async with db.begin_nested():
            db.add(photo)
            await db.flush()
    except IntegrityError as e:
        if not violates_constraint(
            e, "uq_photos_user_file_hash", "photos.user_id", "photos.file_hash"
        ):
            raise
        raise ValueError("Photo already uploaded")
    await db.refresh(photo)
    return photo


async def check_duplicate_hashes(
    db: AsyncSession, user_id: uuid.UUID, hashes: list[str]
) -> list[str]:
    """Return which of ``hashes`` the user has already uploaded."""
    if not hashes:
        return []
    result = await db.execute(
        select(Photo.file_hash).where(Photo.user_id == user_id, Photo.file_hash.in_(hashes))
    )
    return [row[0] for row in result.all()]


async def get_photos(
    db: AsyncSession,
    user_id: uuid.UUID,
    location: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    sort_field: str = "date_taken",
    sort_order: str = "desc",
    limit: int = 50,
    offset: int = 0,
) -> list[Photo]:
    """The user's own photos."""
    column = SORT_FIELDS.get(sort_field)
    if column is None:
        raise ValueError(f"Cannot sort by {sort_field}")

    query = select(Photo).where(Photo.user_id == user_id)
    if location:
        query = query.where(Photo.location.ilike(f"%{location}%"))
    if start_date:
        query = query.where(Photo.date_taken >= start_date)
    if end_date:
        query = query.where(Photo.date_taken <= end_date)
    query = query.order_by(column.asc() if sort_order == "asc" else column.desc())
    query = query.limit(limit).offset(offset)

    result = await db.execute(query)
    return list(result.scalars().all())


async def get_photo(db: AsyncSession, user_id: uuid.UUID, photo_id: uuid.UUID) -> dict | None:
    """A single photo, if the user owns it or is an accepted friend of the owner."""
    result = await db.execute(
        select(Photo, User)
        .join(User, User.id == Photo.user_id)
        .where(Photo.id == photo_id, photo_visible_to(user_id))
    )
    row = result.first()
    if row is None:
        return None
    photo, owner = row
    return present_photo(photo, owner, user_id)


async def get_friends_photos(
    db: AsyncSession, user_id: uuid.UUID, limit: int = 50, offset: int = 0
) -> list[dict]:
    """Accepted friends' photos, newest first."""
    result = await db.execute(
        select(Photo, User)
        .join(User, User.id == Photo.user_id)
        .where(Photo.user_id.in_(accepted_friend_ids(user_id)))
        .order_by(Photo.date_taken.desc())
        .limit(limit)
        .offset(offset)
    )
    return [present_photo(photo, owner, user_id) for photo, owner in result.all()]


async def update_photo(
    db: AsyncSession, user_id: uuid.UUID, photo_id: uuid.UUID, data: dict
) -> Photo | None:
    result = await db.execute(
        select(Photo).where(Photo.id == photo_id, photo_writable_by(user_id))
    )
    photo = result.scalar_one_or_none()
    if photo is None:
        return None

    for key, value in data.items():
        setattr(photo, key, value)

    await db.flush()
    await db.refresh(photo)
    return photo


async def delete_photo(db: AsyncSession, user_id: uuid.UUID, photo_id: uuid.UUID) -> bool:
    result = await db.execute(
        delete(Photo).where(Photo.id == photo_id, photo_writable_by(user_id))
    )
    if result.rowcount:
        logger.info("Photo %s deleted by %s", photo_id, user_id)
    return result.rowcount > 0
