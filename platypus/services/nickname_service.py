import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from platypus.models.friend_nickname import FriendNickname
from platypus.policies import nickname_owned_by
from platypus.services.friendship_service import are_friends


async def set_nickname(
    db: AsyncSession, user_id: uuid.UUID, friend_id: uuid.UUID, nickname: str
) -> FriendNickname:
    """Create or replace the caller's private nickname for a friend."""
    nickname = nickname.strip()
    if not nickname:
        raise ValueError("Nickname cannot be empty")

    if not await are_friends(db, user_id, friend_id):
        raise ValueError("Can only nickname friends")

    result = await db.execute(
        select(FriendNickname).where(
            nickname_owned_by(user_id), FriendNickname.friend_id == friend_id
        )
    )
    entry = result.scalar_one_or_none()
    if entry is None:
        entry = FriendNickname(user_id=user_id, friend_id=friend_id, nickname=nickname)
        db.add(entry)
    else:
        entry.nickname = nickname

    await db.flush()
    await db.refresh(entry)
    return entry


async def get_nicknames(db: AsyncSession, user_id: uuid.UUID) -> dict[uuid.UUID, str]:
    result = await db.execute(select(FriendNickname).where(nickname_owned_by(user_id)))
    return {n.friend_id: n.nickname for n in result.scalars().all()}


async def delete_nickname(db: AsyncSession, user_id: uuid.UUID, friend_id: uuid.UUID) -> bool:
    result = await db.execute(
        delete(FriendNickname).where(
            nickname_owned_by(user_id), FriendNickname.friend_id == friend_id
        )
    )
    return result.rowcount > 0
