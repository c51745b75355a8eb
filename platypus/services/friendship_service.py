import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from platypus.config import settings
from platypus.database import violates_constraint
from platypus.models.friend_nickname import FriendNickname
from platypus.models.friendship import Friendship, FriendshipStatus
from platypus.models.user import User
from platypus.policies import (
    PermissionDenied,
    can_insert_friendship,
    friendship_deletable_by,
    friendship_updatable_by,
    friendship_visible_to,
    pair_edge,
)

logger = logging.getLogger(__name__)


class DuplicateFriendshipError(ValueError):
    """An edge already exists between the two users."""


# --- Policy-checked row operations ---


async def select_friendships(db: AsyncSession, principal: uuid.UUID) -> list[Friendship]:
    """All edges where the principal is sender or receiver."""
    result = await db.execute(
        select(Friendship)
        .where(friendship_visible_to(principal))
        .order_by(Friendship.created_at.desc())
    )
    return list(result.scalars().all())


async def insert_friendship(
    db: AsyncSession,
    principal: uuid.UUID,
    user_id: uuid.UUID,
    friend_id: uuid.UUID,
    status: FriendshipStatus = FriendshipStatus.PENDING,
) -> Friendship:
    """Insert an edge after the access check and the duplicate guard.

    The pair unique constraint is the final arbiter: a concurrent insert of
    the reverse edge surfaces as IntegrityError and is reported the same way
    as a duplicate caught by the lookup. Only the insert's savepoint is rolled
    back; earlier work in the caller's transaction is kept.
    """
    if not can_insert_friendship(principal, user_id, friend_id):
        logger.warning("Friendship insert denied for principal %s", principal)
        raise PermissionDenied()

    status = FriendshipStatus(status)

    existing = await db.execute(select(Friendship).where(pair_edge(user_id, friend_id)))
    edge = existing.scalars().first()
    if edge is not None:
        if edge.user_id == friend_id:
            raise DuplicateFriendshipError("Friendship already exists in reverse direction")
        raise DuplicateFriendshipError("Friendship already exists")

    friendship = Friendship(user_id=user_id, friend_id=friend_id, status=status.value)
    try:
        async with db.begin_nested():
            db.add(friendship)
            await db.flush()
    except IntegrityError as e:
        if not violates_constraint(
            e, "uq_friendships_pair", "friendships.pair_low", "friendships.pair_high"
        ):
            raise
        logger.warning("Concurrent friendship insert rejected: %s -> %s", user_id, friend_id)
        raise DuplicateFriendshipError("Friendship already exists in reverse direction")

    await db.refresh(friendship)
    return friendship


async def update_friendship_status(
    db: AsyncSession,
    principal: uuid.UUID,
    friendship_id: uuid.UUID,
    status: FriendshipStatus,
    expected: FriendshipStatus | None = None,
) -> int:
    """Set the status of an edge the principal receives. Returns rows affected."""
    status = FriendshipStatus(status)
    stmt = (
        update(Friendship)
        .where(Friendship.id == friendship_id, friendship_updatable_by(principal))
        .values(status=status.value)
    )
    if expected is not None:
        stmt = stmt.where(Friendship.status == FriendshipStatus(expected).value)
    result = await db.execute(stmt)
    return result.rowcount


async def delete_friendship(
    db: AsyncSession,
    principal: uuid.UUID,
    friendship_id: uuid.UUID,
    *conditions,
) -> int:
    """Delete an edge the principal is party to. Returns rows affected."""
    result = await db.execute(
        delete(Friendship)
        .where(Friendship.id == friendship_id, friendship_deletable_by(principal), *conditions)
    )
    return result.rowcount


# --- Request flows ---


async def send_request(
    db: AsyncSession, user_id: uuid.UUID, friend_id: uuid.UUID, redis_client
) -> Friendship:
    """Send a friend request. Rate limited per sender per day."""
    today_key = f"friend_requests:{user_id}:{datetime.now(timezone.utc).date()}"
    count = await redis_client.get(today_key)
    if count and int(count) >= settings.FRIEND_REQUEST_DAILY_LIMIT:
        raise ValueError(
            f"Daily friend request limit reached ({settings.FRIEND_REQUEST_DAILY_LIMIT}/day)"
        )

    if friend_id == user_id:
        raise ValueError("Cannot send a friend request to yourself")

    target = await db.get(User, friend_id)
    if target is None:
        raise LookupError("User not found")

    existing = await db.execute(select(Friendship).where(pair_edge(user_id, friend_id)))
    edge = existing.scalars().first()
    if edge is not None:
        if edge.is_accepted:
            raise DuplicateFriendshipError("Already friends")
        if edge.user_id == user_id:
            raise DuplicateFriendshipError("Request already sent")
        raise DuplicateFriendshipError("They already sent you a request")

    if target.block_friend_requests:
        raise ValueError("User is not accepting friend requests")

    friendship = await insert_friendship(db, user_id, user_id, friend_id)

    await redis_client.incr(today_key)
    await redis_client.expire(today_key, 86400)

    logger.info("Friend request %s sent: %s -> %s", friendship.id, user_id, friend_id)
    return friendship


async def accept_request(
    db: AsyncSession, user_id: uuid.UUID, friendship_id: uuid.UUID
) -> bool:
    """Accept a pending request. Only the receiver can accept."""
    affected = await update_friendship_status(
        db, user_id, friendship_id,
        FriendshipStatus.ACCEPTED, expected=FriendshipStatus.PENDING,
    )
    if affected:
        logger.info("Friend request %s accepted by %s", friendship_id, user_id)
    return affected > 0


async def reject_request(
    db: AsyncSession, user_id: uuid.UUID, friendship_id: uuid.UUID
) -> bool:
    """Reject an incoming request. The row is deleted; no history is kept."""
    affected = await delete_friendship(
        db, user_id, friendship_id,
        Friendship.friend_id == user_id,
        Friendship.status == FriendshipStatus.PENDING.value,
    )
    if affected:
        logger.info("Friend request %s rejected by %s", friendship_id, user_id)
    return affected > 0


async def cancel_request(
    db: AsyncSession, user_id: uuid.UUID, friendship_id: uuid.UUID
) -> bool:
    """Cancel a request the user sent that is still pending."""
    affected = await delete_friendship(
        db, user_id, friendship_id,
        Friendship.user_id == user_id,
        Friendship.status == FriendshipStatus.PENDING.value,
    )
    if affected:
        logger.info("Friend request %s cancelled by %s", friendship_id, user_id)
    return affected > 0


async def remove_friend(db: AsyncSession, user_id: uuid.UUID, friend_id: uuid.UUID) -> bool:
    """Unfriend, whichever side sent the original request."""
    result = await db.execute(
        select(Friendship.id).where(
            pair_edge(user_id, friend_id),
            Friendship.status == FriendshipStatus.ACCEPTED.value,
        )
    )
    friendship_id = result.scalar_one_or_none()
    if friendship_id is None:
        return False

    affected = await delete_friendship(db, user_id, friendship_id)
    if affected:
        await db.execute(
            delete(FriendNickname).where(
                or_(
                    and_(FriendNickname.user_id == user_id, FriendNickname.friend_id == friend_id),
                    and_(FriendNickname.user_id == friend_id, FriendNickname.friend_id == user_id),
                )
            )
        )
        logger.info("Friendship %s removed by %s", friendship_id, user_id)
    return affected > 0


# --- Queries ---


async def get_friend_ids(db: AsyncSession, user_id: uuid.UUID) -> list[uuid.UUID]:
    """Get all accepted friend user IDs for a user."""
    result = await db.execute(
        select(Friendship).where(
            friendship_visible_to(user_id),
            Friendship.status == FriendshipStatus.ACCEPTED.value,
        )
    )
    friend_ids = []
    for f in result.scalars().all():
        other = f.other_party(user_id)
        if other not in friend_ids:
            friend_ids.append(other)
    return friend_ids


async def are_friends(db: AsyncSession, user_a: uuid.UUID, user_b: uuid.UUID) -> bool:
    """Check if two users are accepted friends."""
    result = await db.execute(
        select(Friendship.id).where(
            pair_edge(user_a, user_b),
            Friendship.status == FriendshipStatus.ACCEPTED.value,
        )
    )
    return result.first() is not None


async def get_friends(db: AsyncSession, user_id: uuid.UUID) -> list[dict]:
    """Accepted friends in both directions, with the caller's nicknames applied."""
    result = await db.execute(
        select(Friendship).where(
            friendship_visible_to(user_id),
            Friendship.status == FriendshipStatus.ACCEPTED.value,
        )
    )
    friendships = result.scalars().all()

    nick_result = await db.execute(
        select(FriendNickname).where(FriendNickname.user_id == user_id)
    )
    nicknames = {n.friend_id: n.nickname for n in nick_result.scalars().all()}

    friends = []
    seen = set()
    for f in friendships:
        other_id = f.other_party(user_id)
        if other_id in seen:
            continue
        seen.add(other_id)
        friend = await db.get(User, other_id)
        if friend is None:
            continue
        friends.append({
            "friendship_id": f.id,
            "user_id": friend.id,
            "username": friend.username,
            "handle": friend.handle,
            "avatar_url": friend.avatar_url,
            "nickname": nicknames.get(friend.id),
            "since": f.created_at,
        })
    return friends


async def get_pending_requests(db: AsyncSession, user_id: uuid.UUID) -> dict:
    """Pending requests split into received and sent, newest first."""
    result = await db.execute(
        select(Friendship, User)
        .join(User, User.id == Friendship.user_id)
        .where(
            Friendship.friend_id == user_id,
            Friendship.status == FriendshipStatus.PENDING.value,
        )
        .order_by(Friendship.created_at.desc())
    )
    received = [_request_entry(f, u) for f, u in result.all()]

    result = await db.execute(
        select(Friendship, User)
        .join(User, User.id == Friendship.friend_id)
        .where(
            Friendship.user_id == user_id,
            Friendship.status == FriendshipStatus.PENDING.value,
        )
        .order_by(Friendship.created_at.desc())
    )
    sent = [_request_entry(f, u) for f, u in result.all()]

    return {"received": received, "sent": sent}


def _request_entry(friendship: Friendship, other: User) -> dict:
    return {
        "friendship_id": friendship.id,
        "user_id": other.id,
        "username": other.username,
        "handle": other.handle,
        "avatar_url": other.avatar_url,
        "created_at": friendship.created_at,
    }


async def get_friendship_statuses(
    db: AsyncSession, user_id: uuid.UUID, other_ids: list[uuid.UUID]
) -> dict[uuid.UUID, dict]:
    """Batch lookup of the caller's edge with each of ``other_ids``."""
    if not other_ids:
        return {}

    result = await db.execute(
        select(Friendship).where(
            friendship_visible_to(user_id),
            or_(
                and_(Friendship.user_id == user_id, Friendship.friend_id.in_(other_ids)),
                and_(Friendship.friend_id == user_id, Friendship.user_id.in_(other_ids)),
            ),
        )
    )
    statuses = {}
    for f in result.scalars().all():
        sent = f.user_id == user_id
        statuses[f.friend_id if sent else f.user_id] = {
            "friendship_id": f.id,
            "status": f.status,
            "direction": "sent" if sent else "received",
        }
    return statuses
