"""Row-level access rules for friendships, photos and nicknames.

Every rule exists twice: as a predicate over a loaded row, and as a
SQLAlchemy clause that filters a query down to the rows a principal may
touch. Services use the clauses so that UPDATE and DELETE against a row the
principal cannot see affect zero rows, while a forbidden INSERT raises
``PermissionDenied``.
"""
import uuid
from collections.abc import Iterable

from sqlalchemy import ColumnElement, and_, or_, select, union

from platypus.models.friend_nickname import FriendNickname
from platypus.models.friendship import Friendship, FriendshipStatus
from platypus.models.photo import Photo


class PermissionDenied(Exception):
    """A write failed its access check. Carries no row detail on purpose."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message)


# --- Friendships ---


def can_select_friendship(principal: uuid.UUID, friendship: Friendship) -> bool:
    return principal in (friendship.user_id, friendship.friend_id)


def can_insert_friendship(
    principal: uuid.UUID, user_id: uuid.UUID, friend_id: uuid.UUID
) -> bool:
    # Requests can only be sent as yourself, and never to yourself
    return principal == user_id and user_id != friend_id


def can_update_friendship(principal: uuid.UUID, friendship: Friendship) -> bool:
    # Only the receiver moves pending -> accepted
    return principal == friendship.friend_id


def can_delete_friendship(principal: uuid.UUID, friendship: Friendship) -> bool:
    # Sender cancels, receiver rejects, either side unfriends
    return principal in (friendship.user_id, friendship.friend_id)


def friendship_visible_to(principal: uuid.UUID) -> ColumnElement[bool]:
    return or_(Friendship.user_id == principal, Friendship.friend_id == principal)


def friendship_updatable_by(principal: uuid.UUID) -> ColumnElement[bool]:
    return Friendship.friend_id == principal


def friendship_deletable_by(principal: uuid.UUID) -> ColumnElement[bool]:
    return or_(Friendship.user_id == principal, Friendship.friend_id == principal)


# --- Photos ---


def can_select_photo(
    principal: uuid.UUID, owner_id: uuid.UUID, friendships: Iterable[Friendship]
) -> bool:
    """Owner always; otherwise an accepted edge in either direction."""
    if principal == owner_id:
        return True
    for f in friendships:
        if not f.is_accepted:
            continue
        if {f.user_id, f.friend_id} == {principal, owner_id}:
            return True
    return False


def accepted_friend_ids(principal: uuid.UUID):
    """Ids on the other end of every accepted edge touching ``principal``."""
    sent = select(Friendship.friend_id).where(
        Friendship.user_id == principal,
        Friendship.status == FriendshipStatus.ACCEPTED.value,
    )
    received = select(Friendship.user_id).where(
        Friendship.friend_id == principal,
        Friendship.status == FriendshipStatus.ACCEPTED.value,
    )
    return union(sent, received)


def photo_visible_to(principal: uuid.UUID) -> ColumnElement[bool]:
    return or_(
        Photo.user_id == principal,
        Photo.user_id.in_(accepted_friend_ids(principal)),
    )


def photo_writable_by(principal: uuid.UUID) -> ColumnElement[bool]:
    return Photo.user_id == principal


# --- Nicknames ---


def can_access_nickname(principal: uuid.UUID, nickname: FriendNickname) -> bool:
    return principal == nickname.user_id


def nickname_owned_by(principal: uuid.UUID) -> ColumnElement[bool]:
    return FriendNickname.user_id == principal


def pair_edge(a: uuid.UUID, b: uuid.UUID) -> ColumnElement[bool]:
    """Matches the edge between two users in either direction."""
    return or_(
        and_(Friendship.user_id == a, Friendship.friend_id == b),
        and_(Friendship.user_id == b, Friendship.friend_id == a),
    )
