import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint, event
from sqlalchemy.orm import Mapped, mapped_column

from platypus.models.base import Base


class FriendshipStatus(str, enum.Enum):
    """Closed set of edge states. Rejection deletes the row."""

    PENDING = "pending"
    ACCEPTED = "accepted"


class Friendship(Base):
    __tablename__ = "friendships"

    # Directed edge: user_id sent the request, friend_id receives it
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    friend_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=FriendshipStatus.PENDING.value,
        server_default=FriendshipStatus.PENDING.value, index=True,
    )
    # Unordered pair key, filled on insert. One edge per pair regardless of direction.
    pair_low: Mapped[uuid.UUID] = mapped_column(nullable=False)
    pair_high: Mapped[uuid.UUID] = mapped_column(nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint("pair_low", "pair_high", name="uq_friendships_pair"),
        CheckConstraint("user_id <> friend_id", name="not_self"),
        CheckConstraint("status IN ('pending', 'accepted')", name="status_valid"),
    )

    @property
    def is_accepted(self) -> bool:
        return self.status == FriendshipStatus.ACCEPTED.value

    def other_party(self, user_id: uuid.UUID) -> uuid.UUID:
        return self.friend_id if self.user_id == user_id else self.user_id


def pair_key(a: uuid.UUID, b: uuid.UUID) -> tuple[uuid.UUID, uuid.UUID]:
    return (min(a, b), max(a, b))


@event.listens_for(Friendship, "before_insert")
def _fill_pair_key(mapper, connection, target: Friendship) -> None:
    target.pair_low, target.pair_high = pair_key(target.user_id, target.friend_id)
