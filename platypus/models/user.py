from datetime import datetime, timezone

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from platypus.models.base import Base


class User(Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    handle: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)  # public search id
    avatar_url: Mapped[str | None] = mapped_column(String(1024))
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Privacy
    block_friend_requests: Mapped[bool] = mapped_column(default=False, server_default="false")
    lock_photo_downloads: Mapped[bool] = mapped_column(default=False, server_default="false")
    hide_location: Mapped[bool] = mapped_column(default=True, server_default="true")

    last_sync_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    photos: Mapped[list["Photo"]] = relationship(back_populates="user", cascade="all, delete-orphan")  # noqa: F821
