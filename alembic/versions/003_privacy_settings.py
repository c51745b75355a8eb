"""Privacy settings on users

Revision ID: 003
Revises: 002
Create Date: 2026-09-09

block_friend_requests: incoming friend requests are refused
lock_photo_downloads: friends may view but not download this user's photos
hide_location: photo location is hidden from friends
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

from platypus.database import notify_schema_reload

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("users", sa.Column("block_friend_requests", sa.Boolean(), server_default="false", nullable=False))
    op.add_column("users", sa.Column("lock_photo_downloads", sa.Boolean(), server_default="false", nullable=False))
    op.add_column("users", sa.Column("hide_location", sa.Boolean(), server_default="true", nullable=False))

    notify_schema_reload(op.get_bind())


def downgrade() -> None:
    op.drop_column("users", "hide_location")
    op.drop_column("users", "lock_photo_downloads")
    op.drop_column("users", "block_friend_requests")
