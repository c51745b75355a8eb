"""Private per-user nicknames for friends

Revision ID: 004
Revises: 003
Create Date: 2026-09-30
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

from platypus.database import notify_schema_reload

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "friend_nicknames",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("friend_id", sa.Uuid(), nullable=False),
        sa.Column("nickname", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_friend_nicknames"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_friend_nicknames_user_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["friend_id"], ["users.id"], name="fk_friend_nicknames_friend_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "friend_id", name="uq_friend_nicknames_pair"),
    )
    op.create_index("ix_friend_nicknames_user_id", "friend_nicknames", ["user_id"])

    notify_schema_reload(op.get_bind())


def downgrade() -> None:
    op.drop_table("friend_nicknames")
