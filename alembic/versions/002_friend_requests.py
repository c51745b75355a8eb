"""Friend requests: pending/accepted status and one edge per user pair

Revision ID: 002
Revises: 001
Create Date: 2026-08-21

Run before deploying the request/accept API. Existing rows predate requests
and become accepted friendships.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

from platypus.database import notify_schema_reload

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "friendships",
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
    )
    op.create_check_constraint(
        "ck_friendships_status_valid", "friendships", "status IN ('pending', 'accepted')"
    )
    op.execute("UPDATE friendships SET status = 'accepted'")

    op.create_index("ix_friendships_status", "friendships", ["status"])
    op.create_index("ix_friendships_friend_id", "friendships", ["friend_id"])

    op.execute("DELETE FROM friendships WHERE user_id = friend_id")
    op.create_check_constraint("ck_friendships_not_self", "friendships", "user_id <> friend_id")

    # Instant-add allowed both A->B and B->A; keep the row sent by the lower id
    op.execute(
        """
        DELETE FROM friendships
        WHERE user_id > friend_id
          AND EXISTS (
            SELECT 1 FROM friendships AS r
            WHERE r.user_id = friendships.friend_id AND r.friend_id = friendships.user_id
          )
        """
    )

    # Unordered pair key replaces the per-direction unique constraint
    op.add_column("friendships", sa.Column("pair_low", sa.Uuid(), nullable=True))
    op.add_column("friendships", sa.Column("pair_high", sa.Uuid(), nullable=True))
    op.execute(
        """
        UPDATE friendships SET
          pair_low = CASE WHEN user_id < friend_id THEN user_id ELSE friend_id END,
          pair_high = CASE WHEN user_id < friend_id THEN friend_id ELSE user_id END
        """
    )
    op.alter_column("friendships", "pair_low", nullable=False)
    op.alter_column("friendships", "pair_high", nullable=False)
    op.drop_constraint("uq_friendships_user_id", "friendships", type_="unique")
    op.create_unique_constraint("uq_friendships_pair", "friendships", ["pair_low", "pair_high"])

    notify_schema_reload(op.get_bind())


def downgrade() -> None:
    op.drop_constraint("uq_friendships_pair", "friendships", type_="unique")
    op.create_unique_constraint("uq_friendships_user_id", "friendships", ["user_id", "friend_id"])
    op.drop_column("friendships", "pair_high")
    op.drop_column("friendships", "pair_low")
    op.drop_constraint("ck_friendships_not_self", "friendships", type_="check")
    op.drop_index("ix_friendships_friend_id", table_name="friendships")
    op.drop_index("ix_friendships_status", table_name="friendships")
    # Pending requests have no meaning without the status column
    op.execute("DELETE FROM friendships WHERE status = 'pending'")
    op.drop_constraint("ck_friendships_status_valid", "friendships", type_="check")
    op.drop_column("friendships", "status")
