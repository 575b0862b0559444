# pyright: reportAttributeAccessIssue=false, reportUndefinedVariable=false
"""add_challenges

Revision ID: 8b4e6d2c1a57
Revises: 3f1c2a7d9b10
Create Date: 2026-10-18 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8b4e6d2c1a57"
down_revision: str | None = "3f1c2a7d9b10"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

challenge_status = sa.Enum("PENDING", "ACCEPTED", "DECLINED", "COMPLETED", name="challengestatus")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "challenges",
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("challenger_id", sa.Integer(), nullable=False),
        sa.Column("challenged_id", sa.Integer(), nullable=False),
        sa.Column("status", challenge_status, nullable=False),
        sa.Column("challenger_cards", sa.JSON(), nullable=True),
        sa.Column("challenger_order", sa.JSON(), nullable=True),
        sa.Column("challenged_cards", sa.JSON(), nullable=True),
        sa.Column("challenged_order", sa.JSON(), nullable=True),
        sa.Column("revealed_cards", sa.JSON(), nullable=True),
        sa.Column("battle_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["challenger_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["challenged_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["battle_id"], ["battles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_challenges_id"), "challenges", ["id"])
    op.create_index(op.f("ix_challenges_challenger_id"), "challenges", ["challenger_id"])
    op.create_index(op.f("ix_challenges_challenged_id"), "challenges", ["challenged_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_challenges_challenged_id"), table_name="challenges")
    op.drop_index(op.f("ix_challenges_challenger_id"), table_name="challenges")
    op.drop_index(op.f("ix_challenges_id"), table_name="challenges")
    op.drop_table("challenges")
    challenge_status.drop(op.get_bind(), checkfirst=True)
