# pyright: reportAttributeAccessIssue=false, reportUndefinedVariable=false
"""initial_battle_schema

Revision ID: 3f1c2a7d9b10
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel.sql.sqltypes

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c2a7d9b10"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ability = sa.Enum("STRENGTH", "SPEED", "AGILITY", name="ability")
card_rarity = sa.Enum("COMMON", "UNCOMMON", "RARE", name="cardrarity")
tool_effect_type = sa.Enum("STAT_BOOST", "ANY_STAT_BOOST", "REVEAL_CARDS", name="tooleffecttype")
tool_restriction = sa.Enum("CHALLENGEE", name="toolrestriction")
side = sa.Enum("PLAYER1", "PLAYER2", name="side")
win_reason = sa.Enum("POINTS", "DAMAGE", "COIN_TOSS", name="winreason")
battle_status = sa.Enum("WAITING_FOR_ORDER", "READY", "COMPLETED", name="battlestatus")
event_type = sa.Enum("BATTLE_REWARD", "RATING_CHANGE", "TOOL_USED", name="eventtype")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "players",
        *_timestamps(),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column("coins", sa.Integer(), nullable=False),
        sa.Column("wins", sa.Integer(), nullable=False),
        sa.Column("losses", sa.Integer(), nullable=False),
        sa.Column("pvp_wins", sa.Integer(), nullable=False),
        sa.Column("pvp_losses", sa.Integer(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("last_active", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_players_id"), "players", ["id"])
    op.create_index(op.f("ix_players_name"), "players", ["name"], unique=True)
    op.create_index(op.f("ix_players_rating"), "players", ["rating"])

    op.create_table(
        "cards",
        *_timestamps(),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("title", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=True),
        sa.Column("description", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("rarity", card_rarity, nullable=False),
        sa.Column("strength", sa.Integer(), nullable=False),
        sa.Column("speed", sa.Integer(), nullable=False),
        sa.Column("agility", sa.Integer(), nullable=False),
        sa.Column("critical_hit_chance", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["created_by"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_cards_id"), "cards", ["id"])
    op.create_index(op.f("ix_cards_name"), "cards", ["name"])
    op.create_index(op.f("ix_cards_created_by"), "cards", ["created_by"])

    op.create_table(
        "deck_cards",
        *_timestamps(),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("card_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["card_id"], ["cards.id"]),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_deck_cards_id"), "deck_cards", ["id"])
    op.create_index(op.f("ix_deck_cards_player_id"), "deck_cards", ["player_id"])
    op.create_index(op.f("ix_deck_cards_card_id"), "deck_cards", ["card_id"])

    op.create_table(
        "tools",
        *_timestamps(),
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("description", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("effect_type", tool_effect_type, nullable=False),
        sa.Column("effect_ability", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("effect_value", sa.Integer(), nullable=True),
        sa.Column("cooldown", sa.Integer(), nullable=False),
        sa.Column("restriction", tool_restriction, nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "player_tools",
        *_timestamps(),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("tool_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("cooldown_remaining", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["tool_id"], ["tools.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("player_id", "tool_id"),
    )
    op.create_index(op.f("ix_player_tools_id"), "player_tools", ["id"])
    op.create_index(op.f("ix_player_tools_player_id"), "player_tools", ["player_id"])
    op.create_index(op.f("ix_player_tools_tool_id"), "player_tools", ["tool_id"])

    op.create_table(
        "battles",
        *_timestamps(),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player1_id", sa.Integer(), nullable=False),
        sa.Column("player2_id", sa.Integer(), nullable=True),
        sa.Column("is_simulation", sa.Boolean(), nullable=False),
        sa.Column("player1_cards", sa.JSON(), nullable=True),
        sa.Column("player2_cards", sa.JSON(), nullable=True),
        sa.Column("player1_order", sa.JSON(), nullable=True),
        sa.Column("player2_order", sa.JSON(), nullable=True),
        sa.Column("first_round_ability", ability, nullable=True),
        sa.Column("rounds", sa.JSON(), nullable=True),
        sa.Column("current_round", sa.Integer(), nullable=False),
        sa.Column("player1_points", sa.Integer(), nullable=False),
        sa.Column("player2_points", sa.Integer(), nullable=False),
        sa.Column("player1_total_damage", sa.Integer(), nullable=False),
        sa.Column("player2_total_damage", sa.Integer(), nullable=False),
        sa.Column("winner_id", sa.Integer(), nullable=True),
        sa.Column("winner_side", side, nullable=True),
        sa.Column("win_reason", win_reason, nullable=True),
        sa.Column("status", battle_status, nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["player1_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["player2_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_battles_id"), "battles", ["id"])
    op.create_index(op.f("ix_battles_player1_id"), "battles", ["player1_id"])
    op.create_index(op.f("ix_battles_player2_id"), "battles", ["player2_id"])

    op.create_table(
        "battle_tool_usages",
        *_timestamps(),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("battle_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=True),
        sa.Column("tool_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("card_id", sa.Integer(), nullable=False),
        sa.Column("card_position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["battle_id"], ["battles.id"]),
        sa.ForeignKeyConstraint(["card_id"], ["cards.id"]),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["tool_id"], ["tools.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_battle_tool_usages_id"), "battle_tool_usages", ["id"])
    op.create_index(op.f("ix_battle_tool_usages_battle_id"), "battle_tool_usages", ["battle_id"])
    op.create_index(op.f("ix_battle_tool_usages_player_id"), "battle_tool_usages", ["player_id"])

    op.create_table(
        "event_logs",
        *_timestamps(),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("event_type", event_type, nullable=False),
        sa.Column("context", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_event_logs_id"), "event_logs", ["id"])
    op.create_index(op.f("ix_event_logs_player_id"), "event_logs", ["player_id"])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        "event_logs",
        "battle_tool_usages",
        "battles",
        "player_tools",
        "tools",
        "deck_cards",
        "cards",
        "players",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (
        event_type,
        battle_status,
        win_reason,
        side,
        tool_restriction,
        tool_effect_type,
        card_rarity,
        ability,
    ):
        enum.drop(bind, checkfirst=True)
