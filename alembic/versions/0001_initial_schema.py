"""initial bingo schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2024-06-01 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
MONEY = sa.Numeric(12, 2)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=True),
        sa.Column("full_name", sa.String(length=100), nullable=True),
        sa.Column("balance", MONEY, nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("role IN ('player','admin')", name=op.f("ck_users_role_enum")),
        sa.CheckConstraint("balance >= 0", name=op.f("ck_users_balance_non_negative")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
        sa.UniqueConstraint("username", name=op.f("uq_users_username")),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "bingo_rooms",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("card_price", MONEY, nullable=False),
        sa.Column("max_players", sa.Integer(), nullable=False),
        sa.Column("current_players", sa.Integer(), nullable=False),
        sa.Column("pool_size", sa.Integer(), nullable=False),
        sa.Column("quadra_prize", MONEY, nullable=False),
        sa.Column("quina_prize", MONEY, nullable=False),
        sa.Column("bingo_prize", MONEY, nullable=False),
        sa.Column("called_numbers", sa.JSON(), nullable=False),
        sa.Column("current_number", sa.Integer(), nullable=True),
        sa.Column("donations", MONEY, nullable=False),
        sa.Column("auto_start_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_number_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('waiting','playing','finished')",
            name=op.f("ck_bingo_rooms_status_enum"),
        ),
        sa.CheckConstraint(
            "current_players >= 0", name=op.f("ck_bingo_rooms_players_non_negative")
        ),
        sa.CheckConstraint(
            "current_players <= max_players",
            name=op.f("ck_bingo_rooms_players_within_max"),
        ),
        sa.CheckConstraint("pool_size >= 24", name=op.f("ck_bingo_rooms_pool_size_min")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_bingo_rooms")),
    )
    op.create_index(
        "ix_bingo_rooms_status_created", "bingo_rooms", ["status", "created_at"]
    )

    op.create_table(
        "bingo_cards",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("room_id", ID, nullable=False),
        sa.Column("user_id", ID, nullable=False),
        sa.Column("numbers", sa.JSON(), nullable=False),
        sa.Column("marked_positions", sa.JSON(), nullable=False),
        sa.Column("has_quadra", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("has_quina", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("has_bingo", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["room_id"],
            ["bingo_rooms.id"],
            name=op.f("fk_bingo_cards_room_id_bingo_rooms"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_bingo_cards_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_bingo_cards")),
        sa.UniqueConstraint("room_id", "user_id", name="uq_card_room_user"),
    )
    op.create_index(op.f("ix_bingo_cards_room_id"), "bingo_cards", ["room_id"])
    op.create_index(op.f("ix_bingo_cards_user_id"), "bingo_cards", ["user_id"])

    op.create_table(
        "prize_awards",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("room_id", ID, nullable=False),
        sa.Column("card_id", ID, nullable=False),
        sa.Column("user_id", ID, nullable=False),
        sa.Column("tier", sa.String(length=20), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("paid_to_player", sa.Boolean(), nullable=False),
        sa.Column("awarded_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "tier IN ('quadra','quina','bingo')", name=op.f("ck_prize_awards_tier_enum")
        ),
        sa.ForeignKeyConstraint(
            ["room_id"],
            ["bingo_rooms.id"],
            name=op.f("fk_prize_awards_room_id_bingo_rooms"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["card_id"],
            ["bingo_cards.id"],
            name=op.f("fk_prize_awards_card_id_bingo_cards"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_prize_awards_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_prize_awards")),
        sa.UniqueConstraint("card_id", "tier", name="uq_award_card_tier"),
    )
    op.create_index(op.f("ix_prize_awards_room_id"), "prize_awards", ["room_id"])
    op.create_index(op.f("ix_prize_awards_user_id"), "prize_awards", ["user_id"])

    op.create_table(
        "deposits",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("user_id", ID, nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("bonus_amount", MONEY, nullable=False),
        sa.Column("total_amount", MONEY, nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending','completed','failed')",
            name=op.f("ck_deposits_status_enum"),
        ),
        sa.CheckConstraint("amount > 0", name=op.f("ck_deposits_amount_positive")),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_deposits_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_deposits")),
    )
    op.create_index(op.f("ix_deposits_user_id"), "deposits", ["user_id"])

    op.create_table(
        "chat_messages",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("room_id", ID, nullable=False),
        sa.Column("user_id", ID, nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["room_id"],
            ["bingo_rooms.id"],
            name=op.f("fk_chat_messages_room_id_bingo_rooms"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_chat_messages_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_chat_messages")),
    )
    op.create_index(
        "ix_chat_messages_room_created", "chat_messages", ["room_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_chat_messages_room_created", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_index(op.f("ix_deposits_user_id"), table_name="deposits")
    op.drop_table("deposits")
    op.drop_index(op.f("ix_prize_awards_user_id"), table_name="prize_awards")
    op.drop_index(op.f("ix_prize_awards_room_id"), table_name="prize_awards")
    op.drop_table("prize_awards")
    op.drop_index(op.f("ix_bingo_cards_user_id"), table_name="bingo_cards")
    op.drop_index(op.f("ix_bingo_cards_room_id"), table_name="bingo_cards")
    op.drop_table("bingo_cards")
    op.drop_index("ix_bingo_rooms_status_created", table_name="bingo_rooms")
    op.drop_table("bingo_rooms")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
