"""create loyalty tables

Revision ID: 3b1f0c2d9a47
Revises:
Create Date: 2025-03-04 10:12:41.208533

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = "3b1f0c2d9a47"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("wallet_address", sqlmodel.AutoString(), nullable=False),
        sa.Column("current_streak", sa.Integer(), nullable=False),
        sa.Column("max_streak", sa.Integer(), nullable=False),
        sa.Column("total_check_ins", sa.Integer(), nullable=False),
        sa.Column("last_check_in", sa.DateTime(), nullable=True),
        sa.Column("total_points", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_users_wallet_address"), "users", ["wallet_address"], unique=True
    )

    op.create_table(
        "check_ins",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("wallet_address", sqlmodel.AutoString(), nullable=False),
        sa.Column("streak_count", sa.Integer(), nullable=False),
        sa.Column("points_earned", sa.Integer(), nullable=False),
        sa.Column("multiplier", sa.Float(), nullable=False),
        sa.Column("transaction_hash", sqlmodel.AutoString(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_check_ins_user_id"), "check_ins", ["user_id"])
    op.create_index(
        op.f("ix_check_ins_wallet_address"), "check_ins", ["wallet_address"]
    )
    op.create_index(op.f("ix_check_ins_created_at"), "check_ins", ["created_at"])

    op.create_table(
        "nft_usage_tracking",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("token_id", sa.Integer(), nullable=False),
        sa.Column("contract_address", sqlmodel.AutoString(), nullable=False),
        sa.Column("check_in_id", sa.Uuid(), nullable=False),
        sa.Column("usage_date", sa.Date(), nullable=False),
        sa.Column("wallet_address", sqlmodel.AutoString(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["check_in_id"], ["check_ins.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "token_id",
            "contract_address",
            "usage_date",
            name="uq_nft_usage_token_contract_date",
        ),
    )
    op.create_index(
        op.f("ix_nft_usage_tracking_token_id"), "nft_usage_tracking", ["token_id"]
    )
    op.create_index(
        op.f("ix_nft_usage_tracking_check_in_id"),
        "nft_usage_tracking",
        ["check_in_id"],
    )
    op.create_index(
        op.f("ix_nft_usage_tracking_usage_date"), "nft_usage_tracking", ["usage_date"]
    )

    op.create_table(
        "nfts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("token_id", sa.Integer(), nullable=False),
        sa.Column("contract_address", sqlmodel.AutoString(), nullable=False),
        sa.Column("wallet_address", sqlmodel.AutoString(), nullable=False),
        sa.Column("rarity", sqlmodel.AutoString(), nullable=False),
        sa.Column("is_shiny", sa.Boolean(), nullable=False),
        sa.Column("is_z", sa.Boolean(), nullable=False),
        sa.Column("is_full_set", sa.Boolean(), nullable=False),
        sa.Column("bonus_points", sa.Integer(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "token_id", "contract_address", name="uq_nfts_token_contract"
        ),
    )
    op.create_index(op.f("ix_nfts_wallet_address"), "nfts", ["wallet_address"])

    op.create_table(
        "evolutions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("wallet_address", sqlmodel.AutoString(), nullable=False),
        sa.Column("primo_token_id", sa.Integer(), nullable=False),
        sa.Column("stone_type", sqlmodel.AutoString(), nullable=False),
        sa.Column("stone_token_id", sa.Integer(), nullable=False),
        sa.Column("status", sqlmodel.AutoString(), nullable=False),
        sa.Column("transaction_hash", sqlmodel.AutoString(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("estimated_completion", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_evolutions_wallet_address"), "evolutions", ["wallet_address"]
    )
    op.create_index(op.f("ix_evolutions_status"), "evolutions", ["status"])

    op.create_table(
        "leaderboard",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("wallet_address", sqlmodel.AutoString(), nullable=False),
        sa.Column("points_earned", sa.Integer(), nullable=False),
        sa.Column("current_streak", sa.Integer(), nullable=False),
        sa.Column("best_streak", sa.Integer(), nullable=False),
        sa.Column("nft_count", sa.Integer(), nullable=False),
        sa.Column("tokens_claimed", sa.Integer(), nullable=False),
        sa.Column("last_active", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_leaderboard_wallet_address"),
        "leaderboard",
        ["wallet_address"],
        unique=True,
    )
    op.create_index(
        op.f("ix_leaderboard_points_earned"), "leaderboard", ["points_earned"]
    )


def downgrade() -> None:
    op.drop_table("leaderboard")
    op.drop_table("evolutions")
    op.drop_table("nfts")
    op.drop_table("nft_usage_tracking")
    op.drop_table("check_ins")
    op.drop_table("users")
