from datetime import date, datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class NFTUsageTracking(SQLModel, table=True):
    """An NFT consumed toward check-in points on a UTC date, by any wallet."""

    __tablename__ = "nft_usage_tracking"
    __table_args__ = (
        UniqueConstraint(
            "token_id",
            "contract_address",
            "usage_date",
            name="uq_nft_usage_token_contract_date",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    token_id: int = Field(index=True)
    contract_address: str
    check_in_id: UUID = Field(foreign_key="check_ins.id", index=True)
    usage_date: date = Field(index=True)
    wallet_address: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
