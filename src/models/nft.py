from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import SQLModel, Field


class NFT(SQLModel, table=True):
    __tablename__ = "nfts"
    __table_args__ = (
        UniqueConstraint("token_id", "contract_address", name="uq_nfts_token_contract"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    token_id: int
    contract_address: str
    wallet_address: str = Field(index=True)
    rarity: str = Field(default="")
    is_shiny: bool = Field(default=False)
    is_z: bool = Field(default=False)
    is_full_set: bool = Field(default=False)
    bonus_points: int = Field(default=0)
    nft_metadata: dict = Field(default_factory=dict, sa_column=Column("metadata", JSON))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
