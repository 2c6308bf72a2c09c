from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field

from core.constants import EvolutionStatus


class Evolution(SQLModel, table=True):
    __tablename__ = "evolutions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    wallet_address: str = Field(index=True)
    primo_token_id: int
    stone_type: str
    stone_token_id: int
    status: str = Field(default=EvolutionStatus.PENDING.value, index=True)
    transaction_hash: Optional[str] = Field(default=None)
    evolution_metadata: dict = Field(
        default_factory=dict, sa_column=Column("metadata", JSON)
    )
    estimated_completion: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = Field(default=None)
