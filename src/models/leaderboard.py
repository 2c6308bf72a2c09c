from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field


class Leaderboard(SQLModel, table=True):
    __tablename__ = "leaderboard"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    wallet_address: str = Field(index=True, unique=True)
    points_earned: int = Field(default=0, index=True)
    current_streak: int = Field(default=0)
    best_streak: int = Field(default=0)
    nft_count: int = Field(default=0)
    tokens_claimed: int = Field(default=0)
    last_active: Optional[datetime] = Field(default=None)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
