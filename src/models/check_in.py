from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field


class CheckIn(SQLModel, table=True):
    __tablename__ = "check_ins"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    wallet_address: str = Field(index=True)
    streak_count: int
    points_earned: int = Field(default=0)
    multiplier: float = Field(default=1.0)
    transaction_hash: Optional[str] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), index=True
    )
