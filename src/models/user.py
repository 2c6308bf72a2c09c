from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    wallet_address: str = Field(index=True, unique=True)
    current_streak: int = Field(default=0)
    max_streak: int = Field(default=0)
    total_check_ins: int = Field(default=0)
    last_check_in: Optional[datetime] = Field(default=None)
    total_points: int = Field(default=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = Field(default=None)
