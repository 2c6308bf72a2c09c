from datetime import datetime
from typing import List, Optional
import uuid

from pydantic import BaseModel


class CheckInRequest(BaseModel):
    wallet_address: Optional[str] = None
    transaction_hash: Optional[str] = None


class UserState(BaseModel):
    id: uuid.UUID
    wallet_address: str
    current_streak: int
    max_streak: int
    total_check_ins: int
    last_check_in: Optional[datetime] = None
    total_points: int


class CheckInRecord(BaseModel):
    id: uuid.UUID
    wallet_address: str
    streak_count: int
    points_earned: int
    multiplier: float
    transaction_hash: Optional[str] = None
    created_at: datetime


class FailedNft(BaseModel):
    token_id: int
    contract_address: str
    reason: str


class CheckInResponse(BaseModel):
    success: bool = True
    user: UserState
    check_in: CheckInRecord
    points_earned: int
    multiplier: float
    streak_broken: bool
    locked_nfts: List[int] = []
    failed_nfts: List[FailedNft] = []
