from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from schemas.check_in import CheckInRecord, UserState


class LeaderboardEntry(BaseModel):
    rank: int
    wallet_address: str
    points_earned: int
    current_streak: int
    best_streak: int
    nft_count: int
    tokens_claimed: int
    last_active: Optional[datetime] = None


class UserStatsResponse(BaseModel):
    user: UserState
    check_ins: List[CheckInRecord]
