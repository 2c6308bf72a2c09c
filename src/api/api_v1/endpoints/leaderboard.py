from typing import List

from fastapi import APIRouter, Query

from api.api_v1.deps import SessionDep
from core import constants
from schemas.leaderboard import LeaderboardEntry
from services import leaderboard_service

router = APIRouter()


@router.get("/", response_model=List[LeaderboardEntry])
def get_leaderboard(
    session: SessionDep,
    limit: int = Query(constants.LEADERBOARD_DEFAULT_LIMIT, ge=1, le=1000),
):
    entries = leaderboard_service.get_top_entries(session, limit)
    return [
        LeaderboardEntry(
            rank=rank,
            wallet_address=entry.wallet_address,
            points_earned=entry.points_earned,
            current_streak=entry.current_streak,
            best_streak=entry.best_streak,
            nft_count=entry.nft_count,
            tokens_claimed=entry.tokens_claimed,
            last_active=entry.last_active,
        )
        for rank, entry in enumerate(entries, start=1)
    ]
