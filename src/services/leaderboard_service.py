from datetime import datetime, timezone
import logging
from typing import List

from sqlmodel import Session, select

from core import constants
from models.leaderboard import Leaderboard
from utils.web3_utils import normalize_address

logger = logging.getLogger(__name__)

LEADERBOARD_FIELDS = {
    "points_earned",
    "current_streak",
    "best_streak",
    "nft_count",
    "tokens_claimed",
    "last_active",
}


def get_leaderboard_entry(session: Session, wallet_address: str):
    return session.exec(
        select(Leaderboard).where(
            Leaderboard.wallet_address == normalize_address(wallet_address)
        )
    ).first()


def update_leaderboard(session: Session, wallet_address: str, **fields) -> Leaderboard:
    """Upsert the leaderboard row of a wallet.

    Only the given fields are written; anything omitted (``tokens_claimed`` in
    particular) keeps its stored value. The caller owns the commit.
    """
    unknown = set(fields) - LEADERBOARD_FIELDS
    if unknown:
        raise ValueError(f"Unknown leaderboard fields: {sorted(unknown)}")

    entry = get_leaderboard_entry(session, wallet_address)
    if entry is None:
        entry = Leaderboard(wallet_address=normalize_address(wallet_address))

    for key, value in fields.items():
        setattr(entry, key, value)
    entry.updated_at = datetime.now(timezone.utc)

    session.add(entry)
    session.flush()
    logger.info("Leaderboard updated for %s: %s", entry.wallet_address, fields)
    return entry


def get_top_entries(
    session: Session, limit: int = constants.LEADERBOARD_DEFAULT_LIMIT
) -> List[Leaderboard]:
    return session.exec(
        select(Leaderboard)
        .order_by(Leaderboard.points_earned.desc(), Leaderboard.best_streak.desc())
        .limit(limit)
    ).all()
