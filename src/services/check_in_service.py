from dataclasses import dataclass, field
from datetime import date, datetime, timezone
import logging
import math
import time
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from core import constants
from core.config import settings
from core.constants import NftLockFailure
from core.exceptions import AlreadyCheckedInError, InvalidRequestError
from models.check_in import CheckIn
from models.nft import NFT
from models.nft_usage_tracking import NFTUsageTracking
from models.user import User
from services import leaderboard_service, nft_service
from utils.extension_utils import days_between, utc_date
from utils.web3_utils import normalize_address

logger = logging.getLogger(__name__)


@dataclass
class CheckInResult:
    user: User
    check_in: CheckIn
    points_earned: int
    multiplier: float
    streak_broken: bool
    locked_nfts: List[int] = field(default_factory=list)
    failed_nfts: List[dict] = field(default_factory=list)


def get_user_by_wallet_address(
    session: Session, wallet_address: str, for_update: bool = False
):
    statement = select(User).where(
        User.wallet_address == normalize_address(wallet_address)
    )
    if for_update:
        # row lock held until the check-in commits
        statement = statement.with_for_update()
    return session.exec(statement).first()


def next_streak(
    current_streak: int, last_check_in: datetime, current_time: datetime
) -> Tuple[int, bool]:
    """New streak after a check-in at `current_time`, and whether it broke.

    Same-day check-ins are rejected by the caller; here they keep the streak.
    """
    days = days_between(last_check_in, current_time)
    if days == 1:
        return current_streak + 1, False
    if days > 1:
        return 1, True
    return current_streak, False


def streak_multiplier(streak: int) -> float:
    for minimum_streak, multiplier in constants.STREAK_MULTIPLIER_TIERS:
        if streak >= minimum_streak:
            return multiplier
    return constants.DEFAULT_MULTIPLIER


def apply_multiplier(base_points: int, multiplier: float) -> int:
    # half-up rounding, 2.5 -> 3
    return int(math.floor(max(base_points, 0) * multiplier + 0.5))


def _register_user_check_in(
    session: Session, wallet: str, current_time: datetime
) -> Tuple[User, bool]:
    user = get_user_by_wallet_address(session, wallet, for_update=True)

    if user is None:
        user = User(
            wallet_address=wallet,
            current_streak=1,
            max_streak=1,
            total_check_ins=1,
            last_check_in=current_time,
            total_points=0,
            updated_at=current_time,
        )
        session.add(user)
        session.flush()
        logger.info("Created user %s with first check-in", wallet)
        return user, False

    if user.last_check_in is not None:
        if days_between(user.last_check_in, current_time) == 0:
            raise AlreadyCheckedInError(user)
        new_streak, streak_broken = next_streak(
            user.current_streak, user.last_check_in, current_time
        )
    else:
        new_streak, streak_broken = 1, False

    logger.info(
        "Wallet %s streak %s -> %s (broken=%s)",
        wallet,
        user.current_streak,
        new_streak,
        streak_broken,
    )
    user.current_streak = new_streak
    user.max_streak = max(new_streak, user.max_streak)
    user.total_check_ins += 1
    user.last_check_in = current_time
    user.updated_at = current_time
    session.add(user)
    session.flush()
    return user, streak_broken


def _insert_usage_record(session: Session, record: NFTUsageTracking):
    with session.begin_nested():
        session.add(record)


def lock_nfts_for_check_in(
    session: Session,
    check_in: CheckIn,
    nfts: List[NFT],
    usage_date: date,
) -> Tuple[List[NFT], List[dict]]:
    """Record each NFT as used on `usage_date` so no wallet can reuse it today.

    Each insert runs in its own savepoint: a unique-constraint collision means
    another check-in took the NFT first, any other database error is retried
    once after a fixed delay.
    """
    locked, failed = [], []

    for nft in nfts:
        contract_address = normalize_address(nft.contract_address)

        def _usage_record():
            return NFTUsageTracking(
                token_id=nft.token_id,
                contract_address=contract_address,
                check_in_id=check_in.id,
                usage_date=usage_date,
                wallet_address=check_in.wallet_address,
            )

        def _failure(reason: NftLockFailure):
            return {
                "token_id": nft.token_id,
                "contract_address": contract_address,
                "reason": reason.value,
            }

        try:
            if nft_service.is_nft_locked(
                session, nft.token_id, contract_address, usage_date
            ):
                logger.info("NFT #%s is already locked for %s", nft.token_id, usage_date)
                failed.append(_failure(NftLockFailure.ALREADY_USED))
                continue

            try:
                _insert_usage_record(session, _usage_record())
            except IntegrityError:
                logger.info(
                    "NFT #%s was used today (unique constraint violation)",
                    nft.token_id,
                )
                failed.append(_failure(NftLockFailure.ALREADY_USED))
                continue
            except SQLAlchemyError as e:
                logger.warning(
                    "Error registering usage of NFT #%s, retrying: %s",
                    nft.token_id,
                    str(e),
                )
                time.sleep(settings.NFT_USAGE_RETRY_DELAY_SECONDS)
                try:
                    _insert_usage_record(session, _usage_record())
                except SQLAlchemyError as retry_error:
                    logger.error(
                        "Second attempt to register NFT #%s failed: %s",
                        nft.token_id,
                        str(retry_error),
                    )
                    failed.append(_failure(NftLockFailure.ERROR))
                    continue

            locked.append(nft)
            logger.info(
                "NFT #%s locked for check-in %s", nft.token_id, check_in.id
            )
        except Exception as e:
            logger.error(
                "Unexpected error registering NFT #%s: %s",
                nft.token_id,
                str(e),
                exc_info=True,
            )
            failed.append(_failure(NftLockFailure.UNEXPECTED_ERROR))

    if failed:
        logger.warning(
            "Could not lock %s NFTs for check-in %s: %s",
            len(failed),
            check_in.id,
            failed,
        )

    recorded = session.exec(
        select(func.count())
        .select_from(NFTUsageTracking)
        .where(NFTUsageTracking.check_in_id == check_in.id)
    ).one()
    if recorded != len(locked):
        logger.error(
            "Locked NFT count mismatch for check-in %s: %s recorded, %s reported",
            check_in.id,
            recorded,
            len(locked),
        )

    return locked, failed


def process_check_in(
    session: Session,
    wallet_address: Optional[str],
    transaction_hash: Optional[str] = None,
    current_time: Optional[datetime] = None,
) -> CheckInResult:
    """Run a daily check-in for a wallet and commit it.

    Raises InvalidRequestError without an address and AlreadyCheckedInError on
    a second check-in within the same UTC day. Any other failure rolls the
    whole check-in back.
    """
    if not wallet_address or not wallet_address.strip():
        raise InvalidRequestError("Wallet address is required")

    current_time = current_time or datetime.now(timezone.utc)
    wallet = normalize_address(wallet_address)

    try:
        user, streak_broken = _register_user_check_in(session, wallet, current_time)

        multiplier = streak_multiplier(user.current_streak)
        _, eligible_nfts = nft_service.calculate_nft_points(
            session, wallet, current_time
        )

        check_in = CheckIn(
            user_id=user.id,
            wallet_address=wallet,
            streak_count=user.current_streak,
            points_earned=0,
            multiplier=multiplier,
            transaction_hash=transaction_hash or None,
            created_at=current_time,
        )
        session.add(check_in)
        session.flush()

        locked, failed = [], []
        if eligible_nfts:
            locked, failed = lock_nfts_for_check_in(
                session, check_in, eligible_nfts, utc_date(current_time)
            )
        else:
            logger.info("No eligible NFTs to lock for check-in %s", check_in.id)

        # only NFTs this check-in actually locked count toward its points
        base_points = sum(nft.bonus_points or 0 for nft in locked)
        points_earned = apply_multiplier(base_points, multiplier)
        logger.info(
            "Check-in points for %s: base=%s multiplier=%s earned=%s",
            wallet,
            base_points,
            multiplier,
            points_earned,
        )
        check_in.points_earned = points_earned
        session.add(check_in)

        user.total_points = (user.total_points or 0) + points_earned
        session.add(user)

        leaderboard_service.update_leaderboard(
            session,
            wallet,
            best_streak=user.max_streak,
            current_streak=user.current_streak,
            points_earned=user.total_points,
            last_active=current_time,
        )

        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(user)
    session.refresh(check_in)

    return CheckInResult(
        user=user,
        check_in=check_in,
        points_earned=points_earned,
        multiplier=multiplier,
        streak_broken=streak_broken,
        locked_nfts=[nft.token_id for nft in locked],
        failed_nfts=failed,
    )
