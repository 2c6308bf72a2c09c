from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.dialects import postgresql
from sqlmodel import select

from core.exceptions import AlreadyCheckedInError, InvalidRequestError
from models.check_in import CheckIn
from models.leaderboard import Leaderboard
from models.nft import NFT
from models.nft_usage_tracking import NFTUsageTracking
from models.user import User
from services.check_in_service import (
    apply_multiplier,
    lock_nfts_for_check_in,
    next_streak,
    process_check_in,
    streak_multiplier,
)
from tests.conftest import OTHER_WALLET, PRIMOS_CONTRACT, WALLET, create_check_in

DAY_1 = datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)
DAY_2 = datetime(2025, 3, 2, 9, 0, tzinfo=timezone.utc)
DAY_5 = datetime(2025, 3, 5, 23, 59, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "streak, expected",
    [
        (0, 1.0),
        (1, 1.0),
        (7, 1.0),
        (8, 1.5),
        (14, 1.5),
        (15, 2.0),
        (21, 2.0),
        (22, 2.5),
        (28, 2.5),
        (29, 3.0),
        (120, 3.0),
    ],
)
def test_streak_multiplier(streak, expected):
    assert streak_multiplier(streak) == expected


def test_apply_multiplier_rounds_half_up():
    assert apply_multiplier(7, 1.5) == 11
    assert apply_multiplier(5, 2.5) == 13
    assert apply_multiplier(3, 1.0) == 3
    assert apply_multiplier(0, 3.0) == 0


def test_next_streak_consecutive_day():
    assert next_streak(3, DAY_1, DAY_2) == (4, False)


def test_next_streak_across_midnight_counts_as_next_day():
    last = datetime(2025, 3, 1, 23, 59, tzinfo=timezone.utc)
    now = datetime(2025, 3, 2, 0, 1, tzinfo=timezone.utc)
    assert next_streak(10, last, now) == (11, False)


def test_next_streak_gap_resets():
    assert next_streak(12, DAY_1, DAY_5) == (1, True)


def test_next_streak_naive_timestamps_are_utc():
    assert next_streak(2, DAY_1.replace(tzinfo=None), DAY_2) == (3, False)


def test_check_in_requires_wallet(db_session):
    with pytest.raises(InvalidRequestError):
        process_check_in(db_session, "", current_time=DAY_1)


def test_first_check_in_creates_user(db_session):
    result = process_check_in(db_session, WALLET, "0xabc", current_time=DAY_1)

    user = db_session.exec(select(User)).one()
    assert user.wallet_address == WALLET.lower()
    assert user.current_streak == 1
    assert user.max_streak == 1
    assert user.total_check_ins == 1
    assert user.total_points == 0

    assert result.points_earned == 0
    assert result.multiplier == 1.0
    assert result.streak_broken is False
    assert result.check_in.transaction_hash == "0xabc"
    assert result.check_in.streak_count == 1


def test_consecutive_check_in_increments_streak(db_session):
    db_session.add(
        User(
            wallet_address=WALLET.lower(),
            current_streak=7,
            max_streak=9,
            total_check_ins=20,
            last_check_in=DAY_1,
            total_points=100,
        )
    )
    db_session.commit()

    result = process_check_in(db_session, WALLET, current_time=DAY_2)

    assert result.user.current_streak == 8
    assert result.user.max_streak == 9
    assert result.user.total_check_ins == 21
    assert result.multiplier == 1.5
    assert result.streak_broken is False


def test_broken_streak_restarts_at_one(db_session):
    db_session.add(
        User(
            wallet_address=WALLET.lower(),
            current_streak=12,
            max_streak=12,
            total_check_ins=12,
            last_check_in=DAY_1,
        )
    )
    db_session.commit()

    result = process_check_in(db_session, WALLET, current_time=DAY_5)

    assert result.user.current_streak == 1
    assert result.user.max_streak == 12
    assert result.streak_broken is True


def test_second_check_in_same_day_is_rejected(db_session):
    process_check_in(db_session, WALLET, current_time=DAY_1)

    with pytest.raises(AlreadyCheckedInError) as error:
        process_check_in(
            db_session, WALLET, current_time=DAY_1.replace(hour=23, minute=30)
        )

    assert error.value.user.total_check_ins == 1
    assert len(db_session.exec(select(CheckIn)).all()) == 1


def test_check_in_awards_nft_points_with_multiplier(db_session, add_nft):
    add_nft(1, bonus_points=7, rarity="shiny")
    add_nft(2, bonus_points=4, rarity="original Z")
    db_session.add(
        User(
            wallet_address=WALLET.lower(),
            current_streak=14,
            max_streak=14,
            total_check_ins=14,
            last_check_in=DAY_1,
            total_points=50,
        )
    )
    db_session.commit()

    result = process_check_in(db_session, WALLET, current_time=DAY_2)

    # streak 15 -> x2.0 on 11 base points
    assert result.multiplier == 2.0
    assert result.points_earned == 22
    assert result.user.total_points == 72
    assert sorted(result.locked_nfts) == [1, 2]
    assert result.failed_nfts == []

    usage = db_session.exec(select(NFTUsageTracking)).all()
    assert {u.token_id for u in usage} == {1, 2}
    assert all(u.usage_date == date(2025, 3, 2) for u in usage)
    assert all(u.check_in_id == result.check_in.id for u in usage)

    leaderboard = db_session.exec(select(Leaderboard)).one()
    assert leaderboard.points_earned == 72
    assert leaderboard.current_streak == 15
    assert leaderboard.best_streak == 15


def test_nft_locked_globally_for_the_day(db_session, add_nft):
    nft = add_nft(5, bonus_points=13)
    first = process_check_in(db_session, WALLET, current_time=DAY_1)
    assert first.points_earned == 13

    # the NFT moves to another wallet on the same UTC day
    nft.wallet_address = OTHER_WALLET.lower()
    db_session.add(nft)
    db_session.commit()

    second = process_check_in(db_session, OTHER_WALLET, current_time=DAY_1)
    assert second.points_earned == 0
    assert second.locked_nfts == []

    # next day it is available again
    third = process_check_in(db_session, OTHER_WALLET, current_time=DAY_2)
    assert third.points_earned == 13


def test_check_in_preserves_tokens_claimed(db_session, add_nft):
    add_nft(3, bonus_points=1)
    db_session.add(Leaderboard(wallet_address=WALLET.lower(), tokens_claimed=40))
    db_session.commit()

    process_check_in(db_session, WALLET, current_time=DAY_1)

    leaderboard = db_session.exec(select(Leaderboard)).one()
    assert leaderboard.tokens_claimed == 40
    assert leaderboard.points_earned == 1


def test_lock_reports_unique_constraint_collision(db_session, add_nft):
    nft = add_nft(9)
    other_check_in = create_check_in(db_session, OTHER_WALLET)
    db_session.add(
        NFTUsageTracking(
            token_id=9,
            contract_address=PRIMOS_CONTRACT,
            check_in_id=other_check_in.id,
            usage_date=DAY_1.date(),
            wallet_address=OTHER_WALLET.lower(),
        )
    )
    db_session.flush()
    check_in = create_check_in(db_session)

    # simulate a concurrent check-in that locked the NFT after our read
    with patch("services.check_in_service.nft_service.is_nft_locked", return_value=False):
        locked, failed = lock_nfts_for_check_in(
            db_session, check_in, [nft], DAY_1.date()
        )

    assert locked == []
    assert failed == [
        {"token_id": 9, "contract_address": PRIMOS_CONTRACT, "reason": "already_used"}
    ]
    # the outer transaction survives the failed savepoint
    assert db_session.get(CheckIn, check_in.id) is not None


@patch("services.check_in_service.time.sleep")
def test_lock_retries_once_after_database_error(mock_sleep, db_session, add_nft):
    nft = add_nft(11)
    check_in = create_check_in(db_session)

    with patch(
        "services.check_in_service._insert_usage_record",
        side_effect=[OperationalError("INSERT", {}, Exception("db down")), None],
    ) as mock_insert:
        locked, failed = lock_nfts_for_check_in(
            db_session, check_in, [nft], DAY_1.date()
        )

    assert mock_insert.call_count == 2
    mock_sleep.assert_called_once_with(0.5)
    assert locked == [nft]
    assert failed == []


@patch("services.check_in_service.time.sleep")
def test_lock_gives_up_after_second_database_error(mock_sleep, db_session, add_nft):
    nft = add_nft(12)
    check_in = create_check_in(db_session)

    error = OperationalError("INSERT", {}, Exception("db down"))
    with patch(
        "services.check_in_service._insert_usage_record", side_effect=[error, error]
    ):
        locked, failed = lock_nfts_for_check_in(
            db_session, check_in, [nft], DAY_1.date()
        )

    assert locked == []
    assert failed[0]["reason"] == "error"


def test_failed_check_in_rolls_back(db_session, add_nft):
    add_nft(1, bonus_points=5)

    with patch(
        "services.check_in_service.leaderboard_service.update_leaderboard",
        side_effect=RuntimeError("boom"),
    ):
        with pytest.raises(RuntimeError):
            process_check_in(db_session, WALLET, current_time=DAY_1)

    assert db_session.exec(select(User)).all() == []
    assert db_session.exec(select(CheckIn)).all() == []
    assert db_session.exec(select(NFTUsageTracking)).all() == []
    assert db_session.exec(select(NFT)).one().token_id == 1


def test_check_in_counts_only_locked_nfts(db_session, add_nft):
    add_nft(5, bonus_points=13)
    add_nft(6, bonus_points=4)
    other_check_in = create_check_in(db_session, OTHER_WALLET, created_at=DAY_1)
    db_session.add(
        NFTUsageTracking(
            token_id=5,
            contract_address=PRIMOS_CONTRACT,
            check_in_id=other_check_in.id,
            usage_date=DAY_1.date(),
            wallet_address=OTHER_WALLET.lower(),
        )
    )
    db_session.commit()

    # the eligibility read misses the lock another check-in took meanwhile
    with patch(
        "services.check_in_service.nft_service.get_locked_nft_keys",
        return_value=set(),
    ):
        result = process_check_in(db_session, WALLET, current_time=DAY_1)

    assert result.locked_nfts == [6]
    assert [failed["token_id"] for failed in result.failed_nfts] == [5]
    assert result.failed_nfts[0]["reason"] == "already_used"
    assert result.points_earned == 4
    assert result.check_in.points_earned == 4
    assert result.user.total_points == 4


def test_check_in_locks_user_row(db_session):
    db_session.add(
        User(
            wallet_address=WALLET.lower(),
            current_streak=1,
            max_streak=1,
            total_check_ins=1,
            last_check_in=DAY_1,
        )
    )
    db_session.commit()

    with patch.object(db_session, "exec", wraps=db_session.exec) as mock_exec:
        process_check_in(db_session, WALLET, current_time=DAY_2)

    user_query = mock_exec.call_args_list[0].args[0]
    compiled = str(user_query.compile(dialect=postgresql.dialect()))
    assert "FROM users" in compiled
    assert "FOR UPDATE" in compiled


def test_lock_skips_nft_already_locked_today(db_session, add_nft):
    nft = add_nft(14)
    other_check_in = create_check_in(db_session, OTHER_WALLET)
    db_session.add(
        NFTUsageTracking(
            token_id=14,
            contract_address=PRIMOS_CONTRACT,
            check_in_id=other_check_in.id,
            usage_date=DAY_1.date(),
            wallet_address=OTHER_WALLET.lower(),
        )
    )
    db_session.flush()
    check_in = create_check_in(db_session)

    locked, failed = lock_nfts_for_check_in(db_session, check_in, [nft], DAY_1.date())

    assert locked == []
    assert failed == [
        {"token_id": 14, "contract_address": PRIMOS_CONTRACT, "reason": "already_used"}
    ]
    usage = db_session.exec(select(NFTUsageTracking)).all()
    assert [u.check_in_id for u in usage] == [other_check_in.id]
