from fastapi import APIRouter, HTTPException
from sqlmodel import select

from api.api_v1.deps import SessionDep
from core import constants
from models.check_in import CheckIn
from schemas.check_in import CheckInRecord, UserState
from schemas.leaderboard import UserStatsResponse
from services.check_in_service import get_user_by_wallet_address
from utils.web3_utils import normalize_address

router = APIRouter()


@router.get("/{wallet_address}", response_model=UserStatsResponse)
def get_user_stats(wallet_address: str, session: SessionDep):
    user = get_user_by_wallet_address(session, wallet_address)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    check_ins = session.exec(
        select(CheckIn)
        .where(CheckIn.wallet_address == normalize_address(wallet_address))
        .order_by(CheckIn.created_at.desc())
        .limit(constants.CHECK_IN_HISTORY_LIMIT)
    ).all()

    return UserStatsResponse(
        user=UserState.model_validate(user, from_attributes=True),
        check_ins=[
            CheckInRecord.model_validate(check_in, from_attributes=True)
            for check_in in check_ins
        ],
    )
