import logging

from fastapi import APIRouter, HTTPException

from api.api_v1.deps import SessionDep
from core.exceptions import AlreadyCheckedInError, PrimosError
from schemas.check_in import (
    CheckInRecord,
    CheckInRequest,
    CheckInResponse,
    FailedNft,
    UserState,
)
from services import check_in_service

router = APIRouter()

logger = logging.getLogger(__name__)


@router.post("/", response_model=CheckInResponse)
def check_in(request: CheckInRequest, session: SessionDep):
    try:
        result = check_in_service.process_check_in(
            session, request.wallet_address, request.transaction_hash
        )
    except AlreadyCheckedInError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={
                "message": e.message,
                "user": UserState.model_validate(
                    e.user, from_attributes=True
                ).model_dump(mode="json"),
            },
        )
    except PrimosError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Check-in error: %s", str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to process check-in")

    return CheckInResponse(
        user=UserState.model_validate(result.user, from_attributes=True),
        check_in=CheckInRecord.model_validate(result.check_in, from_attributes=True),
        points_earned=result.points_earned,
        multiplier=result.multiplier,
        streak_broken=result.streak_broken,
        locked_nfts=result.locked_nfts,
        failed_nfts=[FailedNft(**failed) for failed in result.failed_nfts],
    )
