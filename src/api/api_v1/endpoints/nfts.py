import logging

from fastapi import APIRouter, HTTPException

from api.api_v1.deps import SessionDep, Web3Dep
from api.api_v1.endpoints.nft_check import to_nft_response
from schemas.nft import RefreshNFTsRequest, RefreshNFTsResponse
from services import nft_service
from utils.api import is_valid_wallet_address

router = APIRouter()

logger = logging.getLogger(__name__)


@router.post("/refresh", response_model=RefreshNFTsResponse)
def refresh_nfts(request: RefreshNFTsRequest, session: SessionDep, web3: Web3Dep):
    if not is_valid_wallet_address(request.wallet_address):
        raise HTTPException(status_code=400, detail="Invalid wallet address")

    try:
        nfts = nft_service.refresh_user_nfts(session, web3, request.wallet_address)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(
            "Error refreshing NFTs for %s: %s",
            request.wallet_address,
            str(e),
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="Failed to refresh NFTs")

    return RefreshNFTsResponse(
        nfts=[to_nft_response(nft) for nft in nfts],
        total_bonus_points=sum(nft.bonus_points for nft in nfts),
    )

