from datetime import datetime, timezone
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException

from api.api_v1.deps import SessionDep
from schemas.nft import (
    NFTCheckRequest,
    NFTResponse,
    NFTUsageRecord,
    NFTUsageResponse,
    WalletNFTsResponse,
)
from services import nft_service
from utils.extension_utils import utc_date

router = APIRouter()

logger = logging.getLogger(__name__)


def to_nft_response(nft) -> NFTResponse:
    return NFTResponse(
        token_id=nft.token_id,
        contract_address=nft.contract_address,
        wallet_address=nft.wallet_address,
        rarity=nft.rarity,
        is_shiny=nft.is_shiny,
        is_z=nft.is_z,
        is_full_set=nft.is_full_set,
        bonus_points=nft.bonus_points,
        metadata=nft.nft_metadata or {},
        updated_at=nft.updated_at,
    )


@router.get("/", response_model=WalletNFTsResponse)
def get_wallet_nfts(session: SessionDep, wallet_address: Optional[str] = None):
    if not wallet_address:
        raise HTTPException(status_code=400, detail="Wallet address is required")

    try:
        nfts = nft_service.get_wallet_nfts(session, wallet_address)
    except Exception as e:
        logger.error("Error reading NFTs of %s: %s", wallet_address, str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return WalletNFTsResponse(
        count=len(nfts),
        nfts=[to_nft_response(nft) for nft in nfts],
        total_bonus_points=sum(nft.bonus_points or 0 for nft in nfts),
    )


@router.post("/", response_model=NFTUsageResponse)
def check_nft_usage(request: NFTCheckRequest, session: SessionDep):
    if request.token_id in (None, "") or not request.contract_address:
        raise HTTPException(
            status_code=400, detail="token_id and contract_address are required"
        )

    today = utc_date(datetime.now(timezone.utc))
    try:
        usage = nft_service.get_nft_usage(
            session, request.token_id, request.contract_address, today
        )
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid token_id")
    except Exception as e:
        logger.error("Error checking NFT usage: %s", str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Error checking NFT usage")

    if usage:
        logger.info("NFT #%s was already used on %s", request.token_id, today)
        return NFTUsageResponse(
            is_used=True,
            message="This NFT was already used today and will be available again at 00:00 UTC",
            usage_data=[
                NFTUsageRecord.model_validate(record, from_attributes=True)
                for record in usage
            ],
        )

    return NFTUsageResponse(is_used=False, message="NFT available to use today")
