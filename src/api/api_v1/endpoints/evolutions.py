import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException

from api.api_v1.deps import SessionDep, Web3Dep
from core.exceptions import PrimosError
from models.evolution import Evolution
from schemas.evolution import (
    BurnTransaction,
    BurnTransactionRequest,
    EvolutionListResponse,
    EvolutionRecord,
    EvolutionRequest,
    EvolutionResponse,
    EvolutionStone,
)
from schemas.nft import EvolutionCandidate
from services import evolution_service
from utils.api import is_valid_wallet_address

router = APIRouter()

logger = logging.getLogger(__name__)


def to_evolution_record(evolution: Evolution) -> EvolutionRecord:
    return EvolutionRecord(
        id=evolution.id,
        wallet_address=evolution.wallet_address,
        primo_token_id=evolution.primo_token_id,
        stone_type=evolution.stone_type,
        stone_token_id=evolution.stone_token_id,
        status=evolution.status,
        transaction_hash=evolution.transaction_hash,
        metadata=evolution.evolution_metadata or {},
        estimated_completion=evolution.estimated_completion,
        completed_at=evolution.completed_at,
        created_at=evolution.created_at,
        updated_at=evolution.updated_at,
    )


@router.get("/", response_model=EvolutionListResponse)
def get_evolutions(session: SessionDep, wallet_address: Optional[str] = None):
    if not wallet_address:
        raise HTTPException(status_code=400, detail="Wallet address is required")

    try:
        evolutions = evolution_service.list_evolutions(session, wallet_address)
    except Exception as e:
        logger.error("Error listing evolutions: %s", str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return EvolutionListResponse(
        evolutions=[to_evolution_record(evolution) for evolution in evolutions]
    )


@router.post("/", response_model=EvolutionResponse)
def create_evolution(request: EvolutionRequest, session: SessionDep):
    try:
        evolution = evolution_service.start_evolution(
            session,
            wallet_address=request.wallet_address,
            primo_token_id=request.primo_token_id,
            stone_type=request.stone_type,
            stone_token_id=request.stone_token_id,
            transaction_hash=request.transaction_hash,
            metadata=request.metadata,
        )
    except PrimosError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        session.rollback()
        logger.error("Error starting evolution: %s", str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return EvolutionResponse(
        evolution=to_evolution_record(evolution),
        message="Evolution process started successfully",
    )


@router.get("/stones", response_model=List[EvolutionStone])
def get_evolution_stones(web3: Web3Dep, wallet_address: Optional[str] = None):
    if not is_valid_wallet_address(wallet_address):
        raise HTTPException(status_code=400, detail="Invalid wallet address")

    try:
        stones = evolution_service.fetch_evolution_stones(web3, wallet_address)
    except Exception as e:
        logger.error("Error fetching evolution stones: %s", str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return [EvolutionStone(**stone) for stone in stones]


@router.post("/burn-transaction", response_model=BurnTransaction)
def create_burn_transaction(request: BurnTransactionRequest, web3: Web3Dep):
    try:
        transaction = evolution_service.build_burn_transaction(
            web3, request.wallet_address, request.stone_type, request.metadata
        )
    except PrimosError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Error building burn transaction: %s", str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return BurnTransaction(**transaction)


@router.get("/candidates", response_model=List[EvolutionCandidate])
def get_evolution_candidates(web3: Web3Dep, wallet_address: Optional[str] = None):
    if not is_valid_wallet_address(wallet_address):
        raise HTTPException(status_code=400, detail="Invalid wallet address")

    try:
        candidates = evolution_service.fetch_evolution_candidates(web3, wallet_address)
    except Exception as e:
        logger.error("Error fetching NFTs for evolution: %s", str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return [EvolutionCandidate(**candidate) for candidate in candidates]
