from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select
from web3 import Web3

from core import constants
from core.config import settings
from core.constants import EvolutionStatus
from core.exceptions import (
    IncompatibleStoneError,
    InsufficientStoneBalanceError,
    InvalidRequestError,
)
from models.evolution import Evolution
from services import nft_service
from utils.api import is_valid_wallet_address
from utils.extension_utils import to_utc
from utils.web3_utils import get_contract, normalize_address, normalize_token_id

logger = logging.getLogger(__name__)


def get_stone_config(stone_type: str) -> Dict[str, Any]:
    stone = constants.EVOLUTION_STONES.get((stone_type or "").upper())
    if stone is None:
        raise InvalidRequestError(f"Unknown stone type: {stone_type}")
    return stone


def _rarity_from_attributes(attributes) -> Optional[str]:
    if not isinstance(attributes, list):
        return None
    for attribute in attributes:
        if (
            isinstance(attribute, dict)
            and attribute.get("trait_type") == constants.RARITY_ATTRIBUTE
        ):
            return str(attribute.get("value")).lower()
    return None


def extract_rarity(metadata: Optional[Dict[str, Any]]) -> Optional[str]:
    """Find a Primo's rarity in whatever shape the client sent its metadata.

    Looked up in order: a top level ``rarity``, the ``Rarity`` attribute, the
    ``Rarity`` attribute of a nested ``originalMetadata`` and finally the
    ``isShiny`` flag.
    """
    if not metadata:
        return None

    if isinstance(metadata.get("rarity"), str) and metadata["rarity"]:
        return metadata["rarity"].lower()

    rarity = _rarity_from_attributes(metadata.get("attributes"))
    if rarity:
        return rarity

    original = metadata.get("originalMetadata")
    if isinstance(original, dict):
        rarity = _rarity_from_attributes(original.get("attributes"))
        if rarity:
            return rarity

    if isinstance(metadata.get("isShiny"), bool):
        return "shiny" if metadata["isShiny"] else "original"

    return None


def are_compatible(primo_rarity: str, stone_type: str) -> bool:
    stone = get_stone_config(stone_type)
    return primo_rarity.lower() in stone["compatible_with"]


def ensure_compatible(primo_rarity: Optional[str], stone_type: str):
    stone = get_stone_config(stone_type)
    if not primo_rarity:
        raise IncompatibleStoneError("Could not determine the rarity of the Primo")
    if not are_compatible(primo_rarity, stone_type):
        raise IncompatibleStoneError(
            f"{stone['name']} is not compatible with {primo_rarity} Primos"
        )


def get_stone_balance(web3: Web3, wallet_address: str, stone_type: str) -> int:
    stone = get_stone_config(stone_type)
    contract = get_contract(web3, stone["contract_address"], "evolution_stone")
    return contract.functions.balanceOf(
        Web3.to_checksum_address(wallet_address), stone["token_id"]
    ).call()


def fetch_evolution_stones(web3: Web3, wallet_address: str) -> List[Dict[str, Any]]:
    """Balance and metadata of every stone type held by the wallet."""
    owner = Web3.to_checksum_address(wallet_address)
    stones = []

    for stone_type, stone in constants.EVOLUTION_STONES.items():
        contract = get_contract(web3, stone["contract_address"], "evolution_stone")
        balance = contract.functions.balanceOf(owner, stone["token_id"]).call()

        metadata = None
        image_url = ""
        try:
            uri = contract.functions.uri(stone["token_id"]).call()
            metadata = nft_service.fetch_metadata(
                uri, f"Fetch metadata for stone {stone_type}"
            )
            if metadata and metadata.get("image"):
                image_url = (
                    nft_service.resolve_metadata_url(metadata["image"])
                    or metadata["image"]
                )
        except Exception as e:
            logger.error(
                "Error fetching metadata for stone %s: %s", stone_type, str(e)
            )

        stones.append(
            {
                "type": stone_type,
                "name": stone["name"],
                "token_id": stone["token_id"],
                "balance": int(balance),
                "metadata": metadata,
                "image_url": image_url,
            }
        )
    return stones


def fetch_evolution_candidates(web3: Web3, wallet_address: str) -> List[Dict[str, Any]]:
    """Primos held by the wallet with the rarity flags evolution needs."""
    candidates = []
    for token_id, token_uri in nft_service.fetch_owned_tokens(web3, wallet_address):
        if token_id in constants.EVOLUTION_SKIPPED_TOKEN_IDS:
            logger.warning("Skipping token %s, its metadata is unavailable", token_id)
            continue

        metadata = None
        try:
            metadata = nft_service.fetch_metadata(
                token_uri, f"Fetch metadata for token {token_id}"
            )
        except Exception as e:
            logger.error(
                "Failed to fetch metadata for token %s after retries: %s",
                token_id,
                str(e),
            )

        rarity = ""
        is_full_set = False
        rarity_attribute = nft_service.find_attribute(
            metadata, constants.RARITY_ATTRIBUTE
        )
        if rarity_attribute is not None:
            rarity = str(rarity_attribute.get("value") or "")
        full_set_attribute = nft_service.find_attribute(
            metadata, constants.FULL_SET_ATTRIBUTE
        )
        if full_set_attribute is not None and full_set_attribute.get("value") is True:
            is_full_set = True

        candidates.append(
            {
                "token_id": token_id,
                "metadata": metadata,
                "rarity": rarity,
                "is_shiny": "shiny" in rarity.lower(),
                "is_full_set": is_full_set,
                "bonus_points": 0,
            }
        )
    return candidates


def build_burn_transaction(
    web3: Web3,
    wallet_address: str,
    stone_type: str,
    metadata: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    """Unsigned stone burn for the user's wallet to sign and broadcast.

    The stone must match the Primo's rarity and the wallet must hold at least
    one of it.
    """
    if not is_valid_wallet_address(wallet_address):
        raise InvalidRequestError("Invalid wallet address")

    stone = get_stone_config(stone_type)
    ensure_compatible(extract_rarity(metadata), stone_type)

    balance = get_stone_balance(web3, wallet_address, stone_type)
    if balance <= 0:
        raise InsufficientStoneBalanceError(f"You do not own any {stone['name']}")

    owner = Web3.to_checksum_address(wallet_address)
    contract = get_contract(web3, stone["contract_address"], "evolution_stone")
    data = contract.encode_abi(
        "safeTransferFrom",
        args=[
            owner,
            constants.BURN_ADDRESS,
            stone["token_id"],
            constants.EVOLUTION_BURN_AMOUNT,
            b"",
        ],
    )
    return {
        "to": contract.address,
        "data": data,
        "chain_id": settings.RONIN_CHAIN_ID,
        "from_address": owner,
        "value": 0,
        "stone_type": stone_type.upper(),
        "stone_token_id": stone["token_id"],
        "amount": constants.EVOLUTION_BURN_AMOUNT,
    }


def start_evolution(
    session: Session,
    wallet_address: str,
    primo_token_id,
    stone_type: str,
    stone_token_id,
    transaction_hash: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    current_time: Optional[datetime] = None,
) -> Evolution:
    """Record a pending evolution for a stone burn the wallet submitted."""
    if (
        not wallet_address
        or not stone_type
        or primo_token_id in (None, "")
        or stone_token_id in (None, "")
    ):
        raise InvalidRequestError("Missing required fields")

    if not is_valid_wallet_address(wallet_address):
        raise InvalidRequestError("Invalid wallet address")

    stone = get_stone_config(stone_type)
    try:
        primo_token_id = normalize_token_id(primo_token_id)
        stone_token_id = normalize_token_id(stone_token_id)
    except ValueError:
        raise InvalidRequestError("Invalid token id")

    rarity = extract_rarity(metadata)
    if rarity:
        ensure_compatible(rarity, stone_type)

    current_time = current_time or datetime.now(timezone.utc)
    evolution = Evolution(
        wallet_address=normalize_address(wallet_address),
        primo_token_id=primo_token_id,
        stone_type=stone_type.upper(),
        stone_token_id=stone_token_id,
        status=EvolutionStatus.PENDING.value,
        transaction_hash=transaction_hash,
        evolution_metadata=metadata or {},
        estimated_completion=current_time
        + timedelta(hours=constants.EVOLUTION_DURATION_HOURS),
        created_at=current_time,
        updated_at=current_time,
    )
    session.add(evolution)
    session.commit()
    session.refresh(evolution)

    logger.info(
        "Evolution %s started for Primo #%s with %s by %s",
        evolution.id,
        primo_token_id,
        stone["name"],
        evolution.wallet_address,
    )
    return evolution


def list_evolutions(session: Session, wallet_address: str) -> List[Evolution]:
    return session.exec(
        select(Evolution)
        .where(Evolution.wallet_address == normalize_address(wallet_address))
        .order_by(Evolution.created_at.desc())
    ).all()


def finalize_evolution(
    web3: Web3, evolution: Evolution, current_time: datetime
) -> Optional[str]:
    """Move a pending evolution to completed or failed based on its burn tx.

    Returns the new status, or None when the evolution stays pending.
    """
    if evolution.status != EvolutionStatus.PENDING.value:
        return None
    if not evolution.transaction_hash:
        return None

    try:
        receipt = web3.eth.get_transaction_receipt(evolution.transaction_hash)
    except Exception as e:
        logger.info(
            "No receipt yet for evolution %s (%s): %s",
            evolution.id,
            evolution.transaction_hash,
            str(e),
        )
        return None

    if receipt["status"] == 0:
        evolution.status = EvolutionStatus.FAILED.value
        evolution.updated_at = current_time
        return evolution.status

    estimated = evolution.estimated_completion
    if estimated is None or to_utc(estimated) <= current_time:
        evolution.status = EvolutionStatus.COMPLETED.value
        evolution.completed_at = current_time
        evolution.updated_at = current_time
        return evolution.status

    return None
