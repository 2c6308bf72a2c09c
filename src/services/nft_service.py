from datetime import date, datetime, timezone
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

import requests
from sqlalchemy import delete
from sqlmodel import Session, select
from web3 import Web3

from core import constants
from core.config import settings
from core.exceptions import MetadataFetchError
from models.check_in import CheckIn
from models.nft import NFT
from models.nft_usage_tracking import NFTUsageTracking
from services import leaderboard_service
from utils.extension_utils import utc_date, utc_midnight
from utils.retry import retry_operation
from utils.web3_utils import get_contract, normalize_address, normalize_token_id

logger = logging.getLogger(__name__)

NFTKey = Tuple[str, int]


def nft_key(contract_address: str, token_id) -> NFTKey:
    return normalize_address(contract_address), normalize_token_id(token_id)


def resolve_metadata_url(uri: str) -> Optional[str]:
    if not uri:
        return None
    if uri.startswith("ipfs://"):
        return f"{settings.IPFS_GATEWAY_URL}{uri[len('ipfs://'):]}"
    if uri.startswith("http"):
        return uri
    return None


def fetch_metadata(uri: str, description: str = "Fetch metadata") -> Optional[dict]:
    """Download the JSON metadata behind a token URI, with bounded retries."""
    url = resolve_metadata_url(uri)
    if url is None:
        return None

    def _fetch():
        response = requests.get(url, timeout=settings.METADATA_REQUEST_TIMEOUT)
        if response.status_code != 200:
            raise MetadataFetchError(
                f"Request failed with status {response.status_code}"
            )
        return response.json()

    return retry_operation(
        _fetch,
        max_attempts=settings.METADATA_MAX_ATTEMPTS,
        initial_delay=settings.METADATA_INITIAL_DELAY_SECONDS,
        backoff_factor=settings.METADATA_BACKOFF_FACTOR,
        description=description,
    )


def find_attribute(metadata: Optional[dict], trait_type: str) -> Optional[dict]:
    if not metadata:
        return None
    for attribute in metadata.get("attributes") or []:
        if isinstance(attribute, dict) and attribute.get("trait_type") == trait_type:
            return attribute
    return None


def compute_bonus_points(metadata: Optional[dict]) -> Dict[str, Any]:
    """Derive rarity flags and check-in bonus points from NFT attributes."""
    result = {
        "rarity": "",
        "is_shiny": False,
        "is_z": False,
        "is_full_set": False,
        "bonus_points": 0,
    }

    rarity_attribute = find_attribute(metadata, constants.RARITY_ATTRIBUTE)
    if rarity_attribute is not None:
        rarity = str(rarity_attribute.get("value") or "")
        result["rarity"] = rarity
        if rarity in constants.RARITY_BONUS_POINTS:
            points, is_shiny, is_z = constants.RARITY_BONUS_POINTS[rarity]
            result["bonus_points"] += points
            result["is_shiny"] = is_shiny
            result["is_z"] = is_z
    elif metadata:
        logger.debug("No rarity attribute found in metadata")

    full_set_attribute = find_attribute(metadata, constants.FULL_SET_ATTRIBUTE)
    if full_set_attribute is not None and full_set_attribute.get("value") is True:
        result["bonus_points"] += constants.FULL_SET_BONUS_POINTS
        result["is_full_set"] = True

    return result


def fetch_owned_tokens(web3: Web3, wallet_address: str) -> List[Tuple[int, str]]:
    """(token id, token URI) of every Primo held by the wallet, read on-chain."""
    contract = get_contract(web3, constants.PRIMOS_NFT_ADDRESS, "erc721")
    owner = Web3.to_checksum_address(wallet_address)

    balance = contract.functions.balanceOf(owner).call()
    logger.info("Found %s NFTs on chain for wallet %s", balance, wallet_address)

    tokens = []
    for index in range(balance):
        token_id = contract.functions.tokenOfOwnerByIndex(owner, index).call()
        token_uri = contract.functions.tokenURI(token_id).call()
        tokens.append((int(token_id), token_uri))
    return tokens


def _safe_fetch_metadata(token_id: int, token_uri: str) -> Optional[dict]:
    try:
        return fetch_metadata(token_uri, f"Fetch metadata for token {token_id}")
    except Exception as e:
        logger.error(
            "Failed to fetch metadata for token %s: %s", token_id, str(e)
        )
        return None


def refresh_user_nfts(
    session: Session,
    web3: Web3,
    wallet_address: str,
    current_time: Optional[datetime] = None,
) -> List[NFT]:
    """Replace the cached NFTs of a wallet with what the chain reports now."""
    current_time = current_time or datetime.now(timezone.utc)
    wallet = normalize_address(wallet_address)
    contract_address = normalize_address(constants.PRIMOS_NFT_ADDRESS)

    tokens = fetch_owned_tokens(web3, wallet_address)

    existing = get_wallet_nfts(session, wallet)
    logger.info(
        "Removing %s cached NFTs (%s bonus points) for wallet %s",
        len(existing),
        sum(nft.bonus_points for nft in existing),
        wallet,
    )
    session.execute(delete(NFT).where(NFT.wallet_address == wallet))

    nfts = []
    for token_id, token_uri in tokens:
        metadata = _safe_fetch_metadata(token_id, token_uri)
        bonus = compute_bonus_points(metadata)

        # a previous owner's cached row for the same token is stale now
        session.execute(
            delete(NFT)
            .where(NFT.token_id == token_id)
            .where(NFT.contract_address == contract_address)
        )
        nft = NFT(
            token_id=token_id,
            contract_address=contract_address,
            wallet_address=wallet,
            nft_metadata=metadata or {},
            updated_at=current_time,
            **bonus,
        )
        session.add(nft)
        nfts.append(nft)

    session.flush()

    leaderboard_service.update_leaderboard(
        session, wallet, nft_count=len(nfts), last_active=current_time
    )
    logger.info(
        "Cached %s NFTs (%s bonus points) for wallet %s",
        len(nfts),
        sum(nft.bonus_points for nft in nfts),
        wallet,
    )
    return nfts


def get_wallet_nfts(session: Session, wallet_address: str) -> List[NFT]:
    return session.exec(
        select(NFT)
        .where(NFT.wallet_address == normalize_address(wallet_address))
        .order_by(NFT.token_id)
    ).all()


def get_nft_usage(
    session: Session, token_id, contract_address: str, usage_date: date
) -> List[NFTUsageTracking]:
    contract, token = nft_key(contract_address, token_id)
    return session.exec(
        select(NFTUsageTracking)
        .where(NFTUsageTracking.token_id == token)
        .where(NFTUsageTracking.contract_address == contract)
        .where(NFTUsageTracking.usage_date == usage_date)
    ).all()


def is_nft_locked(session: Session, token_id, contract_address: str, usage_date: date):
    return len(get_nft_usage(session, token_id, contract_address, usage_date)) > 0


def get_locked_nft_keys(session: Session, usage_date: date) -> Set[NFTKey]:
    records = session.exec(
        select(NFTUsageTracking.contract_address, NFTUsageTracking.token_id).where(
            NFTUsageTracking.usage_date == usage_date
        )
    ).all()
    return {nft_key(contract, token_id) for contract, token_id in records}


def has_checked_in_on(session: Session, wallet_address: str, current_time: datetime):
    day_start = utc_midnight(current_time)
    check_in = session.exec(
        select(CheckIn.id)
        .where(CheckIn.wallet_address == normalize_address(wallet_address))
        .where(CheckIn.created_at >= day_start)
    ).first()
    return check_in is not None


def calculate_nft_points(
    session: Session, wallet_address: str, current_time: datetime
) -> Tuple[int, List[NFT]]:
    """Bonus points the wallet can claim today and the NFTs that provide them.

    An NFT is eligible unless it was already used today by any wallet. A
    wallet that already has a check-in today gets nothing.
    """
    nfts = get_wallet_nfts(session, wallet_address)

    if has_checked_in_on(session, wallet_address, current_time):
        logger.info(
            "Wallet %s already checked in today, its %s NFTs count as used",
            wallet_address,
            len(nfts),
        )
        return 0, []

    locked = get_locked_nft_keys(session, utc_date(current_time))
    eligible = [
        nft for nft in nfts if nft_key(nft.contract_address, nft.token_id) not in locked
    ]
    total_points = sum(nft.bonus_points or 0 for nft in eligible)

    logger.info(
        "Eligible NFTs for %s: %s of %s (%s locked globally today), %s points",
        wallet_address,
        len(eligible),
        len(nfts),
        len(locked),
        total_points,
    )
    return total_points, eligible
