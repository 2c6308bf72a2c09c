from web3 import Web3
from web3.contract import Contract

from core.abi_reader import read_abi
from core.config import settings


def get_web3() -> Web3:
    return Web3(
        Web3.HTTPProvider(
            settings.RONIN_RPC_URL,
            request_kwargs={"timeout": settings.METADATA_REQUEST_TIMEOUT},
        )
    )


def get_contract(web3: Web3, address: str, abi_name: str) -> Contract:
    return web3.eth.contract(
        address=Web3.to_checksum_address(address), abi=read_abi(abi_name)
    )


def normalize_token_id(token_id) -> int:
    """Coerce a token id given as int, decimal string or hex string to int."""
    if isinstance(token_id, bool):
        raise ValueError(f"Invalid token id: {token_id!r}")
    if isinstance(token_id, int):
        return token_id
    value = str(token_id).strip()
    if value.lower().startswith("0x"):
        return int(value, 16)
    return int(value)


def normalize_address(address: str) -> str:
    return address.strip().lower()
