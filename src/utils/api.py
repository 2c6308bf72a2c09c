from eth_utils import is_address, to_checksum_address


def is_valid_wallet_address(wallet_address):
    if not wallet_address or not is_address(wallet_address):
        return False
    return to_checksum_address(wallet_address)
