from datetime import datetime, timezone
import logging
from typing import Optional

import click
from sqlmodel import Session, select
from web3 import Web3

from core.db import engine
from log import setup_logging_to_console, setup_logging_to_file
from models.user import User
from services import nft_service
from utils.web3_utils import get_web3

logger = logging.getLogger("sync_wallet_nfts")
logger.setLevel(logging.INFO)


def sync_wallets(
    session: Session,
    web3: Web3,
    wallet: Optional[str] = None,
    current_time: Optional[datetime] = None,
) -> int:
    """Refresh the NFT cache of one wallet or of every known user.

    Returns how many wallets were refreshed; failures are logged and skipped.
    """
    current_time = current_time or datetime.now(timezone.utc)
    if wallet:
        wallets = [wallet]
    else:
        wallets = session.exec(select(User.wallet_address)).all()

    logger.info("Syncing NFTs for %s wallets", len(wallets))

    synced = 0
    for wallet_address in wallets:
        try:
            nfts = nft_service.refresh_user_nfts(
                session, web3, wallet_address, current_time
            )
            session.commit()
            synced += 1
            logger.info("Synced %s NFTs for %s", len(nfts), wallet_address)
        except Exception as e:
            session.rollback()
            logger.error(
                "Error syncing NFTs for %s: %s",
                wallet_address,
                str(e),
                exc_info=True,
            )

    logger.info("NFT sync finished: %s/%s wallets", synced, len(wallets))
    return synced


@click.command()
@click.option("--wallet", default=None, help="Only refresh this wallet address")
def main(wallet: Optional[str]):
    with Session(engine) as session:
        sync_wallets(session, get_web3(), wallet)


if __name__ == "__main__":
    setup_logging_to_console()
    setup_logging_to_file("sync_wallet_nfts", logger=logger)
    main()
