from datetime import datetime, timezone
import logging
import traceback

import click
from sqlmodel import Session, select
from web3 import Web3

from core.constants import EvolutionStatus
from core.db import engine
from log import setup_logging_to_console, setup_logging_to_file
from models.evolution import Evolution
from services import evolution_service
from utils.web3_utils import get_web3

logger = logging.getLogger("finalize_evolutions")
logger.setLevel(logging.INFO)


def finalize_pending_evolutions(
    session: Session, web3: Web3, current_time: datetime
) -> dict:
    pending = session.exec(
        select(Evolution)
        .where(Evolution.status == EvolutionStatus.PENDING.value)
        .order_by(Evolution.created_at)
    ).all()
    logger.info("Found %s pending evolutions", len(pending))

    summary = {EvolutionStatus.COMPLETED.value: 0, EvolutionStatus.FAILED.value: 0}
    for evolution in pending:
        try:
            new_status = evolution_service.finalize_evolution(
                web3, evolution, current_time
            )
            if new_status is None:
                continue

            session.add(evolution)
            session.commit()
            summary[new_status] += 1
            logger.info(
                "Evolution %s for Primo #%s is now %s",
                evolution.id,
                evolution.primo_token_id,
                new_status,
            )
        except Exception as e:
            session.rollback()
            logger.error(
                "Error finalizing evolution %s: %s", evolution.id, str(e)
            )
            logger.error(traceback.format_exc())

    logger.info("Evolutions finalized: %s", summary)
    return summary


@click.command()
def main():
    with Session(engine) as session:
        finalize_pending_evolutions(session, get_web3(), datetime.now(timezone.utc))


if __name__ == "__main__":
    setup_logging_to_console()
    setup_logging_to_file("finalize_evolutions", logger=logger)
    main()
