import logging

from sqlmodel import Session

from core.db import engine, init_db
from log import setup_logging_to_console

logger = logging.getLogger(__name__)


def init() -> None:
    with Session(engine) as session:
        init_db(session)


def main() -> None:
    logger.info("Creating initial data")
    init()
    logger.info("Initial data created")


if __name__ == "__main__":
    setup_logging_to_console()
    main()
