from collections.abc import Generator
from typing import Annotated

from fastapi import Depends
from sqlmodel import Session
from web3 import Web3

from core.db import engine
from utils.web3_utils import get_web3


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def get_chain() -> Web3:
    return get_web3()


SessionDep = Annotated[Session, Depends(get_db)]
Web3Dep = Annotated[Web3, Depends(get_chain)]
