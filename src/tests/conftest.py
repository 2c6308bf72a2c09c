import os

os.environ.setdefault("ENVIRONMENT_NAME", "Test")
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite://")

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import models  # noqa: F401
from api.api_v1.deps import get_chain, get_db
from core import constants
from main import app
from models.check_in import CheckIn
from models.nft import NFT
from models.user import User

WALLET = "0x7354f8adfdfc6ca4d9f81fc20d04eb8a7b11b01b"
OTHER_WALLET = "0x6dbd53c16e8024dcfb06ccaace1344fdff12b0d9"
PRIMOS_CONTRACT = constants.PRIMOS_NFT_ADDRESS.lower()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # let SQLAlchemy drive BEGIN/SAVEPOINT instead of pysqlite
    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def mock_web3():
    return MagicMock()


@pytest.fixture
def client(db_session, mock_web3):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_chain] = lambda: mock_web3
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def add_nft(db_session):
    def _add_nft(token_id, wallet=WALLET, bonus_points=1, rarity="original"):
        nft = NFT(
            token_id=token_id,
            contract_address=PRIMOS_CONTRACT,
            wallet_address=wallet.lower(),
            rarity=rarity,
            bonus_points=bonus_points,
            updated_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        db_session.add(nft)
        db_session.commit()
        return nft

    return _add_nft


def create_check_in(session, wallet=WALLET, created_at=None):
    """Persist a user with one check-in, for tests that need a check_in_id."""
    created_at = created_at or datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)
    user = User(
        wallet_address=wallet.lower(),
        current_streak=1,
        max_streak=1,
        total_check_ins=1,
        last_check_in=created_at,
    )
    session.add(user)
    session.flush()
    check_in = CheckIn(
        user_id=user.id,
        wallet_address=wallet.lower(),
        streak_count=1,
        created_at=created_at,
    )
    session.add(check_in)
    session.flush()
    return check_in
