from sqlalchemy import func
from sqlmodel import Session, SQLModel, create_engine, select

from core.config import settings
import models  # noqa: F401
from models.leaderboard import Leaderboard
from models.user import User

engine = create_engine(str(settings.SQLALCHEMY_DATABASE_URI), pool_pre_ping=True)


def create_db_and_tables(bind=engine) -> None:
    SQLModel.metadata.create_all(bind)


def seed_leaderboard(session: Session):
    """Backfill a leaderboard row for every user that does not have one yet."""
    cnt = session.exec(select(func.count()).select_from(User)).one()
    if cnt == 0:
        return

    users = session.exec(
        select(User).where(
            User.wallet_address.not_in(select(Leaderboard.wallet_address))
        )
    ).all()
    for user in users:
        session.add(
            Leaderboard(
                wallet_address=user.wallet_address,
                points_earned=user.total_points,
                current_streak=user.current_streak,
                best_streak=user.max_streak,
                last_active=user.last_check_in,
            )
        )
    session.commit()


def init_db(session: Session) -> None:
    # tables are managed by alembic; create_all only fills gaps in dev databases
    if not settings.is_production:
        create_db_and_tables(session.get_bind())

    seed_leaderboard(session)
