"""SQLAlchemy table definitions."""

from datetime import datetime, timezone

from sqlalchemy import ForeignKey
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column
from sqlalchemy.types import JSON, Boolean, DateTime, Integer, String


def _utcnow() -> datetime:
    # Naive UTC so SQLite and Postgres compare timestamps the same way
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class UserTable(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    salt = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)
    current_game_id = Column(
        Integer,
        ForeignKey("games.id", use_alter=True, name="fk_users_current_game_id"),
        nullable=True,
    )


class GameTable(Base):
    __tablename__ = "games"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)
    deck = Column(JSON, nullable=False)
    hand = Column(JSON, nullable=False)
    finished = Column(Boolean, default=False, nullable=False)
    user_won = Column(Boolean, default=False, nullable=False)
    round = Column(Integer, default=1, nullable=False)
    # Anonymous games have no owner
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    version = Column(Integer, nullable=False)

    # Concurrent deals on one game fail with StaleDataError instead of
    # interleaving their deck/hand writes
    __mapper_args__ = {"version_id_col": version}
