"""Create/read/update operations for users and games."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.cards import Card, CardKind
from core.game import AcesGame, GameSnapshot
from db.tables import GameTable, UserTable

logger = logging.getLogger(__name__)


class UsernameTakenError(Exception):
    """Raised when registering a username that already exists."""


def _serialize_card(card: Card) -> dict[str, Any]:
    """Serialize a card to a dict."""
    data: dict[str, Any] = {"kind": card.kind.value, "number": card.number}
    if card.name is not None:
        data["name"] = card.name.value
    return data


def _deserialize_card(data: dict[str, Any]) -> Card:
    """Deserialize a card from a dict; the name is derived, not read."""
    return Card(CardKind(data["kind"]), int(data["number"]))


def snapshot_from_row(row: GameTable) -> GameSnapshot:
    """Build an engine snapshot from a stored game."""
    return GameSnapshot(
        deck=[_deserialize_card(c) for c in row.deck],
        hand=[_deserialize_card(c) for c in row.hand],
        finished=row.finished,
        user_won=row.user_won,
        round=row.round,
    )


def _apply_game(row: GameTable, game: AcesGame) -> None:
    snapshot = game.snapshot()
    row.deck = [_serialize_card(c) for c in snapshot.deck]
    row.hand = [_serialize_card(c) for c in snapshot.hand]
    row.finished = snapshot.finished
    row.user_won = snapshot.user_won
    row.round = snapshot.round


class UserCrud:

    @staticmethod
    async def create_user(
        session: AsyncSession, username: str, password_hash: str, salt: str
    ) -> UserTable:
        """Insert a user.

        Raises:
            UsernameTakenError: The username is already registered
        """
        user = UserTable(username=username, password_hash=password_hash, salt=salt)
        session.add(user)
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.warning("Registration rejected for %r: %s", username, e.orig)
            raise UsernameTakenError(username) from e
        return user

    @staticmethod
    async def get_user(session: AsyncSession, user_id: int) -> UserTable | None:
        return await session.get(UserTable, user_id)

    @staticmethod
    async def get_user_by_username(session: AsyncSession, username: str) -> UserTable | None:
        result = await session.execute(select(UserTable).where(UserTable.username == username))
        return result.scalars().first()


class GameCrud:

    @staticmethod
    async def create_game(
        session: AsyncSession, game: AcesGame, user: UserTable | None = None
    ) -> GameTable:
        """Store a new game and, for an owned game, make it the user's current one."""
        row = GameTable(user_id=user.id if user is not None else None)
        _apply_game(row, game)
        session.add(row)
        await session.flush()
        if user is not None:
            user.current_game_id = row.id
        await session.commit()
        return row

    @staticmethod
    async def get_current_game(session: AsyncSession, user: UserTable) -> GameTable | None:
        if user.current_game_id is None:
            return None
        return await session.get(GameTable, user.current_game_id)

    @staticmethod
    async def save_game(session: AsyncSession, row: GameTable, game: AcesGame) -> GameTable:
        """Write engine state back to its row.

        Raises:
            sqlalchemy.orm.exc.StaleDataError: The row changed since it was read
        """
        _apply_game(row, game)
        try:
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        return row

    @staticmethod
    async def list_finished_games(
        session: AsyncSession, user_id: int, since: datetime
    ) -> list[GameTable]:
        stmt = (
            select(GameTable)
            .where(GameTable.user_id == user_id)
            .where(GameTable.created_at >= since)
            .where(GameTable.finished.is_(True))
            .order_by(GameTable.created_at.desc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
