"""Game API endpoints."""

import logging
from random import Random
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from api.auth import ERRORS, SessionContext, require_user
from api.schemas import CardResponse, GameResponse, GameStatusResponse
from config import config
from core.cards import Card
from core.game import AcesGame, GameEvent
from db.crud import GameCrud, UserCrud, snapshot_from_row
from db.engine import get_db
from db.tables import GameTable, UserTable

logger = logging.getLogger(__name__)

router = APIRouter()

MESSAGE_ACTIVE = "Check details for your hand. Game is still active!"
MESSAGE_WON = "Winner!"
MESSAGE_ACES_GONE = (
    "Game over. All the aces have been dealt. "
    "You can still deal if you're curious to see what you'll get."
)
MESSAGE_LOST = "You lost. Better luck next time!"
MESSAGE_RESET = "Your latest game has been reset successfully!"

# Shared source for shuffles and draws
_rng = Random()


def _log_event(event: GameEvent) -> None:
    logger.debug("Game event %s", event)


def _card_to_response(card: Card) -> CardResponse:
    return CardResponse(
        kind=card.kind.value,
        number=card.number,
        name=card.name.value if card.name else None,
    )


def _game_response(row: GameTable, game: AcesGame) -> GameResponse:
    """Convert a stored game and its engine to a response."""
    return GameResponse(
        id=row.id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        deck=[_card_to_response(c) for c in game.deck],
        hand=[_card_to_response(c) for c in game.hand],
        finished=game.finished,
        user_won=game.user_won,
        round=game.round,
        deck_card_count=game.deck_card_count,
        aces_in_deck=[_card_to_response(c) for c in game.aces_in_deck],
    )


def _status_message(game: AcesGame) -> str:
    if not game.finished:
        return MESSAGE_ACTIVE
    if game.user_won:
        return MESSAGE_WON
    if game.round < game.max_rounds:
        return MESSAGE_ACES_GONE
    return MESSAGE_LOST


def _load_engine(row: GameTable) -> AcesGame:
    game = AcesGame.from_persisted(
        snapshot_from_row(row),
        rng=_rng,
        hand_size=config.game.hand_size,
    )
    game.subscribe(_log_event)
    return game


async def _get_user(db: AsyncSession, current: SessionContext) -> UserTable:
    user = await UserCrud.get_user(db, current.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=ERRORS["INVALID_SESSION"])
    return user


async def _get_current_game(db: AsyncSession, current: SessionContext) -> GameTable:
    user = await _get_user(db, current)
    row = await GameCrud.get_current_game(db, user)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ERRORS["NO_ACTIVE_GAME"])
    return row


async def _save(db: AsyncSession, row: GameTable, game: AcesGame) -> GameTable:
    try:
        return await GameCrud.save_game(db, row, game)
    except StaleDataError:
        logger.warning("Concurrent update rejected for game %d", row.id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ERRORS["CONCURRENT_UPDATE"])


@router.get("/current")
async def current_game(
    current: Annotated[SessionContext, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> GameResponse:
    """Get the caller's most recently started game."""
    row = await _get_current_game(db, current)
    return _game_response(row, _load_engine(row))


@router.post("/start", status_code=status.HTTP_201_CREATED)
async def start_game(
    current: Annotated[SessionContext, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> GameResponse:
    """Start a new game; it becomes the caller's current game."""
    user = await _get_user(db, current)
    game = AcesGame.start(rng=_rng, hand_size=config.game.hand_size, handler=_log_event)
    row = await GameCrud.create_game(db, game, user=user)
    logger.info("User %d started game %d", user.id, row.id)
    return _game_response(row, game)


@router.post("/deal")
async def deal(
    current: Annotated[SessionContext, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> GameStatusResponse:
    """Deal the next hand of the current game."""
    row = await _get_current_game(db, current)
    game = _load_engine(row)
    was_finished = game.finished
    game.deal()
    row = await _save(db, row, game)
    if game.finished and not was_finished:
        logger.info("Game %d finished in round %d, won=%s", row.id, game.round, game.user_won)
    return GameStatusResponse(message=_status_message(game), details=_game_response(row, game))


@router.post("/reset")
async def reset(
    current: Annotated[SessionContext, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> GameStatusResponse:
    """Start the current game over with a new shuffle."""
    row = await _get_current_game(db, current)
    game = _load_engine(row)
    game.reset()
    row = await _save(db, row, game)
    return GameStatusResponse(message=MESSAGE_RESET, details=_game_response(row, game))
