"""Statistics API endpoints."""

import re
from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth import SessionContext, require_user
from api.schemas import StatsResponse
from db.crud import GameCrud
from db.engine import get_db

router = APIRouter()

_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)\s*(ms|s|m|h|d|w)")


def _parse_duration(text: str) -> timedelta:
    """
    Parse a compact duration such as "30s", "1h30m" or "2w".

    Raises:
        ValueError: The text is empty or has anything besides number/unit pairs
    """
    compact = text.strip().lower()
    if not compact:
        raise ValueError("Empty duration")

    total = timedelta()
    position = 0
    for match in _DURATION_PART.finditer(compact):
        if compact[position:match.start()].strip():
            raise ValueError(f"Invalid duration: {text!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or compact[position:].strip():
        raise ValueError(f"Invalid duration: {text!r}")
    return total


def _window_start(text: str, now: datetime) -> datetime:
    """
    Return the moment a look-back window of the given duration opens.

    Raises:
        ValueError: The duration is malformed or reaches past the calendar
    """
    try:
        return now - _parse_duration(text)
    except OverflowError as e:
        raise ValueError(f"Duration out of range: {text!r}") from e


@router.get("")
async def get_stats(
    current: Annotated[SessionContext, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    since: Annotated[str, Query(description="Look-back window, e.g. 1d or 12h")] = "7d",
) -> StatsResponse:
    """Count the caller's finished games started within the window."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    try:
        cutoff = _window_start(since, now)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    games = await GameCrud.list_finished_games(db, current.user_id, cutoff)
    won = sum(1 for g in games if g.user_won)

    return StatsResponse(
        games_played=len(games),
        games_won=won,
        games_lost=len(games) - won,
        since=cutoff,
    )
