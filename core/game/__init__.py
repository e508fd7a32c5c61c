"""Game engine and state management."""

from core.game.events import GameEvent, EventType
from core.game.state import GameState
from core.game.engine import AcesGame, GameSnapshot

__all__ = [
    "GameEvent",
    "EventType",
    "GameState",
    "AcesGame",
    "GameSnapshot",
]
