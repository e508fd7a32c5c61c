"""Game state enumeration."""

from enum import Enum, auto


class GameState(Enum):
    """
    Game lifecycle states.

    Flow: ACTIVE → (WON | LOST), and back to ACTIVE only through a reset.
    """

    # Aces remain in the deck
    ACTIVE = auto()

    # Last ace came out together with the last cards of the deck
    WON = auto()

    # Last ace came out while cards were still left in the deck
    LOST = auto()

    def __str__(self) -> str:
        return self.name.title()

    @property
    def is_finished(self) -> bool:
        """Check if the game has reached an outcome."""
        return self is not GameState.ACTIVE


def state_from_flags(finished: bool, user_won: bool) -> GameState:
    """Map the persisted finished/user_won flags to a state."""
    if not finished:
        return GameState.ACTIVE
    return GameState.WON if user_won else GameState.LOST
