"""Card value objects and deck construction."""

from dataclasses import dataclass
from enum import Enum


class CardKind(Enum):
    """Card suits, in deck construction order."""

    CLUBS = "Clubs"
    DIAMONDS = "Diamonds"
    HEARTS = "Hearts"
    SPADES = "Spades"

    def __str__(self) -> str:
        symbols = {
            CardKind.CLUBS: "♣",
            CardKind.DIAMONDS: "♦",
            CardKind.HEARTS: "♥",
            CardKind.SPADES: "♠",
        }
        return symbols[self]


class CardName(Enum):
    """Names of the special cards."""

    ACE = "Ace"
    JACK = "Jack"
    QUEEN = "Queen"
    KING = "King"


ACE = 1
LOWEST_NUMBER = 1
HIGHEST_NUMBER = 13

CARD_NUMBERS_TO_NAMES: dict[int, CardName] = {
    1: CardName.ACE,
    11: CardName.JACK,
    12: CardName.QUEEN,
    13: CardName.KING,
}


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card identified by kind and number."""

    kind: CardKind
    number: int

    def __post_init__(self) -> None:
        if not LOWEST_NUMBER <= self.number <= HIGHEST_NUMBER:
            raise ValueError(f"Invalid card number: {self.number}")

    def __str__(self) -> str:
        label = self.name.value[0] if self.name else str(self.number)
        return f"{label}{self.kind}"

    def __repr__(self) -> str:
        return f"Card({self.kind.name}, {self.number})"

    @property
    def name(self) -> CardName | None:
        """Return the special-card name, or None for number cards."""
        return CARD_NUMBERS_TO_NAMES.get(self.number)

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.number == ACE


def build_deck() -> list[Card]:
    """Return the 52 cards of a standard deck, unshuffled."""
    return [
        Card(kind, number)
        for kind in CardKind
        for number in range(LOWEST_NUMBER, HIGHEST_NUMBER + 1)
    ]


DECK_SIZE = len(CardKind) * (HIGHEST_NUMBER - LOWEST_NUMBER + 1)
