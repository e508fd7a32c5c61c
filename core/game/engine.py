"""Aces game engine with state machine."""

import math
from dataclasses import dataclass, field
from random import Random
from typing import Callable, Iterable

from transitions import Machine

from core.cards import DECK_SIZE, Card, build_deck
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.state import GameState, state_from_flags

HAND_SIZE = 5


@dataclass
class GameSnapshot:
    """Engine state in the shape it is stored and transported."""

    deck: list[Card] = field(default_factory=list)
    hand: list[Card] = field(default_factory=list)
    finished: bool = False
    user_won: bool = False
    round: int = 1


class AcesGame:
    """
    Aces solitaire engine using a state machine.

    The player is dealt a fresh hand from the deck every round. The game
    ends on the deal that takes the last ace out of the deck; it is won
    only if that deal also empties the deck and the final hand holds an ace.

    This is the core game logic, completely I/O-free. Callers load and
    persist it through GameSnapshot.
    """

    # State machine states
    STATES = [s.name.lower() for s in GameState]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "win_game", "source": "active", "dest": "won"},
        {"trigger": "lose_game", "source": "active", "dest": "lost"},
        {"trigger": "restart", "source": "*", "dest": "active"},
    ]

    def __init__(
        self,
        deck: Iterable[Card],
        hand: Iterable[Card],
        *,
        finished: bool = False,
        user_won: bool = False,
        round_number: int = 1,
        hand_size: int = HAND_SIZE,
        rng: Random | None = None,
    ) -> None:
        """
        Wrap existing game state. Use start() or from_persisted() instead.

        Args:
            deck: Cards remaining in the deck
            hand: Cards currently dealt
            finished: Whether the last ace has left the deck
            user_won: Whether the game ended in a win
            round_number: Number of hands dealt so far, starting at 1
            hand_size: Cards dealt per round
            rng: Random number generator for shuffling and sampling
        """
        if hand_size < 1:
            raise ValueError("Hand size must be at least 1")

        self.hand_size = hand_size
        self.deck: list[Card] = list(deck)
        self.hand: list[Card] = list(hand)
        self.round = round_number
        self._rng = rng or Random()
        self.events = EventEmitter()

        # Initialize state machine
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=state_from_flags(finished, user_won).name.lower(),
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @classmethod
    def start(
        cls,
        rng: Random | None = None,
        hand_size: int = HAND_SIZE,
        handler: Callable[[GameEvent], None] | None = None,
    ) -> "AcesGame":
        """
        Shuffle a full deck and deal the opening hand.

        Args:
            rng: Random number generator for shuffling and sampling
            hand_size: Cards dealt per round
            handler: Subscribed to all events before the game starts
        """
        game = cls([], [], hand_size=hand_size, rng=rng)
        if handler is not None:
            game.subscribe(handler)
        game._deal_opening_hand()
        game.events.emit_new(
            EventType.GAME_STARTED,
            hand=[str(c) for c in game.hand],
            deck_remaining=len(game.deck),
        )
        return game

    @classmethod
    def from_persisted(
        cls,
        snapshot: GameSnapshot,
        rng: Random | None = None,
        hand_size: int = HAND_SIZE,
    ) -> "AcesGame":
        """Rebuild a game from a stored snapshot."""
        return cls(
            snapshot.deck,
            snapshot.hand,
            finished=snapshot.finished,
            user_won=snapshot.user_won,
            round_number=snapshot.round,
            hand_size=hand_size,
            rng=rng,
        )

    @property
    def state(self) -> GameState:
        """Get current game state as enum."""
        return GameState[self._machine_state.upper()]  # type: ignore

    @property
    def finished(self) -> bool:
        """Whether the last ace has left the deck."""
        return self.state.is_finished

    @property
    def user_won(self) -> bool:
        """Whether the game ended in a win."""
        return self.state is GameState.WON

    @property
    def max_rounds(self) -> int:
        """Opening hand plus the deals needed to empty the rest of the deck."""
        return 1 + max(0, math.ceil((DECK_SIZE - self.hand_size) / self.hand_size))

    @property
    def aces_in_deck(self) -> list[Card]:
        """Aces still waiting in the deck."""
        return self.get_aces()

    @property
    def deck_card_count(self) -> int:
        """Number of cards left to deal."""
        return len(self.deck)

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    def get_aces(self, cards: Iterable[Card] | None = None) -> list[Card]:
        """
        Return the aces among the given cards.

        Args:
            cards: Cards to scan; the current deck when None. An empty
                sequence is scanned as-is and yields no aces.
        """
        source = self.deck if cards is None else cards
        return [card for card in source if card.is_ace]

    def draw(self, count: int | None = None) -> tuple[list[Card], list[Card]]:
        """
        Sample cards from the deck without changing the game.

        Args:
            count: Cards to draw (defaults to the hand size); clamped to
                the number of cards left

        Returns:
            (remaining deck, drawn hand)
        """
        count = self.hand_size if count is None else count
        drawn = self._rng.sample(self.deck, max(0, min(count, len(self.deck))))
        picked = set(drawn)
        remaining = [card for card in self.deck if card not in picked]
        return remaining, drawn

    def deal(self) -> list[Card]:
        """
        Replace the hand with a fresh draw and advance the round.

        Dealing a finished game is allowed: it keeps drawing (an empty
        hand once the deck runs out) but never changes the outcome.

        Returns:
            The new hand
        """
        had_cards = bool(self.deck)
        new_deck, new_hand = self.draw()

        outcome: EventType | None = None
        if self.state is GameState.ACTIVE and not self.get_aces(new_deck):
            if self.get_aces(new_hand) and not new_deck:
                self.win_game()
                outcome = EventType.GAME_WON
            else:
                self.lose_game()
                outcome = EventType.GAME_LOST

        self.deck = new_deck
        self.hand = new_hand
        self.round = min(self.round + 1, self.max_rounds)

        self.events.emit_new(
            EventType.CARDS_DEALT,
            round=self.round,
            hand=[str(c) for c in new_hand],
            deck_remaining=len(new_deck),
        )
        if had_cards and not new_deck:
            self.events.emit_new(EventType.DECK_EXHAUSTED, round=self.round)
        if outcome is not None:
            self.events.emit_new(outcome, round=self.round)

        return new_hand

    def reset(self) -> None:
        """Discard all progress and start over with a new shuffle."""
        self._deal_opening_hand()
        self.restart()
        self.events.emit_new(
            EventType.GAME_RESET,
            hand=[str(c) for c in self.hand],
            deck_remaining=len(self.deck),
        )

    def snapshot(self) -> GameSnapshot:
        """Capture the current state for storage."""
        return GameSnapshot(
            deck=list(self.deck),
            hand=list(self.hand),
            finished=self.finished,
            user_won=self.user_won,
            round=self.round,
        )

    def _deal_opening_hand(self) -> None:
        deck = build_deck()
        self._rng.shuffle(deck)
        self.deck = deck
        self.deck, self.hand = self.draw()
        self.round = 1
