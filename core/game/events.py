"""Game events for the event system."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable


class EventType(Enum):
    """Types of game events."""

    # Lifecycle events
    GAME_STARTED = auto()
    GAME_RESET = auto()

    # Card events
    CARDS_DEALT = auto()
    DECK_EXHAUSTED = auto()

    # Outcome events
    GAME_WON = auto()
    GAME_LOST = auto()


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable game event.

    Events are how the engine reports progress to the service layer
    without knowing anything about it.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"


# Type alias for event handlers
EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Simple event emitter for game events.

    Allows subscribing to specific event types or all events.
    """

    def __init__(self) -> None:
        """Initialize the event emitter."""
        self._handlers: dict[EventType | None, list[EventHandler]] = {}

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """
        Subscribe to events.

        Args:
            handler: Function to call when event occurs
            event_type: Specific event type to subscribe to, or None for all events
        """
        self._handlers.setdefault(event_type, []).append(handler)

    def emit(self, event: GameEvent) -> None:
        """Call type-specific, then catch-all handlers."""
        for handler in self._handlers.get(event.event_type, []):
            handler(event)

        for handler in self._handlers.get(None, []):
            handler(event)

    def emit_new(
        self,
        event_type: EventType,
        **data: Any,
    ) -> GameEvent:
        """Create and emit a new event."""
        event = GameEvent(event_type=event_type, data=data)
        self.emit(event)
        return event
