"""Tests for game states and the event emitter."""

from core.game.events import EventEmitter, EventType, GameEvent
from core.game.state import GameState, state_from_flags


class TestGameState:

    def test_only_active_is_unfinished(self):
        assert not GameState.ACTIVE.is_finished
        assert GameState.WON.is_finished
        assert GameState.LOST.is_finished

    def test_state_from_flags(self):
        assert state_from_flags(False, False) == GameState.ACTIVE
        assert state_from_flags(True, True) == GameState.WON
        assert state_from_flags(True, False) == GameState.LOST

    def test_str(self):
        assert str(GameState.WON) == "Won"


class TestEventEmitter:

    def test_typed_and_catch_all_handlers(self):
        emitter = EventEmitter()
        typed, everything = [], []
        emitter.subscribe(typed.append, EventType.GAME_WON)
        emitter.subscribe(everything.append)

        emitter.emit_new(EventType.CARDS_DEALT, round=2)
        emitter.emit_new(EventType.GAME_WON, round=11)

        assert [e.event_type for e in typed] == [EventType.GAME_WON]
        assert len(everything) == 2

    def test_emit_new_returns_event(self):
        emitter = EventEmitter()
        event = emitter.emit_new(EventType.GAME_RESET, deck_remaining=47)

        assert event.data == {"deck_remaining": 47}
        assert str(event) == "GAME_RESET: {'deck_remaining': 47}"

    def test_event_defaults(self):
        event = GameEvent(EventType.GAME_STARTED)
        assert event.data == {}
