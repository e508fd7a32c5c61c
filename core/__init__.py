"""Core Aces engine - no I/O, no framework dependencies."""

from core.cards import Card, CardKind, CardName, build_deck

__all__ = [
    "Card",
    "CardKind",
    "CardName",
    "build_deck",
]
