"""
Card primitives shared by the deck state engine.
"""

from deckstate.common.card import (
    Card,
    CardInstance,
    make_instance,
    make_instances,
    card_values,
)
from deckstate.common.deck import DEFAULT_DECK, default_deck, shuffle

__all__ = [
    "Card",
    "CardInstance",
    "make_instance",
    "make_instances",
    "card_values",
    "DEFAULT_DECK",
    "default_deck",
    "shuffle",
]
