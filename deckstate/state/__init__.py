"""
Immutable state management for the deck state engine.

This package provides the immutable state classes, the closed action
vocabulary, the sanitizer for stored data and the pure transition
functions that move a deck from one state to the next.
"""

from deckstate.state.models import (
    DeckSource,
    DeckState,
    DiscardPhase,
    ValidationResult,
)
from deckstate.state.actions import (
    ActionType,
    DeckAction,
    Init,
    DealNextHand,
    EndTurn,
    ApplyOverride,
    ChangeParameters,
    ToggleCardSelection,
    ConfirmDiscard,
    SelectForPlayOrder,
    DeselectFromPlayOrder,
    LockPlayOrder,
    ClearPlayOrder,
    Reset,
    LoadPresetDeck,
)
from deckstate.state.sanitizer import validate_and_sanitize_state
from deckstate.state.transitions import StateTransitionEngine

__all__ = [
    "DeckSource",
    "DeckState",
    "DiscardPhase",
    "ValidationResult",
    "ActionType",
    "DeckAction",
    "Init",
    "DealNextHand",
    "EndTurn",
    "ApplyOverride",
    "ChangeParameters",
    "ToggleCardSelection",
    "ConfirmDiscard",
    "SelectForPlayOrder",
    "DeselectFromPlayOrder",
    "LockPlayOrder",
    "ClearPlayOrder",
    "Reset",
    "LoadPresetDeck",
    "validate_and_sanitize_state",
    "StateTransitionEngine",
]
