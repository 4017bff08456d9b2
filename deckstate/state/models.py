"""
Immutable state models for the deck state engine.

This module provides dataclasses for representing the state of a deck, the
hand dealt from it and the turn sub-phases in an immutable manner. These
classes are designed to be used with pure transition functions that create new
state instances rather than modifying existing ones.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional
from enum import Enum

from deckstate.common.card import Card, CardInstance
from deckstate.state.constants import (
    DEFAULT_HAND_SIZE,
    DEFAULT_DISCARD_COUNT,
    MIN_TURN_NUMBER,
)


class DeckSource(Enum):
    """Where the cards of the active deck came from."""

    PRESET = "preset"
    CUSTOM = "custom"
    DEFAULT = "default"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DiscardPhase:
    """
    Immutable representation of the mandatory discard sub-phase.

    Attributes:
        active: Whether the player must discard before continuing
        remaining_discards: Exact number of cards to discard, fixed when the
            phase begins
    """

    active: bool = False
    remaining_discards: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"active": self.active, "remaining_discards": self.remaining_discards}


# Fields that only make sense inside a running process
TRANSIENT_FIELDS = frozenset({"selected_card_ids", "is_dealing"})

# Every field the persisted record knows about
PERSISTED_FIELDS = frozenset(
    {
        "draw_pile",
        "discard_pile",
        "hand",
        "hand_cards",
        "discard_phase",
        "play_order_sequence",
        "play_order_locked",
        "planning_phase",
        "turn_number",
        "hand_size",
        "discard_count",
        "warning",
        "error",
        "deck_source",
        "active_preset_id",
    }
)

KNOWN_FIELDS = PERSISTED_FIELDS | TRANSIENT_FIELDS


@dataclass(frozen=True)
class DeckState:
    """
    Immutable representation of the deck, the hand and the turn phases.

    Attributes:
        draw_pile: Cards available to be dealt, next card first
        discard_pile: Cards removed from play, oldest first
        hand: Deprecated mirror of the card values in ``hand_cards``
        hand_cards: The instances currently held
        selected_card_ids: Instance ids chosen for discard (transient)
        discard_phase: The discard sub-phase
        play_order_sequence: Instance ids in the order the player will play them
        play_order_locked: Whether the play order is frozen until the next deal
        planning_phase: Whether the player is arranging the play order
        turn_number: Current turn, starting at 1
        hand_size: Cards dealt per hand
        discard_count: Cards the player must discard per hand
        warning: Non-fatal capacity message
        error: Message describing the last rejected user input
        is_dealing: Re-entrancy guard while a deal is in progress (transient)
        deck_source: Where the active deck came from
        active_preset_id: Identifier of the active preset deck, if any
        extra: Unknown persisted fields kept for forward compatibility
    """

    draw_pile: List[Card] = field(default_factory=list)
    discard_pile: List[Card] = field(default_factory=list)
    hand: List[Card] = field(default_factory=list)
    hand_cards: List[CardInstance] = field(default_factory=list)
    selected_card_ids: FrozenSet[str] = frozenset()
    discard_phase: DiscardPhase = field(default_factory=DiscardPhase)
    play_order_sequence: List[str] = field(default_factory=list)
    play_order_locked: bool = False
    planning_phase: bool = False
    turn_number: int = MIN_TURN_NUMBER
    hand_size: int = DEFAULT_HAND_SIZE
    discard_count: int = DEFAULT_DISCARD_COUNT
    warning: Optional[str] = None
    error: Optional[str] = None
    is_dealing: bool = False
    deck_source: DeckSource = DeckSource.DEFAULT
    active_preset_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_cards(self) -> int:
        """Size of the active deck across every pile and the hand."""
        return len(self.draw_pile) + len(self.discard_pile) + len(self.hand_cards)

    @property
    def hand_instance_ids(self) -> FrozenSet[str]:
        """Identifiers of every instance in the hand."""
        return frozenset(instance.instance_id for instance in self.hand_cards)

    @property
    def effective_discard_count(self) -> int:
        """Discards required for the current hand, capped at its size."""
        return min(self.discard_count, len(self.hand_cards))

    @property
    def can_end_turn(self) -> bool:
        return not self.discard_phase.active and not self.is_dealing

    @property
    def can_confirm_discard(self) -> bool:
        return (
            self.discard_phase.active
            and len(self.selected_card_ids) == self.discard_phase.remaining_discards
        )

    def is_selected(self, instance_id: str) -> bool:
        return instance_id in self.selected_card_ids

    def play_order_number(self, instance_id: str) -> Optional[int]:
        """Return the 1-based play position of a card, or None if unordered."""
        try:
            return self.play_order_sequence.index(instance_id) + 1
        except ValueError:
            return None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the state to a dictionary suitable for serialization.

        Returns:
            Dictionary representation of the full state, transient fields included
        """
        result = self.to_persisted_dict()
        result["selected_card_ids"] = sorted(self.selected_card_ids)
        result["is_dealing"] = self.is_dealing
        return result

    def to_persisted_dict(self) -> Dict[str, Any]:
        """
        Convert the state to the record written to storage.

        Transient fields are left out and unknown fields loaded earlier are
        written back unchanged.

        Returns:
            Dictionary representation without ``selected_card_ids`` and ``is_dealing``
        """
        result = dict(self.extra)
        result.update(
            {
                "draw_pile": list(self.draw_pile),
                "discard_pile": list(self.discard_pile),
                "hand": list(self.hand),
                "hand_cards": [instance.to_dict() for instance in self.hand_cards],
                "discard_phase": self.discard_phase.to_dict(),
                "play_order_sequence": list(self.play_order_sequence),
                "play_order_locked": self.play_order_locked,
                "planning_phase": self.planning_phase,
                "turn_number": self.turn_number,
                "hand_size": self.hand_size,
                "discard_count": self.discard_count,
                "warning": self.warning,
                "error": self.error,
                "deck_source": self.deck_source.value,
                "active_preset_id": self.active_preset_id,
            }
        )
        return result


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of sanitizing untrusted state data.

    Attributes:
        is_valid: False only when the input could not be used at all
        state: The sanitized state, or None when invalid
        errors: Every correction that was applied, in order
    """

    is_valid: bool
    state: Optional[DeckState]
    errors: List[str] = field(default_factory=list)
