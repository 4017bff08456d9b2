"""
State transition functions for the deck state engine.

This module provides pure functions for transitioning between deck states,
without modifying the original state objects. ``StateTransitionEngine.reduce``
is the single entry point for the closed action vocabulary in
``deckstate.state.actions``; it never lets an exception escape.
"""

import json
import logging
import math
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from deckstate.common.card import Card, card_values, make_instances
from deckstate.common.deck import default_deck, shuffle
from deckstate.common.util import clamp
from deckstate.presets.decks import DEFAULT_REGISTRY, PresetDeckRegistry
from deckstate.presets.validator import validate_preset_deck
from deckstate.state.actions import ActionType, DeckAction
from deckstate.state.constants import (
    DEFAULT_HAND_SIZE,
    DEFAULT_DISCARD_COUNT,
    EMPTY_OVERRIDE_WARNING,
    MIN_HAND_SIZE,
    MAX_HAND_SIZE,
    MIN_DISCARD_COUNT,
    MAX_DISCARD_COUNT,
    MIN_TURN_NUMBER,
    insufficient_cards_warning,
)
from deckstate.state.models import DeckSource, DeckState, DiscardPhase

logger = logging.getLogger(__name__)


class StateTransitionEngine:
    """
    Pure functions for deck state transitions.

    This class contains static methods that implement deck state transitions.
    Each method takes a state and returns a new state, without modifying the
    original. Actions whose preconditions do not hold return the input state
    unchanged.
    """

    @staticmethod
    def reduce(
        state: DeckState,
        action: DeckAction,
        registry: Optional[PresetDeckRegistry] = None,
    ) -> DeckState:
        """
        Apply one action to a state.

        Args:
            state: Current deck state
            action: Action to apply
            registry: Preset registry used by Init and LoadPresetDeck

        Returns:
            The next deck state; on an unexpected failure, the current state
            with ``error`` set
        """
        if registry is None:
            registry = DEFAULT_REGISTRY

        handler = _HANDLERS.get(getattr(action, "type", None))
        if handler is None:
            logger.debug("Ignoring unknown action %r", action)
            return state

        try:
            return handler(state, action, registry)
        except Exception as e:
            logger.error("Action %s failed: %s", action.type.name, e, exc_info=True)
            return replace(
                state, error=f"Action {action.type.value} failed: {e}", is_dealing=False
            )

    @staticmethod
    def initialize(
        persisted_state: Optional[DeckState] = None,
        preset_id: Optional[str] = None,
        registry: Optional[PresetDeckRegistry] = None,
    ) -> DeckState:
        """
        Build the starting state.

        Uses the persisted state when there is one, otherwise the pinned
        preset when it still resolves and validates, otherwise a freshly
        shuffled default deck.

        Args:
            persisted_state: Sanitized state restored from storage
            preset_id: Identifier of a pinned preset deck
            registry: Preset registry to resolve ``preset_id`` against

        Returns:
            The initial deck state with transient fields cleared
        """
        if persisted_state is not None:
            return replace(persisted_state, selected_card_ids=frozenset(), is_dealing=False)

        base = DeckState()
        if preset_id is not None:
            restored = StateTransitionEngine.load_preset_deck(base, preset_id, registry)
            if restored.error is None:
                return restored
            logger.debug("Pinned preset not restored: %s", restored.error)

        return StateTransitionEngine.rebuild_deck(base, default_deck(), DeckSource.DEFAULT)

    @staticmethod
    def deal_next_hand(state: DeckState, preserve_warning: bool = False) -> DeckState:
        """
        Deal a new hand of up to ``hand_size`` cards.

        Cards still in hand are returned to the discard pile first. When the
        draw pile runs out, even part-way through the deal, the discard pile
        is shuffled into a new draw pile. If there are not enough cards in
        total, the short hand is dealt and a warning is set.

        Args:
            state: Current deck state
            preserve_warning: Keep the current warning instead of clearing it

        Returns:
            New deck state holding the dealt hand and a fresh discard phase
        """
        draw_pile = list(state.draw_pile)
        discard_pile = list(state.discard_pile) + card_values(state.hand_cards)
        warning = state.warning if preserve_warning else None
        drawn: List[Card] = []

        for _ in range(state.hand_size):
            if not draw_pile and discard_pile:
                logger.debug("Draw pile empty, reshuffling %d discards", len(discard_pile))
                draw_pile = shuffle(discard_pile)
                discard_pile = []

            if not draw_pile:
                warning = insufficient_cards_warning(len(drawn), state.hand_size)
                break

            drawn.append(draw_pile.pop(0))

        hand_cards = make_instances(drawn)
        effective_discard_count = min(state.discard_count, len(hand_cards))

        return replace(
            state,
            draw_pile=draw_pile,
            discard_pile=discard_pile,
            hand=drawn,
            hand_cards=hand_cards,
            selected_card_ids=frozenset(),
            discard_phase=DiscardPhase(
                active=effective_discard_count > 0,
                remaining_discards=effective_discard_count,
            ),
            play_order_sequence=[],
            play_order_locked=False,
            # With nothing to discard, planning starts right away
            planning_phase=effective_discard_count == 0 and bool(hand_cards),
            warning=warning,
            error=None,
            is_dealing=False,
        )

    @staticmethod
    def end_turn(state: DeckState) -> DeckState:
        """
        End the current turn and deal the next hand.

        Ignored while a deal is in progress or the discard phase is active.

        Args:
            state: Current deck state

        Returns:
            New deck state for the next turn
        """
        if not state.can_end_turn:
            return state

        ended = replace(
            state,
            discard_pile=list(state.discard_pile) + card_values(state.hand_cards),
            hand=[],
            hand_cards=[],
            selected_card_ids=frozenset(),
            play_order_sequence=[],
            play_order_locked=False,
            planning_phase=False,
            turn_number=state.turn_number + 1,
        )
        return StateTransitionEngine.deal_next_hand(ended)

    @staticmethod
    def rebuild_deck(
        state: DeckState,
        cards: Sequence[Card],
        deck_source: DeckSource,
        active_preset_id: Optional[str] = None,
        warning: Optional[str] = None,
    ) -> DeckState:
        """
        Replace the whole deck with ``cards`` and deal a first hand.

        Every pile, the hand, the selection and both sub-phases are cleared
        and the turn counter goes back to 1. Hand size and discard count are
        kept.

        Args:
            state: Current deck state
            cards: Card values making up the new deck
            deck_source: Where the new deck came from
            active_preset_id: Preset identifier, kept only for preset decks
            warning: Warning to carry into the new state

        Returns:
            New deck state built from ``cards``
        """
        rebuilt = replace(
            state,
            draw_pile=shuffle(cards),
            discard_pile=[],
            hand=[],
            hand_cards=[],
            selected_card_ids=frozenset(),
            discard_phase=DiscardPhase(),
            play_order_sequence=[],
            play_order_locked=False,
            planning_phase=False,
            turn_number=MIN_TURN_NUMBER,
            deck_source=deck_source,
            active_preset_id=(
                active_preset_id if deck_source is DeckSource.PRESET else None
            ),
            warning=warning,
            error=None,
            is_dealing=False,
        )
        return StateTransitionEngine.deal_next_hand(rebuilt, preserve_warning=True)

    @staticmethod
    def apply_override(state: DeckState, text: str) -> DeckState:
        """
        Replace the deck with a JSON array of card values.

        Args:
            state: Current deck state
            text: JSON text entered by the player

        Returns:
            New deck state built from the list; the default deck with a warning
            for an empty list; or the unchanged deck with ``error`` set when the
            text is rejected
        """
        try:
            parsed = json.loads(text)
        except (TypeError, ValueError) as e:
            return replace(state, error=f"Invalid JSON: {e}")

        if not isinstance(parsed, list):
            return replace(state, error="Override must be a JSON array")

        if not all(isinstance(item, str) for item in parsed):
            return replace(state, error="All deck items must be strings")

        if any(not item.strip() for item in parsed):
            return replace(state, error="Deck items must not be empty")

        if not parsed:
            return StateTransitionEngine.rebuild_deck(
                state, default_deck(), DeckSource.DEFAULT, warning=EMPTY_OVERRIDE_WARNING
            )

        # Duplicates are kept
        return StateTransitionEngine.rebuild_deck(state, parsed, DeckSource.CUSTOM)

    @staticmethod
    def change_parameters(
        state: DeckState,
        hand_size: Any,
        discard_count: Any,
        immediate_reset: bool = False,
    ) -> DeckState:
        """
        Store new hand size and discard count bounds.

        Values are clamped into range; a non-numeric value keeps the current
        setting. With ``immediate_reset`` every card is gathered back,
        reshuffled and a new hand is dealt under the new bounds.

        Args:
            state: Current deck state
            hand_size: Requested hand size, clamped to [1, 10]
            discard_count: Requested discard count, clamped to [0, 20]
            immediate_reset: Whether to redeal straight away

        Returns:
            New deck state with the new bounds
        """
        updated = replace(
            state,
            hand_size=_coerce_bound(
                hand_size, MIN_HAND_SIZE, MAX_HAND_SIZE, state.hand_size
            ),
            discard_count=_coerce_bound(
                discard_count, MIN_DISCARD_COUNT, MAX_DISCARD_COUNT, state.discard_count
            ),
        )
        if not immediate_reset:
            return updated

        all_cards = (
            list(state.draw_pile)
            + list(state.discard_pile)
            + card_values(state.hand_cards)
        )
        consolidated = replace(
            updated,
            draw_pile=shuffle(all_cards),
            discard_pile=[],
            hand=[],
            hand_cards=[],
            selected_card_ids=frozenset(),
            discard_phase=DiscardPhase(),
            play_order_sequence=[],
            play_order_locked=False,
            planning_phase=False,
            warning=None,
            error=None,
        )
        return StateTransitionEngine.deal_next_hand(consolidated)

    @staticmethod
    def toggle_card_selection(state: DeckState, instance_id: str) -> DeckState:
        """
        Select or unselect a hand card for discard.

        Only allowed during the discard phase, for cards in hand. Selecting
        beyond the number of required discards is ignored.

        Args:
            state: Current deck state
            instance_id: Instance to toggle

        Returns:
            New deck state with the updated selection
        """
        if not state.discard_phase.active:
            return state
        if instance_id not in state.hand_instance_ids:
            return state

        if instance_id in state.selected_card_ids:
            return replace(
                state, selected_card_ids=state.selected_card_ids - {instance_id}
            )

        if len(state.selected_card_ids) < state.discard_phase.remaining_discards:
            return replace(
                state, selected_card_ids=state.selected_card_ids | {instance_id}
            )

        return state

    @staticmethod
    def confirm_discard(state: DeckState) -> DeckState:
        """
        Discard the selected cards and move on to planning.

        Requires an active discard phase with exactly the required number of
        cards selected.

        Args:
            state: Current deck state

        Returns:
            New deck state with the selected cards on the discard pile
        """
        if not state.can_confirm_discard:
            return state

        selected = state.selected_card_ids
        kept = [c for c in state.hand_cards if c.instance_id not in selected]
        discarded = [c for c in state.hand_cards if c.instance_id in selected]

        return replace(
            state,
            discard_pile=list(state.discard_pile) + card_values(discarded),
            hand=card_values(kept),
            hand_cards=kept,
            selected_card_ids=frozenset(),
            discard_phase=DiscardPhase(),
            play_order_sequence=[],
            planning_phase=bool(kept) and not state.play_order_locked,
        )

    @staticmethod
    def select_for_play_order(state: DeckState, instance_id: str) -> DeckState:
        """
        Append a hand card to the play order.

        Args:
            state: Current deck state
            instance_id: Instance to add

        Returns:
            New deck state with the card at the end of the play order
        """
        if not state.planning_phase or state.play_order_locked:
            return state
        if instance_id not in state.hand_instance_ids:
            return state
        if instance_id in state.play_order_sequence:
            return state

        return replace(
            state, play_order_sequence=list(state.play_order_sequence) + [instance_id]
        )

    @staticmethod
    def deselect_from_play_order(state: DeckState, instance_id: str) -> DeckState:
        """
        Remove a card from the play order.

        Later cards move up one position, since a card's order number is its
        index in the sequence plus one.

        Args:
            state: Current deck state
            instance_id: Instance to remove

        Returns:
            New deck state without the card in its play order
        """
        if not state.planning_phase or state.play_order_locked:
            return state
        if instance_id not in state.play_order_sequence:
            return state

        return replace(
            state,
            play_order_sequence=[
                i for i in state.play_order_sequence if i != instance_id
            ],
        )

    @staticmethod
    def lock_play_order(state: DeckState) -> DeckState:
        """Freeze the play order until the next deal."""
        if not state.planning_phase or state.play_order_locked:
            return state
        return replace(state, play_order_locked=True, planning_phase=False)

    @staticmethod
    def clear_play_order(state: DeckState) -> DeckState:
        """Empty an unlocked play order, leaving the hand alone."""
        if state.play_order_locked or not state.play_order_sequence:
            return state
        return replace(state, play_order_sequence=[])

    @staticmethod
    def reset(state: DeckState) -> DeckState:
        """
        Rebuild the default deck from scratch.

        Hand size and discard count survive when they are within bounds and
        fall back to the defaults otherwise.

        Args:
            state: Current deck state

        Returns:
            New deck state on turn 1 with the default deck
        """
        fresh = replace(
            state,
            hand_size=(
                state.hand_size
                if _in_range(state.hand_size, MIN_HAND_SIZE, MAX_HAND_SIZE)
                else DEFAULT_HAND_SIZE
            ),
            discard_count=(
                state.discard_count
                if _in_range(state.discard_count, MIN_DISCARD_COUNT, MAX_DISCARD_COUNT)
                else DEFAULT_DISCARD_COUNT
            ),
        )
        return StateTransitionEngine.rebuild_deck(
            fresh, default_deck(), DeckSource.DEFAULT
        )

    @staticmethod
    def load_preset_deck(
        state: DeckState,
        preset_id: str,
        registry: Optional[PresetDeckRegistry] = None,
    ) -> DeckState:
        """
        Replace the deck with the cards of a preset template.

        Args:
            state: Current deck state
            preset_id: Identifier of the preset deck
            registry: Registry to look the preset up in

        Returns:
            New deck state built from the preset, or the unchanged deck with
            ``error`` set when the preset is unknown or invalid
        """
        if registry is None:
            registry = DEFAULT_REGISTRY

        preset = registry.get(preset_id)
        if preset is None:
            return replace(state, error=f"Preset deck not found: {preset_id}")

        validation = validate_preset_deck(preset)
        if not validation.is_valid:
            logger.warning("Refusing invalid preset deck %r", preset_id)
            return replace(
                state,
                error=f"Preset deck '{preset_id}' is invalid: "
                + "; ".join(validation.errors),
            )

        return StateTransitionEngine.rebuild_deck(
            state, list(preset.cards), DeckSource.PRESET, active_preset_id=preset.id
        )


def _in_range(value: Any, lower: int, upper: int) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and lower <= value <= upper
    )


def _coerce_bound(value: Any, lower: int, upper: int, current: int) -> int:
    """Floor and clamp a requested bound, keeping ``current`` if not numeric."""
    if isinstance(value, bool):
        return current
    if isinstance(value, int):
        return clamp(value, lower, upper)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return current
    if not math.isfinite(number):
        return current
    return clamp(math.floor(number), lower, upper)


_Handler = Callable[[DeckState, Any, PresetDeckRegistry], DeckState]

_HANDLERS: Dict[ActionType, _Handler] = {
    ActionType.INIT: lambda state, action, registry: StateTransitionEngine.initialize(
        action.persisted_state, action.preset_id, registry
    ),
    ActionType.DEAL_NEXT_HAND: lambda state, action, registry: (
        StateTransitionEngine.deal_next_hand(state)
    ),
    ActionType.END_TURN: lambda state, action, registry: (
        StateTransitionEngine.end_turn(state)
    ),
    ActionType.APPLY_OVERRIDE: lambda state, action, registry: (
        StateTransitionEngine.apply_override(state, action.text)
    ),
    ActionType.CHANGE_PARAMETERS: lambda state, action, registry: (
        StateTransitionEngine.change_parameters(
            state, action.hand_size, action.discard_count, action.immediate_reset
        )
    ),
    ActionType.TOGGLE_CARD_SELECTION: lambda state, action, registry: (
        StateTransitionEngine.toggle_card_selection(state, action.instance_id)
    ),
    ActionType.CONFIRM_DISCARD: lambda state, action, registry: (
        StateTransitionEngine.confirm_discard(state)
    ),
    ActionType.SELECT_FOR_PLAY_ORDER: lambda state, action, registry: (
        StateTransitionEngine.select_for_play_order(state, action.instance_id)
    ),
    ActionType.DESELECT_FROM_PLAY_ORDER: lambda state, action, registry: (
        StateTransitionEngine.deselect_from_play_order(state, action.instance_id)
    ),
    ActionType.LOCK_PLAY_ORDER: lambda state, action, registry: (
        StateTransitionEngine.lock_play_order(state)
    ),
    ActionType.CLEAR_PLAY_ORDER: lambda state, action, registry: (
        StateTransitionEngine.clear_play_order(state)
    ),
    ActionType.RESET: lambda state, action, registry: (
        StateTransitionEngine.reset(state)
    ),
    ActionType.LOAD_PRESET_DECK: lambda state, action, registry: (
        StateTransitionEngine.load_preset_deck(state, action.preset_id, registry)
    ),
}
