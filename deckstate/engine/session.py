"""
Session host for the deck state engine.

A DeckSession owns the single live DeckState. It restores state on start,
funnels every action through ``StateTransitionEngine.reduce``, saves after
each action and publishes events describing what changed.
"""

import logging
from dataclasses import replace
from typing import Any, List, Optional

from deckstate.engine.config import SessionConfig
from deckstate.events import DeckEventType, EventBus, EventEmitter
from deckstate.presets.decks import DEFAULT_REGISTRY, PresetDeck, PresetDeckRegistry
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
from deckstate.state.models import DeckState
from deckstate.state.transitions import StateTransitionEngine
from deckstate.storage import PersistenceGateway, SQLiteKeyValueStore

logger = logging.getLogger(__name__)

# Actions guarded against rapid repeats while a deal is in flight
GUARDED_ACTIONS = frozenset({ActionType.DEAL_NEXT_HAND, ActionType.END_TURN})

# Actions that throw the old deck away
REBUILD_ACTIONS = frozenset(
    {
        ActionType.INIT,
        ActionType.APPLY_OVERRIDE,
        ActionType.RESET,
        ActionType.LOAD_PRESET_DECK,
    }
)


class DeckSession:
    """
    Host for one live deck.

    Example:
        session = DeckSession()
        session.start()
        session.toggle_card_selection(session.state.hand_cards[0].instance_id)
        session.shutdown()
    """

    def __init__(
        self,
        store: Optional[SQLiteKeyValueStore] = None,
        config: Optional[SessionConfig] = None,
        registry: Optional[PresetDeckRegistry] = None,
        event_bus: Optional[EventEmitter] = None,
    ):
        """
        Initialize the session.

        Args:
            store: Key/value store to persist into; opened from the config if None
            config: Session settings, defaults to ``SessionConfig()``
            registry: Preset registry, defaults to the built-in presets
            event_bus: Emitter for session events, defaults to the global bus
        """
        self.config = config or SessionConfig()
        self.store = store if store is not None else SQLiteKeyValueStore(self.config.db_path)
        self.registry = registry if registry is not None else DEFAULT_REGISTRY
        self.event_bus = event_bus if event_bus is not None else EventBus.get_instance()
        self.gateway = PersistenceGateway(
            self.store,
            state_key=self.config.state_key,
            preset_key=self.config.preset_key,
        )
        self._state: Optional[DeckState] = None
        self._pinned_preset_id: Optional[str] = None

    @property
    def state(self) -> DeckState:
        if self._state is None:
            raise RuntimeError("Session has not been started")
        return self._state

    @property
    def started(self) -> bool:
        return self._state is not None

    @property
    def available_presets(self) -> List[PresetDeck]:
        """Preset decks that pass validation."""
        return self.registry.available()

    def start(self) -> DeckState:
        """
        Restore persisted state, or build a fresh deck, and begin the session.

        Returns:
            The initial deck state
        """
        if self._state is not None:
            return self._state

        persisted = self.gateway.load()
        self._pinned_preset_id = self.gateway.load_active_preset()
        preset_id = self._pinned_preset_id if persisted is None else None

        self._state = DeckState()
        state = self.dispatch(Init(persisted_state=persisted, preset_id=preset_id))

        self.event_bus.emit(
            DeckEventType.SESSION_STARTED,
            {
                "restored": persisted is not None,
                "deck_source": state.deck_source.value,
                "turn_number": state.turn_number,
            },
        )
        logger.info(
            "Deck session started (restored=%s, source=%s)",
            persisted is not None,
            state.deck_source.value,
        )
        return state

    def shutdown(self) -> None:
        """Save a final time and close the store."""
        if self._state is None:
            return
        if self.config.autosave:
            self._save(self._state)
        self.event_bus.emit(
            DeckEventType.SESSION_ENDED, {"turn_number": self._state.turn_number}
        )
        self.store.close()
        self._state = None
        logger.info("Deck session ended")

    def dispatch(self, action: DeckAction) -> DeckState:
        """
        Apply an action to the live state.

        DealNextHand and EndTurn are dropped while a deal is in progress,
        including deals requested by listeners of ``DEALING_STARTED``. Any
        other action those listeners dispatch is applied before the deal.

        Args:
            action: The action to apply

        Returns:
            The new live state
        """
        previous = self.state
        action_type = getattr(action, "type", None)

        if action_type in GUARDED_ACTIONS:
            if previous.is_dealing:
                logger.debug("Dropping %s while a deal is in progress", action_type.name)
                return previous
            if action_type is ActionType.DEAL_NEXT_HAND or previous.can_end_turn:
                self._state = replace(previous, is_dealing=True)
                self.event_bus.emit(
                    DeckEventType.DEALING_STARTED,
                    {"action": action_type.value, "turn_number": previous.turn_number},
                )
                # Listeners may have dispatched other actions meanwhile
                previous = replace(self.state, is_dealing=False)

        # reduce never raises, and every deal clears is_dealing
        new_state = StateTransitionEngine.reduce(previous, action, self.registry)
        self._state = new_state
        if new_state is not previous:
            self._publish(action, previous, new_state)
        if self.config.autosave:
            self._save(new_state)
        self._sync_active_preset(new_state)
        return new_state

    def _publish(self, action: DeckAction, previous: DeckState, state: DeckState) -> None:
        self.event_bus.emit(
            DeckEventType.ACTION_DISPATCHED,
            {"action": action.type.value, "state": state.to_dict()},
        )
        if _is_restore(action):
            return

        if state.error is not None and state.error != previous.error:
            self.event_bus.emit(DeckEventType.ERROR, {"message": state.error})
            return

        if action.type in REBUILD_ACTIONS:
            self.event_bus.emit(
                DeckEventType.DECK_REBUILT,
                {
                    "deck_source": state.deck_source.value,
                    "active_preset_id": state.active_preset_id,
                    "total_cards": state.total_cards,
                },
            )

        if action.type is ActionType.END_TURN:
            self.event_bus.emit(
                DeckEventType.TURN_ENDED, {"turn_number": previous.turn_number}
            )

        if _deals_hand(action):
            self.event_bus.emit(
                DeckEventType.HAND_DEALT,
                {
                    "turn_number": state.turn_number,
                    "hand": [card.to_dict() for card in state.hand_cards],
                    "draw_pile": len(state.draw_pile),
                    "discard_pile": len(state.discard_pile),
                },
            )

        if state.warning is not None and state.warning != previous.warning:
            self.event_bus.emit(DeckEventType.WARNING, {"message": state.warning})

    def _save(self, state: DeckState) -> bool:
        saved = self.gateway.save(state)
        self.event_bus.emit(DeckEventType.STATE_SAVED, {"success": saved})
        return saved

    def _sync_active_preset(self, state: DeckState) -> None:
        if state.active_preset_id == self._pinned_preset_id:
            return
        if self.gateway.save_active_preset(state.active_preset_id):
            self._pinned_preset_id = state.active_preset_id

    def clear_saved_state(self) -> bool:
        """Forget the persisted state and the pinned preset."""
        cleared = self.gateway.clear()
        if self.gateway.clear_active_preset():
            self._pinned_preset_id = None
        return cleared

    def deal_next_hand(self) -> DeckState:
        return self.dispatch(DealNextHand())

    def end_turn(self) -> DeckState:
        return self.dispatch(EndTurn())

    def apply_override(self, text: str) -> DeckState:
        return self.dispatch(ApplyOverride(text=text))

    def change_parameters(
        self, hand_size: Any, discard_count: Any, immediate_reset: bool = False
    ) -> DeckState:
        return self.dispatch(
            ChangeParameters(
                hand_size=hand_size,
                discard_count=discard_count,
                immediate_reset=immediate_reset,
            )
        )

    def toggle_card_selection(self, instance_id: str) -> DeckState:
        return self.dispatch(ToggleCardSelection(instance_id=instance_id))

    def confirm_discard(self) -> DeckState:
        return self.dispatch(ConfirmDiscard())

    def select_for_play_order(self, instance_id: str) -> DeckState:
        return self.dispatch(SelectForPlayOrder(instance_id=instance_id))

    def deselect_from_play_order(self, instance_id: str) -> DeckState:
        return self.dispatch(DeselectFromPlayOrder(instance_id=instance_id))

    def lock_play_order(self) -> DeckState:
        return self.dispatch(LockPlayOrder())

    def clear_play_order(self) -> DeckState:
        return self.dispatch(ClearPlayOrder())

    def reset(self) -> DeckState:
        return self.dispatch(Reset())

    def load_preset_deck(self, preset_id: str) -> DeckState:
        return self.dispatch(LoadPresetDeck(preset_id=preset_id))


def _deals_hand(action: DeckAction) -> bool:
    if _is_restore(action):
        return False
    if action.type in GUARDED_ACTIONS or action.type in REBUILD_ACTIONS:
        return True
    return action.type is ActionType.CHANGE_PARAMETERS and bool(action.immediate_reset)


def _is_restore(action: DeckAction) -> bool:
    return action.type is ActionType.INIT and action.persisted_state is not None
