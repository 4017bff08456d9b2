"""
Tests for the deck session host.
"""

from unittest.mock import MagicMock, patch

import pytest

from deckstate.engine import DeckSession, SessionConfig
from deckstate.events import DeckEventType, EventBus, EventEmitter
from deckstate.state import DeckSource, EndTurn
from deckstate.storage import SQLiteKeyValueStore


@pytest.fixture
def emitter():
    return EventEmitter()


@pytest.fixture
def session(store, emitter):
    deck_session = DeckSession(store=store, event_bus=emitter)
    deck_session.start()
    yield deck_session


def recorded(emitter):
    """Collect (event_type, data) pairs from every event."""
    events = []
    emitter.on_any(events.append)
    return events


def event_names(events):
    return [name for name, _ in events]


def finish_discard(session):
    """Select and confirm the required discards for the current hand."""
    state = session.state
    for instance in state.hand_cards[: state.discard_phase.remaining_discards]:
        session.toggle_card_selection(instance.instance_id)
    return session.confirm_discard()


class TestLifecycle:
    """Tests for start and shutdown."""

    def test_state_before_start_raises(self, store, emitter):
        deck_session = DeckSession(store=store, event_bus=emitter)
        assert not deck_session.started
        with pytest.raises(RuntimeError):
            deck_session.state

    def test_fresh_start(self, store, emitter):
        events = recorded(emitter)
        deck_session = DeckSession(store=store, event_bus=emitter)
        state = deck_session.start()

        assert state.deck_source is DeckSource.DEFAULT
        assert len(state.hand_cards) == 5
        names = event_names(events)
        assert "DECK_REBUILT" in names
        assert "HAND_DEALT" in names
        assert names[-1] == "SESSION_STARTED"
        assert events[-1][1]["restored"] is False

    def test_start_twice_returns_same_state(self, session):
        assert session.start() is session.state

    def test_defaults_to_event_bus(self, store):
        deck_session = DeckSession(store=store)
        assert deck_session.event_bus is EventBus.get_instance()

    def test_restores_persisted_state(self, tmp_path):
        config = SessionConfig(db_path=str(tmp_path / "deck.db"))
        first = DeckSession(config=config, event_bus=EventEmitter())
        first.start()
        first.change_parameters(3, 0, immediate_reset=True)
        first.end_turn()
        saved = first.state
        first.shutdown()

        events = []
        emitter = EventEmitter()
        emitter.on_any(events.append)
        second = DeckSession(config=config, event_bus=emitter)
        restored = second.start()
        assert restored.turn_number == 2
        assert restored.hand_cards == saved.hand_cards
        assert restored.hand_size == 3
        assert "HAND_DEALT" not in event_names(events)
        assert events[-1][1]["restored"] is True
        second.shutdown()

    def test_restores_pinned_preset_without_state(self, store, emitter):
        store.set_item("deck-builder:active-preset", "court-cards")
        deck_session = DeckSession(store=store, event_bus=emitter)
        state = deck_session.start()
        assert state.deck_source is DeckSource.PRESET
        assert state.active_preset_id == "court-cards"
        assert state.total_cards == 12

    def test_corrupted_state_starts_fresh(self, store, emitter):
        store.set_item("deck-builder-state", "[" * 100000 + "]" * 100000)
        deck_session = DeckSession(store=store, event_bus=emitter)
        state = deck_session.start()
        assert state.deck_source is DeckSource.DEFAULT
        assert state.turn_number == 1
        assert len(state.hand_cards) == 5

    def test_stale_pin_cleared(self, store, emitter):
        store.set_item("deck-builder:active-preset", "retired-deck")
        deck_session = DeckSession(store=store, event_bus=emitter)
        state = deck_session.start()
        assert state.deck_source is DeckSource.DEFAULT
        assert store.get_item("deck-builder:active-preset") is None

    def test_shutdown_closes_store(self, emitter):
        kv_store = SQLiteKeyValueStore()
        events = recorded(emitter)
        deck_session = DeckSession(store=kv_store, event_bus=emitter)
        deck_session.start()
        deck_session.shutdown()

        assert kv_store.conn is None
        assert not deck_session.started
        assert "SESSION_ENDED" in event_names(events)
        # A second shutdown is a no-op
        deck_session.shutdown()


class TestDispatch:
    """Tests for dispatching actions through the session."""

    def test_every_action_is_saved(self, session, store):
        session.change_parameters(4, 1)
        saved = session.gateway.load()
        assert saved.hand_size == 4
        assert saved.discard_count == 1

    def test_autosave_disabled(self, store, emitter):
        deck_session = DeckSession(
            store=store, config=SessionConfig(autosave=False), event_bus=emitter
        )
        deck_session.start()
        deck_session.change_parameters(4, 1)
        assert deck_session.gateway.load() is None

    def test_save_failure_does_not_interrupt_play(self, session, emitter):
        events = recorded(emitter)
        with patch.object(session.gateway, "save", return_value=False):
            state = session.reset()
        assert state.turn_number == 1
        saved = [data for name, data in events if name == "STATE_SAVED"]
        assert saved == [{"success": False}]

    def test_full_turn_cycle(self, session, emitter):
        events = recorded(emitter)
        session.change_parameters(5, 2, immediate_reset=True)

        state = finish_discard(session)
        assert len(state.hand_cards) == 3
        assert state.planning_phase

        first, second = state.hand_cards[:2]
        session.select_for_play_order(second.instance_id)
        state = session.select_for_play_order(first.instance_id)
        assert state.play_order_number(second.instance_id) == 1

        state = session.deselect_from_play_order(second.instance_id)
        assert state.play_order_sequence == [first.instance_id]
        state = session.clear_play_order()
        assert state.play_order_sequence == []

        session.select_for_play_order(first.instance_id)
        state = session.lock_play_order()
        assert state.play_order_locked

        state = session.end_turn()
        assert state.turn_number == 2
        assert state.total_cards == 26

        names = event_names(events)
        assert "DEALING_STARTED" in names
        assert "TURN_ENDED" in names
        assert names.count("HAND_DEALT") == 2

    def test_deal_next_hand(self, session):
        before = session.state
        state = session.deal_next_hand()
        assert state.hand_cards != before.hand_cards
        assert state.is_dealing is False

    def test_end_turn_blocked_during_discard(self, session, emitter):
        events = recorded(emitter)
        before = session.state
        assert before.discard_phase.active
        assert session.end_turn() is before
        assert "DEALING_STARTED" not in event_names(events)
        assert "ACTION_DISPATCHED" not in event_names(events)

    def test_apply_override_error_event(self, session, emitter):
        events = recorded(emitter)
        state = session.apply_override("not json")
        assert state.error.startswith("Invalid JSON")
        errors = [data for name, data in events if name == "ERROR"]
        assert errors == [{"message": state.error}]
        assert "DECK_REBUILT" not in event_names(events)

    def test_warning_event(self, session, emitter):
        events = recorded(emitter)
        session.apply_override("[]")
        warnings = [data for name, data in events if name == "WARNING"]
        assert warnings == [{"message": "Empty deck provided, reverted to default"}]

    def test_custom_override(self, session):
        state = session.apply_override('["Strike", "Strike", "Defend"]')
        assert state.deck_source is DeckSource.CUSTOM
        assert state.total_cards == 3


class TestPresetPointer:
    """Tests for pinning the active preset."""

    def test_load_preset_pins_it(self, session, store):
        state = session.load_preset_deck("ability-sampler")
        assert state.active_preset_id == "ability-sampler"
        assert store.get_item("deck-builder:active-preset") == "ability-sampler"

    def test_reset_unpins(self, session, store):
        session.load_preset_deck("ability-sampler")
        session.reset()
        assert store.get_item("deck-builder:active-preset") is None

    def test_missing_preset_keeps_pin(self, session, store):
        session.load_preset_deck("court-cards")
        state = session.load_preset_deck("missing-id")
        assert state.error == "Preset deck not found: missing-id"
        assert store.get_item("deck-builder:active-preset") == "court-cards"

    def test_available_presets(self, session):
        ids = [preset.id for preset in session.available_presets]
        assert ids == ["starter-deck", "court-cards", "ability-sampler"]

    def test_clear_saved_state(self, session, store):
        session.load_preset_deck("court-cards")
        assert session.clear_saved_state() is True
        assert session.gateway.load() is None
        assert store.get_item("deck-builder:active-preset") is None


class TestDealingGuard:
    """Rapid repeated deals are dropped while one is in flight."""

    def test_reentrant_deal_is_dropped(self, session, emitter):
        session.change_parameters(5, 0, immediate_reset=True)
        results = []

        def deal_again(data):
            assert session.state.is_dealing
            results.append(session.deal_next_hand())
            results.append(session.dispatch(EndTurn()))

        emitter.once(DeckEventType.DEALING_STARTED, deal_again)
        before_turn = session.state.turn_number
        state = session.end_turn()

        assert state.turn_number == before_turn + 1
        assert state.is_dealing is False
        assert len(results) == 2
        assert all(result.is_dealing for result in results)
        assert session.state is state

    def test_listener_action_during_deal_is_kept(self, session, emitter):
        session.change_parameters(5, 0, immediate_reset=True)
        session.end_turn()
        session.end_turn()
        assert session.state.turn_number == 3

        emitter.once(DeckEventType.DEALING_STARTED, lambda data: session.reset())
        state = session.end_turn()

        # The turn ends on top of the reset deck rather than the old turn 3
        assert state.turn_number == 2
        assert state.is_dealing is False
        assert state.deck_source is DeckSource.DEFAULT
        assert session.state is state

    def test_flag_cleared_after_deal(self, session):
        session.change_parameters(5, 0, immediate_reset=True)
        for _ in range(5):
            session.end_turn()
        assert session.state.is_dealing is False
        assert session.state.turn_number == 6

    def test_handler_sees_event_payload(self, session, emitter):
        handler = MagicMock()
        emitter.on(DeckEventType.DEALING_STARTED, handler)
        session.deal_next_hand()
        handler.assert_called_once()
        assert handler.call_args[0][0]["action"] == "deal_next_hand"
