"""
Tests for the persistence gateway.

Every gateway operation is failure-silent, so the failure cases below patch
the store to raise and check that only the return value changes.
"""

import json
import sqlite3
from dataclasses import replace
from unittest.mock import patch

import pytest

from deckstate.state import DeckSource, StateTransitionEngine
from deckstate.state.constants import PRESET_STORAGE_KEY, STORAGE_KEY
from deckstate.storage import PersistenceGateway


@pytest.fixture
def gateway(store):
    return PersistenceGateway(store)


class TestStateRoundTrip:
    """Tests for save and load."""

    def test_load_empty_store(self, gateway):
        assert gateway.load() is None

    def test_round_trip(self, gateway, fresh_state):
        state = replace(
            fresh_state,
            selected_card_ids=frozenset({fresh_state.hand_cards[0].instance_id}),
            is_dealing=True,
        )
        assert gateway.save(state) is True

        loaded = gateway.load()
        assert loaded == replace(state, selected_card_ids=frozenset(), is_dealing=False)

    def test_saved_record_format(self, gateway, store, fresh_state):
        gateway.save(fresh_state)
        record = json.loads(store.get_item(STORAGE_KEY))
        assert "selected_card_ids" not in record
        assert "is_dealing" not in record
        assert record["deck_source"] == "default"
        assert record["hand"] == fresh_state.hand
        assert record["hand_cards"][0]["instance_id"] == (
            fresh_state.hand_cards[0].instance_id
        )

    def test_preset_state_round_trip(self, gateway):
        state = StateTransitionEngine.load_preset_deck(
            StateTransitionEngine.initialize(), "starter-deck"
        )
        gateway.save(state)
        loaded = gateway.load()
        assert loaded.deck_source is DeckSource.PRESET
        assert loaded.active_preset_id == "starter-deck"

    def test_custom_keys(self, store, fresh_state):
        gateway = PersistenceGateway(store, state_key="a", preset_key="b")
        gateway.save(fresh_state)
        assert store.get_item("a") is not None
        assert store.get_item(STORAGE_KEY) is None

    @pytest.mark.parametrize("raw", ["", "   ", "{not json", "[1, 2]", "null"])
    def test_unusable_records_load_as_none(self, gateway, store, raw):
        store.set_item(STORAGE_KEY, raw)
        assert gateway.load() is None

    def test_deeply_nested_record_loads_as_none(self, gateway, store):
        store.set_item(STORAGE_KEY, "[" * 100000 + "]" * 100000)
        assert gateway.load() is None

    def test_huge_turn_number_is_clamped_not_discarded(self, gateway, store, fresh_state):
        record = fresh_state.to_persisted_dict()
        record["turn_number"] = 10**400
        store.set_item(STORAGE_KEY, json.dumps(record))

        loaded = gateway.load()
        assert loaded is not None
        assert loaded.turn_number == 2**53 - 1
        assert loaded.hand_cards == fresh_state.hand_cards

    def test_partial_record_is_sanitized(self, gateway, store):
        store.set_item(STORAGE_KEY, json.dumps({"draw_pile": ["a", 1], "hand_size": 99}))
        loaded = gateway.load()
        assert loaded.draw_pile == ["a"]
        assert loaded.hand_size == 10

    def test_clear(self, gateway, store, fresh_state):
        gateway.save(fresh_state)
        assert gateway.clear() is True
        assert gateway.load() is None


class TestActivePreset:
    """Tests for the active preset pointer."""

    def test_round_trip(self, gateway, store):
        assert gateway.load_active_preset() is None
        assert gateway.save_active_preset("court-cards") is True
        assert store.get_item(PRESET_STORAGE_KEY) == "court-cards"
        assert gateway.load_active_preset() == "court-cards"

    def test_none_clears(self, gateway):
        gateway.save_active_preset("court-cards")
        assert gateway.save_active_preset(None) is True
        assert gateway.load_active_preset() is None

    def test_blank_value_ignored(self, gateway, store):
        store.set_item(PRESET_STORAGE_KEY, "  ")
        assert gateway.load_active_preset() is None

    def test_clear(self, gateway):
        gateway.save_active_preset("starter-deck")
        assert gateway.clear_active_preset() is True
        assert gateway.load_active_preset() is None

    def test_independent_of_state(self, gateway, fresh_state):
        gateway.save(fresh_state)
        gateway.save_active_preset("starter-deck")
        gateway.clear()
        assert gateway.load_active_preset() == "starter-deck"


class TestFailures:
    """Storage failures are reported through return values only."""

    def test_save_failure(self, gateway, store, fresh_state):
        with patch.object(store, "set_item", side_effect=sqlite3.OperationalError("full")):
            assert gateway.save(fresh_state) is False

    def test_load_failure(self, gateway, store):
        with patch.object(store, "get_item", side_effect=sqlite3.OperationalError("locked")):
            assert gateway.load() is None
            assert gateway.load_active_preset() is None

    def test_clear_failure(self, gateway, store):
        with patch.object(store, "remove_item", side_effect=OSError("disk")):
            assert gateway.clear() is False
            assert gateway.clear_active_preset() is False
            assert gateway.save_active_preset(None) is False

    def test_save_active_preset_failure(self, gateway, store):
        with patch.object(store, "set_item", side_effect=sqlite3.DatabaseError("bad")):
            assert gateway.save_active_preset("court-cards") is False

    def test_closed_store(self, gateway, store, fresh_state):
        store.close()
        assert gateway.save(fresh_state) is False
        assert gateway.load() is None
        assert gateway.clear() is False

    def test_failures_logged_at_debug(self, gateway, store, fresh_state, caplog):
        store.close()
        with caplog.at_level("DEBUG", logger="deckstate.storage.persistence"):
            gateway.save(fresh_state)
        assert "Failed to save deck state" in caplog.text
