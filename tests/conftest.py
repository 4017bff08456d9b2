"""
Pytest configuration for tests at the root level.

This module contains pytest fixtures shared by the deck engine tests.
"""

import random

import pytest

from deckstate.events import EventBus
from deckstate.state import DeckState, StateTransitionEngine
from deckstate.storage import SQLiteKeyValueStore


# Reset event bus before each test
@pytest.fixture(scope="function", autouse=True)
def reset_event_bus():
    """Reset the event bus singleton before each test."""
    EventBus._instance = None
    yield
    EventBus._instance = None


@pytest.fixture
def store():
    """An in-memory key/value store, closed after the test."""
    kv_store = SQLiteKeyValueStore()
    yield kv_store
    kv_store.close()


@pytest.fixture
def seeded_rng():
    return random.Random(1234)


@pytest.fixture
def fresh_state() -> DeckState:
    """A default deck with the first hand dealt."""
    return StateTransitionEngine.initialize()
