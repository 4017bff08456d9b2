"""
Local persistence for the deck state engine.
"""

from deckstate.storage.store import SQLiteKeyValueStore
from deckstate.storage.persistence import PersistenceGateway

__all__ = ["SQLiteKeyValueStore", "PersistenceGateway"]
