"""
Persistence gateway for deck state.

Saves the full state (minus transient fields) and, independently, the active
preset identifier. Every operation is failure-silent: storage problems are
logged at DEBUG and reported only through the return value.
"""

import json
import logging
import sqlite3
from typing import Optional

from deckstate.state.constants import STORAGE_KEY, PRESET_STORAGE_KEY
from deckstate.state.models import DeckState
from deckstate.state.sanitizer import validate_and_sanitize_state
from deckstate.storage.store import SQLiteKeyValueStore

logger = logging.getLogger(__name__)

# Failures a store or the JSON codec can raise. Deeply nested JSON
# exhausts the decoder's recursion limit.
STORAGE_ERRORS = (sqlite3.Error, OSError, TypeError, ValueError, RecursionError)


class PersistenceGateway:
    """
    Save, load and clear deck state in a key/value store.

    Attributes:
        store: The backing key/value store
        state_key: Key holding the serialized state
        preset_key: Key holding the bare active preset identifier
    """

    def __init__(
        self,
        store: SQLiteKeyValueStore,
        state_key: str = STORAGE_KEY,
        preset_key: str = PRESET_STORAGE_KEY,
    ):
        self.store = store
        self.state_key = state_key
        self.preset_key = preset_key

    def save(self, state: DeckState) -> bool:
        """
        Save deck state, leaving out ``selected_card_ids`` and ``is_dealing``.

        Args:
            state: Current deck state

        Returns:
            True if the write succeeded, False otherwise
        """
        try:
            serialized = json.dumps(state.to_persisted_dict())
            self.store.set_item(self.state_key, serialized)
        except STORAGE_ERRORS as e:
            logger.debug("Failed to save deck state: %s", e)
            return False
        return True

    def load(self) -> Optional[DeckState]:
        """
        Load and sanitize the persisted deck state.

        Returns:
            The sanitized state with fresh transient fields, or None when
            nothing usable is stored
        """
        try:
            serialized = self.store.get_item(self.state_key)
            if not serialized or not serialized.strip():
                return None
            parsed = json.loads(serialized)
        except STORAGE_ERRORS as e:
            logger.debug("Failed to load deck state: %s", e)
            return None

        result = validate_and_sanitize_state(parsed)
        if not result.is_valid or result.state is None:
            logger.debug("Invalid persisted state, using defaults: %s", result.errors)
            return None

        if result.errors:
            logger.debug("Persisted state was sanitized: %s", "; ".join(result.errors))

        return result.state

    def clear(self) -> bool:
        """Remove the persisted state."""
        try:
            self.store.remove_item(self.state_key)
        except STORAGE_ERRORS as e:
            logger.debug("Failed to clear deck state: %s", e)
            return False
        return True

    def save_active_preset(self, preset_id: Optional[str]) -> bool:
        """
        Pin the active preset identifier, or remove the pin for None.

        Args:
            preset_id: Identifier of the active preset deck

        Returns:
            True if the write succeeded, False otherwise
        """
        if preset_id is None:
            return self.clear_active_preset()
        try:
            self.store.set_item(self.preset_key, preset_id)
        except STORAGE_ERRORS as e:
            logger.debug("Failed to save active preset: %s", e)
            return False
        return True

    def load_active_preset(self) -> Optional[str]:
        """Return the pinned preset identifier, or None."""
        try:
            value = self.store.get_item(self.preset_key)
        except STORAGE_ERRORS as e:
            logger.debug("Failed to load active preset: %s", e)
            return None
        if not isinstance(value, str) or not value.strip():
            return None
        return value

    def clear_active_preset(self) -> bool:
        try:
            self.store.remove_item(self.preset_key)
        except STORAGE_ERRORS as e:
            logger.debug("Failed to clear active preset: %s", e)
            return False
        return True
