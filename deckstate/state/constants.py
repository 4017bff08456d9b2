"""Deck engine bounds, defaults and storage keys."""

DEFAULT_HAND_SIZE = 5
DEFAULT_DISCARD_COUNT = 5

MIN_HAND_SIZE = 1
MAX_HAND_SIZE = 10
MIN_DISCARD_COUNT = 0
MAX_DISCARD_COUNT = 20

MIN_TURN_NUMBER = 1

# Storage keys
STORAGE_KEY = "deck-builder-state"
PRESET_STORAGE_KEY = "deck-builder:active-preset"

# User-facing messages
EMPTY_OVERRIDE_WARNING = "Empty deck provided, reverted to default"


def insufficient_cards_warning(dealt: int, requested: int) -> str:
    """Warning shown when the deck cannot fill a whole hand."""
    return f"Insufficient cards: could only deal {dealt} of {requested} requested cards"
