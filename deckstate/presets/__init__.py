"""
Preset deck templates, their registry and their structural validator.
"""

from deckstate.presets.decks import (
    PresetDeck,
    PresetDeckRegistry,
    PRESET_DECKS,
    DEFAULT_REGISTRY,
)
from deckstate.presets.validator import (
    PresetDeckValidationResult,
    validate_preset_deck,
)

__all__ = [
    "PresetDeck",
    "PresetDeckRegistry",
    "PRESET_DECKS",
    "DEFAULT_REGISTRY",
    "PresetDeckValidationResult",
    "validate_preset_deck",
]
