"""
Structural validation for preset deck templates.

The same checks run twice: once at build time through
``deckstate.tools.validate_presets`` (any failure fails the build) and again
at runtime, where a template that still fails is hidden from the player.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, List

MAX_NAME_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 200

# Lowercase words joined by single hyphens, e.g. "starter-deck"
SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


@dataclass(frozen=True)
class PresetDeckValidationResult:
    """
    Result of validating one preset deck template.

    Attributes:
        is_valid: Whether the template passed every check
        errors: Every problem found, empty when valid
        deck: The object that was validated
    """

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    deck: Any = None


def validate_preset_deck(deck: Any) -> PresetDeckValidationResult:
    """
    Validate a preset deck template, accumulating every error.

    Accepts either a ``PresetDeck`` or a plain mapping with the same keys.

    Args:
        deck: The template to check

    Returns:
        PresetDeckValidationResult describing the outcome
    """
    data = _as_mapping(deck)
    if data is None:
        return PresetDeckValidationResult(
            is_valid=False, errors=["Preset deck must be an object"], deck=deck
        )

    errors: List[str] = []
    _check_id(data.get("id"), errors)
    _check_text(data.get("name"), "name", MAX_NAME_LENGTH, errors)
    _check_text(data.get("description"), "description", MAX_DESCRIPTION_LENGTH, errors)
    _check_cards(data.get("cards"), errors)

    return PresetDeckValidationResult(is_valid=not errors, errors=errors, deck=deck)


def _as_mapping(deck: Any):
    if isinstance(deck, Mapping):
        return deck
    to_dict = getattr(deck, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return None


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _check_id(value: Any, errors: List[str]) -> None:
    if value is None:
        errors.append("id is required")
    elif _is_blank(value):
        errors.append("id must be a non-empty string")
    elif not SLUG_PATTERN.match(value):
        errors.append(
            f"id '{value}' must be kebab-case (lowercase letters, digits and hyphens)"
        )


def _check_text(value: Any, field_name: str, limit: int, errors: List[str]) -> None:
    if value is None:
        errors.append(f"{field_name} is required")
    elif _is_blank(value):
        errors.append(f"{field_name} must be a non-empty string")
    elif len(value) > limit:
        errors.append(
            f"{field_name} must be at most {limit} characters (got {len(value)})"
        )


def _check_cards(value: Any, errors: List[str]) -> None:
    if value is None:
        errors.append("cards is required")
        return
    if not isinstance(value, (list, tuple)):
        errors.append("cards must be an array")
        return
    if not value:
        errors.append("cards must contain at least one card")
        return
    for index, card in enumerate(value):
        if _is_blank(card):
            errors.append(f"cards[{index}] must be a non-empty string")
