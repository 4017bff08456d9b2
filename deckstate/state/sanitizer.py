"""
Validation of untrusted state data.

Anything read back from storage goes through ``validate_and_sanitize_state``
before the engine sees it. The sanitizer never raises: every malformed field
is replaced or filtered, and every correction is reported in the result.
"""

import math
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from deckstate.common.card import CardInstance
from deckstate.common.util import clamp
from deckstate.state.constants import (
    DEFAULT_HAND_SIZE,
    DEFAULT_DISCARD_COUNT,
    MIN_HAND_SIZE,
    MAX_HAND_SIZE,
    MIN_DISCARD_COUNT,
    MAX_DISCARD_COUNT,
    MIN_TURN_NUMBER,
)
from deckstate.state.models import (
    DeckSource,
    DeckState,
    DiscardPhase,
    KNOWN_FIELDS,
    ValidationResult,
)

MAX_TURN_NUMBER = 2**53 - 1


def validate_and_sanitize_state(data: Any) -> ValidationResult:
    """
    Validate and sanitize persisted deck state.

    Only a non-mapping root is fatal. Every other field is checked on its own:
    lists are filtered, numbers are clamped or defaulted, nested records are
    rebuilt, booleans are coerced and unknown fields are kept verbatim.
    Transient fields always come back empty.

    Args:
        data: Raw data, typically parsed from JSON

    Returns:
        ValidationResult with the sanitized state, or ``state=None`` when the
        root is not an object
    """
    errors: List[str] = []

    if not isinstance(data, Mapping):
        errors.append("State must be a non-null object")
        return ValidationResult(is_valid=False, state=None, errors=errors)

    try:
        state = _sanitize(data, errors)
    except Exception as e:
        errors.append(f"Validation failed: {e}")
        return ValidationResult(is_valid=False, state=None, errors=errors)

    return ValidationResult(is_valid=True, state=state, errors=errors)


def _sanitize(data: Mapping, errors: List[str]) -> DeckState:
    hand_cards = _sanitize_card_instances(data.get("hand_cards"), errors)
    hand = _sanitize_string_list(data.get("hand"), "hand", errors)
    mirrored = [instance.card for instance in hand_cards]
    if hand != mirrored:
        errors.append("hand did not match hand_cards, rebuilt from hand_cards")
        hand = mirrored

    hand_ids = {instance.instance_id for instance in hand_cards}
    play_order = _sanitize_play_order(
        _sanitize_string_list(
            data.get("play_order_sequence"), "play_order_sequence", errors
        ),
        hand_ids,
        errors,
    )

    discard_phase = _sanitize_discard_phase(data.get("discard_phase"), errors)
    if discard_phase.active and discard_phase.remaining_discards > len(hand_cards):
        capped = len(hand_cards)
        errors.append(
            f"discard_phase.remaining_discards was capped from "
            f"{discard_phase.remaining_discards} to {capped}"
        )
        discard_phase = DiscardPhase(active=capped > 0, remaining_discards=capped)

    deck_source = _sanitize_deck_source(data.get("deck_source"), errors)
    active_preset_id = _sanitize_optional_string(
        data.get("active_preset_id"), "active_preset_id", errors
    )
    if active_preset_id is not None and deck_source is not DeckSource.PRESET:
        errors.append("active_preset_id cleared because deck_source is not preset")
        active_preset_id = None

    return DeckState(
        draw_pile=_sanitize_string_list(data.get("draw_pile"), "draw_pile", errors),
        discard_pile=_sanitize_string_list(
            data.get("discard_pile"), "discard_pile", errors
        ),
        hand=hand,
        hand_cards=hand_cards,
        play_order_sequence=play_order,
        turn_number=_sanitize_int(
            data.get("turn_number"),
            MIN_TURN_NUMBER,
            MAX_TURN_NUMBER,
            MIN_TURN_NUMBER,
            "turn_number",
            errors,
        ),
        hand_size=_sanitize_int(
            data.get("hand_size"),
            MIN_HAND_SIZE,
            MAX_HAND_SIZE,
            DEFAULT_HAND_SIZE,
            "hand_size",
            errors,
        ),
        discard_count=_sanitize_int(
            data.get("discard_count"),
            MIN_DISCARD_COUNT,
            MAX_DISCARD_COUNT,
            DEFAULT_DISCARD_COUNT,
            "discard_count",
            errors,
        ),
        warning=_sanitize_optional_string(data.get("warning"), "warning", errors),
        error=_sanitize_optional_string(data.get("error"), "error", errors),
        play_order_locked=_sanitize_bool(
            data.get("play_order_locked"), "play_order_locked", errors
        ),
        planning_phase=_sanitize_bool(
            data.get("planning_phase"), "planning_phase", errors
        ),
        discard_phase=discard_phase,
        deck_source=deck_source,
        active_preset_id=active_preset_id,
        # Transient fields always start fresh
        selected_card_ids=frozenset(),
        is_dealing=False,
        extra=_extra_fields(data),
    )


def _sanitize_string_list(value: Any, field_name: str, errors: List[str]) -> List[str]:
    """Keep only the string elements of a list."""
    if not isinstance(value, list):
        errors.append(f"{field_name} is not an array, using empty array")
        return []

    filtered = [item for item in value if isinstance(item, str)]
    if len(filtered) != len(value):
        errors.append(f"{field_name} had invalid elements removed")
    return filtered


def _sanitize_card_instances(value: Any, errors: List[str]) -> List[CardInstance]:
    """Rebuild hand instances, dropping malformed and duplicate entries."""
    if not isinstance(value, list):
        errors.append("hand_cards is not an array, using empty array")
        return []

    instances = []
    seen = set()
    for item in value:
        if not isinstance(item, Mapping):
            continue
        instance_id = item.get("instance_id")
        card = item.get("card")
        if not isinstance(instance_id, str) or not isinstance(card, str):
            continue
        if instance_id in seen:
            continue
        seen.add(instance_id)
        instances.append(CardInstance(instance_id=instance_id, card=card))

    if len(instances) != len(value):
        errors.append("hand_cards had invalid elements removed")
    return instances


def _sanitize_play_order(
    sequence: List[str], hand_ids: set, errors: List[str]
) -> List[str]:
    result = []
    for instance_id in sequence:
        if instance_id in hand_ids and instance_id not in result:
            result.append(instance_id)
    if len(result) != len(sequence):
        errors.append("play_order_sequence had unknown or repeated ids removed")
    return result


def _sanitize_int(
    value: Any,
    lower: int,
    upper: int,
    default: int,
    field_name: str,
    errors: List[str],
) -> int:
    """
    Clamp a number into range, falling back to ``default`` if not numeric.

    Numeric strings such as ``"7"`` count as numbers. Integers are clamped
    exactly, so values too large for a float still clamp to ``upper``.
    """
    invalid = f"{field_name} is not a valid number, using default {default}"
    if value is None or isinstance(value, bool):
        errors.append(invalid)
        return default

    if isinstance(value, int):
        number = value
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            errors.append(invalid)
            return default
        if not math.isfinite(number):
            errors.append(invalid)
            return default
        if isinstance(value, str):
            errors.append(f"{field_name} was converted from the string {value!r}")

    clamped = clamp(math.floor(number), lower, upper)
    if clamped != number:
        errors.append(f"{field_name} was clamped from {value} to {clamped}")
    return clamped


def _sanitize_bool(value: Any, field_name: str, errors: List[str]) -> bool:
    if value is None or isinstance(value, bool):
        return bool(value)
    errors.append(f"{field_name} was coerced to a boolean")
    return bool(value)


def _sanitize_optional_string(
    value: Any, field_name: str, errors: List[str]
) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    errors.append(f"{field_name} is not a string, using null")
    return None


def _sanitize_discard_phase(value: Any, errors: List[str]) -> DiscardPhase:
    if not isinstance(value, Mapping):
        errors.append("discard_phase is invalid, using defaults")
        return DiscardPhase()

    active = value.get("active")
    if not isinstance(active, bool):
        errors.append("discard_phase.active is not a boolean, using false")
        active = False

    remaining = _sanitize_int(
        value.get("remaining_discards"),
        0,
        MAX_DISCARD_COUNT,
        0,
        "discard_phase.remaining_discards",
        errors,
    )
    if active and remaining == 0:
        errors.append("discard_phase was active with nothing to discard, deactivated")
        active = False

    return DiscardPhase(active=active, remaining_discards=remaining)


def _sanitize_deck_source(value: Any, errors: List[str]) -> DeckSource:
    if value is None:
        return DeckSource.DEFAULT
    try:
        return DeckSource(value)
    except (TypeError, ValueError):
        errors.append(f"deck_source {value!r} is not recognized, using default")
        return DeckSource.DEFAULT


def _extra_fields(data: Mapping) -> Dict[str, Any]:
    """Collect fields this version does not know about."""
    return {key: value for key, value in data.items() if key not in KNOWN_FIELDS}
