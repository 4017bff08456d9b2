"""
Code-defined preset decks and the registry that serves them.

To add a preset deck, append a ``PresetDeck`` to ``PRESET_DECKS`` with a
unique kebab-case id, a name of at most 50 characters, a description of at
most 200 characters and at least one card, then run
``deckstate-validate-presets``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from deckstate.common.card import Card
from deckstate.presets.validator import validate_preset_deck

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PresetDeck:
    """
    Immutable preset deck template.

    Attributes:
        id: Unique kebab-case identifier
        name: Display name
        description: Short description shown next to the name
        cards: The full card list, duplicates allowed
    """

    id: str
    name: str
    description: str
    cards: Tuple[Card, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "cards": list(self.cards),
        }


PRESET_DECKS: Tuple[PresetDeck, ...] = (
    PresetDeck(
        id="starter-deck",
        name="Starter Deck",
        description="A balanced deck for learning the game mechanics with 20 cards.",
        cards=(
            ("Card 1",) * 3
            + ("Card 2",) * 3
            + ("Card 3",) * 3
            + ("Card 4",) * 2
            + ("Card 5",) * 2
            + ("Card 6",) * 2
            + ("Card 7",) * 2
            + ("Card 8", "Card 9", "Card 10")
        ),
    ),
    PresetDeck(
        id="court-cards",
        name="Court Cards",
        description="Only the Jacks, Queens and Kings of all four suits.",
        cards=tuple(
            f"{rank} of {suit}"
            for suit in ("Spades", "Hearts", "Diamonds", "Clubs")
            for rank in ("Jack", "Queen", "King")
        ),
    ),
    PresetDeck(
        id="ability-sampler",
        name="Ability Sampler",
        description="A small ability deck with repeated basics and a few rare effects.",
        cards=(
            ("Strike",) * 5
            + ("Defend",) * 5
            + ("Focus",) * 2
            + ("Draw Two", "Second Wind", "Overcharge")
        ),
    ),
)


class PresetDeckRegistry:
    """
    Ordered, read-only collection of preset deck templates.

    Lookup by id covers every registered template; ``available`` returns only
    the templates that pass validation, so a broken template is never offered
    to the player.
    """

    def __init__(self, decks: Iterable[PresetDeck]):
        self._decks: Tuple[PresetDeck, ...] = tuple(decks)

    def __iter__(self) -> Iterator[PresetDeck]:
        return iter(self._decks)

    def __len__(self) -> int:
        return len(self._decks)

    @property
    def decks(self) -> Tuple[PresetDeck, ...]:
        return self._decks

    def get(self, preset_id: str) -> Optional[PresetDeck]:
        """Return the template with the given id, or None."""
        for deck in self._decks:
            if deck.id == preset_id:
                return deck
        return None

    def list_ids(self) -> List[str]:
        return [deck.id for deck in self._decks]

    def available(self) -> List[PresetDeck]:
        """Return the templates that pass structural validation."""
        result = []
        for deck in self._decks:
            validation = validate_preset_deck(deck)
            if validation.is_valid:
                result.append(deck)
            else:
                logger.warning(
                    "Hiding invalid preset deck %r: %s",
                    getattr(deck, "id", deck),
                    "; ".join(validation.errors),
                )
        return result

    def duplicate_ids(self) -> List[str]:
        seen = set()
        duplicates = []
        for deck in self._decks:
            if deck.id in seen and deck.id not in duplicates:
                duplicates.append(deck.id)
            seen.add(deck.id)
        return duplicates


DEFAULT_REGISTRY = PresetDeckRegistry(PRESET_DECKS)
