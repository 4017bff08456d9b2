"""
This module defines the card value type and the `CardInstance` class used to
track individual copies of a card while they sit in a hand.

- `Card`: an opaque card value such as ``"Ace of Spades"`` or an ability name.
Card values are not unique; a deck may hold several copies of the same value.

- `CardInstance`: a card value wrapped with a locally-unique identifier so that
two copies of the same card can be selected and ordered independently.

>>> first = make_instance("Card 1")
>>> second = make_instance("Card 1")
>>> first.card == second.card
True
>>> first.instance_id != second.instance_id
True
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List
import uuid

Card = str


def generate_instance_id() -> str:
    """
    Generate a random 128-bit identifier in canonical UUID form.
    """
    return str(uuid.uuid4())


@dataclass(frozen=True)
class CardInstance:
    """
    Immutable representation of one dealt copy of a card.

    Attributes:
        instance_id: Identifier unique among all instances alive in the hand
        card: The underlying card value
    """

    instance_id: str = field(default_factory=generate_instance_id)
    card: Card = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert the instance to a dictionary suitable for serialization."""
        return {"instance_id": self.instance_id, "card": self.card}

    def __str__(self) -> str:
        return self.card


def make_instance(card: Card) -> CardInstance:
    """
    Wrap a card value with a fresh instance identifier.

    :param card: The card value to wrap.
    :return: A new CardInstance.
    >>> make_instance("Queen of Hearts").card
    'Queen of Hearts'
    """
    return CardInstance(instance_id=generate_instance_id(), card=card)


def make_instances(cards: Iterable[Card]) -> List[CardInstance]:
    """Wrap every card value in ``cards``, preserving order."""
    return [make_instance(card) for card in cards]


def card_values(instances: Iterable[CardInstance]) -> List[Card]:
    """Return the plain card values of a sequence of instances."""
    return [instance.card for instance in instances]
