"""
This module contains the default deck definition and the shuffler.

>>> len(DEFAULT_DECK)
26
>>> cards = ["A", "B", "C"]
>>> sorted(shuffle(cards)) == sorted(cards)
True
>>> cards
['A', 'B', 'C']
"""

import logging
import random
from typing import List, Optional, Sequence

from deckstate.common.card import Card

logger = logging.getLogger(__name__)

SUITS = ["Spades", "Hearts"]
RANKS = [
    "Ace",
    "2",
    "3",
    "4",
    "5",
    "6",
    "7",
    "8",
    "9",
    "10",
    "Jack",
    "Queen",
    "King",
]

# Precompute the default deck
DEFAULT_DECK: List[Card] = [f"{rank} of {suit}" for suit in SUITS for rank in RANKS]


def default_deck() -> List[Card]:
    """Return a fresh copy of the default deck in its canonical order."""
    return DEFAULT_DECK.copy()


def _make_rng() -> random.Random:
    """
    Build the randomness source for shuffling.

    Prefers the operating system's cryptographic generator and falls back to
    the Mersenne Twister where ``os.urandom`` is unavailable.
    """
    rng = random.SystemRandom()
    try:
        rng.random()
    except NotImplementedError:
        logger.debug("System randomness unavailable, using random.Random")
        return random.Random()
    return rng


_rng = _make_rng()


def shuffle(cards: Sequence[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """
    Return a uniformly shuffled copy of ``cards``.

    Uses the Fisher-Yates algorithm, so every permutation is equally likely and
    no card is biased toward its original position. The input is never
    modified.

    :param cards: The cards to shuffle.
    :param rng: Optional random source, mainly for reproducible tests.
    :return: A new list holding the same cards in random order.
    """
    source = rng if rng is not None else _rng
    result = list(cards)
    for i in range(len(result) - 1, 0, -1):
        j = source.randrange(i + 1)
        result[i], result[j] = result[j], result[i]
    return result
