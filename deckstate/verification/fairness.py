"""
Statistical checks for shuffle fairness.

A fair shuffle puts every card in every position with equal probability. This
module runs a shuffler many times over a list of distinct cards, counts how
often each card lands in each position and tests those counts against the
uniform distribution.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np
import scipy.stats as stats

from deckstate.common.deck import shuffle
from deckstate.common.util import calculate_chi_square

logger = logging.getLogger(__name__)

Shuffler = Callable[[Sequence[Any]], List[Any]]


@dataclass
class FairnessReport:
    """
    Result of a shuffle fairness analysis.

    Attributes:
        n_cards: Number of distinct cards shuffled
        trials: Number of shuffles performed
        chi_square: Chi-square statistic over the whole position matrix
        degrees_of_freedom: Degrees of freedom of the test
        p_value: Probability of a statistic at least this large under fairness
        significance: Threshold below which the shuffle is judged biased
        position_chi_square: Per-position chi-square statistics
        max_deviation: Largest relative deviation of any cell from its expected count
        unchanged_fraction: Share of shuffles that left the input order intact
    """

    n_cards: int
    trials: int
    chi_square: float
    degrees_of_freedom: int
    p_value: float
    significance: float = 0.01
    position_chi_square: List[float] = field(default_factory=list)
    max_deviation: float = 0.0
    unchanged_fraction: float = 0.0

    @property
    def is_fair(self) -> bool:
        return self.p_value >= self.significance

    def to_dict(self) -> Dict[str, Any]:
        return {
            "n_cards": self.n_cards,
            "trials": self.trials,
            "chi_square": self.chi_square,
            "degrees_of_freedom": self.degrees_of_freedom,
            "p_value": self.p_value,
            "significance": self.significance,
            "is_fair": self.is_fair,
            "position_chi_square": list(self.position_chi_square),
            "max_deviation": self.max_deviation,
            "unchanged_fraction": self.unchanged_fraction,
        }


def position_counts(
    shuffler: Shuffler, n_cards: int, trials: int
) -> np.ndarray:
    """
    Count card positions over repeated shuffles.

    Args:
        shuffler: Function returning a shuffled copy of its input
        n_cards: Number of distinct cards to shuffle
        trials: Number of shuffles

    Returns:
        An ``(n_cards, n_cards)`` matrix where entry ``[card, position]`` is
        the number of times ``card`` ended up at ``position``
    """
    cards = list(range(n_cards))
    counts = np.zeros((n_cards, n_cards), dtype=np.int64)
    positions = np.arange(n_cards)

    for _ in range(trials):
        result = shuffler(cards)
        if sorted(result) != cards:
            raise ValueError("Shuffler must return a permutation of its input")
        counts[np.asarray(result), positions] += 1

    return counts


def analyze_shuffle_fairness(
    shuffler: Optional[Shuffler] = None,
    n_cards: int = 10,
    trials: int = 10000,
    significance: float = 0.01,
    seed: Optional[int] = None,
) -> FairnessReport:
    """
    Test whether a shuffler places cards uniformly.

    Args:
        shuffler: Function to test; defaults to the engine's shuffle
        n_cards: Number of distinct cards, at least 2
        trials: Number of shuffles, at least 1
        significance: p-value below which the shuffle is reported as biased
        seed: Seed for the default shuffler, for reproducible runs

    Returns:
        A FairnessReport

    Raises:
        ValueError: If ``n_cards`` or ``trials`` is out of range
    """
    if n_cards < 2:
        raise ValueError("n_cards must be at least 2")
    if trials < 1:
        raise ValueError("trials must be at least 1")

    if shuffler is None:
        rng = random.Random(seed) if seed is not None else None
        shuffler = lambda cards: shuffle(cards, rng)  # noqa: E731

    unchanged = 0
    original = list(range(n_cards))
    inner = shuffler

    def counted(cards):
        nonlocal unchanged
        result = inner(cards)
        if list(result) == original:
            unchanged += 1
        return result

    counts = position_counts(counted, n_cards, trials)
    expected = trials / n_cards

    observed = counts.flatten().astype(float)
    chi_square, _ = stats.chisquare(observed, np.full(observed.shape, expected))
    degrees_of_freedom = (n_cards - 1) ** 2
    p_value = float(stats.chi2.sf(chi_square, degrees_of_freedom))

    position_chi_square = [
        calculate_chi_square(counts[:, pos].tolist(), [expected] * n_cards)
        for pos in range(n_cards)
    ]

    report = FairnessReport(
        n_cards=n_cards,
        trials=trials,
        chi_square=float(chi_square),
        degrees_of_freedom=degrees_of_freedom,
        p_value=p_value,
        significance=significance,
        position_chi_square=position_chi_square,
        max_deviation=float(np.max(np.abs(counts - expected)) / expected),
        unchanged_fraction=unchanged / trials,
    )
    logger.debug(
        "Shuffle fairness: chi2=%.2f dof=%d p=%.4f",
        report.chi_square,
        report.degrees_of_freedom,
        report.p_value,
    )
    return report

