"""
Tests for the shuffle fairness analysis.

A correct Fisher-Yates shuffle must pass the uniformity test, while a shuffle
that leaves the deck untouched or only rotates it must fail it.
"""

import numpy as np
import pytest

from deckstate.verification import (
    FairnessReport,
    analyze_shuffle_fairness,
    position_counts,
)


def identity_shuffle(cards):
    return list(cards)


def rotate_shuffle(cards):
    return list(cards[1:]) + list(cards[:1])


class TestPositionCounts:
    """Tests for the card/position occupancy matrix."""

    def test_identity_puts_every_card_on_its_own_position(self):
        counts = position_counts(identity_shuffle, 4, 10)
        assert counts.shape == (4, 4)
        assert np.array_equal(counts, np.eye(4, dtype=np.int64) * 10)

    def test_rows_and_columns_sum_to_trials(self):
        counts = position_counts(rotate_shuffle, 5, 7)
        assert (counts.sum(axis=0) == 7).all()
        assert (counts.sum(axis=1) == 7).all()

    def test_rejects_non_permutations(self):
        with pytest.raises(ValueError):
            position_counts(lambda cards: list(cards)[:-1], 4, 1)


class TestAnalyzeShuffleFairness:
    """Tests for the chi-square uniformity test."""

    def test_default_shuffle_is_fair(self):
        report = analyze_shuffle_fairness(n_cards=6, trials=6000, seed=7)
        assert isinstance(report, FairnessReport)
        assert report.degrees_of_freedom == 25
        assert report.is_fair
        assert report.max_deviation < 0.25

    def test_identity_shuffle_is_biased(self):
        report = analyze_shuffle_fairness(identity_shuffle, n_cards=5, trials=500)
        assert not report.is_fair
        assert report.unchanged_fraction == 1.0

    def test_rotation_is_biased(self):
        report = analyze_shuffle_fairness(rotate_shuffle, n_cards=5, trials=500)
        assert not report.is_fair
        assert report.unchanged_fraction == 0.0

    def test_position_statistics(self):
        report = analyze_shuffle_fairness(identity_shuffle, n_cards=4, trials=100)
        assert len(report.position_chi_square) == 4
        # Each column holds 100 in one cell and 0 in three, expected 25 each
        assert report.position_chi_square[0] == pytest.approx(300.0)

    def test_to_dict(self):
        report = analyze_shuffle_fairness(n_cards=3, trials=300, seed=1)
        data = report.to_dict()
        assert data["n_cards"] == 3
        assert data["trials"] == 300
        assert data["is_fair"] == report.is_fair

    @pytest.mark.parametrize("n_cards,trials", [(1, 10), (5, 0)])
    def test_rejects_bad_arguments(self, n_cards, trials):
        with pytest.raises(ValueError):
            analyze_shuffle_fairness(n_cards=n_cards, trials=trials)
