"""
Verification tools for the deck state engine.

This package provides statistical checks that the shuffler treats every
card and position alike.
"""

from deckstate.verification.fairness import (
    FairnessReport,
    analyze_shuffle_fairness,
    position_counts,
)

__all__ = ["FairnessReport", "analyze_shuffle_fairness", "position_counts"]
