"""
Session hosting for the deck state engine.
"""

from deckstate.engine.config import SessionConfig
from deckstate.engine.session import DeckSession

__all__ = ["SessionConfig", "DeckSession"]
