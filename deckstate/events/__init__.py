"""
Event system for the deck state engine.
"""

from deckstate.events.emitter import (
    EventEmitter,
    EventBus,
    EventPriority,
    DeckEventType,
)

__all__ = ["EventEmitter", "EventBus", "EventPriority", "DeckEventType"]
