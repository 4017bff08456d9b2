"""
Event system for the deck state engine.

Sessions publish what happened to the deck (hands dealt, turns ended, decks
rebuilt, warnings raised) through an emitter so that front ends can react
without the transition functions knowing anything about them.
"""

import itertools
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger("deckstate.events")

EventName = Union[str, Enum]

# Subscriptions stored under this key receive every event
_ANY = None


class EventPriority(Enum):
    """Priority levels for event handlers."""

    LOW = 0
    NORMAL = 1
    HIGH = 2
    CRITICAL = 3


@dataclass(order=True)
class _Subscription:
    # Sorts highest priority first, then by subscription order
    sort_key: tuple
    callback: Callable = field(compare=False)


def _event_name(event_type: Optional[EventName]) -> Optional[str]:
    if isinstance(event_type, Enum):
        return event_type.name
    return event_type


class EventEmitter:
    """
    Priority-ordered publish/subscribe emitter.

    Handlers for one event run from highest to lowest priority, with ties in
    subscription order. Wildcard handlers registered with ``on_any`` receive
    an ``(event_name, data)`` tuple after the specific handlers. A handler
    that raises is logged and the remaining handlers still run.
    """

    def __init__(self):
        self._subscriptions: Dict[Optional[str], List[_Subscription]] = defaultdict(list)
        self._counter = itertools.count()
        self._lock = threading.RLock()

    def _subscribe(
        self, key: Optional[str], callback: Callable, priority: EventPriority
    ) -> Callable:
        subscription = _Subscription((-priority.value, next(self._counter)), callback)
        with self._lock:
            subscriptions = self._subscriptions[key]
            subscriptions.append(subscription)
            subscriptions.sort()

        def unsubscribe():
            with self._lock:
                remaining = self._subscriptions.get(key, [])
                if subscription in remaining:
                    remaining.remove(subscription)

        return unsubscribe

    def on(
        self,
        event_type: EventName,
        callback: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Subscribe to one event type.

        Args:
            event_type: Event name or enum member; members match by name
            callback: Called as ``callback(data)``
            priority: Priority level for this handler

        Returns:
            A function removing this subscription
        """
        return self._subscribe(_event_name(event_type), callback, priority)

    def once(
        self,
        event_type: EventName,
        callback: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """Subscribe for the next occurrence only, even if ``callback`` raises."""
        unsubscribe: List[Callable] = []

        def fire_once(data):
            unsubscribe[0]()
            callback(data)

        unsubscribe.append(self.on(event_type, fire_once, priority))
        return unsubscribe[0]

    def on_any(
        self, callback: Callable, priority: EventPriority = EventPriority.NORMAL
    ) -> Callable:
        """Subscribe to every event; ``callback`` gets ``(event_name, data)``."""
        return self._subscribe(_ANY, callback, priority)

    def emit(self, event_type: EventName, data: Dict[str, Any]) -> None:
        """
        Deliver ``data`` to the handlers of ``event_type``.

        Handlers are snapshotted first, so handlers added or removed during
        delivery take effect from the next emit.
        """
        name = _event_name(event_type)
        with self._lock:
            calls = [(sub.callback, data) for sub in self._subscriptions.get(name, [])]
            calls += [
                (sub.callback, (name, data)) for sub in self._subscriptions.get(_ANY, [])
            ]

        for callback, payload in calls:
            try:
                callback(payload)
            except Exception:
                logger.exception("Event handler for %s failed", name)


class EventBus:
    """
    Process-wide event bus.

    Sessions created without an explicit emitter publish here.
    """

    _instance = None
    _lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> EventEmitter:
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = EventEmitter()
        return cls._instance


class DeckEventType(Enum):
    """
    Event types published by a deck session.
    """

    # Session lifecycle
    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"

    # Every committed action
    ACTION_DISPATCHED = "action_dispatched"

    # Dealing
    DEALING_STARTED = "dealing_started"
    HAND_DEALT = "hand_dealt"
    TURN_ENDED = "turn_ended"
    DECK_REBUILT = "deck_rebuilt"

    # Persistence
    STATE_SAVED = "state_saved"

    # Messages surfaced on the state
    WARNING = "warning"
    ERROR = "error"
