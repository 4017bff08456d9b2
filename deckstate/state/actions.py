"""
The closed set of actions accepted by the deck state engine.

Each action is an immutable dataclass tagged with an ``ActionType``. Callers
build an action and hand it to ``StateTransitionEngine.reduce``; they never
touch state fields directly.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Union

from deckstate.state.models import DeckState


class ActionType(Enum):
    """Enum for the actions a caller can dispatch to the deck engine."""

    INIT = "init"
    DEAL_NEXT_HAND = "deal_next_hand"
    END_TURN = "end_turn"
    APPLY_OVERRIDE = "apply_override"
    CHANGE_PARAMETERS = "change_parameters"
    TOGGLE_CARD_SELECTION = "toggle_card_selection"
    CONFIRM_DISCARD = "confirm_discard"
    SELECT_FOR_PLAY_ORDER = "select_for_play_order"
    DESELECT_FROM_PLAY_ORDER = "deselect_from_play_order"
    LOCK_PLAY_ORDER = "lock_play_order"
    CLEAR_PLAY_ORDER = "clear_play_order"
    RESET = "reset"
    LOAD_PRESET_DECK = "load_preset_deck"


@dataclass(frozen=True)
class Init:
    """
    Build the starting state.

    Attributes:
        persisted_state: A sanitized state restored from storage, if any
        preset_id: A pinned preset to restore when no state was persisted
    """

    type: ClassVar[ActionType] = ActionType.INIT
    persisted_state: Optional[DeckState] = None
    preset_id: Optional[str] = None


@dataclass(frozen=True)
class DealNextHand:
    type: ClassVar[ActionType] = ActionType.DEAL_NEXT_HAND


@dataclass(frozen=True)
class EndTurn:
    type: ClassVar[ActionType] = ActionType.END_TURN


@dataclass(frozen=True)
class ApplyOverride:
    """Replace the deck with a JSON array of card values."""

    type: ClassVar[ActionType] = ActionType.APPLY_OVERRIDE
    text: str = ""


@dataclass(frozen=True)
class ChangeParameters:
    type: ClassVar[ActionType] = ActionType.CHANGE_PARAMETERS
    hand_size: int = 0
    discard_count: int = 0
    immediate_reset: bool = False


@dataclass(frozen=True)
class ToggleCardSelection:
    type: ClassVar[ActionType] = ActionType.TOGGLE_CARD_SELECTION
    instance_id: str = ""


@dataclass(frozen=True)
class ConfirmDiscard:
    type: ClassVar[ActionType] = ActionType.CONFIRM_DISCARD


@dataclass(frozen=True)
class SelectForPlayOrder:
    type: ClassVar[ActionType] = ActionType.SELECT_FOR_PLAY_ORDER
    instance_id: str = ""


@dataclass(frozen=True)
class DeselectFromPlayOrder:
    type: ClassVar[ActionType] = ActionType.DESELECT_FROM_PLAY_ORDER
    instance_id: str = ""


@dataclass(frozen=True)
class LockPlayOrder:
    type: ClassVar[ActionType] = ActionType.LOCK_PLAY_ORDER


@dataclass(frozen=True)
class ClearPlayOrder:
    type: ClassVar[ActionType] = ActionType.CLEAR_PLAY_ORDER


@dataclass(frozen=True)
class Reset:
    type: ClassVar[ActionType] = ActionType.RESET


@dataclass(frozen=True)
class LoadPresetDeck:
    type: ClassVar[ActionType] = ActionType.LOAD_PRESET_DECK
    preset_id: str = ""


DeckAction = Union[
    Init,
    DealNextHand,
    EndTurn,
    ApplyOverride,
    ChangeParameters,
    ToggleCardSelection,
    ConfirmDiscard,
    SelectForPlayOrder,
    DeselectFromPlayOrder,
    LockPlayOrder,
    ClearPlayOrder,
    Reset,
    LoadPresetDeck,
]
