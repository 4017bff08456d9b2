"""
Configuration for deck sessions.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from deckstate.state.constants import STORAGE_KEY, PRESET_STORAGE_KEY

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class SessionConfig:
    """
    Settings for a DeckSession.

    Attributes:
        db_path: SQLite database file; None keeps the state in memory
        state_key: Storage key for the serialized state
        preset_key: Storage key for the active preset identifier
        autosave: Persist the state after every dispatched action
    """

    db_path: Optional[str] = None
    state_key: str = STORAGE_KEY
    preset_key: str = PRESET_STORAGE_KEY
    autosave: bool = True

    def __post_init__(self):
        if not isinstance(self.state_key, str) or not self.state_key:
            raise ValueError("state_key must be a non-empty string")
        if not isinstance(self.preset_key, str) or not self.preset_key:
            raise ValueError("preset_key must be a non-empty string")
        if self.state_key == self.preset_key:
            raise ValueError("state_key and preset_key must differ")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SessionConfig":
        """
        Build a config from ``DECKSTATE_DB_PATH`` and ``DECKSTATE_AUTOSAVE``.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            A SessionConfig with defaults for unset variables

        Raises:
            ValueError: If ``DECKSTATE_AUTOSAVE`` is not a recognised boolean
        """
        if environ is None:
            environ = os.environ

        db_path = environ.get("DECKSTATE_DB_PATH") or None

        autosave = True
        raw = environ.get("DECKSTATE_AUTOSAVE")
        if raw is not None and raw.strip():
            value = raw.strip().lower()
            if value in _TRUE_VALUES:
                autosave = True
            elif value in _FALSE_VALUES:
                autosave = False
            else:
                raise ValueError(f"Invalid DECKSTATE_AUTOSAVE value: {raw!r}")

        return cls(db_path=db_path, autosave=autosave)
