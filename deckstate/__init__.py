"""
Deck state engine: a single-player card turn engine.

Set ``DECKSTATE_DISABLE_LOGGING`` to ``1``, ``true`` or ``yes`` to silence
everything below ERROR from the package loggers.
"""

import logging
import os

__version__ = "0.1.0"

logger = logging.getLogger("deckstate")
logger.addHandler(logging.NullHandler())

if os.environ.get("DECKSTATE_DISABLE_LOGGING", "").lower() in ("1", "true", "yes"):
    logger.setLevel(logging.ERROR)
