"""Environment-driven defaults for the Mergers rules service.

Values are read once at import time. They seed the defaults of
:class:`mergers.models.RulesOptions`, which is stored on every ``GameState``
so that a game keeps the options it was created with even if the
environment changes later.
"""

from __future__ import annotations

import os


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


ROW_LETTERS = ("A", "B", "C", "D", "E", "F", "G", "H", "I")
DEFAULT_NUM_ROWS = len(ROW_LETTERS)
DEFAULT_NUM_COLUMNS = 12

MIN_PLAYERS = 2
MAX_PLAYERS = 6

STARTING_MONEY = _env_int("MERGERS_STARTING_MONEY", 6000)
STOCKS_PER_CHAIN = _env_int("MERGERS_STOCKS_PER_CHAIN", 25)
RACK_SIZE = _env_int("MERGERS_RACK_SIZE", 6)
MAX_STOCK_PURCHASE = _env_int("MERGERS_MAX_STOCK_PURCHASE", 3)

# Chains strictly larger than this can no longer be merged away.
UNMERGEABLE_SIZE = _env_int("MERGERS_UNMERGEABLE_SIZE", 10)
# Any chain strictly larger than this lets the game be declared over.
GAME_END_SIZE = _env_int("MERGERS_GAME_END_SIZE", 40)

DEBUG_ENGINE = os.environ.get("MERGERS_DEBUG_ENGINE", "0").lower() in {
    "1",
    "true",
    "yes",
    "on",
}
LOG_LEVEL = os.getenv("MERGERS_LOG_LEVEL", "INFO")
# One of default, compact, detailed or structured.
LOG_FORMAT = os.getenv("MERGERS_LOG_FORMAT", "default").lower()
