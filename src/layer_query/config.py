"""Configuration constants for layer-query."""

import os
from pathlib import Path

# Cooperative yield cadence, in visited nodes. Traversals with --h/--a visit
# far more nodes, so they yield more often.
YIELD_INTERVAL: int = 300
YIELD_INTERVAL_ALL_LAYERS: int = 50

# Bounded cache capacities (oldest entry evicted past capacity).
TYPE_POOL_CACHE_SIZE: int = 50
RESULT_CACHE_SIZE: int = 100
NAME_MATCHER_CACHE_SIZE: int = 256

# Row grouping for visual order.
ROW_EPSILON_MIN: float = 8.0
ROW_EPSILON_FACTOR: float = 0.35
DEFAULT_NODE_HEIGHT: float = 24.0

# Environment override for the state directory.
DATA_DIR_ENV: str = "LAYER_QUERY_DATA_DIR"

# Directory with state (last query). First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/layer-query").expanduser(),
    Path("~/.config/layer-query").expanduser(),
]

STATE_DB_NAME: str = "state.db"


def resolve_data_directory() -> Path:
    """Return the state directory: env override, first existing candidate, else the first."""
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]
