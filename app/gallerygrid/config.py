"""Layout configuration.

Constants are the single source of truth for the grid; ``LayoutConfig`` lets
the CLI (or an embedding app) override them from the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

# Content grid
DEFAULT_CHUNK_SIZE = 4  # desktop pattern-window rows
MOBILE_CHUNK_SIZE = 2  # single-column contexts
MIN_CHUNK_SIZE = 2  # keeps half a chunk >= 1 slot

# Visual gap between adjacent items in a row or stacked column (0.8rem)
GRID_GAP = 12.8
MOBILE_GRID_GAP = 6.4

# Pattern detection
PATTERN_WINDOW_SIZE = 5
PATTERN_MAX_MOVEMENT = 2

# Star-budget rows close once the running total lands in this band
MIN_ROW_STARS = 7
MAX_ROW_STARS = 9

ENV_PREFIX = "GALLERYGRID_"


def _env_number(name: str, default, cast):
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class LayoutConfig:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    gap: float = GRID_GAP
    window_size: int = PATTERN_WINDOW_SIZE
    strategy: str = "patterns"

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        if self.gap < 0:
            raise ValueError("gap must be >= 0")
        if self.window_size <= 0:
            raise ValueError("window_size must be > 0")

    @property
    def effective_chunk_size(self) -> int:
        return max(int(self.chunk_size), MIN_CHUNK_SIZE)

    @classmethod
    def from_env(cls) -> "LayoutConfig":
        """Build a config from ``GALLERYGRID_*`` environment variables.

        Recognised: CHUNK_SIZE, GAP, WINDOW_SIZE, STRATEGY. Unset values keep
        the module defaults.
        """
        return cls(
            chunk_size=_env_number("CHUNK_SIZE", DEFAULT_CHUNK_SIZE, int),
            gap=_env_number("GAP", GRID_GAP, float),
            window_size=_env_number("WINDOW_SIZE", PATTERN_WINDOW_SIZE, int),
            strategy=os.getenv(ENV_PREFIX + "STRATEGY", "patterns").strip().lower() or "patterns",
        )
