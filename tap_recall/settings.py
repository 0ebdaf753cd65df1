from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import StrEnum

logger = logging.getLogger(__name__)

DIFFICULTY_ENV = "TAP_RECALL_DIFFICULTY"
LOG_LEVEL_ENV = "TAP_RECALL_LOG_LEVEL"


class Difficulty(StrEnum):
    """Reveal-duration presets. The value is the name used in env/config."""

    FAST = "fast"
    NORMAL = "normal"
    SLOW = "slow"

    @property
    def reveal_s(self) -> float:
        return _REVEAL_SECONDS[self]

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def coerce(cls, value: Difficulty | str | float | int) -> Difficulty:
        """Resolve a preset, its name, or its exact reveal time in seconds.

        Anything else raises ValueError; values are never snapped to a preset.
        """
        if isinstance(value, Difficulty):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                raise ValueError(f"unsupported difficulty: {value!r}") from None
        if isinstance(value, bool):
            raise ValueError(f"unsupported difficulty: {value!r}")
        for preset, seconds in _REVEAL_SECONDS.items():
            if float(value) == seconds:
                return preset
        raise ValueError(f"unsupported difficulty: {value!r}")


_REVEAL_SECONDS: dict[Difficulty, float] = {
    Difficulty.FAST: 0.5,
    Difficulty.NORMAL: 2.0,
    Difficulty.SLOW: 10.0,
}

_LABELS: dict[Difficulty, str] = {
    Difficulty.FAST: "Photographic (0.5s)",
    Difficulty.NORMAL: "Human (2s)",
    Difficulty.SLOW: "Rote (10s)",
}


@dataclass(frozen=True, slots=True)
class GameConfig:
    tile_count: int = 10
    min_distance: float = 80.0
    max_attempts: int = 100
    # Tiles are square hit targets centred on their position.
    tile_size: float = 60.0
    wrong_reset_s: float = 1.0
    long_press_s: float = 0.5

    # Fractions of the board kept clear of tile centres.
    margin_left: float = 0.03
    margin_right: float = 0.03
    margin_top: float = 0.08
    margin_bottom: float = 0.05

    def __post_init__(self) -> None:
        if self.tile_count < 1:
            raise ValueError("tile_count must be >= 1")
        if self.min_distance < 0.0:
            raise ValueError("min_distance must be >= 0")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.wrong_reset_s < 0.0:
            raise ValueError("wrong_reset_s must be >= 0")
        if self.margin_left + self.margin_right >= 1.0 or self.margin_top + self.margin_bottom >= 1.0:
            raise ValueError("margins must leave a non-empty board")


def difficulty_from_env(default: Difficulty = Difficulty.NORMAL) -> Difficulty:
    raw = os.environ.get(DIFFICULTY_ENV)
    if not raw:
        return default
    try:
        return Difficulty.coerce(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r; using %s", DIFFICULTY_ENV, raw, default.value)
        return default


def log_level_from_env(default: int = logging.WARNING) -> int:
    raw = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if raw == "":
        return default
    level = logging.getLevelName(raw)
    if isinstance(level, int):
        return level
    logger.warning("Ignoring %s=%r", LOG_LEVEL_ENV, raw)
    return default
