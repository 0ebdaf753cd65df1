from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass

from .settings import GameConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float

    def distance_to(self, other: Point) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True, slots=True)
class Layout:
    positions: tuple[Point, ...]
    # Points accepted after exhausting max_attempts; these may sit closer
    # than min_distance to an earlier point.
    relaxed_indices: tuple[int, ...] = ()

    @property
    def fully_spaced(self) -> bool:
        return not self.relaxed_indices


class SeededRng:
    """Seeded RNG wrapper to keep deterministic streams explicit."""

    def __init__(self, seed: int) -> None:
        self._rng = random.Random(int(seed))

    def uniform(self, a: float, b: float) -> float:
        return self._rng.uniform(a, b)

    def shuffled(self, items: list[int]) -> list[int]:
        out = list(items)
        self._rng.shuffle(out)
        return out


def shuffled_numbers(rng: SeededRng, count: int) -> tuple[int, ...]:
    """Return a random permutation of 0..count-1."""

    return tuple(rng.shuffled(list(range(count))))


def is_position_valid(point: Point, existing: list[Point] | tuple[Point, ...], min_distance: float) -> bool:
    return all(point.distance_to(other) >= min_distance for other in existing)


def random_position(rng: SeededRng, *, width: float, height: float, config: GameConfig) -> Point:
    x = rng.uniform(width * config.margin_left, width * (1.0 - config.margin_right))
    y = rng.uniform(height * config.margin_top, height * (1.0 - config.margin_bottom))
    return Point(x, y)


def generate_positions(
    rng: SeededRng,
    *,
    width: float,
    height: float,
    config: GameConfig | None = None,
) -> Layout:
    """Scatter ``config.tile_count`` points using capped rejection sampling.

    Each point gets up to ``max_attempts`` candidates. If none clears
    ``min_distance`` from every earlier point, the last candidate is kept
    anyway and its index is reported in ``Layout.relaxed_indices``.
    """

    cfg = config or GameConfig()
    if width <= 0 or height <= 0:
        raise ValueError("board width and height must be > 0")

    positions: list[Point] = []
    relaxed: list[int] = []
    for index in range(cfg.tile_count):
        attempts = 0
        while True:
            candidate = random_position(rng, width=width, height=height, config=cfg)
            attempts += 1
            if is_position_valid(candidate, positions, cfg.min_distance):
                break
            if attempts >= cfg.max_attempts:
                relaxed.append(index)
                logger.debug(
                    "Tile %d placed after %d attempts without clearing %.1f units",
                    index,
                    attempts,
                    cfg.min_distance,
                )
                break
        positions.append(candidate)

    return Layout(positions=tuple(positions), relaxed_indices=tuple(relaxed))
