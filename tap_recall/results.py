from __future__ import annotations

from dataclasses import dataclass

from .settings import Difficulty


@dataclass(frozen=True, slots=True)
class RoundResult:
    """Summary of a completed round, shown on the results screen."""

    round_id: int
    seed: int
    difficulty: Difficulty
    tile_count: int
    # From start button to last tap, reveal phase included.
    elapsed_s: float
    # From numbers hiding to last tap.
    recall_s: float

    @property
    def mean_tile_interval_s(self) -> float | None:
        if self.tile_count == 0:
            return None
        return self.recall_s / float(self.tile_count)


def format_elapsed(elapsed_s: float | None) -> str:
    if elapsed_s is None:
        return "n/a"
    return f"{max(0.0, elapsed_s):.3f}s"


def result_lines(result: RoundResult) -> list[str]:
    lines = [
        f"Time: {format_elapsed(result.elapsed_s)}",
        f"Difficulty: {result.difficulty.label}",
    ]
    interval = result.mean_tile_interval_s
    if interval is not None:
        lines.append(f"Recall: {format_elapsed(result.recall_s)}  ({interval:.3f}s per tile)")
    return lines
