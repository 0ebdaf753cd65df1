from __future__ import annotations

import pytest

from tap_recall.results import RoundResult, format_elapsed, result_lines
from tap_recall.settings import Difficulty


def test_format_elapsed_uses_millisecond_precision() -> None:
    assert format_elapsed(1.23456) == "1.235s"
    assert format_elapsed(0.0) == "0.000s"
    assert format_elapsed(None) == "n/a"


def test_per_tile_interval_excludes_reveal_phase() -> None:
    result = RoundResult(
        round_id=1,
        seed=7,
        difficulty=Difficulty.SLOW,
        tile_count=10,
        elapsed_s=14.5,
        recall_s=4.5,
    )

    assert result.mean_tile_interval_s == pytest.approx(0.45)
    lines = result_lines(result)
    assert lines[0] == "Time: 14.500s"
    assert Difficulty.SLOW.label in lines[1]
    assert lines[2] == "Recall: 4.500s  (0.450s per tile)"


def test_result_without_tiles_has_no_interval() -> None:
    result = RoundResult(
        round_id=1,
        seed=7,
        difficulty=Difficulty.NORMAL,
        tile_count=0,
        elapsed_s=1.0,
        recall_s=0.0,
    )
    assert result.mean_tile_interval_s is None
    assert len(result_lines(result)) == 2
