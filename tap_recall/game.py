from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum

from .board import Layout, Point, SeededRng, generate_positions, shuffled_numbers
from .clock import Clock, Scheduler
from .feedback import FeedbackCue, FeedbackDispatcher, FeedbackSink
from .results import RoundResult
from .settings import Difficulty, GameConfig

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    AWAITING_START = "awaiting_start"
    REVEALING = "revealing"
    RECALL = "recall"
    LOCKED = "locked"
    FINISHED = "finished"


class TileState(str, Enum):
    IDLE = "idle"
    CORRECT = "correct"
    WRONG = "wrong"


@dataclass(frozen=True, slots=True)
class Tile:
    index: int
    number: int
    position: Point
    revealed: bool = True
    state: TileState = TileState.IDLE


@dataclass(frozen=True, slots=True)
class GameSession:
    round_id: int
    phase: Phase
    difficulty: Difficulty
    # Preset the current round was dealt with; difficulty may change after it ends.
    round_difficulty: Difficulty | None = None
    expected_number: int = 0
    started_at_s: float | None = None
    recall_started_at_s: float | None = None
    ended_at_s: float | None = None
    overlay_visible: bool = False
    game_over: bool = False

    @property
    def elapsed_s(self) -> float | None:
        if self.started_at_s is None or self.ended_at_s is None:
            return None
        return self.ended_at_s - self.started_at_s

    @property
    def recall_s(self) -> float | None:
        if self.recall_started_at_s is None or self.ended_at_s is None:
            return None
        return self.ended_at_s - self.recall_started_at_s


@dataclass(frozen=True, slots=True)
class TileView:
    index: int
    number: int
    position: Point
    label_visible: bool
    covered: bool
    state: TileState


@dataclass(frozen=True, slots=True)
class GameSnapshot:
    """View model for the UI (pure data)."""

    round_id: int
    phase: Phase
    difficulty: Difficulty
    tiles: tuple[TileView, ...]
    expected_number: int
    show_start_button: bool
    show_overlay: bool
    show_result: bool
    elapsed_s: float | None


class RecallGame:
    """Tap-the-numbers-in-order memory round.

    AWAITING_START -> REVEALING -> RECALL -> FINISHED, or
    RECALL -> LOCKED -> AWAITING_START after a single wrong tap.

    - Deterministic: tile numbers and positions come from an RNG seeded at
      construction.
    - Time is entirely via injected Clock; delays are deferred tasks that fire
      from ``update()``.
    """

    def __init__(
        self,
        *,
        clock: Clock,
        seed: int,
        width: float,
        height: float,
        feedback: FeedbackSink | None = None,
        difficulty: Difficulty | str | float = Difficulty.NORMAL,
        config: GameConfig | None = None,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("width and height must be > 0")

        self._clock = clock
        self._seed = int(seed)
        self._rng = SeededRng(self._seed)
        self._width = float(width)
        self._height = float(height)
        if feedback is None or isinstance(feedback, FeedbackDispatcher):
            self._feedback = feedback or FeedbackDispatcher()
        else:
            self._feedback = FeedbackDispatcher([feedback])
        self._config = config or GameConfig()
        self._scheduler = Scheduler(clock)

        self._session = GameSession(
            round_id=0,
            phase=Phase.AWAITING_START,
            difficulty=Difficulty.coerce(difficulty),
        )
        self._tiles: tuple[Tile, ...] = ()
        self._layout: Layout | None = None

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def phase(self) -> Phase:
        return self._session.phase

    @property
    def session(self) -> GameSession:
        return self._session

    @property
    def tiles(self) -> tuple[Tile, ...]:
        return self._tiles

    @property
    def layout(self) -> Layout | None:
        return self._layout

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def difficulty(self) -> Difficulty:
        return self._session.difficulty

    def pending_tasks(self) -> int:
        return self._scheduler.pending()

    def resize(self, width: float, height: float) -> None:
        """Change the board used for the next round's layout."""

        if width <= 0 or height <= 0:
            raise ValueError("width and height must be > 0")
        self._width = float(width)
        self._height = float(height)

    def set_difficulty(self, value: Difficulty | str | float) -> bool:
        """Select a reveal preset. Returns False while a round is in progress.

        Unsupported values raise ValueError.
        """

        preset = Difficulty.coerce(value)
        if self._session.phase not in (Phase.AWAITING_START, Phase.FINISHED):
            return False
        if preset is not self._session.difficulty:
            logger.info("Difficulty set to %s (%.1fs reveal)", preset.value, preset.reveal_s)
        self._session = replace(self._session, difficulty=preset)
        return True

    def start_game(self) -> None:
        self._scheduler.cancel_all()

        cfg = self._config
        numbers = shuffled_numbers(self._rng, cfg.tile_count)
        layout = generate_positions(self._rng, width=self._width, height=self._height, config=cfg)
        self._layout = layout
        self._tiles = tuple(
            Tile(index=i, number=numbers[i], position=layout.positions[i]) for i in range(cfg.tile_count)
        )

        round_id = self._session.round_id + 1
        self._session = GameSession(
            round_id=round_id,
            phase=Phase.REVEALING,
            difficulty=self._session.difficulty,
            round_difficulty=self._session.difficulty,
            started_at_s=self._clock.now(),
        )
        self._scheduler.schedule(
            self._session.difficulty.reveal_s,
            lambda: self._begin_recall(round_id),
            tag=round_id,
        )
        logger.info(
            "Round %d started (%s, %d relaxed placement(s))",
            round_id,
            self._session.difficulty.value,
            len(layout.relaxed_indices),
        )

    def update(self) -> None:
        self._scheduler.run_due()

    def handle_tap(self, number: int) -> bool:
        """Validate a tap on the tile showing ``number``. Returns True if consumed."""

        session = self._session
        if session.phase is not Phase.RECALL:
            return False
        tile = self._tile_for_number(number)
        if tile is None or tile.state is TileState.CORRECT:
            return False

        if number == session.expected_number:
            self._set_tile(replace(tile, state=TileState.CORRECT))
            self._session = replace(session, expected_number=session.expected_number + 1)
            self._emit(FeedbackCue.CORRECT_TAP)
            if self._session.expected_number >= len(self._tiles):
                self._finish()
            return True

        self._set_tile(replace(tile, state=TileState.WRONG))
        self._session = replace(session, phase=Phase.LOCKED)
        self._emit(FeedbackCue.WRONG_TAP)
        self._emit(FeedbackCue.HAPTIC)
        logger.info(
            "Round %d: tapped %d, expected %d",
            session.round_id,
            number,
            session.expected_number,
        )
        round_id = session.round_id
        tile_index = tile.index
        self._scheduler.schedule(
            self._config.wrong_reset_s,
            lambda: self._reset_after_wrong(round_id, tile_index),
            tag=round_id,
        )
        return True

    def handle_tap_at(self, pos: Point | tuple[float, float]) -> bool:
        """Hit-test a screen point against the tiles and forward to ``handle_tap``."""

        if not isinstance(pos, Point):
            pos = Point(float(pos[0]), float(pos[1]))
        tile = self.tile_at(pos)
        if tile is None:
            return False
        return self.handle_tap(tile.number)

    def tile_at(self, pos: Point) -> Tile | None:
        half = self._config.tile_size / 2.0
        # Later tiles are drawn on top, so they win overlapping hits.
        for tile in reversed(self._tiles):
            if abs(pos.x - tile.position.x) <= half and abs(pos.y - tile.position.y) <= half:
                return tile
        return None

    def result(self) -> RoundResult | None:
        s = self._session
        if s.phase is not Phase.FINISHED or s.elapsed_s is None or s.recall_s is None:
            return None
        assert s.round_difficulty is not None
        return RoundResult(
            round_id=s.round_id,
            seed=self._seed,
            difficulty=s.round_difficulty,
            tile_count=len(self._tiles),
            elapsed_s=s.elapsed_s,
            recall_s=s.recall_s,
        )

    def snapshot(self) -> GameSnapshot:
        s = self._session
        views = tuple(self._tile_view(t) for t in self._tiles) if s.phase is not Phase.AWAITING_START else ()
        return GameSnapshot(
            round_id=s.round_id,
            phase=s.phase,
            difficulty=s.difficulty,
            tiles=views,
            expected_number=s.expected_number,
            show_start_button=s.phase is Phase.AWAITING_START,
            show_overlay=s.overlay_visible,
            show_result=s.phase is Phase.FINISHED,
            elapsed_s=s.elapsed_s,
        )

    def _tile_view(self, tile: Tile) -> TileView:
        s = self._session
        if s.game_over:
            return TileView(tile.index, tile.number, tile.position, False, False, tile.state)
        if not s.overlay_visible:
            return TileView(tile.index, tile.number, tile.position, True, False, tile.state)
        # Recall: solved tiles vanish, the rest stay covered.
        covered = tile.state is not TileState.CORRECT
        return TileView(tile.index, tile.number, tile.position, False, covered, tile.state)

    def _begin_recall(self, round_id: int) -> None:
        s = self._session
        if round_id != s.round_id or s.phase is not Phase.REVEALING:
            logger.debug("Dropping stale reveal timer for round %d", round_id)
            return
        self._tiles = tuple(replace(t, revealed=False) for t in self._tiles)
        self._session = replace(
            s,
            phase=Phase.RECALL,
            overlay_visible=True,
            recall_started_at_s=self._clock.now(),
        )

    def _reset_after_wrong(self, round_id: int, tile_index: int) -> None:
        s = self._session
        if round_id != s.round_id or s.phase is not Phase.LOCKED:
            logger.debug("Dropping stale wrong-tap reset for round %d", round_id)
            return
        self._set_tile(replace(self._tiles[tile_index], state=TileState.IDLE))
        self._session = replace(
            s,
            phase=Phase.AWAITING_START,
            expected_number=0,
            overlay_visible=False,
        )

    def _finish(self) -> None:
        s = self._session
        self._session = replace(
            s,
            phase=Phase.FINISHED,
            ended_at_s=self._clock.now(),
            overlay_visible=False,
            game_over=True,
        )
        self._emit(FeedbackCue.VICTORY)
        logger.info("Round %d finished in %.3fs", s.round_id, self._session.elapsed_s)

    def _tile_for_number(self, number: int) -> Tile | None:
        for tile in self._tiles:
            if tile.number == number:
                return tile
        return None

    def _set_tile(self, tile: Tile) -> None:
        tiles = list(self._tiles)
        tiles[tile.index] = tile
        self._tiles = tuple(tiles)

    def _emit(self, cue: FeedbackCue) -> None:
        self._feedback.emit(cue)

