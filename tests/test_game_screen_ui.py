from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass

import pytest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame  # noqa: E402

from tap_recall.app import App, GameScreen, MenuScreen  # noqa: E402
from tap_recall.game import Phase, RecallGame  # noqa: E402
from tap_recall.settings import Difficulty  # noqa: E402


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


@dataclass
class Harness:
    app: App
    screen: GameScreen
    game: RecallGame
    clock: FakeClock


@pytest.fixture
def harness() -> Iterator[Harness]:
    pygame.init()
    surface = pygame.display.set_mode((960, 540))
    clock = FakeClock()
    app = App(surface=surface)
    game = RecallGame(clock=clock, seed=31, width=960, height=540)
    screen = GameScreen(app, game=game, clock=clock)
    app.push(screen)
    try:
        yield Harness(app=app, screen=screen, game=game, clock=clock)
    finally:
        pygame.quit()


def _mouse(kind: int, pos: tuple[float, float]) -> pygame.event.Event:
    return pygame.event.Event(kind, {"button": 1, "pos": (int(pos[0]), int(pos[1]))})


def test_short_press_on_start_button_starts_round(harness: Harness) -> None:
    center = harness.screen.start_button_center
    harness.app.handle_event(_mouse(pygame.MOUSEBUTTONDOWN, center))
    harness.clock.advance(0.1)
    harness.app.handle_event(_mouse(pygame.MOUSEBUTTONUP, center))

    assert harness.game.phase is Phase.REVEALING
    harness.app.render()


def test_press_elsewhere_does_not_start(harness: Harness) -> None:
    harness.app.handle_event(_mouse(pygame.MOUSEBUTTONDOWN, (500, 200)))
    harness.app.handle_event(_mouse(pygame.MOUSEBUTTONUP, (500, 200)))
    assert harness.game.phase is Phase.AWAITING_START


def test_long_press_opens_difficulty_menu_and_selection_applies(harness: Harness) -> None:
    center = harness.screen.start_button_center
    harness.app.handle_event(_mouse(pygame.MOUSEBUTTONDOWN, center))
    harness.clock.advance(0.6)
    harness.app.update()

    menu = harness.app.top()
    assert isinstance(menu, MenuScreen)
    assert menu.selected == list(Difficulty).index(Difficulty.NORMAL)
    harness.app.render()

    # Releasing after the menu opened must not also start a round.
    harness.app.handle_event(_mouse(pygame.MOUSEBUTTONUP, center))
    assert harness.game.phase is Phase.AWAITING_START

    harness.app.handle_event(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_DOWN, "unicode": ""}))
    harness.app.handle_event(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_RETURN, "unicode": ""}))

    assert harness.game.difficulty is Difficulty.SLOW
    assert harness.app.top() is harness.screen


def test_menu_cancel_keeps_difficulty(harness: Harness) -> None:
    harness.app.handle_event(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_d, "unicode": "d"}))
    assert isinstance(harness.app.top(), MenuScreen)

    harness.app.handle_event(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_ESCAPE, "unicode": ""}))
    assert harness.app.top() is harness.screen
    assert harness.game.difficulty is Difficulty.NORMAL


def test_clicking_tiles_in_order_reaches_results_and_reset_restarts(harness: Harness) -> None:
    game = harness.game
    harness.app.handle_event(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_RETURN, "unicode": ""}))
    harness.clock.advance(2.0)
    harness.app.update()
    assert game.phase is Phase.RECALL
    harness.app.render()

    for n in range(10):
        tile = next(t for t in game.tiles if t.number == n)
        harness.clock.advance(0.2)
        harness.app.handle_event(_mouse(pygame.MOUSEBUTTONDOWN, (tile.position.x, tile.position.y)))
        harness.app.handle_event(_mouse(pygame.MOUSEBUTTONUP, (tile.position.x, tile.position.y)))

    assert game.phase is Phase.FINISHED
    harness.app.render()

    harness.app.handle_event(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_RETURN, "unicode": ""}))
    assert game.phase is Phase.REVEALING
    assert game.session.round_id == 2


def _finger(kind: int, surface_size: tuple[int, int], pos: tuple[float, float]) -> pygame.event.Event:
    w, h = surface_size
    return pygame.event.Event(
        kind,
        {"touch_id": 0, "finger_id": 0, "x": pos[0] / w, "y": pos[1] / h, "dx": 0.0, "dy": 0.0, "pressure": 1.0},
    )


def test_finger_taps_drive_the_round_and_mirrored_mouse_events_are_ignored(harness: Harness) -> None:
    game = harness.game
    size = harness.app.surface.get_size()

    center = harness.screen.start_button_center
    harness.app.handle_event(_finger(pygame.FINGERDOWN, size, center))
    harness.clock.advance(0.1)
    harness.app.handle_event(_finger(pygame.FINGERUP, size, center))
    assert game.phase is Phase.REVEALING

    harness.clock.advance(2.0)
    harness.app.update()
    assert game.phase is Phase.RECALL

    zero = next(t for t in game.tiles if t.number == 0)
    harness.app.handle_event(_finger(pygame.FINGERDOWN, size, (zero.position.x, zero.position.y)))
    harness.app.handle_event(_finger(pygame.FINGERUP, size, (zero.position.x, zero.position.y)))
    assert game.session.expected_number == 1

    # SDL's synthetic mouse copy of a touch must not count as a second tap.
    one = next(t for t in game.tiles if t.number == 1)
    before = (game.session, game.tiles)
    harness.app.handle_event(
        pygame.event.Event(
            pygame.MOUSEBUTTONDOWN,
            {"button": 1, "pos": (int(one.position.x), int(one.position.y)), "touch": True},
        )
    )
    assert (game.session, game.tiles) == before
    assert game.session.expected_number == 1
