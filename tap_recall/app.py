"""Pygame UI shell for Tap Recall.

A single game screen: tap the white button to scatter ten numbers, memorise
them, then tap the hidden tiles in ascending order. Long-press the button (or
press D) to choose how long the numbers stay visible.

Deterministic timing/RNG/state lives in tap_recall.game; this module only
draws snapshots and turns mouse/touch/keyboard input into game calls.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import pygame

from .board import Point
from .clock import Clock, RealClock
from .feedback import FeedbackDispatcher, PygameFeedback
from .game import GameSnapshot, Phase, RecallGame, TileState
from .results import format_elapsed, result_lines
from .settings import Difficulty, GameConfig, difficulty_from_env

logger = logging.getLogger(__name__)


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def update(self) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


@dataclass(frozen=True, slots=True)
class MenuItem:
    label: str
    action: Callable[[], None]


WINDOW_SIZE = (960, 540)
TARGET_FPS = 60

BG = (0, 0, 0)
TILE_IDLE = (255, 255, 255)
TILE_WRONG = (220, 30, 30)
TEXT_MAIN = (255, 255, 255)
TEXT_MUTED = (150, 150, 160)
RESET_BG = (200, 30, 30)


class App:
    def __init__(self, surface: pygame.Surface) -> None:
        self._surface = surface
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def surface(self) -> pygame.Surface:
        return self._surface

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # Never pop the last/root screen; root handles its own quit/back behavior.
        if len(self._screens) > 1:
            self._screens.pop()

    def top(self) -> Screen | None:
        return self._screens[-1] if self._screens else None

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if event.type == pygame.VIDEORESIZE:
            self._surface = pygame.display.get_surface() or self._surface
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def update(self) -> None:
        # The game keeps ticking underneath overlays so timers stay honest.
        for screen in self._screens:
            screen.update()

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


class MenuScreen:
    """Modal list menu; keyboard, joystick hat and mouse/touch selection."""

    def __init__(
        self,
        app: App,
        title: str,
        items: list[MenuItem],
        *,
        selected: int = 0,
        backdrop: Screen | None = None,
    ) -> None:
        self._app = app
        self._title = title
        self._items = items
        self._selected = selected % len(items) if items else 0
        self._backdrop = backdrop
        self._title_font = pygame.font.Font(None, 42)
        self._item_font = pygame.font.Font(None, 32)
        self._row_hitboxes: list[pygame.Rect] = []

    @property
    def selected(self) -> int:
        return self._selected

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            if event.key in (pygame.K_UP, pygame.K_w):
                self._move(-1)
            elif event.key in (pygame.K_DOWN, pygame.K_s):
                self._move(1)
            elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
                self._activate()
            elif event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
                self._app.pop()
            return

        if event.type == pygame.JOYHATMOTION:
            _, y = event.value
            if y == 1:
                self._move(-1)
            elif y == -1:
                self._move(1)
            return

        if event.type == pygame.MOUSEBUTTONDOWN and getattr(event, "button", 0) == 1:
            pos = getattr(event, "pos", None)
            if pos is None:
                return
            for idx, rect in enumerate(self._row_hitboxes):
                if rect.collidepoint(pos):
                    self._selected = idx
                    self._activate()
                    return

    def update(self) -> None:
        return

    def _move(self, delta: int) -> None:
        if not self._items:
            return
        self._selected = (self._selected + delta) % len(self._items)

    def _activate(self) -> None:
        if not self._items:
            return
        self._items[self._selected].action()

    def render(self, surface: pygame.Surface) -> None:
        if self._backdrop is not None:
            self._backdrop.render(surface)
        w, h = surface.get_size()
        shade = pygame.Surface((w, h), pygame.SRCALPHA)
        shade.fill((0, 0, 0, 190))
        surface.blit(shade, (0, 0))

        row_h = 48
        gap = 8
        panel_w = min(w - 40, 420)
        panel_h = 70 + len(self._items) * (row_h + gap)
        panel = pygame.Rect((w - panel_w) // 2, h - panel_h - 20, panel_w, panel_h)
        pygame.draw.rect(surface, (28, 28, 34), panel, border_radius=12)

        title = self._title_font.render(self._title, True, TEXT_MAIN)
        surface.blit(title, title.get_rect(midtop=(panel.centerx, panel.y + 16)))

        self._row_hitboxes = []
        y = panel.y + 62
        for idx, item in enumerate(self._items):
            row = pygame.Rect(panel.x + 12, y, panel.w - 24, row_h)
            selected = idx == self._selected
            pygame.draw.rect(surface, (235, 235, 245) if selected else (48, 48, 58), row, border_radius=8)
            color = (14, 14, 20) if selected else TEXT_MAIN
            text = self._item_font.render(item.label, True, color)
            surface.blit(text, text.get_rect(center=row.center))
            self._row_hitboxes.append(row)
            y += row_h + gap


class GameScreen:
    def __init__(
        self,
        app: App,
        *,
        game: RecallGame,
        clock: Clock,
        long_press_s: float | None = None,
    ) -> None:
        self._app = app
        self._game = game
        self._clock = clock
        self._long_press_s = game.config.long_press_s if long_press_s is None else float(long_press_s)

        self._number_font = pygame.font.Font(None, 72)
        self._result_font = pygame.font.Font(None, 64)
        self._small_font = pygame.font.Font(None, 26)

        # Start-button press tracking for long-press detection.
        self._press_started_at_s: float | None = None
        self._press_consumed = False

        self._start_button_radius = 30
        self._reset_hitbox: pygame.Rect | None = None

    @property
    def game(self) -> RecallGame:
        return self._game

    @property
    def start_button_center(self) -> tuple[int, int]:
        _, h = self._app.surface.get_size()
        r = self._start_button_radius
        return r + 18, h - r - 18

    def open_difficulty_menu(self) -> None:
        snap = self._game.snapshot()
        if snap.phase not in (Phase.AWAITING_START, Phase.FINISHED):
            return

        def choose(preset: Difficulty) -> Callable[[], None]:
            def _apply() -> None:
                self._game.set_difficulty(preset)
                self._app.pop()

            return _apply

        items = [MenuItem(p.label, choose(p)) for p in Difficulty]
        items.append(MenuItem("Cancel", self._app.pop))
        current = list(Difficulty).index(self._game.difficulty)
        self._app.push(MenuScreen(self._app, "Choose difficulty", items, selected=current, backdrop=self))

    def handle_event(self, event: pygame.event.Event) -> None:
        snap = self._game.snapshot()

        if event.type == pygame.KEYDOWN:
            self._handle_key(event.key, snap)
            return

        if event.type == pygame.VIDEORESIZE:
            w, h = getattr(event, "size", WINDOW_SIZE)
            self._game.resize(max(1, int(w)), max(1, int(h)))
            return

        if event.type == pygame.FINGERDOWN:
            self._pointer_down(self._finger_pos(event), snap)
            return
        if event.type == pygame.FINGERUP:
            self._pointer_up(self._finger_pos(event), snap)
            return

        # SDL mirrors touches as mouse events; the FINGER events above already handled them.
        if getattr(event, "button", 0) != 1 or getattr(event, "touch", False):
            return
        pos = getattr(event, "pos", None)
        if pos is None:
            return
        if event.type == pygame.MOUSEBUTTONDOWN:
            self._pointer_down(pos, snap)
        elif event.type == pygame.MOUSEBUTTONUP:
            self._pointer_up(pos, snap)

    def _handle_key(self, key: int, snap: GameSnapshot) -> None:
        if key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            if snap.show_start_button or snap.show_result:
                self._game.start_game()
        elif key == pygame.K_d:
            self.open_difficulty_menu()
        elif key == pygame.K_ESCAPE:
            self._app.quit()

    def _finger_pos(self, event: pygame.event.Event) -> tuple[int, int]:
        w, h = self._app.surface.get_size()
        return int(float(event.x) * w), int(float(event.y) * h)

    def _pointer_down(self, pos: tuple[int, int], snap: GameSnapshot) -> None:
        if snap.show_result:
            if self._reset_hitbox is not None and self._reset_hitbox.collidepoint(pos):
                self._game.start_game()
            return
        if snap.show_start_button:
            if self._on_start_button(pos):
                self._press_started_at_s = self._clock.now()
                self._press_consumed = False
            return
        self._game.handle_tap_at(pos)

    def _pointer_up(self, pos: tuple[int, int], snap: GameSnapshot) -> None:
        started = self._press_started_at_s
        self._press_started_at_s = None
        if started is None or self._press_consumed or not snap.show_start_button:
            return
        if not self._on_start_button(pos):
            return
        if self._clock.now() - started >= self._long_press_s:
            self.open_difficulty_menu()
        else:
            self._game.start_game()

    def _on_start_button(self, pos: tuple[int, int]) -> bool:
        cx, cy = self.start_button_center
        return Point(cx, cy).distance_to(Point(pos[0], pos[1])) <= self._start_button_radius

    def update(self) -> None:
        self._game.update()
        started = self._press_started_at_s
        if started is not None and not self._press_consumed:
            if self._clock.now() - started >= self._long_press_s:
                self._press_consumed = True
                self._press_started_at_s = None
                self.open_difficulty_menu()

    def render(self, surface: pygame.Surface) -> None:
        surface.fill(BG)
        snap = self._game.snapshot()

        if snap.show_result:
            self._render_result(surface, snap)
            return

        if snap.show_start_button:
            pygame.draw.circle(surface, TILE_IDLE, self.start_button_center, self._start_button_radius)
            hint = self._small_font.render(
                f"Tap to start  |  hold or D: difficulty ({snap.difficulty.label})",
                True,
                TEXT_MUTED,
            )
            surface.blit(
                hint,
                hint.get_rect(midleft=(self.start_button_center[0] + 44, self.start_button_center[1])),
            )
            return

        self._reset_hitbox = None
        size = int(self._game.config.tile_size)
        for tile in snap.tiles:
            center = (int(tile.position.x), int(tile.position.y))
            if tile.label_visible:
                text = self._number_font.render(str(tile.number), True, TEXT_MAIN)
                surface.blit(text, text.get_rect(center=center))
            if tile.covered:
                rect = pygame.Rect(0, 0, size, size)
                rect.center = center
                color = TILE_WRONG if tile.state is TileState.WRONG else TILE_IDLE
                pygame.draw.rect(surface, color, rect)

    def _render_result(self, surface: pygame.Surface, snap: GameSnapshot) -> None:
        w, h = surface.get_size()
        result = self._game.result()
        lines = result_lines(result) if result is not None else [f"Time: {format_elapsed(snap.elapsed_s)}"]

        y = h // 2 - 90
        head = self._result_font.render(lines[0], True, TEXT_MAIN)
        surface.blit(head, head.get_rect(center=(w // 2, y)))
        y += 52
        for line in lines[1:]:
            text = self._small_font.render(line, True, TEXT_MUTED)
            surface.blit(text, text.get_rect(center=(w // 2, y)))
            y += 30

        label = self._result_font.render("Reset", True, TEXT_MAIN)
        button = label.get_rect(center=(w // 2, y + 50)).inflate(40, 20)
        pygame.draw.rect(surface, RESET_BG, button, border_radius=10)
        surface.blit(label, label.get_rect(center=button.center))
        self._reset_hitbox = button


def _new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def _init_joysticks() -> None:
    # Joysticks double as the haptic device; safe on platforms without them.
    try:
        count = pygame.joystick.get_count()
    except Exception as e:
        logger.debug("Joystick subsystem unavailable: %s", e)
        return

    for i in range(count):
        try:
            pygame.joystick.Joystick(i).init()
        except Exception as e:
            logger.debug("Joystick %d init failed: %s", i, e)


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    difficulty: Difficulty | None = None,
    config: GameConfig | None = None,
) -> int:
    pygame.init()
    _init_joysticks()

    pygame.display.set_caption("Tap Recall")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    frame_clock = pygame.time.Clock()

    app = App(surface=surface)
    real_clock = RealClock()

    feedback = FeedbackDispatcher([PygameFeedback()])
    w, h = surface.get_size()
    game = RecallGame(
        clock=real_clock,
        seed=_new_seed(),
        width=w,
        height=h,
        feedback=feedback,
        difficulty=difficulty or difficulty_from_env(),
        config=config,
    )
    app.push(GameScreen(app, game=game, clock=real_clock))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.update()
            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            frame_clock.tick(TARGET_FPS)
    finally:
        pygame.quit()

    return 0
