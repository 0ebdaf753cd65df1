"""Smoke tests for the pygame UI.

These tests verify that the game loop can initialise and execute a handful
of frames without crashing when the SDL dummy video driver is used.
"""

from __future__ import annotations

import os

# Use the dummy drivers before importing pygame or the application
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")


def test_app_runs_headless() -> None:
    """Ensure the application can start and run a few frames headlessly."""
    from tap_recall.app import run

    exit_code = run(max_frames=3)
    assert exit_code == 0


def test_ui_smoke_pick_difficulty_start_and_tap() -> None:
    import pygame

    from tap_recall.app import run
    from tap_recall.settings import Difficulty

    def inject(frame: int) -> None:
        # Difficulty menu -> move up to FAST -> select -> start -> tap around.
        if frame == 1:
            pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_d, "unicode": "d"}))
        elif frame == 2:
            pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_UP, "unicode": ""}))
        elif frame == 3:
            pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_RETURN, "unicode": ""}))
        elif frame == 4:
            pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_RETURN, "unicode": ""}))
        elif frame > 4:
            pos = (40 + (frame * 37) % 880, 60 + (frame * 53) % 420)
            pygame.event.post(pygame.event.Event(pygame.MOUSEBUTTONDOWN, {"button": 1, "pos": pos}))

    assert run(max_frames=40, event_injector=inject, difficulty=Difficulty.NORMAL) == 0
