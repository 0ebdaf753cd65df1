"""Audio and haptic feedback for tap events.

The game core only emits ``FeedbackCue`` values. Everything that touches the
mixer, sound assets or joysticks lives here and never raises into the game:
failures are logged and dropped.
"""

from __future__ import annotations

import logging
import math
from array import array
from enum import StrEnum
from pathlib import Path
from typing import Protocol

import pygame

logger = logging.getLogger(__name__)


class FeedbackCue(StrEnum):
    CORRECT_TAP = "correct-tap"
    WRONG_TAP = "wrong-tap"
    VICTORY = "victory"
    HAPTIC = "haptic"


class FeedbackSink(Protocol):
    def emit(self, cue: FeedbackCue) -> None: ...


class FeedbackDispatcher:
    """Fans cues out to sinks; a failing sink never blocks gameplay."""

    def __init__(self, sinks: list[FeedbackSink] | None = None) -> None:
        self._sinks: list[FeedbackSink] = list(sinks or [])

    def add(self, sink: FeedbackSink) -> None:
        self._sinks.append(sink)

    def emit(self, cue: FeedbackCue) -> None:
        for sink in self._sinks:
            try:
                sink.emit(cue)
            except Exception:
                logger.warning("Feedback sink %r failed on %s", sink, cue.value, exc_info=True)


class PygameFeedback:
    """Plays cue sounds through pygame.mixer and rumbles joysticks for haptics.

    Sound files are looked up as ``<assets>/<name>.{mp3,ogg,wav}``. A missing
    file falls back to a generated tone; a missing mixer disables audio.
    """

    _sample_rate = 22050
    _amp = 32767
    _asset_names: dict[FeedbackCue, str] = {
        FeedbackCue.CORRECT_TAP: "press2",
        FeedbackCue.WRONG_TAP: "wrong",
        FeedbackCue.VICTORY: "victory",
    }
    _fallback_tones: dict[FeedbackCue, tuple[float, float]] = {
        FeedbackCue.CORRECT_TAP: (880.0, 0.08),
        FeedbackCue.WRONG_TAP: (220.0, 0.25),
        FeedbackCue.VICTORY: (660.0, 0.45),
    }
    _extensions = (".mp3", ".ogg", ".wav")

    haptic_intensity = 0.8
    haptic_duration_ms = 300

    def __init__(self, assets_dir: Path | None = None) -> None:
        self._assets_dir = assets_dir or (Path(__file__).resolve().parents[1] / "assets" / "audio")
        self._sounds: dict[FeedbackCue, pygame.mixer.Sound] = {}
        self._available = False

        try:
            if pygame.mixer.get_init() is None:
                pygame.mixer.init(frequency=self._sample_rate, size=-16, channels=1, buffer=512)
            for cue in self._asset_names:
                self._sounds[cue] = self._load_sound(cue)
            self._available = True
        except Exception as e:
            logger.warning("Audio unavailable, feedback sounds disabled: %s", e)

    @property
    def available(self) -> bool:
        return self._available

    def emit(self, cue: FeedbackCue) -> None:
        if cue is FeedbackCue.HAPTIC:
            self._rumble()
            return
        if not self._available:
            return
        sound = self._sounds.get(cue)
        if sound is None:
            return
        try:
            sound.play()
        except Exception as e:
            logger.warning("Failed to play %s: %s", cue.value, e)

    def _load_sound(self, cue: FeedbackCue) -> pygame.mixer.Sound:
        name = self._asset_names[cue]
        for ext in self._extensions:
            path = self._assets_dir / f"{name}{ext}"
            if not path.exists():
                continue
            try:
                return pygame.mixer.Sound(str(path))
            except Exception as e:
                logger.warning("Could not load %s: %s", path, e)
        logger.debug("No asset for %s in %s; using generated tone", name, self._assets_dir)
        freq, duration_s = self._fallback_tones[cue]
        return self._build_tone_sound(freq, duration_s, gain=0.35)

    def _build_tone_sound(self, freq_hz: float, duration_s: float, *, gain: float) -> pygame.mixer.Sound:
        n = max(1, int(self._sample_rate * duration_s))
        fade = max(1, n // 10)
        samples = array("h")
        for i in range(n):
            env = min(1.0, i / fade, (n - i) / fade)
            value = math.sin(2.0 * math.pi * freq_hz * (i / self._sample_rate))
            samples.append(int(self._amp * gain * env * value))
        return pygame.mixer.Sound(buffer=samples.tobytes())

    def _rumble(self) -> None:
        try:
            count = pygame.joystick.get_count()
        except Exception as e:
            logger.debug("Haptics unavailable: %s", e)
            return
        if count == 0:
            logger.debug("No joystick connected; skipping haptic cue")
            return
        for i in range(count):
            try:
                pygame.joystick.Joystick(i).rumble(0.0, self.haptic_intensity, self.haptic_duration_ms)
            except Exception as e:
                logger.debug("Rumble failed on joystick %d: %s", i, e)
