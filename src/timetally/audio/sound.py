"""
Notification Sound

A short sine beep generated with numpy and played through sounddevice.
"""

from __future__ import annotations

import numpy as np
import structlog

logger = structlog.get_logger(__name__)


def make_tone(
    frequency: float,
    duration: float,
    sample_rate: int,
    volume: float = 0.4,
    fade: float = 0.01,
) -> np.ndarray:
    """
    Build a mono float32 sine tone with short linear fades.

    The fades keep the speaker from clicking at the start and end.
    """
    samples = max(int(duration * sample_rate), 1)
    t = np.arange(samples, dtype=np.float32) / sample_rate
    tone = np.sin(2 * np.pi * frequency * t).astype(np.float32) * volume

    fade_len = min(int(fade * sample_rate), samples // 2)
    if fade_len > 0:
        ramp = np.linspace(0.0, 1.0, fade_len, dtype=np.float32)
        tone[:fade_len] *= ramp
        tone[-fade_len:] *= ramp[::-1]
    return tone


class ToneSound:
    """Plays a beep without blocking the caller."""

    def __init__(
        self,
        frequency: float = 880.0,
        duration: float = 0.35,
        volume: float = 0.4,
        sample_rate: int = 22050,
    ):
        self.sample_rate = sample_rate
        self.tone = make_tone(frequency, duration, sample_rate, volume)
        self._available = True

    def play(self) -> None:
        if not self._available:
            return
        try:
            import sounddevice as sd

            sd.play(self.tone, samplerate=self.sample_rate, blocking=False)
            logger.debug("beep_played", samples=len(self.tone))
        except OSError as e:
            # PortAudio missing: stay quiet for the rest of the session
            self._available = False
            logger.warning("sound_unavailable", error=str(e))


class NullSound:
    """Sound output that does nothing (audio disabled)."""

    def play(self) -> None:
        logger.debug("beep_suppressed")
