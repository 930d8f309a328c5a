"""
Beep playback.

The interpreter only ever calls `beep()`; playback happens on a worker
thread owned by `BeepPlayer` and fed through a queue, so the cycle loop
never waits on the audio device.
"""

import logging
import queue
import threading
from typing import Callable, Optional

import numpy as np
import pygame

from .constants import AUDIO_SAMPLE_RATE, BEEP_FREQUENCY, BEEP_MS
from .errors import DeviceError

logger = logging.getLogger(__name__)

_STOP = object()


def make_beep_samples(duration_ms: int = BEEP_MS, frequency: int = BEEP_FREQUENCY,
                      sample_rate: int = AUDIO_SAMPLE_RATE, channels: int = 1,
                      volume: float = 0.25) -> np.ndarray:
    """Square wave as signed 16-bit samples, shaped for pygame.sndarray"""
    count = int(sample_rate * duration_ms / 1000)
    t = np.arange(count) / sample_rate
    wave = np.where(np.sin(2 * np.pi * frequency * t) >= 0, 1.0, -1.0)
    samples = (wave * volume * 32767).astype(np.int16)
    if channels > 1:
        samples = np.repeat(samples[:, None], channels, axis=1)
    return np.ascontiguousarray(samples)


class NullAudio:
    """Audio sink that discards every beep"""

    def start(self):
        pass

    def beep(self):
        pass

    def close(self):
        pass


class BeepPlayer:
    """Owns the mixer and a single playback worker"""

    def __init__(self, beep_path: Optional[str] = None, duration_ms: int = BEEP_MS,
                 play: Optional[Callable[[], None]] = None):
        self.beep_path = beep_path
        self.duration_ms = duration_ms
        self._play = play
        self._sound = None
        self._queue: "queue.Queue" = queue.Queue()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        """Open the audio device (unless a player was injected) and start the worker"""
        if self._play is None:
            self._sound = self._load_sound()
            self._play = self._play_sound

        self._thread = threading.Thread(target=self._worker, name="chip8e-audio", daemon=True)
        self._thread.start()

    def _load_sound(self) -> "pygame.mixer.Sound":
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init(frequency=AUDIO_SAMPLE_RATE, size=-16, channels=1)
            if self.beep_path:
                sound = pygame.mixer.Sound(self.beep_path)
            else:
                channels = pygame.mixer.get_init()[2]
                sound = pygame.sndarray.make_sound(
                    make_beep_samples(self.duration_ms, channels=channels))
        except (pygame.error, FileNotFoundError) as e:
            raise DeviceError(f"Audio initialization failed, error: {e}") from e
        logger.info("Audio device ready (%s)", self.beep_path or "synthesized beep")
        return sound

    def _play_sound(self):
        self._sound.play()
        pygame.time.wait(self.duration_ms)

    def beep(self):
        """Request a beep; never blocks"""
        self._queue.put_nowait(True)

    def _worker(self):
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            try:
                self._play()
            except pygame.error as e:
                logger.warning("Beep playback failed: %s", e)

    def close(self, timeout: float = 1.0):
        if self._thread is None:
            return
        self._queue.put(_STOP)
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Audio worker still playing after %.1fs, leaving the mixer open", timeout)
            return
        self._thread = None
        if self._sound is not None:
            pygame.mixer.quit()
            self._sound = None
