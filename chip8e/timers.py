"""Delay/sound timer bookkeeping run after every instruction."""

import logging

from .state import CPUState

logger = logging.getLogger(__name__)


class TimerCoordinator:
    """
    Decrements both countdown timers once per cycle.

    When the sound timer decays from 1 to 0 the audio sink's `beep()` is
    called exactly once. Loading a new value into the sound timer re-arms
    the beep; nothing else does.
    """

    def __init__(self, audio=None):
        self.audio = audio

    def tick(self, state: CPUState) -> bool:
        """Update timers, return True if a beep was requested"""
        if state.delay_timer > 0:
            state.delay_timer -= 1

        if state.sound_timer > 0:
            state.sound_timer -= 1
            if state.sound_timer == 0:
                logger.debug("Sound timer expired, beeping")
                if self.audio is not None:
                    self.audio.beep()
                return True
        return False
