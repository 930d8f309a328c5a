"""Start-up configuration for the emulator host."""

from dataclasses import dataclass
from typing import Optional

from .constants import (
    DEFAULT_BACK_COLOR, DEFAULT_COPY_DELAY, DEFAULT_FORE_COLOR,
    DEFAULT_FRAME_AFTER, DEFAULT_WINDOW_H, DEFAULT_WINDOW_W,
)
from .errors import ConfigurationError


def parse_int(value: str) -> int:
    """Parse an integer with an optional base prefix (0x.., 0o.., 0b..)"""
    try:
        return int(value, 0)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Provided value isn't a number: {value!r}") from None


@dataclass
class EmulatorConfig:
    rom_path: Optional[str] = None
    fore_color: int = DEFAULT_FORE_COLOR
    back_color: int = DEFAULT_BACK_COLOR
    frame_after: int = DEFAULT_FRAME_AFTER
    copy_delay: int = DEFAULT_COPY_DELAY
    window_width: int = DEFAULT_WINDOW_W
    window_height: int = DEFAULT_WINDOW_H
    fallback_render: bool = False
    beep_path: Optional[str] = None
    seed: Optional[int] = None
    blocking_key_wait: bool = False
    mute: bool = False
    debug: bool = False

    def validate(self) -> "EmulatorConfig":
        if not self.rom_path:
            raise ConfigurationError("No ROM file was specified")
        if self.window_width <= 0 or self.window_height <= 0:
            raise ConfigurationError(
                f"Window size must be positive, got {self.window_width}x{self.window_height}")
        if self.frame_after < 0:
            raise ConfigurationError(f"--frame-after must not be negative, got {self.frame_after}")
        if self.copy_delay < 0:
            raise ConfigurationError(f"--copy-delay must not be negative, got {self.copy_delay}")
        for name in ("fore_color", "back_color"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFFFFFFFF:
                raise ConfigurationError(f"{name} must fit in 32 bits, got {value:#x}")
        return self
