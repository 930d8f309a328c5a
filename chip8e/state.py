"""CHIP-8 machine state and program loading."""

import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np

from .constants import (
    DISPLAY_H, DISPLAY_W, FONT_START, FONTSET, MAX_ROM_SIZE, MEMORY_SIZE,
    NUM_KEYS, NUM_REGISTERS, PROGRAM_START, STACK_SIZE,
)
from .errors import RomError, RomSizeError

logger = logging.getLogger(__name__)


@dataclass
class CPUState:
    """CHIP-8 CPU state container"""
    # Memory
    memory: bytearray = field(default_factory=lambda: bytearray(MEMORY_SIZE))

    # Registers
    V: List[int] = field(default_factory=lambda: [0] * NUM_REGISTERS)  # V0-VF
    I: int = 0              # Index register (16-bit)
    PC: int = PROGRAM_START # Program counter
    SP: int = 0             # Stack pointer

    # Stack
    stack: List[int] = field(default_factory=lambda: [0] * STACK_SIZE)

    # Timers
    delay_timer: int = 0
    sound_timer: int = 0

    # Display (64x32), set by DRW/CLS and consumed by the renderer
    display: np.ndarray = field(default_factory=lambda: np.zeros((DISPLAY_H, DISPLAY_W), dtype=np.uint8))
    draw_flag: bool = False

    # Keypad state, written by the input collaborator
    keys: List[bool] = field(default_factory=lambda: [False] * NUM_KEYS)

    def __post_init__(self):
        self.memory[FONT_START:FONT_START + len(FONTSET)] = bytes(FONTSET)

    @property
    def pixels(self) -> np.ndarray:
        """Flat 2048-entry view of the framebuffer"""
        return self.display.reshape(-1)


def validate_rom(data: bytes) -> None:
    if not 0 < len(data) <= MAX_ROM_SIZE:
        raise RomSizeError(len(data))


def load_rom(state: CPUState, data: bytes) -> None:
    """Copy ROM bytes verbatim into memory at 0x200"""
    validate_rom(data)
    state.memory[PROGRAM_START:PROGRAM_START + len(data)] = data


def read_rom_file(path: str) -> bytes:
    """Read and validate a ROM image from disk"""
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise RomError(f"Failed to load ROM {path}: {e.strerror or e}", path) from e

    try:
        validate_rom(data)
    except RomSizeError as e:
        e.path = path
        raise
    logger.info("Loaded ROM %s (%d bytes)", path, len(data))
    return data
