"""chip8e - a CHIP-8 interpreter."""

__version__ = "0.1.0"

from .cpu import Chip8CPU
from .decoder import Instruction, Op, decode, fields
from .errors import (
    Chip8Error, ConfigurationError, DeviceError, ExecutionError,
    MemoryAccessError, ProgramCounterError, RomError, RomSizeError,
    StackOverflowError, StackUnderflowError, StartupError, UnknownOpcodeError,
)
from .rng import Xorshift32
from .state import CPUState

__all__ = [
    "Chip8CPU", "CPUState", "Instruction", "Op", "Xorshift32", "decode", "fields",
    "Chip8Error", "ConfigurationError", "DeviceError", "ExecutionError",
    "MemoryAccessError", "ProgramCounterError", "RomError", "RomSizeError",
    "StackOverflowError", "StackUnderflowError", "StartupError", "UnknownOpcodeError",
]
