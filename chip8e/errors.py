"""
chip8e Error Hierarchy
======================

Every failure the interpreter can report is fatal. The hierarchy only
separates the two classes so the front-end can word its message:

Chip8Error (base)
├── StartupError - raised before the first cycle runs
│   ├── ConfigurationError - missing or invalid option values
│   ├── RomError - ROM file cannot be read
│   │   └── RomSizeError - ROM is empty or does not fit in memory
│   └── DeviceError - audio/display initialisation failed
└── ExecutionError - machine invariant broken while running a program
    ├── UnknownOpcodeError
    ├── StackOverflowError
    ├── StackUnderflowError
    ├── ProgramCounterError
    └── MemoryAccessError
"""

from typing import Optional


class Chip8Error(Exception):
    """Base exception for all interpreter errors."""


# ═══════════════════════════════════════════════════════════════════════════════
# STARTUP
# ═══════════════════════════════════════════════════════════════════════════════

class StartupError(Chip8Error):
    """Raised while configuring the emulator or loading the program."""


class ConfigurationError(StartupError):
    pass


class RomError(StartupError):
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class RomSizeError(RomError):
    def __init__(self, size: int, path: Optional[str] = None):
        super().__init__(
            f"The ROM size is invalid ({size} bytes). "
            f"ROM size must be > 0 and <= 3584", path)
        self.size = size


class DeviceError(StartupError):
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# EXECUTION
# ═══════════════════════════════════════════════════════════════════════════════

class ExecutionError(Chip8Error):
    """
    A machine invariant was violated by the running program.

    `pc` is the address the offending instruction was fetched from and
    `opcode` the instruction word, when known.
    """

    def __init__(self, message: str, pc: Optional[int] = None, opcode: Optional[int] = None):
        super().__init__(message)
        self.pc = pc
        self.opcode = opcode

    def __str__(self):
        msg = super().__str__()
        if self.opcode is not None and self.pc is not None:
            return f"{msg} (opcode ${self.opcode:04X} at ${self.pc:03X})"
        if self.pc is not None:
            return f"{msg} (PC ${self.pc:03X})"
        return msg


class UnknownOpcodeError(ExecutionError):
    def __init__(self, opcode: int, pc: Optional[int] = None):
        super().__init__("Unimplemented opcode", pc=pc, opcode=opcode)


class StackOverflowError(ExecutionError):
    pass


class StackUnderflowError(ExecutionError):
    pass


class ProgramCounterError(ExecutionError):
    pass


class MemoryAccessError(ExecutionError):
    def __init__(self, address: int, pc: Optional[int] = None, opcode: Optional[int] = None):
        super().__init__(f"Memory access out of range at ${address:04X}", pc=pc, opcode=opcode)
        self.address = address
