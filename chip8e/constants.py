"""Machine constants shared by the interpreter core and its collaborators."""

# ═══════════════════════════════════════════════════════════════════════════════
# MACHINE GEOMETRY
# ═══════════════════════════════════════════════════════════════════════════════

DISPLAY_W, DISPLAY_H = 64, 32           # CHIP-8 native resolution
DISPLAY_SIZE = DISPLAY_W * DISPLAY_H    # 2048 pixels

MEMORY_SIZE = 4096                      # 4KB RAM
PROGRAM_START = 0x200                   # Programs load at 0x200
MAX_ROM_SIZE = MEMORY_SIZE - PROGRAM_START
PC_MAX = MEMORY_SIZE - 2                # last address a full opcode fits at
STACK_SIZE = 15                         # return addresses
NUM_REGISTERS = 16                      # V0-VF
NUM_KEYS = 16                           # 16 hex keys
VF = 0xF                                # flag register

FONT_START = 0x000
FONT_GLYPH_SIZE = 5                     # bytes per hex digit glyph

# CHIP-8 Font (4x5 pixels, stored as 5 bytes each)
FONTSET = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
]

# ═══════════════════════════════════════════════════════════════════════════════
# HOST DEFAULTS
# ═══════════════════════════════════════════════════════════════════════════════

DEFAULT_FORE_COLOR = 0xFFFFFF
DEFAULT_BACK_COLOR = 0xFF000000         # ARGB, alpha is ignored
DEFAULT_FRAME_AFTER = 1                 # cycles between presents
DEFAULT_COPY_DELAY = 5                  # ms to wait after a present
DEFAULT_WINDOW_W = 900
DEFAULT_WINDOW_H = 500

BEEP_MS = 80
BEEP_FREQUENCY = 440
AUDIO_SAMPLE_RATE = 44100
