"""xorshift32 pseudo-random generator used by the RND instruction."""

import time
from typing import Optional

MASK32 = 0xFFFFFFFF

# xorshift32 maps 0 to 0 forever, so a zero seed is swapped for this value
ZERO_SEED_REPLACEMENT = 0x2545F491


def xorshift32(x: int) -> int:
    """Advance a 32-bit xorshift state by one step"""
    x ^= (x << 13) & MASK32
    x ^= x >> 17
    x ^= (x << 5) & MASK32
    return x & MASK32


class Xorshift32:
    """Persistent xorshift32 stream, seeded once"""

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = time.time_ns()
        self.seed = seed & MASK32 or ZERO_SEED_REPLACEMENT
        self.state = self.seed

    def next(self) -> int:
        self.state = xorshift32(self.state)
        return self.state

    def next_byte(self) -> int:
        return self.next() & 0xFF

    def __repr__(self):
        return f"Xorshift32(seed=0x{self.seed:08X}, state=0x{self.state:08X})"
