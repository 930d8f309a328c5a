"""
CHIP-8 CPU core.

`Chip8CPU.cycle()` runs one fetch-decode-execute step followed by a timer
tick. Every handler either applies its whole effect or raises an
`ExecutionError`; nothing is recovered mid-cycle.
"""

import logging
from typing import Callable, Dict, Optional

from .constants import (
    DISPLAY_SIZE, DISPLAY_W, FONT_GLYPH_SIZE, FONT_START, MEMORY_SIZE,
    NUM_KEYS, PC_MAX, PROGRAM_START, STACK_SIZE, VF,
)
from .decoder import Fields, Instruction, Op, decode
from .disasm import disassemble
from .errors import (
    ExecutionError, MemoryAccessError, ProgramCounterError,
    StackOverflowError, StackUnderflowError,
)
from .rng import Xorshift32
from .state import CPUState, load_rom
from .timers import TimerCoordinator

logger = logging.getLogger(__name__)


class Chip8CPU:
    """CHIP-8 interpreter bound to a single machine state"""

    def __init__(self, audio=None, rng: Optional[Xorshift32] = None, seed: Optional[int] = None,
                 blocking_key_wait: bool = False):
        self.state = CPUState()
        self.rng = rng if rng is not None else Xorshift32(seed)
        self.timers = TimerCoordinator(audio)
        self.cycles = 0
        self.quirks = {
            'blocking_key_wait': blocking_key_wait,   # FX0A re-runs until a key is down
        }
        self.handlers: Dict[Op, Callable[[Fields], None]] = {
            Op.SYS: self._sys,
            Op.CLS: self._clear_screen,
            Op.RET: self._return,
            Op.JP: self._jump,
            Op.CALL: self._call,
            Op.SE_BYTE: self._skip_if_eq,
            Op.SNE_BYTE: self._skip_if_not_eq,
            Op.SE_REG: self._skip_if_eq_regs,
            Op.LD_BYTE: self._set_vx,
            Op.ADD_BYTE: self._add_to_vx,
            Op.LD_REG: self._set_vx_to_vy,
            Op.OR: self._or,
            Op.AND: self._and,
            Op.XOR: self._xor,
            Op.ADD_REG: self._add_vx_vy,
            Op.SUB: self._sub_vx_vy,
            Op.SHR: self._shr,
            Op.SUBN: self._subn_vx_vy,
            Op.SHL: self._shl,
            Op.SNE_REG: self._skip_if_not_eq_regs,
            Op.LD_I: self._set_idx,
            Op.JP_V0: self._jump_plus_v0,
            Op.RND: self._random_byte_and,
            Op.DRW: self._draw_sprite,
            Op.SKP: self._skip_if_pressed,
            Op.SKNP: self._skip_if_not_pressed,
            Op.LD_VX_DT: self._set_vx_dt,
            Op.LD_VX_K: self._wait_keypress,
            Op.LD_DT_VX: self._set_dt_vx,
            Op.LD_ST_VX: self._set_st_vx,
            Op.ADD_I: self._add_to_idx,
            Op.LD_F: self._select_char,
            Op.LD_B: self._bcd_repr,
            Op.LD_MEM_VX: self._store_vregs,
            Op.LD_VX_MEM: self._load_vregs,
        }
        self._check_handlers()

    def _check_handlers(self):
        missing = set(Op) - set(self.handlers)
        if missing:
            raise RuntimeError(f"no handler for {sorted(op.name for op in missing)}")

    def __str__(self):
        s = self.state
        return "\n".join([
            f"PC: ${s.PC:03X}  I: ${s.I:03X}  SP: {s.SP}",
            f"DT: {s.delay_timer:02X}  ST: {s.sound_timer:02X}  DRAW: {s.draw_flag}",
            "V0-V7: " + " ".join(f"{v:02X}" for v in s.V[:8]),
            "V8-VF: " + " ".join(f"{v:02X}" for v in s.V[8:]),
            "STACK: " + " ".join(f"{a:03X}" for a in s.stack[:s.SP]),
        ])

    # ─── Lifecycle ───

    def reset(self):
        """Reset CPU to initial state, keeping the RNG stream"""
        self.state = CPUState()
        self.cycles = 0

    def load_rom(self, data: bytes):
        """Reset and load ROM data at 0x200"""
        self.reset()
        load_rom(self.state, data)

    def key_down(self, key: int):
        if 0 <= key < NUM_KEYS:
            self.state.keys[key] = True

    def key_up(self, key: int):
        if 0 <= key < NUM_KEYS:
            self.state.keys[key] = False

    # ─── Fetch / execute ───

    def fetch(self) -> int:
        """Fetch next 16-bit opcode and advance PC"""
        pc = self.state.PC
        if not PROGRAM_START <= pc <= PC_MAX:
            raise ProgramCounterError("Program counter out of range", pc=pc)
        self.state.PC = pc + 2
        return (self.state.memory[pc] << 8) | self.state.memory[pc + 1]

    def execute(self, instruction: Instruction):
        self.handlers[instruction.op](instruction.fields)

    def step(self, opcode: int):
        """Decode and execute one opcode against the current state"""
        instruction = decode(opcode)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("opcode: %#06x, instruction: %s", opcode, disassemble(opcode))
        self.execute(instruction)

    def cycle(self):
        """Execute one CPU cycle: fetch, decode, execute, tick timers"""
        pc = self.state.PC
        opcode = None
        try:
            opcode = self.fetch()
            self.step(opcode)
        except ExecutionError as e:
            if e.pc is None:
                e.pc = pc
            if e.opcode is None:
                e.opcode = opcode
            raise
        self.timers.tick(self.state)
        self.cycles += 1

    # ─── Helpers ───

    def _skip(self):
        self.state.PC += 2

    def _check_range(self, address: int, length: int):
        if address < 0 or address + length > MEMORY_SIZE:
            raise MemoryAccessError(address)

    # ─── 0nnn ───

    def _sys(self, f: Fields):
        """SYS addr: machine code routines are ignored"""

    def _clear_screen(self, f: Fields):
        self.state.display.fill(0)
        self.state.draw_flag = True

    def _return(self, f: Fields):
        s = self.state
        if s.SP == 0:
            raise StackUnderflowError("Return with an empty stack")
        s.SP -= 1
        s.PC = s.stack[s.SP]

    # ─── Flow control ───

    def _jump(self, f: Fields):
        self.state.PC = f.nnn

    def _call(self, f: Fields):
        s = self.state
        if s.SP >= STACK_SIZE:
            raise StackOverflowError(f"Call stack exceeds {STACK_SIZE} return addresses")
        s.stack[s.SP] = s.PC
        s.SP += 1
        s.PC = f.nnn

    def _jump_plus_v0(self, f: Fields):
        self.state.PC = f.nnn + self.state.V[0]

    def _skip_if_eq(self, f: Fields):
        if self.state.V[f.x] == f.kk:
            self._skip()

    def _skip_if_not_eq(self, f: Fields):
        if self.state.V[f.x] != f.kk:
            self._skip()

    def _skip_if_eq_regs(self, f: Fields):
        if self.state.V[f.x] == self.state.V[f.y]:
            self._skip()

    def _skip_if_not_eq_regs(self, f: Fields):
        if self.state.V[f.x] != self.state.V[f.y]:
            self._skip()

    # ─── Register / immediate ───

    def _set_vx(self, f: Fields):
        self.state.V[f.x] = f.kk

    def _add_to_vx(self, f: Fields):
        """ADD Vx, byte: wraps, VF untouched"""
        V = self.state.V
        V[f.x] = (V[f.x] + f.kk) & 0xFF

    def _set_vx_to_vy(self, f: Fields):
        self.state.V[f.x] = self.state.V[f.y]

    def _or(self, f: Fields):
        self.state.V[f.x] |= self.state.V[f.y]

    def _and(self, f: Fields):
        self.state.V[f.x] &= self.state.V[f.y]

    def _xor(self, f: Fields):
        self.state.V[f.x] ^= self.state.V[f.y]

    # ─── Arithmetic with flags ───
    # Result and flag come from the operands before the write; VF is
    # written last so it holds the flag even when x is F.

    def _add_vx_vy(self, f: Fields):
        V = self.state.V
        result = V[f.x] + V[f.y]
        V[f.x] = result & 0xFF
        V[VF] = 1 if result > 0xFF else 0

    def _sub_vx_vy(self, f: Fields):
        V = self.state.V
        vx, vy = V[f.x], V[f.y]
        V[f.x] = (vx - vy) & 0xFF
        V[VF] = 1 if vx > vy else 0

    def _subn_vx_vy(self, f: Fields):
        V = self.state.V
        vx, vy = V[f.x], V[f.y]
        V[f.x] = (vy - vx) & 0xFF
        V[VF] = 1 if vy > vx else 0

    def _shr(self, f: Fields):
        V = self.state.V
        value = V[f.x]
        V[f.x] = value >> 1
        V[VF] = value & 0x1

    def _shl(self, f: Fields):
        V = self.state.V
        value = V[f.x]
        V[f.x] = (value << 1) & 0xFF
        V[VF] = value >> 7

    # ─── Index / memory ───

    def _set_idx(self, f: Fields):
        self.state.I = f.nnn

    def _add_to_idx(self, f: Fields):
        s = self.state
        s.I = (s.I + s.V[f.x]) & 0xFFFF

    def _select_char(self, f: Fields):
        """LD F, Vx: point I at the font glyph for Vx"""
        self.state.I = FONT_START + self.state.V[f.x] * FONT_GLYPH_SIZE

    def _bcd_repr(self, f: Fields):
        """LD B, Vx: hundreds at I, tens at I+1, ones at I+2"""
        s = self.state
        self._check_range(s.I, 3)
        value = s.V[f.x]
        s.memory[s.I] = value // 100
        s.memory[s.I + 1] = (value // 10) % 10
        s.memory[s.I + 2] = value % 10

    def _store_vregs(self, f: Fields):
        """LD [I], Vx: store V0..Vx inclusive at I, I unchanged"""
        s = self.state
        self._check_range(s.I, f.x + 1)
        s.memory[s.I:s.I + f.x + 1] = bytes(s.V[:f.x + 1])

    def _load_vregs(self, f: Fields):
        """LD Vx, [I]: load V0..Vx inclusive from I, I unchanged"""
        s = self.state
        self._check_range(s.I, f.x + 1)
        s.V[:f.x + 1] = list(s.memory[s.I:s.I + f.x + 1])

    # ─── Random ───

    def _random_byte_and(self, f: Fields):
        self.state.V[f.x] = self.rng.next() & f.kk

    # ─── Draw ───

    def _draw_sprite(self, f: Fields):
        """
        DRW Vx, Vy, n: XOR an n-row sprite from memory at I onto the screen.

        Pixels are addressed linearly as x + y * 64 without clipping;
        addresses past the end wrap around the 2048-pixel buffer. VF is
        cleared first and set to 1 if any lit pixel is turned off.
        """
        s = self.state
        self._check_range(s.I, f.n)
        x, y = s.V[f.x], s.V[f.y]
        pixels = s.pixels
        s.V[VF] = 0

        for row in range(f.n):
            sprite_byte = s.memory[s.I + row]
            for col in range(8):
                if sprite_byte & (0x80 >> col):
                    idx = (x + col + (y + row) * DISPLAY_W) % DISPLAY_SIZE
                    if pixels[idx]:
                        s.V[VF] = 1  # Collision!
                    pixels[idx] ^= 1

        s.draw_flag = True

    # ─── Input ───

    def _skip_if_pressed(self, f: Fields):
        if self.state.keys[self.state.V[f.x] & 0xF]:
            self._skip()

    def _skip_if_not_pressed(self, f: Fields):
        if not self.state.keys[self.state.V[f.x] & 0xF]:
            self._skip()

    def _wait_keypress(self, f: Fields):
        """
        LD Vx, K: load the highest-numbered pressed key into Vx.

        Non-blocking by default: with no key down Vx is left as it was
        and execution continues. With the `blocking_key_wait` quirk the
        instruction is re-run until a key is down.
        """
        s = self.state
        found = False
        for i, pressed in enumerate(s.keys):
            if pressed:
                s.V[f.x] = i
                found = True
        if not found and self.quirks['blocking_key_wait']:
            s.PC -= 2

    # ─── Timers ───

    def _set_vx_dt(self, f: Fields):
        self.state.V[f.x] = self.state.delay_timer

    def _set_dt_vx(self, f: Fields):
        self.state.delay_timer = self.state.V[f.x]

    def _set_st_vx(self, f: Fields):
        self.state.sound_timer = self.state.V[f.x]
