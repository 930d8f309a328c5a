"""
CHIP-8 CPU Tests
================

Covers every instruction group of the dispatcher:
- Control flow and the call stack
- Register/immediate operations
- Arithmetic flag semantics
- Index register and memory transfers
- Sprite drawing and collision
- Keypad input
- Timer access and the per-cycle tick
- Fatal execution errors
"""

import pytest

from chip8e.constants import MEMORY_SIZE, PROGRAM_START, STACK_SIZE, VF
from chip8e.cpu import Chip8CPU
from chip8e.decoder import Op
from chip8e.errors import (
    MemoryAccessError, ProgramCounterError, StackOverflowError,
    StackUnderflowError, UnknownOpcodeError,
)
from chip8e.rng import Xorshift32

# Operand pairs for flag checks, chosen around the carry/borrow edges
PAIRS = [(0, 0), (1, 255), (255, 1), (255, 255), (200, 100), (100, 200), (128, 128), (5, 5), (0, 1)]


# =============================================================================
# Initial state
# =============================================================================

class TestInitialState:
    def test_registers_zeroed(self, cpu):
        s = cpu.state
        assert s.PC == PROGRAM_START
        assert s.V == [0] * 16
        assert s.I == 0
        assert s.SP == 0
        assert s.delay_timer == 0 and s.sound_timer == 0
        assert not s.draw_flag
        assert not s.display.any()

    def test_font_loaded(self, cpu):
        assert list(cpu.state.memory[0:5]) == [0xF0, 0x90, 0x90, 0x90, 0xF0]
        assert list(cpu.state.memory[75:80]) == [0xF0, 0x80, 0xF0, 0x80, 0x80]
        assert not any(cpu.state.memory[80:])

    def test_reset_keeps_rng_stream(self, cpu):
        rng = cpu.rng
        cpu.state.V[3] = 9
        cpu.reset()
        assert cpu.state.V[3] == 0
        assert cpu.rng is rng


# =============================================================================
# Control flow
# =============================================================================

class TestControlFlow:
    def test_jump(self, cpu):
        cpu.step(0x1345)
        assert cpu.state.PC == 0x345

    def test_call_then_ret_restores_pc(self, cpu):
        cpu.load_rom(bytes([0x23, 0x00]))
        cpu.state.memory[0x300:0x302] = bytes([0x00, 0xEE])
        cpu.cycle()
        assert cpu.state.PC == 0x300
        assert cpu.state.SP == 1
        assert cpu.state.stack[0] == 0x202
        cpu.cycle()
        assert cpu.state.PC == 0x202
        assert cpu.state.SP == 0

    def test_jump_plus_v0(self, cpu):
        cpu.state.V[0] = 4
        cpu.step(0xB300)
        assert cpu.state.PC == 0x304

    def test_sys_is_ignored(self, cpu):
        cpu.step(0x0123)
        assert cpu.state.PC == PROGRAM_START

    @pytest.mark.parametrize("word,vx,vy,skips", [
        (0x3105, 5, 0, True),
        (0x3105, 6, 0, False),
        (0x4105, 5, 0, False),
        (0x4105, 6, 0, True),
        (0x5120, 7, 7, True),
        (0x5120, 7, 8, False),
        (0x9120, 7, 7, False),
        (0x9120, 7, 8, True),
    ])
    def test_conditional_skips(self, cpu, word, vx, vy, skips):
        cpu.state.V[1], cpu.state.V[2] = vx, vy
        cpu.step(word)
        assert cpu.state.PC == PROGRAM_START + (2 if skips else 0)

    def test_stack_capacity(self, cpu):
        for _ in range(STACK_SIZE):
            cpu.step(0x2200)
        assert cpu.state.SP == STACK_SIZE
        with pytest.raises(StackOverflowError):
            cpu.step(0x2200)

    def test_return_with_empty_stack(self, cpu):
        with pytest.raises(StackUnderflowError):
            cpu.step(0x00EE)


# =============================================================================
# Register and immediate operations
# =============================================================================

class TestRegisterOps:
    def test_load_byte(self, cpu):
        cpu.step(0x6A05)
        assert cpu.state.V[0xA] == 5

    def test_add_byte_wraps_without_flag(self, cpu):
        cpu.state.V[0] = 0xFF
        cpu.state.V[VF] = 7
        cpu.step(0x7002)
        assert cpu.state.V[0] == 1
        assert cpu.state.V[VF] == 7

    def test_load_register(self, cpu):
        cpu.state.V[2] = 0x42
        cpu.step(0x8120)
        assert cpu.state.V[1] == 0x42

    @pytest.mark.parametrize("word,expected", [
        (0x8121, 0b1110),
        (0x8122, 0b1000),
        (0x8123, 0b0110),
    ])
    def test_bitwise(self, cpu, word, expected):
        cpu.state.V[1], cpu.state.V[2] = 0b1100, 0b1010
        cpu.state.V[VF] = 3
        cpu.step(word)
        assert cpu.state.V[1] == expected
        assert cpu.state.V[VF] == 3


# =============================================================================
# Arithmetic with flags
# =============================================================================

class TestArithmeticFlags:
    @pytest.mark.parametrize("a,b", PAIRS)
    def test_add(self, cpu, a, b):
        cpu.state.V[1], cpu.state.V[2] = a, b
        cpu.step(0x8124)
        assert cpu.state.V[1] == (a + b) % 256
        assert cpu.state.V[VF] == (1 if a + b > 255 else 0)

    @pytest.mark.parametrize("a,b", PAIRS)
    def test_sub(self, cpu, a, b):
        cpu.state.V[1], cpu.state.V[2] = a, b
        cpu.step(0x8125)
        assert cpu.state.V[1] == (a - b) % 256
        assert cpu.state.V[VF] == (1 if a > b else 0)

    @pytest.mark.parametrize("a,b", PAIRS)
    def test_subn(self, cpu, a, b):
        cpu.state.V[1], cpu.state.V[2] = a, b
        cpu.step(0x8127)
        assert cpu.state.V[1] == (b - a) % 256
        assert cpu.state.V[VF] == (1 if b > a else 0)

    @pytest.mark.parametrize("v", [0x00, 0x01, 0x80, 0x81, 0xFE, 0xFF])
    def test_shr(self, cpu, v):
        cpu.state.V[1] = v
        cpu.step(0x8106)
        assert cpu.state.V[1] == v >> 1
        assert cpu.state.V[VF] == v & 1

    @pytest.mark.parametrize("v", [0x00, 0x01, 0x80, 0x81, 0x7F, 0xFF])
    def test_shl(self, cpu, v):
        cpu.state.V[1] = v
        cpu.step(0x810E)
        assert cpu.state.V[1] == (v << 1) % 256
        assert cpu.state.V[VF] == v >> 7

    def test_flag_wins_when_vf_is_the_target(self, cpu):
        cpu.state.V[VF], cpu.state.V[1] = 200, 100
        cpu.step(0x8F14)
        assert cpu.state.V[VF] == 1

    def test_flag_uses_pre_operation_value_when_vy_is_vf(self, cpu):
        cpu.state.V[1], cpu.state.V[VF] = 10, 3
        cpu.step(0x81F5)
        assert cpu.state.V[1] == 7
        assert cpu.state.V[VF] == 1


# =============================================================================
# Index register and memory
# =============================================================================

class TestIndexAndMemory:
    def test_load_index(self, cpu):
        cpu.step(0xA300)
        assert cpu.state.I == 0x300

    def test_add_to_index_wraps_at_16_bits(self, cpu):
        cpu.state.I = 0xFFFF
        cpu.state.V[0] = 2
        cpu.step(0xF01E)
        assert cpu.state.I == 1

    def test_font_glyph_address(self, cpu):
        cpu.state.V[0] = 0xA
        cpu.step(0xF029)
        assert cpu.state.I == 0xA * 5

    @pytest.mark.parametrize("value,digits", [(234, [2, 3, 4]), (7, [0, 0, 7]), (100, [1, 0, 0]), (255, [2, 5, 5])])
    def test_bcd(self, cpu, value, digits):
        cpu.state.I = 0x300
        cpu.state.V[4] = value
        cpu.step(0xF433)
        assert list(cpu.state.memory[0x300:0x303]) == digits

    def test_store_registers(self, cpu):
        cpu.state.V[:5] = [1, 2, 3, 4, 5]
        cpu.state.I = 0x300
        cpu.step(0xF355)
        assert list(cpu.state.memory[0x300:0x305]) == [1, 2, 3, 4, 0]
        assert cpu.state.I == 0x300

    def test_load_registers(self, cpu):
        cpu.state.memory[0x300:0x305] = bytes([9, 8, 7, 6, 5])
        cpu.state.I = 0x300
        cpu.step(0xF365)
        assert cpu.state.V[:5] == [9, 8, 7, 6, 0]
        assert cpu.state.I == 0x300

    def test_store_past_end_of_memory(self, cpu):
        cpu.state.I = MEMORY_SIZE - 2
        with pytest.raises(MemoryAccessError):
            cpu.step(0xF355)

    def test_bcd_past_end_of_memory(self, cpu):
        cpu.state.I = MEMORY_SIZE - 1
        with pytest.raises(MemoryAccessError):
            cpu.step(0xF033)


# =============================================================================
# Random
# =============================================================================

class TestRandom:
    def test_masked_with_kk(self, cpu):
        expected = Xorshift32(seed=1)
        cpu.step(0xC0FF)
        cpu.step(0xC10F)
        assert cpu.state.V[0] == expected.next() & 0xFF
        assert cpu.state.V[1] == expected.next() & 0x0F

    def test_zero_mask(self, cpu):
        cpu.state.V[0] = 9
        cpu.step(0xC000)
        assert cpu.state.V[0] == 0

    def test_seeded_cpus_agree(self):
        a, b = Chip8CPU(seed=99), Chip8CPU(seed=99)
        for _ in range(8):
            a.step(0xC0FF)
            b.step(0xC0FF)
            assert a.state.V[0] == b.state.V[0]


# =============================================================================
# Drawing
# =============================================================================

class TestDraw:
    def test_clear_screen(self, cpu):
        cpu.state.display[:] = 1
        cpu.step(0x00E0)
        assert not cpu.state.display.any()
        assert cpu.state.draw_flag

    def test_draw_font_zero(self, cpu):
        cpu.state.I = 0
        cpu.step(0xD005)
        d = cpu.state.display
        assert list(d[0, :8]) == [1, 1, 1, 1, 0, 0, 0, 0]
        assert list(d[1, :8]) == [1, 0, 0, 1, 0, 0, 0, 0]
        assert list(d[4, :8]) == [1, 1, 1, 1, 0, 0, 0, 0]
        assert d.sum() == 14
        assert cpu.state.V[VF] == 0
        assert cpu.state.draw_flag

    def test_draw_twice_restores_and_collides(self, cpu):
        cpu.state.V[1], cpu.state.V[2] = 10, 6
        cpu.state.I = 0x8 * 5
        cpu.step(0xD125)
        first = cpu.state.display.copy()
        assert first.any()
        cpu.step(0xD125)
        assert not cpu.state.display.any()
        assert cpu.state.V[VF] == 1

    def test_no_collision_on_disjoint_sprites(self, cpu):
        cpu.state.I = 0
        cpu.step(0xD005)
        cpu.state.V[0] = 20
        cpu.step(0xD005)
        assert cpu.state.V[VF] == 0

    def test_row_overflow_continues_on_next_line(self, cpu):
        cpu.state.memory[0x300] = 0xFF
        cpu.state.I = 0x300
        cpu.state.V[0], cpu.state.V[1] = 60, 0
        cpu.step(0xD011)
        assert list(cpu.state.display[0, 60:]) == [1, 1, 1, 1]
        assert list(cpu.state.display[1, :4]) == [1, 1, 1, 1]

    def test_bottom_overflow_wraps_to_top(self, cpu):
        cpu.state.memory[0x300:0x302] = bytes([0x80, 0x80])
        cpu.state.I = 0x300
        cpu.state.V[0], cpu.state.V[1] = 0, 31
        cpu.step(0xD012)
        assert cpu.state.display[31, 0] == 1
        assert cpu.state.display[0, 0] == 1

    def test_sprite_past_end_of_memory(self, cpu):
        cpu.state.I = MEMORY_SIZE - 1
        with pytest.raises(MemoryAccessError):
            cpu.step(0xD002)

    def test_zero_height_sets_draw_flag_only(self, cpu):
        cpu.state.V[VF] = 1
        cpu.step(0xD000)
        assert not cpu.state.display.any()
        assert cpu.state.V[VF] == 0
        assert cpu.state.draw_flag


# =============================================================================
# Keypad
# =============================================================================

class TestKeypad:
    def test_skip_if_pressed(self, cpu):
        cpu.state.V[1] = 0xA
        cpu.key_down(0xA)
        cpu.step(0xE19E)
        assert cpu.state.PC == PROGRAM_START + 2
        cpu.step(0xE1A1)
        assert cpu.state.PC == PROGRAM_START + 2

    def test_skip_if_not_pressed(self, cpu):
        cpu.state.V[1] = 0xA
        cpu.step(0xE19E)
        assert cpu.state.PC == PROGRAM_START
        cpu.step(0xE1A1)
        assert cpu.state.PC == PROGRAM_START + 2

    def test_key_up_releases(self, cpu):
        cpu.key_down(3)
        cpu.key_up(3)
        assert not any(cpu.state.keys)

    def test_out_of_range_keys_ignored(self, cpu):
        cpu.key_down(16)
        cpu.key_down(-1)
        assert not any(cpu.state.keys)

    def test_wait_key_takes_last_pressed(self, cpu):
        cpu.key_down(2)
        cpu.key_down(9)
        cpu.step(0xF30A)
        assert cpu.state.V[3] == 9

    def test_wait_key_without_press_does_not_block(self, run):
        cpu = run(0x6307, 0xF30A)
        assert cpu.state.V[3] == 7
        assert cpu.state.PC == PROGRAM_START + 4

    def test_blocking_key_wait_quirk(self):
        cpu = Chip8CPU(seed=1, blocking_key_wait=True)
        cpu.load_rom(bytes([0xF3, 0x0A]))
        cpu.cycle()
        assert cpu.state.PC == PROGRAM_START
        cpu.key_down(5)
        cpu.cycle()
        assert cpu.state.V[3] == 5
        assert cpu.state.PC == PROGRAM_START + 2


# =============================================================================
# Timers
# =============================================================================

class TestTimers:
    def test_delay_timer_roundtrip(self, run):
        cpu = run(0x6005, 0xF015, 0xF107)
        # set to 5, ticked once in the same cycle, then read and ticked again
        assert cpu.state.V[1] == 4
        assert cpu.state.delay_timer == 3

    def test_sound_timer_beeps_once(self, run, audio):
        cpu = run(0x6002, 0xF018, 0x1204, cycles=6)
        assert cpu.state.sound_timer == 0
        assert audio.beeps == 1

    def test_sound_timer_of_one_beeps_same_cycle(self, run, audio):
        run(0x6001, 0xF018)
        assert audio.beeps == 1

    def test_cycle_counter(self, run):
        assert run(0x6001, 0x6002, 0x6003).cycles == 3


# =============================================================================
# Fetch and fatal errors
# =============================================================================

class TestFetchAndErrors:
    def test_fetch_advances_pc(self, cpu):
        cpu.load_rom(bytes([0xA3, 0x00]))
        assert cpu.fetch() == 0xA300
        assert cpu.state.PC == PROGRAM_START + 2

    def test_scenario_program(self, run):
        cpu = run(0x6A05, 0xA300, 0x6001, 0x6102, 0x6203, 0x6304, 0xF355)
        assert cpu.state.V[0xA] == 5
        assert cpu.state.I == 0x300
        assert list(cpu.state.memory[0x300:0x304]) == [1, 2, 3, 4]

    @pytest.mark.parametrize("pc", [0x000, PROGRAM_START - 2, MEMORY_SIZE - 1, MEMORY_SIZE])
    def test_pc_out_of_range(self, cpu, pc):
        cpu.state.PC = pc
        with pytest.raises(ProgramCounterError) as exc:
            cpu.cycle()
        assert exc.value.pc == pc

    def test_last_valid_pc(self, cpu):
        cpu.state.memory[MEMORY_SIZE - 2:] = bytes([0x60, 0x01])
        cpu.state.PC = MEMORY_SIZE - 2
        cpu.cycle()
        assert cpu.state.V[0] == 1

    def test_unknown_opcode_reports_location(self, cpu):
        cpu.load_rom(bytes([0x80, 0x08]))
        with pytest.raises(UnknownOpcodeError) as exc:
            cpu.cycle()
        assert exc.value.pc == PROGRAM_START
        assert exc.value.opcode == 0x8008
        assert "$8008" in str(exc.value)

    def test_str_dumps_registers(self, cpu):
        cpu.state.V[0xF] = 0xAB
        text = str(cpu)
        assert "PC: $200" in text
        assert "AB" in text.splitlines()[3]


class TestHandlerTable:
    def test_every_operation_has_a_handler(self, cpu):
        assert set(cpu.handlers) == set(Op)

    def test_missing_handler_is_reported(self, cpu):
        del cpu.handlers[Op.DRW]
        with pytest.raises(RuntimeError, match="DRW"):
            cpu._check_handlers()
