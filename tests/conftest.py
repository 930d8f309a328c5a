"""Shared fixtures for the chip8e test suite."""

import os

# pygame must never open a real window or audio device during tests
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pytest

from chip8e.cpu import Chip8CPU


class RecordingAudio:
    """Audio sink that counts beep requests"""

    def __init__(self):
        self.beeps = 0
        self.started = False
        self.closed = False

    def start(self):
        self.started = True

    def beep(self):
        self.beeps += 1

    def close(self):
        self.closed = True


def program(*words: int) -> bytes:
    """Assemble opcode words into big-endian ROM bytes"""
    return b"".join(w.to_bytes(2, "big") for w in words)


@pytest.fixture
def audio():
    return RecordingAudio()


@pytest.fixture
def cpu(audio):
    return Chip8CPU(audio=audio, seed=1)


@pytest.fixture
def run(cpu):
    """Load opcode words at 0x200 and execute that many cycles"""
    def _run(*words: int, cycles: int = None):
        cpu.load_rom(program(*words))
        for _ in range(len(words) if cycles is None else cycles):
            cpu.cycle()
        return cpu
    return _run


@pytest.fixture
def rom_file(tmp_path):
    def _write(data: bytes, name: str = "test.ch8"):
        path = tmp_path / name
        path.write_bytes(data)
        return str(path)
    return _write


