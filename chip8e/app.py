"""Host loop tying the CPU to the window, keyboard and audio device."""

import logging
import os

import pygame

from .audio import BeepPlayer, NullAudio
from .config import EmulatorConfig
from .cpu import Chip8CPU
from .display import Display
from .keypad import translate
from .state import read_rom_file

logger = logging.getLogger(__name__)


class Chip8Emulator:
    """Main emulator application"""

    def __init__(self, config: EmulatorConfig, display=None, audio=None):
        self.config = config
        if audio is None:
            audio = NullAudio() if config.mute else BeepPlayer(config.beep_path)
        self.audio = audio
        self.display = display or Display(
            config.window_width, config.window_height,
            config.fore_color, config.back_color,
            software=config.fallback_render,
            caption=f"Chip-8-e - {os.path.basename(config.rom_path)}",
        )
        self.cpu = Chip8CPU(audio=self.audio, seed=config.seed,
                            blocking_key_wait=config.blocking_key_wait)
        self.running = False
        self.passes = 0

    def load(self):
        self.cpu.load_rom(read_rom_file(self.config.rom_path))
        logger.info("RNG %r", self.cpu.rng)

    def handle_events(self):
        """Process input events"""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                    continue
                key = translate(event.key)
                if key is not None:
                    self.cpu.key_down(key)
            elif event.type == pygame.KEYUP:
                key = translate(event.key)
                if key is not None:
                    self.cpu.key_up(key)

    def render(self):
        """Refresh the texture on change, present every `frame_after` passes"""
        self.display.update(self.cpu.state)
        if self.passes == self.config.frame_after:
            self.display.present()
            pygame.time.delay(self.config.copy_delay)
            self.passes = 0
        else:
            self.passes += 1

    def iterate(self):
        self.cpu.cycle()
        self.handle_events()
        self.render()

    def run(self):
        """Main loop"""
        self.load()
        self.display.open()
        pygame.init()
        self.audio.start()
        self.running = True
        try:
            while self.running:
                self.iterate()
        finally:
            self.audio.close()
            self.display.close()
            pygame.quit()
        logger.info("Stopped after %d cycles", self.cpu.cycles)
