"""Framebuffer presentation through pygame."""

import logging
import os
from typing import Tuple

import numpy as np
import pygame

from .constants import DISPLAY_H, DISPLAY_W
from .errors import DeviceError
from .state import CPUState

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

RENDER_DRIVER_HINT = "SDL_RENDER_DRIVER"

# SCALED windows are drawn through an SDL renderer, which is what the
# render driver hint selects
WINDOW_FLAGS = pygame.SCALED


def select_renderer(software: bool):
    """
    Pick the SDL render driver before the window is created.

    Software mode forces the software renderer, overriding any driver
    set in the environment. Otherwise the environment's driver, or SDL's
    default accelerated one, is used.
    """
    if software:
        os.environ[RENDER_DRIVER_HINT] = "software"
    return os.environ.get(RENDER_DRIVER_HINT)


def color_from_int(value: int) -> Color:
    """Convert 0xAARRGGBB / 0xRRGGBB into an (r, g, b) tuple"""
    return ((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)


def framebuffer_to_rgb(display: np.ndarray, fg: Color, bg: Color) -> np.ndarray:
    """
    Colourize a (height, width) 0/1 framebuffer.

    Returns a (width, height, 3) uint8 array, the orientation
    pygame.surfarray expects.
    """
    lit = display.T.astype(bool)
    rgb = np.empty(lit.shape + (3,), dtype=np.uint8)
    rgb[...] = bg
    rgb[lit] = fg
    return rgb


class Display:
    """Window plus a 64x32 texture surface scaled on present"""

    def __init__(self, width: int, height: int, fg_color: int, bg_color: int,
                 software: bool = False, caption: str = "Chip-8-e"):
        self.size = (width, height)
        self.fg = color_from_int(fg_color)
        self.bg = color_from_int(bg_color)
        self.software = software
        self.caption = caption
        self.window = None
        self.texture = None

    def open(self):
        select_renderer(self.software)
        try:
            if not pygame.display.get_init():
                pygame.display.init()
            self.window = pygame.display.set_mode(self.size, WINDOW_FLAGS)
        except pygame.error as e:
            raise DeviceError(f"Window creation failed, error: {e}") from e
        pygame.display.set_caption(self.caption)
        self.texture = pygame.Surface((DISPLAY_W, DISPLAY_H), depth=32)
        self.texture.fill(self.bg)
        logger.info("Display opened at %dx%d (%s renderer)",
                    self.size[0], self.size[1], os.environ.get(RENDER_DRIVER_HINT, "default"))

    def update(self, state: CPUState) -> bool:
        """Copy the framebuffer into the texture if it changed; consumes the draw flag"""
        if not state.draw_flag:
            return False
        pygame.surfarray.blit_array(self.texture, framebuffer_to_rgb(state.display, self.fg, self.bg))
        state.draw_flag = False
        return True

    def present(self):
        self.window.blit(pygame.transform.scale(self.texture, self.size), (0, 0))
        pygame.display.flip()

    def close(self):
        if self.window is not None:
            pygame.display.quit()
            self.window = None
