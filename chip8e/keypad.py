"""Keyboard mapping (QWERTY -> CHIP-8 hex keypad)."""

import pygame

# Keys are numbered row by row across the left-hand block:
#   1 2 3 4     0 1 2 3
#   Q W E R  -> 4 5 6 7
#   A S D F     8 9 A B
#   Z X C V     C D E F
LAYOUT = "1234qwerasdfzxcv"

KEY_MAP = {getattr(pygame, f"K_{char}"): index for index, char in enumerate(LAYOUT)}


def translate(key: int):
    """Logical key index for a pygame key code, or None if unmapped"""
    return KEY_MAP.get(key)
