"""
CHIP-8 hexadecimal keypad.

The keypad is a latch of sixteen booleans written by the host's input thread
and read by the interpreter. Host keyboard characters are translated to
`Key` values before they reach the keypad; unmapped keys are dropped there.
"""

import logging
from enum import IntEnum
from typing import Dict, List, Optional

logger = logging.getLogger("Chip8Interpreter.Chip8.Keypad")

class Key(IntEnum):
    """The sixteen CHIP-8 keys."""
    K0 = 0x0
    K1 = 0x1
    K2 = 0x2
    K3 = 0x3
    K4 = 0x4
    K5 = 0x5
    K6 = 0x6
    K7 = 0x7
    K8 = 0x8
    K9 = 0x9
    KA = 0xA
    KB = 0xB
    KC = 0xC
    KD = 0xD
    KE = 0xE
    KF = 0xF

# Host layout:      CHIP-8 keypad:
#   1 2 3 4           1 2 3 C
#   q w e r           4 5 6 D
#   a s d f           7 8 9 E
#   z x c v           A 0 B F
DEFAULT_KEY_MAP: Dict[str, Key] = {
    "1": Key.K1, "2": Key.K2, "3": Key.K3, "4": Key.KC,
    "q": Key.K4, "w": Key.K5, "e": Key.K6, "r": Key.KD,
    "a": Key.K7, "s": Key.K8, "d": Key.K9, "f": Key.KE,
    "z": Key.KA, "x": Key.K0, "c": Key.KB, "v": Key.KF,
}

def build_key_map(mapping: Dict[str, int]) -> Dict[str, Key]:
    """
    Build a host key map from a configuration mapping.

    Args:
        mapping: Host character -> key index (0-15)

    Returns:
        Host character -> Key
    """
    return {str(char).lower(): Key(int(value)) for char, value in mapping.items()}

def translate_host_key(char: str, key_map: Optional[Dict[str, Key]] = None) -> Optional[Key]:
    """
    Translate a host keyboard character into a CHIP-8 key.

    Args:
        char: Host character
        key_map: Mapping to use (None for the default layout)

    Returns:
        The mapped key, or None if the character is not mapped
    """
    if not char:
        return None
    key_map = DEFAULT_KEY_MAP if key_map is None else key_map
    return key_map.get(char.lower())

class Chip8Keypad:
    """Latch of pressed/released state for the sixteen keys."""

    KEY_COUNT = 16

    def __init__(self, key_count: int = KEY_COUNT):
        self.key_count = key_count
        self.pressed: List[bool] = [False] * key_count

    def reset(self) -> None:
        """Release every key."""
        self.pressed = [False] * self.key_count

    def press(self, key: Key) -> None:
        self.pressed[key] = True

    def release(self, key: Key) -> None:
        self.pressed[key] = False

    def is_pressed(self, key: int) -> bool:
        """Values outside 0x0-0xF never match a key."""
        if 0 <= key < self.key_count:
            return self.pressed[key]
        return False

    def first_pressed(self) -> Optional[int]:
        """Lowest pressed key index, or None when nothing is held."""
        for index, down in enumerate(self.pressed):
            if down:
                return index
        return None

    def snapshot(self) -> List[bool]:
        return list(self.pressed)
