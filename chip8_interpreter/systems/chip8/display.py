"""
CHIP-8 monochrome display.

The frame buffer is a 32x64 numpy array of bytes, one per pixel (0 off,
1 on). It is the only state shared with the presentation thread, so every
mutation and every snapshot happens under a lock.
"""

import logging
import threading
from typing import Dict, Any, Optional

import numpy as np

from ...common.interfaces import VideoProcessor

logger = logging.getLogger("Chip8Interpreter.Chip8.Display")

class Chip8Display(VideoProcessor):
    """
    Emulates the 64x32 monochrome CHIP-8 screen.

    Sprites are XOR-composed onto the frame buffer. Pixels that fall past the
    right or bottom edge are clipped, not wrapped.
    """

    WIDTH = 64
    HEIGHT = 32

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the display.

        Args:
            config: Configuration dictionary
        """
        config = config or {}
        self.width, self.height = config.get("resolution", (self.WIDTH, self.HEIGHT))

        self._lock = threading.Lock()
        self._frame = np.zeros((self.height, self.width), dtype=np.uint8)

        # Incremented on every clear or draw
        self.revision = 0

        logger.info(f"Display initialized ({self.width}x{self.height})")

    def clear(self) -> None:
        """Replace the frame buffer with a blank one."""
        blank = np.zeros((self.height, self.width), dtype=np.uint8)
        with self._lock:
            self._frame = blank
            self.revision += 1

    def reset(self) -> None:
        """Reset the display to a blank frame."""
        self.clear()
        self.revision = 0

    def draw_sprite(self, x: int, y: int, sprite: bytes) -> bool:
        """
        XOR a sprite onto the frame buffer.

        Args:
            x: Left column (wrapped into the screen)
            y: Top row (wrapped into the screen)
            sprite: One byte per row, most significant bit leftmost

        Returns:
            True if any lit pixel was turned off
        """
        x %= self.width
        y %= self.height

        rows = min(len(sprite), self.height - y)
        columns = min(8, self.width - x)
        if rows <= 0:
            return False

        bits = np.unpackbits(np.frombuffer(bytes(sprite[:rows]), dtype=np.uint8))
        bits = bits.reshape(rows, 8)[:, :columns]

        with self._lock:
            region = self._frame[y:y + rows, x:x + columns]
            collision = bool(np.any(region & bits))
            region ^= bits
            self.revision += 1

        return collision

    def pixel(self, x: int, y: int) -> int:
        """Return the value of a single pixel."""
        with self._lock:
            return int(self._frame[y, x])

    def get_frame_buffer(self) -> np.ndarray:
        """
        Get a consistent, read-only copy of the frame buffer.

        Returns:
            (height, width) uint8 array
        """
        with self._lock:
            snapshot = self._frame.copy()
        snapshot.flags.writeable = False
        return snapshot

    def get_state(self) -> Dict[str, Any]:
        """
        Get the current display state.

        Returns:
            Dictionary with display state
        """
        with self._lock:
            lit = int(np.count_nonzero(self._frame))
        return {
            "width": self.width,
            "height": self.height,
            "lit_pixels": lit,
            "revision": self.revision,
        }
