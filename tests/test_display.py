"""
Tests for the Chip8Display module.
"""
import threading
import unittest

import numpy as np

from chip8_interpreter.systems.chip8 import Chip8Display

class TestChip8Display(unittest.TestCase):
    """
    Test cases for the Chip8Display class.
    """

    def setUp(self):
        self.display = Chip8Display()

    def test_dimensions(self):
        frame = self.display.get_frame_buffer()
        self.assertEqual(frame.shape, (32, 64))
        self.assertEqual(frame.dtype, np.uint8)

    def test_draw_and_collision(self):
        self.assertFalse(self.display.draw_sprite(3, 2, b"\xA0"))
        self.assertEqual(self.display.pixel(3, 2), 1)
        self.assertEqual(self.display.pixel(4, 2), 0)
        self.assertEqual(self.display.pixel(5, 2), 1)

        self.assertTrue(self.display.draw_sprite(5, 2, b"\x80"))
        self.assertEqual(self.display.pixel(5, 2), 0)

    def test_clear_replaces_buffer(self):
        self.display.draw_sprite(0, 0, b"\xFF\xFF")
        before = self.display.get_frame_buffer()
        self.display.clear()
        self.assertFalse(self.display.get_frame_buffer().any())
        # Earlier snapshots are unaffected
        self.assertEqual(int(before.sum()), 16)

    def test_snapshot_is_read_only_copy(self):
        frame = self.display.get_frame_buffer()
        with self.assertRaises(ValueError):
            frame[0, 0] = 1
        self.display.draw_sprite(0, 0, b"\x80")
        self.assertEqual(frame[0, 0], 0)

    def test_empty_sprite(self):
        self.assertFalse(self.display.draw_sprite(0, 0, b""))
        self.assertFalse(self.display.get_frame_buffer().any())

    def test_revision_counts_mutations(self):
        self.assertEqual(self.display.revision, 0)
        self.display.draw_sprite(0, 0, b"\x80")
        self.display.clear()
        self.assertEqual(self.display.revision, 2)
        self.display.reset()
        self.assertEqual(self.display.revision, 0)

    def test_get_state(self):
        self.display.draw_sprite(0, 0, b"\xF0")
        state = self.display.get_state()
        self.assertEqual(state["lit_pixels"], 4)
        self.assertEqual((state["width"], state["height"]), (64, 32))

    def test_reads_never_see_partial_sprite(self):
        """A block sprite toggled repeatedly is seen either fully lit or fully dark."""
        block = b"\xFF" * 15
        stop = threading.Event()
        torn = []

        def reader():
            while not stop.is_set():
                region = self.display.get_frame_buffer()[0:15, 0:8]
                total = int(region.sum())
                if total not in (0, 15 * 8):
                    torn.append(total)

        thread = threading.Thread(target=reader)
        thread.start()
        try:
            for _ in range(2000):
                self.display.draw_sprite(0, 0, block)
        finally:
            stop.set()
            thread.join()

        self.assertEqual(torn, [])

if __name__ == '__main__':
    unittest.main()
