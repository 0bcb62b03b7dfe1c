"""
Tests for the command-line runner.
"""
import contextlib
import io
import os
import tempfile
import unittest

import matplotlib
matplotlib.use("Agg")

from chip8_interpreter.main import build_parser, main

def words(*opcodes):
    return b"".join(op.to_bytes(2, "big") for op in opcodes)

class TestMain(unittest.TestCase):
    """
    Test cases for the main entry point.
    """

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.temp_dir.cleanup()

    def _rom(self, data, name="test.ch8"):
        path = os.path.join(self.temp_dir.name, name)
        with open(path, 'wb') as f:
            f.write(data)
        return path

    def test_parser_limits_are_exclusive(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                build_parser().parse_args(["rom.ch8", "--cycles", "5", "--seconds", "1"])

    def test_runs_rom_and_prints_frame(self):
        # LD I, glyph 0; DRW V0, V0, 5; JP self
        rom = self._rom(words(0xA050, 0xD005, 0x1204))
        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            code = main([rom, "--cycles", "10", "--cycles-per-second", "10000", "--ascii"])

        self.assertEqual(code, 0)
        lines = output.getvalue().splitlines()
        self.assertTrue(any(line.startswith("████    ") for line in lines))

    def test_saves_snapshot(self):
        rom = self._rom(words(0xA050, 0xD005, 0x1204))
        snapshot = os.path.join(self.temp_dir.name, "out", "frame.png")
        code = main([rom, "--cycles", "5", "--cycles-per-second", "10000", "--snapshot", snapshot])
        self.assertEqual(code, 0)
        self.assertTrue(os.path.exists(snapshot))

    def test_held_key_reaches_program(self):
        # LD V0, K; LD F, V0; DRW V1, V1, 5; JP self
        rom = self._rom(words(0xF00A, 0xF029, 0xD115, 0x1206))
        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            # Host key "x" is CHIP-8 key 0
            code = main([rom, "--cycles", "20", "--cycles-per-second", "10000",
                         "--hold", "x", "--ascii"])
        self.assertEqual(code, 0)
        self.assertTrue(any(line.startswith("████    ") for line in output.getvalue().splitlines()))

    def test_missing_rom(self):
        code = main([os.path.join(self.temp_dir.name, "missing.ch8"), "--cycles", "1"])
        self.assertEqual(code, 1)

    def test_fault_returns_error_code(self):
        rom = self._rom(b"\x00\x00")
        code = main([rom, "--cycles", "10", "--cycles-per-second", "10000"])
        self.assertEqual(code, 1)

    def test_bad_config(self):
        rom = self._rom(words(0x1200))
        config = os.path.join(self.temp_dir.name, "settings.yaml")
        with open(config, 'w') as f:
            f.write("cpu:\n  cycles_per_second: -5\n")
        self.assertEqual(main([rom, "--config", config, "--cycles", "1"]), 1)

if __name__ == '__main__':
    unittest.main()
