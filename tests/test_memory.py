"""
Tests for the Chip8Memory and MachineState modules.
"""
import io
import unittest

from chip8_interpreter.constants import FONT_SET
from chip8_interpreter.systems.chip8 import Chip8Memory, MachineState, CallStack, Key
from chip8_interpreter.systems.chip8 import StackOverflowError, StackUnderflowError

class TestChip8Memory(unittest.TestCase):
    """
    Test cases for the Chip8Memory class.
    """

    def setUp(self):
        self.memory = Chip8Memory()

    def test_font_after_reset(self):
        self.memory.write(0x050, 0x00)
        self.memory.reset()
        self.assertEqual(bytes(self.memory.ram[0x050:0x0A0]), FONT_SET)
        self.assertEqual(len(FONT_SET), 80)

    def test_rest_of_memory_zeroed(self):
        self.memory.write(0x300, 0xAB)
        self.memory.reset()
        self.assertFalse(any(self.memory.ram[0x0A0:]))
        self.assertFalse(any(self.memory.ram[:0x050]))

    def test_load_small_program(self):
        before = bytes(self.memory.ram)
        count = self.memory.load_rom(b"\x12\x34\x56")
        self.assertEqual(count, 3)
        self.assertEqual(self.memory.read(0x200), 0x12)
        self.assertEqual(self.memory.read_word(0x201), 0x3456)
        self.assertEqual(bytes(self.memory.ram[0x203:]), before[0x203:])
        self.assertEqual(bytes(self.memory.ram[:0x200]), before[:0x200])

    def test_load_truncates_bytes(self):
        image = bytes(range(256)) * 16  # 4096 bytes
        count = self.memory.load_rom(image)
        self.assertEqual(count, 4096 - 0x200)
        self.assertEqual(len(self.memory.ram), 4096)
        self.assertEqual(bytes(self.memory.ram[0x200:]), image[:4096 - 0x200])
        self.assertEqual(bytes(self.memory.ram[0x050:0x0A0]), FONT_SET)

    def test_load_truncates_stream(self):
        image = bytes([0xAA]) * 5000
        count = self.memory.load_rom(io.BytesIO(image))
        self.assertEqual(count, 4096 - 0x200)
        self.assertEqual(len(self.memory.ram), 4096)
        self.assertEqual(self.memory.read(0xFFF), 0xAA)
        self.assertEqual(self.memory.read(0x1FF), 0)

    def test_stream_not_read_past_capacity(self):
        stream = io.BytesIO(bytes([0x11]) * (4096 - 0x200) + b"\xAA\xBB")
        count = self.memory.load_rom(stream)
        self.assertEqual(count, 4096 - 0x200)
        self.assertEqual(stream.read(), b"\xAA\xBB")

    def test_load_exact_capacity(self):
        image = bytes([0x55]) * (4096 - 0x200)
        count = self.memory.load_rom(io.BytesIO(image))
        self.assertEqual(count, len(image))
        self.assertEqual(self.memory.read(0xFFF), 0x55)

    def test_load_small_stream(self):
        count = self.memory.load_rom(io.BytesIO(b"\x00\xE0"))
        self.assertEqual(count, 2)
        self.assertEqual(self.memory.read_word(0x200), 0x00E0)
        self.assertEqual(self.memory.program_size, 2)

    def test_address_wraps(self):
        self.memory.write(0x1000, 0x7F)
        self.assertEqual(self.memory.read(0x000), 0x7F)
        self.memory.write(0xFFF, 0x12)
        self.memory.write(0x000, 0x34)
        self.assertEqual(self.memory.read_word(0xFFF), 0x1234)

    def test_write_masks_value(self):
        self.memory.write(0x300, 0x1FF)
        self.assertEqual(self.memory.read(0x300), 0xFF)

class TestCallStack(unittest.TestCase):

    def test_push_pop_order(self):
        stack = CallStack(capacity=4)
        for address in (0x202, 0x304, 0x406):
            stack.push(address)
        self.assertEqual(len(stack), 3)
        self.assertEqual(stack.as_list(), [0x202, 0x304, 0x406])
        self.assertEqual(stack.pop(), 0x406)
        self.assertEqual(stack.pop(), 0x304)
        self.assertEqual(len(stack), 1)

    def test_bounds(self):
        stack = CallStack(capacity=2)
        with self.assertRaises(StackUnderflowError):
            stack.pop()
        stack.push(1)
        stack.push(2)
        with self.assertRaises(StackOverflowError):
            stack.push(3)
        stack.clear()
        self.assertEqual(len(stack), 0)

class TestMachineState(unittest.TestCase):
    """
    Test cases for MachineState reset and load.
    """

    def test_reset_restores_initial_values(self):
        state = MachineState()
        state.load(b"\x60\x01")
        state.pc = 0x345
        state.index = 0x123
        state.V[3] = 9
        state.stack.push(0x202)
        state.keypad.press(Key.K4)
        state.paused = True
        state.delay_timer = 10
        state.sound_timer = 11
        state.display.draw_sprite(0, 0, b"\xFF")

        state.reset()

        self.assertEqual(state.pc, 0x200)
        self.assertEqual(state.index, 0)
        self.assertEqual(bytes(state.V), bytes(16))
        self.assertEqual(len(state.stack), 0)
        self.assertEqual(state.keypad.snapshot(), [False] * 16)
        self.assertFalse(state.paused)
        self.assertEqual(state.delay_timer, 0)
        self.assertEqual(state.sound_timer, 0)
        self.assertFalse(state.display.get_frame_buffer().any())
        self.assertEqual(state.memory.read(0x200), 0)
        self.assertEqual(bytes(state.memory.ram[0x050:0x0A0]), FONT_SET)

    def test_load_leaves_registers_alone(self):
        state = MachineState()
        state.V[1] = 5
        state.pc = 0x210
        state.stack.push(0x300)
        state.display.draw_sprite(0, 0, b"\x80")
        state.load(b"\x00\xE0")
        self.assertEqual(state.V[1], 5)
        self.assertEqual(state.pc, 0x210)
        self.assertEqual(len(state.stack), 1)
        self.assertEqual(state.display.pixel(0, 0), 1)

    def test_timers_stop_at_zero(self):
        state = MachineState()
        state.delay_timer = 2
        state.sound_timer = 1
        state.update_timers()
        self.assertEqual((state.delay_timer, state.sound_timer), (1, 0))
        state.update_timers()
        state.update_timers()
        self.assertEqual((state.delay_timer, state.sound_timer), (0, 0))

if __name__ == '__main__':
    unittest.main()
