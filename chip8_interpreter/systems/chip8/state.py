"""
CHIP-8 machine state.

Storage for everything the interpreter executes against: memory, the V
registers, program counter, index register, call stack, timers, display,
keypad and the paused flag. No instruction semantics live here.
"""

import logging
from typing import Dict, Any, List, Optional, Union, BinaryIO

from .display import Chip8Display
from .errors import StackOverflowError, StackUnderflowError
from .keypad import Chip8Keypad
from .memory import Chip8Memory

logger = logging.getLogger("Chip8Interpreter.Chip8.State")

class CallStack:
    """Fixed-capacity return address stack."""

    def __init__(self, capacity: int = 32):
        self.capacity = capacity
        self.frames: List[int] = [0] * capacity
        self.depth = 0

    def push(self, address: int) -> None:
        if self.depth >= self.capacity:
            raise StackOverflowError(self.depth, address)
        self.frames[self.depth] = address
        self.depth += 1

    def pop(self) -> int:
        if self.depth == 0:
            raise StackUnderflowError()
        self.depth -= 1
        return self.frames[self.depth]

    def clear(self) -> None:
        self.frames = [0] * self.capacity
        self.depth = 0

    def __len__(self) -> int:
        return self.depth

    def as_list(self) -> List[int]:
        """Live return addresses, oldest first."""
        return self.frames[:self.depth]

class MachineState:
    """
    Complete CHIP-8 machine state.

    `reset()` must be called before the first instruction executes; the
    constructor calls it so a fresh instance is always in the defined
    starting state.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the machine state.

        Args:
            config: Configuration dictionary
        """
        config = config or {}
        self.config = config

        self.memory = Chip8Memory(config)
        self.display = Chip8Display(config)
        self.keypad = Chip8Keypad(config.get("key_count", Chip8Keypad.KEY_COUNT))
        self.stack = CallStack(config.get("stack_depth", 32))

        self.register_count = config.get("register_count", 16)
        self.program_start = self.memory.program_start

        self.V = bytearray(self.register_count)
        self.pc = self.program_start
        self.index = 0
        self.delay_timer = 0
        self.sound_timer = 0
        self.paused = False

        self.reset()

    def reset(self) -> None:
        """Reinitialize every field to its power-on value."""
        self.pc = self.program_start
        self.index = 0
        self.V = bytearray(self.register_count)
        self.stack.clear()
        self.keypad.reset()
        self.paused = False
        self.delay_timer = 0
        self.sound_timer = 0
        self.display.reset()
        self.memory.reset()

        logger.info(f"Machine state reset. PC set to ${self.pc:03X}")

    def load(self, source: Union[bytes, BinaryIO]) -> int:
        """
        Copy a program image into memory at the program start offset.

        Args:
            source: ROM bytes or a binary stream

        Returns:
            Number of bytes copied
        """
        return self.memory.load_rom(source)

    def update_timers(self) -> None:
        """Count both timers down by one, stopping at zero."""
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1
