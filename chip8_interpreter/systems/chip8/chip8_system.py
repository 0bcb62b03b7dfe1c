"""
CHIP-8 system implementation.

This module provides the complete CHIP-8 machine: it wires the CPU to the
machine state, drives the fetch/decode/execute loop at a fixed logical rate,
decays the timers once per cycle, and exposes the entry points the host
uses from other threads (key transitions and display reads).
"""

import logging
import os
import threading
import time
from typing import Dict, Any, Callable, Optional, Union, BinaryIO

import numpy as np

from ...common.interfaces import System
from ...system_configs import SYSTEM_CONFIGS
from ...utils.error_handler import error_handler
from ...utils.event_manager import EventManager, EventType
from .cpu import Chip8CPU
from .errors import Chip8Error
from .keypad import Key
from .state import MachineState

logger = logging.getLogger("Chip8Interpreter.Chip8.System")

class Chip8System(System):
    """
    Complete CHIP-8 system emulation.

    The execution loop (`run`) owns the program counter, registers, stack,
    memory and paused flag. The display buffer and key latches are the only
    state touched by other threads: the display is lock-guarded and key
    latches are plain flag writes picked up by the next key instruction.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 clock: Optional[Callable[[], float]] = None,
                 rng: Optional[np.random.Generator] = None,
                 event_manager: Optional[EventManager] = None):
        """
        Initialize the CHIP-8 system.

        Args:
            config: System configuration dictionary (None for defaults)
            clock: Monotonic clock in seconds used for pacing
            rng: Random source for CXNN (None to seed from config)
            event_manager: Event bus to publish to (None for a private one)
        """
        self.config = dict(SYSTEM_CONFIGS["chip8"])
        self.config.update(config or {})

        self.cycles_per_second = self.config["cycles_per_second"]
        if self.cycles_per_second <= 0:
            raise ValueError(f"cycles_per_second must be positive, got {self.cycles_per_second}")

        self.clock = clock or time.perf_counter
        self.events = event_manager or EventManager()

        if rng is None:
            rng = np.random.default_rng(self.config.get("rng_seed"))

        # Create and connect components
        self.state = MachineState(self.config)
        self.cpu = Chip8CPU(rng=rng, trace=self.config.get("trace", False))
        self.cpu.attach(self.state)

        # System state
        self.cycle_count = 0
        self.running = False
        self.rom_name = ""

        logger.info("CHIP-8 system initialized")

    @property
    def cycle_period(self) -> float:
        """Target wall-clock duration of one cycle in seconds."""
        return 1.0 / self.cycles_per_second

    def reset(self) -> None:
        """Reset the machine to its defined starting state."""
        self.state.reset()
        self.cpu.reset()
        self.cycle_count = 0

        self.events.create_event(EventType.SYSTEM_RESET, "system")
        logger.info("System reset")

    def load(self, source: Union[bytes, BinaryIO]) -> int:
        """
        Copy a program image into memory at 0x200.

        Oversized images are truncated to the available memory.

        Args:
            source: ROM bytes or a readable binary stream

        Returns:
            Number of bytes loaded
        """
        size = self.state.load(source)
        self.events.create_event(EventType.PROGRAM_LOADED, "system",
                                 {"size": size, "rom_name": self.rom_name})
        return size

    def load_rom(self, rom_path: str) -> None:
        """
        Load a CHIP-8 ROM file.

        Args:
            rom_path: Path to ROM file

        Raises:
            OSError: the file cannot be read
        """
        try:
            with open(rom_path, 'rb') as f:
                self.rom_name = os.path.basename(rom_path)
                size = self.load(f)
                file_size = os.fstat(f.fileno()).st_size
        except OSError as e:
            logger.error(f"Failed to load ROM: {e}")
            raise

        if file_size > size:
            logger.warning(f"ROM {self.rom_name} is {file_size} bytes, only {size} fit in memory")
        logger.info(f"Loaded ROM: {self.rom_name} ({size} bytes)")

    def cycle(self) -> None:
        """
        Run one complete cycle: execute an instruction, then decay the
        timers unless the machine is paused waiting for a key.
        """
        revision = self.state.display.revision

        self.cpu.step()
        if not self.state.paused:
            self.state.update_timers()
        self.cycle_count += 1

        if self.state.display.revision != revision:
            self.events.create_event(EventType.DISPLAY_UPDATE, "system",
                                     {"revision": self.state.display.revision,
                                      "cycle": self.cycle_count})

    def run(self, cancel_event: threading.Event, max_cycles: Optional[int] = None) -> int:
        """
        Run the execution loop until cancelled.

        Each cycle is padded with a cooperative busy-wait so the loop runs at
        `cycles_per_second` regardless of how long the instruction took.
        Cancellation is checked between cycles, so no instruction is ever
        split.

        Args:
            cancel_event: Set from another thread to stop the loop
            max_cycles: Stop after this many cycles (None for no limit)

        Returns:
            Number of cycles executed

        Raises:
            Chip8Error: a fatal decode or stack fault stopped the loop
        """
        period = self.cycle_period
        executed = 0

        self.running = True
        self.events.create_event(EventType.SYSTEM_START, "system",
                                 {"cycles_per_second": self.cycles_per_second})
        logger.info(f"Running at {self.cycles_per_second} cycles per second")

        try:
            while not cancel_event.is_set():
                if max_cycles is not None and executed >= max_cycles:
                    break

                start = self.clock()
                self.cycle()
                executed += 1

                while self.clock() - start < period:
                    time.sleep(0)
        except Chip8Error as e:
            error_handler.report_fault(e, self.cpu.get_state())
            self.events.create_event(EventType.CPU_FAULT, "cpu",
                                     {"error": str(e), "type": e.__class__.__name__})
            raise
        finally:
            self.running = False
            self.events.create_event(EventType.SYSTEM_STOP, "system", {"cycles": executed})
            logger.info(f"Stopped after {executed} cycles")

        return executed

    def key_down(self, key: Union[Key, int]) -> None:
        """
        Latch a key as pressed.

        Args:
            key: Key identifier 0x0-0xF
        """
        key = Key(key)
        self.state.keypad.press(key)
        self.events.create_event(EventType.KEY_DOWN, "input", {"key": key})

    def key_up(self, key: Union[Key, int]) -> None:
        """
        Latch a key as released.

        Args:
            key: Key identifier 0x0-0xF
        """
        key = Key(key)
        self.state.keypad.release(key)
        self.events.create_event(EventType.KEY_UP, "input", {"key": key})

    def display_buffer(self) -> np.ndarray:
        """
        Get a read-only snapshot of the display.

        Safe to call while `run` is executing on another thread.

        Returns:
            (32, 64) uint8 array of 0/1 pixels
        """
        return self.state.display.get_frame_buffer()

    def get_system_state(self) -> Dict[str, Any]:
        """
        Get the current system state.

        Returns:
            Dictionary with system state
        """
        return {
            "cycle_count": self.cycle_count,
            "running": self.running,
            "rom_name": self.rom_name,
            "program_size": self.state.memory.program_size,
            "cpu_state": self.cpu.get_state(),
            "display_state": self.state.display.get_state(),
            "keys": self.state.keypad.snapshot(),
            "frame_buffer": self.display_buffer()
        }
