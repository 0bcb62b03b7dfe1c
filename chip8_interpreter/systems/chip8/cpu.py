"""
CHIP-8 CPU emulation.

The CHIP-8 interpreter executes 16-bit big-endian instruction words. Each
word is decoded by nibble position: the leading nibble selects an
instruction family, and the 0, 8, E and F families are further split by
their low nibble or low byte. This module provides the fetch/decode/execute
step over a `MachineState`. Timing, timer decay and cancellation belong to
the driving loop in `Chip8System`, so a step never touches a clock or a lock
of its own.
"""

from ...common.interfaces import CPU
from ...constants import GLYPH_SIZE
from .errors import DecodeError
from .state import MachineState
import typing as t
import logging

import numpy as np

logger = logging.getLogger("Chip8Interpreter.Chip8.CPU")

class Instruction(t.NamedTuple):
    """A decoded instruction word and its operand fields."""
    word: int
    address: int
    family: int
    x: int
    y: int
    n: int
    nn: int
    nnn: int

    @classmethod
    def decode(cls, word: int, address: int) -> "Instruction":
        return cls(
            word=word,
            address=address,
            family=(word >> 12) & 0xF,
            x=(word >> 8) & 0xF,
            y=(word >> 4) & 0xF,
            n=word & 0xF,
            nn=word & 0xFF,
            nnn=word & 0xFFF,
        )

class Chip8CPU(CPU):
    """
    Emulates the CHIP-8 instruction set.

    Register VF doubles as the carry, borrow, shift-out and sprite collision
    flag. Which instructions write it, and in what order relative to the
    destination register, is part of the instruction set and is preserved
    exactly.
    """

    FLAG = 0xF

    def __init__(self, rng: t.Optional[np.random.Generator] = None, trace: bool = False):
        """
        Initialize the CPU.

        Args:
            rng: Random source for CXNN (None for an unseeded generator)
            trace: Log every executed instruction at DEBUG level
        """
        self.state: t.Optional[MachineState] = None
        self.rng = rng if rng is not None else np.random.default_rng()
        self.trace = trace

        # Cycle counting
        self.cycles = 0

        # Instruction table
        self._build_instruction_table()

        logger.info("CHIP-8 CPU initialized")

    def _build_instruction_table(self):
        """Build the instruction lookup tables."""
        # Leading nibble -> handler
        self.instructions = {
            0x0: self._system,
            0x1: self._jp_addr,
            0x2: self._call_addr,
            0x3: self._se_vx_byte,
            0x4: self._sne_vx_byte,
            0x5: self._se_vx_vy,
            0x6: self._ld_vx_byte,
            0x7: self._add_vx_byte,
            0x8: self._alu,
            0x9: self._sne_vx_vy,
            0xA: self._ld_i_addr,
            0xB: self._jp_v0_addr,
            0xC: self._rnd_vx_byte,
            0xD: self._drw_vx_vy_nibble,
            0xE: self._keys,
            0xF: self._misc,
        }

        # 00E0 / 00EE, matched on the whole word
        self.system_instructions = {
            0x00E0: self._cls,
            0x00EE: self._ret,
        }

        # 8XYN, matched on the low nibble
        self.alu_instructions = {
            0x0: self._ld_vx_vy,
            0x1: self._or_vx_vy,
            0x2: self._and_vx_vy,
            0x3: self._xor_vx_vy,
            0x4: self._add_vx_vy,
            0x5: self._sub_vx_vy,
            0x6: self._shr_vx,
            0x7: self._subn_vx_vy,
            0xE: self._shl_vx,
        }

        # EXNN, matched on the low byte
        self.key_instructions = {
            0x9E: self._skp_vx,
            0xA1: self._sknp_vx,
        }

        # FXNN, matched on the low byte
        self.misc_instructions = {
            0x07: self._ld_vx_dt,
            0x0A: self._ld_vx_k,
            0x15: self._ld_dt_vx,
            0x18: self._ld_st_vx,
            0x1E: self._add_i_vx,
            0x29: self._ld_f_vx,
            0x33: self._ld_b_vx,
            0x55: self._ld_i_vx,
            0x65: self._ld_vx_i,
        }

    def attach(self, state: MachineState) -> None:
        """
        Connect the CPU to the machine state it executes against.

        Args:
            state: Machine state
        """
        self.state = state

    def reset(self) -> None:
        """Reset the CPU's own counters. Machine state is reset separately."""
        self.cycles = 0
        logger.debug("CPU reset")

    def fetch(self) -> Instruction:
        """
        Read the instruction word at PC and advance PC past it.

        Returns:
            The decoded instruction
        """
        state = self.state
        address = state.pc
        word = state.memory.read_word(address)
        state.pc = (address + 2) & 0xFFFF
        return Instruction.decode(word, address)

    def step(self) -> int:
        """
        Execute one instruction and return the number of cycles used.

        Returns:
            Number of cycles used by the instruction

        Raises:
            DecodeError: the instruction word is not part of the instruction set
            StackOverflowError: a call was made with a full stack
            StackUnderflowError: a return was made with an empty stack
        """
        if self.state is None:
            raise RuntimeError("CPU has no machine state attached")

        instruction = self.fetch()

        if self.trace:
            logger.debug(f"${instruction.address:03X}: {instruction.word:04X}")

        # All sixteen leading nibbles are mapped; sub-tables raise DecodeError
        self.instructions[instruction.family](instruction)

        self.cycles += 1
        return 1

    def get_state(self) -> dict:
        """
        Get the current CPU state.

        Returns:
            Dictionary with CPU state
        """
        state = self.state
        if state is None:
            return {"cycles": self.cycles}
        return {
            "PC": state.pc,
            "I": state.index,
            "V": list(state.V),
            "SP": len(state.stack),
            "stack": state.stack.as_list(),
            "DT": state.delay_timer,
            "ST": state.sound_timer,
            "paused": state.paused,
            "cycles": self.cycles,
        }

    # Helpers

    def _skip_if(self, condition: bool) -> None:
        if condition:
            self.state.pc = (self.state.pc + 2) & 0xFFFF

    def _set_flag(self, value: int) -> None:
        self.state.V[self.FLAG] = value

    def random_byte(self) -> int:
        """Uniformly distributed byte from the CPU's random source."""
        return int(self.rng.integers(0, 256))

    # Family dispatchers

    def _system(self, ins: Instruction) -> None:
        handler = self.system_instructions.get(ins.word)
        if handler is None:
            raise DecodeError(ins.word, ins.address)
        handler(ins)

    def _alu(self, ins: Instruction) -> None:
        handler = self.alu_instructions.get(ins.n)
        if handler is None:
            raise DecodeError(ins.word, ins.address)
        handler(ins)

    def _keys(self, ins: Instruction) -> None:
        handler = self.key_instructions.get(ins.nn)
        if handler is None:
            raise DecodeError(ins.word, ins.address)
        handler(ins)

    def _misc(self, ins: Instruction) -> None:
        handler = self.misc_instructions.get(ins.nn)
        if handler is None:
            raise DecodeError(ins.word, ins.address)
        handler(ins)

    # Flow control

    def _cls(self, ins: Instruction) -> None:
        """00E0 - Clear the display."""
        self.state.display.clear()

    def _ret(self, ins: Instruction) -> None:
        """00EE - Return from subroutine."""
        self.state.pc = self.state.stack.pop()

    def _jp_addr(self, ins: Instruction) -> None:
        """1NNN - Jump to NNN."""
        self.state.pc = ins.nnn

    def _call_addr(self, ins: Instruction) -> None:
        """2NNN - Call subroutine at NNN."""
        self.state.stack.push(self.state.pc)
        self.state.pc = ins.nnn

    def _jp_v0_addr(self, ins: Instruction) -> None:
        """BNNN - Jump to NNN + V0."""
        self.state.pc = (ins.nnn + self.state.V[0]) & 0xFFFF

    # Conditional skips

    def _se_vx_byte(self, ins: Instruction) -> None:
        """3XNN - Skip if VX == NN."""
        self._skip_if(self.state.V[ins.x] == ins.nn)

    def _sne_vx_byte(self, ins: Instruction) -> None:
        """4XNN - Skip if VX != NN."""
        self._skip_if(self.state.V[ins.x] != ins.nn)

    def _se_vx_vy(self, ins: Instruction) -> None:
        """5XY0 - Skip if VX == VY."""
        self._skip_if(self.state.V[ins.x] == self.state.V[ins.y])

    def _sne_vx_vy(self, ins: Instruction) -> None:
        """9XY0 - Skip if VX != VY."""
        self._skip_if(self.state.V[ins.x] != self.state.V[ins.y])

    # Loads and arithmetic

    def _ld_vx_byte(self, ins: Instruction) -> None:
        """6XNN - VX = NN."""
        self.state.V[ins.x] = ins.nn

    def _add_vx_byte(self, ins: Instruction) -> None:
        """7XNN - VX += NN. The carry is discarded and VF is left alone."""
        self.state.V[ins.x] = (self.state.V[ins.x] + ins.nn) & 0xFF

    def _ld_vx_vy(self, ins: Instruction) -> None:
        """8XY0 - VX = VY."""
        self.state.V[ins.x] = self.state.V[ins.y]

    def _or_vx_vy(self, ins: Instruction) -> None:
        """8XY1 - VX |= VY."""
        self.state.V[ins.x] |= self.state.V[ins.y]

    def _and_vx_vy(self, ins: Instruction) -> None:
        """8XY2 - VX &= VY."""
        self.state.V[ins.x] &= self.state.V[ins.y]

    def _xor_vx_vy(self, ins: Instruction) -> None:
        """8XY3 - VX ^= VY."""
        self.state.V[ins.x] ^= self.state.V[ins.y]

    def _add_vx_vy(self, ins: Instruction) -> None:
        """
        8XY4 - VX += VY with carry.

        The sum is stored before the flag, so with X == F the flag wins.
        """
        V = self.state.V
        total = V[ins.x] + V[ins.y]
        V[ins.x] = total & 0xFF
        self._set_flag(1 if total > 0xFF else 0)

    def _sub_vx_vy(self, ins: Instruction) -> None:
        """
        8XY5 - VX -= VY.

        VF = 1 when VX > VY (no borrow), computed before VX changes.
        """
        V = self.state.V
        vx, vy = V[ins.x], V[ins.y]
        self._set_flag(1 if vx > vy else 0)
        V[ins.x] = (vx - vy) & 0xFF

    def _shr_vx(self, ins: Instruction) -> None:
        """8XY6 - VF = VX & 1, then VX >>= 1."""
        V = self.state.V
        vx = V[ins.x]
        self._set_flag(vx & 0x01)
        V[ins.x] = vx >> 1

    def _subn_vx_vy(self, ins: Instruction) -> None:
        """8XY7 - VX = VY - VX. VF = 1 when VY > VX."""
        V = self.state.V
        vx, vy = V[ins.x], V[ins.y]
        self._set_flag(1 if vy > vx else 0)
        V[ins.x] = (vy - vx) & 0xFF

    def _shl_vx(self, ins: Instruction) -> None:
        """8XYE - VF = VX & 0x80 (bit 7 left in place), then VX <<= 1."""
        V = self.state.V
        vx = V[ins.x]
        self._set_flag(vx & 0x80)
        V[ins.x] = (vx << 1) & 0xFF

    def _rnd_vx_byte(self, ins: Instruction) -> None:
        """CXNN - VX = random byte & NN."""
        self.state.V[ins.x] = self.random_byte() & ins.nn

    # Index register

    def _ld_i_addr(self, ins: Instruction) -> None:
        """ANNN - I = NNN."""
        self.state.index = ins.nnn

    def _add_i_vx(self, ins: Instruction) -> None:
        """FX1E - I += VX (16-bit, no flag)."""
        self.state.index = (self.state.index + self.state.V[ins.x]) & 0xFFFF

    def _ld_f_vx(self, ins: Instruction) -> None:
        """FX29 - I = address of the glyph for digit VX."""
        self.state.index = self.state.memory.font_offset + self.state.V[ins.x] * GLYPH_SIZE

    def _ld_b_vx(self, ins: Instruction) -> None:
        """FX33 - Store the decimal digits of VX at I, I+1, I+2."""
        value = self.state.V[ins.x]
        memory, index = self.state.memory, self.state.index
        memory.write(index, value // 100)
        memory.write(index + 1, value // 10 % 10)
        memory.write(index + 2, value % 10)

    def _ld_i_vx(self, ins: Instruction) -> None:
        """FX55 - Store V0..VX at I."""
        memory, index = self.state.memory, self.state.index
        for r in range(ins.x + 1):
            memory.write(index + r, self.state.V[r])

    def _ld_vx_i(self, ins: Instruction) -> None:
        """FX65 - Load V0..VX from I."""
        memory, index = self.state.memory, self.state.index
        for r in range(ins.x + 1):
            self.state.V[r] = memory.read(index + r)

    # Display

    def _drw_vx_vy_nibble(self, ins: Instruction) -> None:
        """
        DXYN - Draw an N-row sprite from I at (VX, VY).

        VF is cleared first and set to 1 if any lit pixel is turned off.
        Rows below the bottom edge and columns past the right edge are
        clipped rather than wrapped.
        """
        state = self.state
        display = state.display
        x = state.V[ins.x] % display.width
        y = state.V[ins.y] % display.height

        self._set_flag(0)

        rows = min(ins.n, display.height - y)
        sprite = state.memory.read_block(state.index, rows)
        if display.draw_sprite(x, y, sprite):
            self._set_flag(1)

    # Timers and input

    def _ld_vx_dt(self, ins: Instruction) -> None:
        """FX07 - VX = delay timer."""
        self.state.V[ins.x] = self.state.delay_timer

    def _ld_dt_vx(self, ins: Instruction) -> None:
        """FX15 - Delay timer = VX."""
        self.state.delay_timer = self.state.V[ins.x]

    def _ld_st_vx(self, ins: Instruction) -> None:
        """FX18 - Sound timer = VX."""
        self.state.sound_timer = self.state.V[ins.x]

    def _skp_vx(self, ins: Instruction) -> None:
        """EX9E - Skip if the key in VX is pressed."""
        self._skip_if(self.state.keypad.is_pressed(self.state.V[ins.x]))

    def _sknp_vx(self, ins: Instruction) -> None:
        """EXA1 - Skip if the key in VX is not pressed."""
        self._skip_if(not self.state.keypad.is_pressed(self.state.V[ins.x]))

    def _ld_vx_k(self, ins: Instruction) -> None:
        """
        FX0A - Wait for a key press and store its index in VX.

        With no key held, the machine is paused and PC is rewound so the same
        instruction is fetched again on the next cycle.
        """
        state = self.state
        key = state.keypad.first_pressed()
        if key is not None:
            state.V[ins.x] = key
            state.paused = False
        else:
            state.paused = True
            state.pc = (state.pc - 2) & 0xFFFF
