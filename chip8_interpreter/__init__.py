"""
CHIP-8 Interpreter

A fetch/decode/execute interpreter for the CHIP-8 virtual machine: 4KB of
memory, sixteen 8-bit registers, a bounded call stack, delay and sound
timers, a 64x32 monochrome display and a 16-key keypad.
"""

__version__ = "0.1.0"
