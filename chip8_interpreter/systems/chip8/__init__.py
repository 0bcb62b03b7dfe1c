"""
CHIP-8 emulation components.
"""
# Import main classes for external use
from .errors import Chip8Error, DecodeError, StackOverflowError, StackUnderflowError
from .memory import Chip8Memory
from .display import Chip8Display
from .keypad import Key, Chip8Keypad, DEFAULT_KEY_MAP, translate_host_key, build_key_map
from .state import MachineState, CallStack
from .cpu import Chip8CPU, Instruction
from .chip8_system import Chip8System
