"""
Configuration data for supported virtual machines.
"""

from .constants import DEFAULT_CYCLES_PER_SECOND

SYSTEM_CONFIGS = {
    "chip8": {
        "cycles_per_second": DEFAULT_CYCLES_PER_SECOND,  # ~700 instructions per second
        "memory_size": 4096,
        "program_start": 0x200,
        "font_offset": 0x050,
        "stack_depth": 32,
        "register_count": 16,
        "key_count": 16,
        "resolution": (64, 32),  # columns x rows
        "rng_seed": None,
        "trace": False,
    }
}
