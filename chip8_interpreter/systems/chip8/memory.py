"""
CHIP-8 memory system implementation.

The CHIP-8 has a flat 4KB address space:
- Interpreter area (addresses 0x000-0x1FF), unused apart from the font
- Built-in hexadecimal glyphs (addresses 0x050-0x09F)
- Program image (addresses 0x200-0xFFF)

Addresses are masked to 12 bits, so index arithmetic that runs past the
end of memory wraps back to the start instead of faulting.
"""

from ...common.interfaces import Memory
from ...constants import FONT_SET
import logging
from typing import Dict, Any, Optional, Union, BinaryIO

logger = logging.getLogger("Chip8Interpreter.Chip8.Memory")

class Chip8Memory(Memory):
    """
    Emulates the CHIP-8 4KB RAM.

    Holds the font table at its fixed offset and the loaded program image.
    Re-created on every reset.
    """

    # Default layout
    MEMORY_SIZE = 4096
    PROGRAM_START = 0x200
    FONT_OFFSET = 0x050

    # Read size used when copying from a stream
    LOAD_CHUNK_SIZE = 8192

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the memory system.

        Args:
            config: Configuration dictionary
        """
        config = config or {}
        self.size = config.get("memory_size", self.MEMORY_SIZE)
        self.program_start = config.get("program_start", self.PROGRAM_START)
        self.font_offset = config.get("font_offset", self.FONT_OFFSET)
        self.address_mask = self.size - 1

        self.ram = bytearray(self.size)
        self.program_size = 0

        self.reset()
        logger.info(f"CHIP-8 memory system initialized ({self.size} bytes)")

    @property
    def capacity(self) -> int:
        """Number of bytes available to a program image."""
        return self.size - self.program_start

    def read(self, address: int) -> int:
        """
        Read a byte from the specified address.

        Args:
            address: Memory address

        Returns:
            Byte value at address
        """
        return self.ram[address & self.address_mask]

    def write(self, address: int, value: int) -> None:
        """
        Write a byte to the specified address.

        Args:
            address: Memory address
            value: Byte value to write
        """
        self.ram[address & self.address_mask] = value & 0xFF

    def read_word(self, address: int) -> int:
        """Read a big-endian 16-bit word."""
        return (self.read(address) << 8) | self.read(address + 1)

    def read_block(self, address: int, length: int) -> bytes:
        """Read `length` consecutive bytes, wrapping at the end of memory."""
        return bytes(self.read(address + offset) for offset in range(length))

    def load_rom(self, rom_data: Union[bytes, BinaryIO]) -> int:
        """
        Copy a program image into memory at the program start offset.

        Anything beyond the end of memory is silently dropped. A stream is
        read no further than `capacity` bytes and any remainder is left unread,
        so only byte images can report truncation here.

        Args:
            rom_data: ROM bytes, or a binary stream to read from

        Returns:
            Number of bytes copied
        """
        destination = self.program_start

        if hasattr(rom_data, "read"):
            while destination < self.size:
                chunk = rom_data.read(min(self.LOAD_CHUNK_SIZE, self.size - destination))
                if not chunk:
                    break
                self.ram[destination:destination + len(chunk)] = chunk
                destination += len(chunk)
            truncated = False
        else:
            data = bytes(rom_data)
            count = min(len(data), self.capacity)
            self.ram[destination:destination + count] = data[:count]
            destination += count
            truncated = len(data) > count

        self.program_size = destination - self.program_start

        if truncated:
            logger.warning(f"ROM larger than {self.capacity} bytes, truncated")
        logger.info(f"ROM loaded: {self.program_size} bytes at ${self.program_start:03X}")
        return self.program_size

    def reset(self) -> None:
        """Zero memory and re-populate the font table."""
        self.ram = bytearray(self.size)
        self.ram[self.font_offset:self.font_offset + len(FONT_SET)] = FONT_SET
        self.program_size = 0

        logger.debug("Memory system reset")
