"""
Fatal interpreter faults.

Every fault stops the execution loop. None of them is retried; the caller
decides whether to reset and reload.
"""


class Chip8Error(Exception):
    """Base class for fatal CHIP-8 interpreter faults."""


class DecodeError(Chip8Error):
    """Raised when an instruction word matches no defined instruction."""

    def __init__(self, opcode: int, address: int):
        self.opcode = opcode
        self.address = address
        super().__init__(f"Unsupported instruction ${opcode:04X} at ${address:03X}")


class StackOverflowError(Chip8Error):
    """Raised when a subroutine call is made with a full call stack."""

    def __init__(self, depth: int, address: int):
        self.depth = depth
        self.address = address
        super().__init__(f"Stack overflow: call to ${address:03X} with {depth} frames in use")


class StackUnderflowError(Chip8Error):
    """Raised when a return is executed on an empty call stack."""

    def __init__(self):
        super().__init__("Stack underflow: return with empty call stack")
