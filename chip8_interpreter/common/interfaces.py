# common/interfaces.py
from abc import ABC, abstractmethod
import typing as t

class CPU(ABC):
    """Executes instructions against machine state it does not own."""

    @abstractmethod
    def attach(self, state: t.Any) -> None:
        """Bind the machine state that `step` reads and writes."""

    @abstractmethod
    def reset(self) -> None:
        """Clear counters kept by the CPU itself."""

    @abstractmethod
    def step(self) -> int:
        """Fetch, decode and execute one instruction; returns cycles consumed."""

    @abstractmethod
    def get_state(self) -> dict:
        """Register snapshot, used for tracing and fault reports."""

class Memory(ABC):
    """Byte-addressed program memory."""

    @abstractmethod
    def read(self, address: int) -> int:
        """Byte at `address`."""

    @abstractmethod
    def write(self, address: int, value: int) -> None:
        """Store the low 8 bits of `value` at `address`."""

    @abstractmethod
    def load_rom(self, rom_data: t.Union[bytes, t.BinaryIO]) -> int:
        """Copy a program image in at the load address; returns bytes copied."""

class VideoProcessor(ABC):
    """Frame buffer shared between the execution thread and the host."""

    @abstractmethod
    def clear(self) -> None:
        """Turn every pixel off."""

    @abstractmethod
    def get_frame_buffer(self) -> t.Any:
        """Consistent copy of the frame that later drawing cannot change."""

    @abstractmethod
    def get_state(self) -> dict:
        """Dimensions and pixel counts for reporting."""

class System(ABC):
    """A complete machine driven by a cancellable run loop."""

    @abstractmethod
    def __init__(self, config: dict):
        """Build the machine from a `SYSTEM_CONFIGS` entry plus overrides."""

    @abstractmethod
    def load_rom(self, rom_path: str) -> None:
        """Read a program file into memory."""

    @abstractmethod
    def reset(self) -> None:
        """Return every component to its power-on state."""

    @abstractmethod
    def run(self, cancel_event: t.Any, max_cycles: t.Optional[int] = None) -> int:
        """Execute until `cancel_event` is set or `max_cycles` have run;
        returns the number executed."""

    @abstractmethod
    def get_system_state(self) -> dict:
        """Snapshot of every component's state."""
