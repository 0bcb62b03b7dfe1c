# systems/system_factory.py
from typing import Any, Dict, Optional

from ..common.interfaces import System
from ..system_configs import SYSTEM_CONFIGS

from .chip8.chip8_system import Chip8System

# Machine implementations by SYSTEM_CONFIGS key
SYSTEM_CLASSES = {
    "chip8": Chip8System,
}

class SystemFactory:
    @staticmethod
    def create_system(system_type: str, overrides: Optional[Dict[str, Any]] = None, **kwargs) -> System:
        """
        Build a machine from its hardware description plus overrides.

        Extra keyword arguments (clock, rng, event_manager) go to the
        machine's constructor.
        """
        if system_type not in SYSTEM_CONFIGS or system_type not in SYSTEM_CLASSES:
            raise ValueError(f"Unknown system type: {system_type}")

        config = dict(SYSTEM_CONFIGS[system_type])
        config.update(overrides or {})
        return SYSTEM_CLASSES[system_type](config, **kwargs)
