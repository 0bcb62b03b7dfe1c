"""
Configuration management for the CHIP-8 Interpreter.

Settings come from three layers, each overriding the one before: built-in
defaults, an optional JSON or YAML file, and command-line flags applied
with `set`. A file is validated as a whole before any of it is merged, so a
bad file never leaves the configuration half-applied.
"""

import os
import json
import logging
import copy
from typing import Dict, Any, Optional, List
import yaml

from ..constants import DEFAULT_CYCLES_PER_SECOND, LOG_LEVELS
from ..system_configs import SYSTEM_CONFIGS

logger = logging.getLogger("Chip8Interpreter.ConfigManager")

DEFAULT_CONFIG = {
    "system": "chip8",
    "cpu": {
        "cycles_per_second": DEFAULT_CYCLES_PER_SECOND,
        "rng_seed": None,
        "trace": False
    },
    "logging": {
        "level": "INFO",
        "file": None
    },
    "display": {
        "scale": 10,
        "dark_mode": True
    },
    "input": {
        "key_map": None
    }
}

def _read_json(stream) -> Any:
    return json.load(stream)

def _read_yaml(stream) -> Any:
    return yaml.safe_load(stream) or {}

# File readers by extension
CONFIG_READERS = {
    ".json": _read_json,
    ".yaml": _read_yaml,
    ".yml": _read_yaml,
}

def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)

def _section(config: Dict[str, Any], name: str, errors: List[str]) -> Dict[str, Any]:
    value = config.get(name, {})
    if not isinstance(value, dict):
        errors.append(f"{name} must be a mapping, got {type(value).__name__}")
        return {}
    return value

class ConfigManager:
    """
    Layered interpreter settings addressed by dotted key paths such as
    'cpu.cycles_per_second'.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to configuration file (None for default values)
        """
        self.config = copy.deepcopy(DEFAULT_CONFIG)

        if config_path:
            self.load_config(config_path)

    def load_config(self, config_path: str) -> bool:
        """
        Load and merge a configuration file.

        Args:
            config_path: Path to a .json, .yaml or .yml file

        Returns:
            True if the file was read, validated and merged
        """
        ext = os.path.splitext(config_path)[1].lower()
        reader = CONFIG_READERS.get(ext)
        if reader is None:
            logger.error(f"Unsupported configuration format '{ext}': {config_path}")
            return False

        try:
            with open(config_path, 'r') as f:
                user_config = reader(f)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            logger.error(f"Cannot read configuration {config_path}: {e}")
            return False

        if not self.load_from_dict(user_config):
            return False

        logger.info(f"Configuration loaded from {config_path}")
        return True

    def load_from_dict(self, config_dict: Dict[str, Any]) -> bool:
        """
        Validate a configuration mapping and merge it over the current values.

        Args:
            config_dict: Nested configuration mapping

        Returns:
            True if the mapping was valid and merged
        """
        problems = self.validate_config(config_dict)
        for problem in problems:
            logger.error(f"Configuration validation error: {problem}")
        if problems:
            return False

        self._merge_config(config_dict, self.config)
        return True

    def _merge_config(self, source: Dict[str, Any], target: Dict[str, Any]) -> None:
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                self._merge_config(value, target[key])
            else:
                target[key] = copy.deepcopy(value)

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Check a configuration mapping without applying it.

        Args:
            config: Nested configuration mapping

        Returns:
            List of problems found (empty if valid)
        """
        if not isinstance(config, dict):
            return [f"Configuration must be a mapping, got {type(config).__name__}"]

        errors = []

        if "system" in config and config["system"] not in SYSTEM_CONFIGS:
            errors.append(f"Unknown system '{config['system']}'. "
                          f"Valid options: {', '.join(SYSTEM_CONFIGS)}")

        cpu = _section(config, "cpu", errors)
        rate = cpu.get("cycles_per_second", 1)
        if isinstance(rate, bool) or not isinstance(rate, (int, float)) or rate <= 0:
            errors.append(f"cpu.cycles_per_second must be a positive number, got {rate!r}")

        seed = cpu.get("rng_seed")
        if seed is not None and (not _is_int(seed) or seed < 0):
            errors.append(f"cpu.rng_seed must be a non-negative integer or null, got {seed!r}")

        if not isinstance(cpu.get("trace", False), bool):
            errors.append(f"cpu.trace must be true or false, got {cpu['trace']!r}")

        level = _section(config, "logging", errors).get("level", "INFO")
        if level not in LOG_LEVELS:
            errors.append(f"logging.level must be one of {', '.join(LOG_LEVELS)}, got {level!r}")

        display = _section(config, "display", errors)
        scale = display.get("scale", 1)
        if not _is_int(scale) or scale < 1:
            errors.append(f"display.scale must be a positive integer, got {scale!r}")

        if not isinstance(display.get("dark_mode", True), bool):
            errors.append(f"display.dark_mode must be true or false, got {display['dark_mode']!r}")

        key_map = _section(config, "input", errors).get("key_map")
        if key_map is not None:
            if not isinstance(key_map, dict) or len(key_map) != 16:
                errors.append("input.key_map must map exactly 16 host keys")
            elif sorted(v for v in key_map.values() if _is_int(v)) != list(range(16)):
                errors.append("input.key_map must use each key 0-15 exactly once")

        return errors

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a value by dotted key path.

        Args:
            key: Key path (e.g., 'display.scale')
            default: Returned when any part of the path is missing

        Returns:
            Configuration value or default
        """
        node = self.config
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """
        Set a value by dotted key path, creating sections as needed.

        Args:
            key: Key path (e.g., 'cpu.rng_seed')
            value: Value to set
        """
        *sections, name = key.split('.')
        node = self.config
        for section in sections:
            node = node.setdefault(section, {})
        node[name] = value

        logger.debug(f"Configuration override: {key} = {value!r}")

    def get_system_config(self) -> Dict[str, Any]:
        """
        Get the machine description for the selected system with the CPU
        settings from this configuration applied on top.

        Returns:
            System configuration dictionary for `SystemFactory`
        """
        system_config = copy.deepcopy(SYSTEM_CONFIGS.get(self.get("system"), {}))
        system_config.update({
            "cycles_per_second": self.get("cpu.cycles_per_second"),
            "rng_seed": self.get("cpu.rng_seed"),
            "trace": self.get("cpu.trace", False),
        })
        return system_config
