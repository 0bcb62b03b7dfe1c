"""
Tests for the ConfigManager module.
"""
import json
import os
import tempfile
import unittest

import yaml

from chip8_interpreter.utils.config_manager import ConfigManager

class TestConfigManager(unittest.TestCase):
    """
    Test cases for the ConfigManager class.
    """

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config = ConfigManager()

    def tearDown(self):
        self.temp_dir.cleanup()

    def _path(self, name):
        return os.path.join(self.temp_dir.name, name)

    def test_defaults(self):
        self.assertEqual(self.config.get("system"), "chip8")
        self.assertEqual(self.config.get("cpu.cycles_per_second"), 700)
        self.assertIsNone(self.config.get("cpu.rng_seed"))
        self.assertEqual(self.config.get("display.scale"), 10)
        self.assertEqual(self.config.get("missing.key", "fallback"), "fallback")

    def test_load_yaml(self):
        path = self._path("settings.yaml")
        with open(path, 'w') as f:
            yaml.safe_dump({"cpu": {"cycles_per_second": 500, "rng_seed": 42},
                            "display": {"dark_mode": False}}, f)

        self.assertTrue(self.config.load_config(path))
        self.assertEqual(self.config.get("cpu.cycles_per_second"), 500)
        self.assertEqual(self.config.get("cpu.rng_seed"), 42)
        self.assertFalse(self.config.get("display.dark_mode"))
        # Untouched siblings keep their defaults
        self.assertFalse(self.config.get("cpu.trace"))
        self.assertEqual(self.config.get("display.scale"), 10)

    def test_load_json(self):
        path = self._path("settings.json")
        with open(path, 'w') as f:
            json.dump({"logging": {"level": "DEBUG"}}, f)

        self.assertTrue(self.config.load_config(path))
        self.assertEqual(self.config.get("logging.level"), "DEBUG")
        self.assertIsNone(self.config.get("logging.file"))

    def test_load_failures(self):
        self.assertFalse(self.config.load_config(self._path("missing.yaml")))

        unsupported = self._path("settings.ini")
        with open(unsupported, 'w') as f:
            f.write("[cpu]\n")
        self.assertFalse(self.config.load_config(unsupported))

        broken = self._path("broken.json")
        with open(broken, 'w') as f:
            f.write("{not json")
        self.assertFalse(self.config.load_config(broken))

    def test_invalid_values_rejected(self):
        self.assertFalse(self.config.load_from_dict({"cpu": {"cycles_per_second": 0}}))
        self.assertFalse(self.config.load_from_dict({"cpu": {"rng_seed": -1}}))
        self.assertFalse(self.config.load_from_dict({"system": "superchip"}))
        self.assertFalse(self.config.load_from_dict({"logging": {"level": "LOUD"}}))
        self.assertFalse(self.config.load_from_dict({"display": {"scale": 0}}))
        self.assertFalse(self.config.load_from_dict({"cpu": "fast"}))
        # Nothing was merged
        self.assertEqual(self.config.get("cpu.cycles_per_second"), 700)

    def test_partially_bad_file_is_not_applied(self):
        path = self._path("settings.yaml")
        with open(path, 'w') as f:
            yaml.safe_dump({"cpu": {"rng_seed": 3}, "display": {"dark_mode": "yes"}}, f)

        self.assertFalse(self.config.load_config(path))
        self.assertIsNone(self.config.get("cpu.rng_seed"))
        self.assertTrue(self.config.get("display.dark_mode"))

    def test_key_map_validation(self):
        good = {c: i for i, c in enumerate("0123456789abcdef")}
        self.assertEqual(self.config.validate_config({"input": {"key_map": good}}), [])

        duplicate = dict(good, f=0)
        self.assertEqual(len(self.config.validate_config({"input": {"key_map": duplicate}})), 1)

        short = {"1": 1}
        self.assertEqual(len(self.config.validate_config({"input": {"key_map": short}})), 1)

    def test_set_overrides_file(self):
        self.config.load_from_dict({"cpu": {"rng_seed": 7}})
        self.config.set("cpu.rng_seed", 11)
        self.config.set("display.scale", 4)
        self.assertEqual(self.config.get("cpu.rng_seed"), 11)
        self.assertEqual(self.config.get("display.scale"), 4)
        # Siblings are untouched
        self.assertEqual(self.config.get("cpu.cycles_per_second"), 700)

    def test_defaults_are_not_shared(self):
        self.config.set("display.scale", 2)
        self.assertEqual(ConfigManager().get("display.scale"), 10)

    def test_config_path_in_constructor(self):
        path = self._path("settings.yml")
        with open(path, 'w') as f:
            f.write("cpu:\n  cycles_per_second: 1000\n")

        self.assertEqual(ConfigManager(path).get("cpu.cycles_per_second"), 1000)

    def test_system_config_overlay(self):
        self.config.load_from_dict({"cpu": {"cycles_per_second": 1200, "rng_seed": 7}})
        system_config = self.config.get_system_config()
        self.assertEqual(system_config["cycles_per_second"], 1200)
        self.assertEqual(system_config["rng_seed"], 7)
        self.assertEqual(system_config["program_start"], 0x200)
        self.assertEqual(system_config["memory_size"], 4096)

if __name__ == '__main__':
    unittest.main()
