import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from bike_charging.config import (
    CHARGING_DEFAULTS,
    ChargingConfig,
    RecoveryPolicy,
    get_charging_config,
    get_config_summary,
    get_recovery_policy,
)
from bike_charging.utils.config_loader import ConfigLoader


class TestConfigLoader(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.path = Path(self._tmpdir.name) / "Config.yml"

    def tearDown(self):
        ConfigLoader.reset_config_path()
        self._tmpdir.cleanup()

    def write(self, text):
        self.path.write_text(text, encoding="utf-8")
        ConfigLoader.set_config_path(self.path)

    def test_packaged_config(self):
        ConfigLoader.reset_config_path()
        config = get_charging_config()
        self.assertEqual(config.tick_interval_seconds, 1.0)
        self.assertEqual(config.full_mark, 100.0)
        self.assertEqual(config.floor, 0.0)
        self.assertTrue(config.clamp_to_full)
        self.assertEqual(get_recovery_policy(), RecoveryPolicy.CLEAR)

    def test_yaml_overrides_defaults(self):
        self.write(
            "charging_config:\n"
            "  tick_interval_seconds: 0.5\n"
            "  clamp_to_full: false\n"
            "startup_config:\n"
            "  recovery: resume\n"
        )
        config = get_charging_config()
        self.assertEqual(config.tick_interval_seconds, 0.5)
        self.assertFalse(config.clamp_to_full)
        self.assertEqual(config.full_mark, CHARGING_DEFAULTS["full_mark"])
        self.assertEqual(get_recovery_policy(), RecoveryPolicy.RESUME)

    def test_explicit_overrides_win(self):
        self.write("charging_config:\n  tick_interval_seconds: 0.5\n")
        config = get_charging_config({"tick_interval_seconds": 2.0})
        self.assertEqual(config.tick_interval_seconds, 2.0)

    def test_empty_file_uses_defaults(self):
        self.write("")
        self.assertEqual(get_charging_config().model_dump(), CHARGING_DEFAULTS)

    def test_missing_file(self):
        ConfigLoader.set_config_path(Path(self._tmpdir.name) / "missing.yml")
        with self.assertRaises(FileNotFoundError):
            ConfigLoader.load_config()

    def test_invalid_yaml(self):
        self.write("charging_config: [unclosed\n")
        with self.assertRaises(ValueError):
            ConfigLoader.load_config()

    def test_cache(self):
        self.write("charging_config:\n  full_mark: 90\n")
        self.assertEqual(get_charging_config().full_mark, 90)
        self.path.write_text("charging_config:\n  full_mark: 80\n", encoding="utf-8")
        self.assertEqual(get_charging_config().full_mark, 90)
        ConfigLoader.clear_cache()
        self.assertEqual(get_charging_config().full_mark, 80)


class TestChargingConfig(unittest.TestCase):
    def test_tick_must_be_positive(self):
        with self.assertRaises(ValidationError):
            ChargingConfig(tick_interval_seconds=0)

    def test_floor_below_full_mark(self):
        with self.assertRaises(ValidationError):
            ChargingConfig(floor=100, full_mark=100)

    def test_summary(self):
        summary = get_config_summary(ChargingConfig(tick_interval_seconds=2.0))
        self.assertIn("tick=2.0s", summary)
        self.assertIn("range=0.0-100.0%", summary)


if __name__ == '__main__':
    unittest.main()
