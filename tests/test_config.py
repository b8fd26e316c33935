"""
Test cases for YAML configuration loading.
"""
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from gesture_engine.config import Cfg, default_config, load_config


class TestLoadConfig(unittest.TestCase):

    def write_config(self, text: str) -> str:
        handle = tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False)
        with handle:
            handle.write(text)
        self.addCleanup(Path(handle.name).unlink)
        return handle.name

    def test_default_file_matches_builtin_defaults(self):
        self.assertEqual(load_config(), default_config())

    def test_partial_override(self):
        path = self.write_config(
            "hand:\n"
            "  pinch_threshold: 0.04\n"
            "gesture_mapper:\n"
            "  swipe_cooldown_ms: 1200\n"
        )
        cfg = load_config(path)
        self.assertEqual(cfg.hand.pinch_threshold, 0.04)
        self.assertEqual(cfg.hand.click_cooldown_ms, 300)
        self.assertEqual(cfg.gesture_mapper.swipe_cooldown_ms, 1200)
        self.assertEqual(cfg.face, Cfg().face)

    def test_empty_file_gives_defaults(self):
        self.assertEqual(load_config(self.write_config("")), Cfg())

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_config("/nonexistent/config.yaml")

    def test_unknown_key_rejected(self):
        path = self.write_config("face:\n  blink_rate: 3\n")
        with self.assertRaises(ValueError):
            load_config(path)

    def test_non_mapping_section_rejected(self):
        path = self.write_config("hand: 5\n")
        with self.assertRaises(ValueError):
            load_config(path)

    def test_out_of_range_smoothing_rejected(self):
        path = self.write_config("lip_sync:\n  smoothing: 1.5\n")
        with self.assertRaises(ValueError):
            load_config(path)

    def test_inverted_eye_range_rejected(self):
        path = self.write_config("face:\n  eye_ratio_min: 0.4\n  eye_ratio_max: 0.3\n")
        with self.assertRaises(ValueError):
            load_config(path)


if __name__ == "__main__":
    unittest.main()
