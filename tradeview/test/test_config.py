import os
import unittest
from unittest.mock import patch

from tradeview.core import config


class EnvParsingTests(unittest.TestCase):
    def test_env_int(self):
        with patch.dict(os.environ, {"TV_TEST_INT": "450"}):
            self.assertEqual(config._env_int("TV_TEST_INT", 300), 450)
        with patch.dict(os.environ, {"TV_TEST_INT": "soon"}):
            with self.assertLogs("tradeview.core.config", level="WARNING"):
                self.assertEqual(config._env_int("TV_TEST_INT", 300), 300)
        with patch.dict(os.environ, {"TV_TEST_INT": "  "}):
            self.assertEqual(config._env_int("TV_TEST_INT", 300), 300)

    def test_env_float(self):
        with patch.dict(os.environ, {"TV_TEST_FLOAT": "0.05"}):
            self.assertEqual(config._env_float("TV_TEST_FLOAT", 0.01), 0.05)
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("TV_TEST_FLOAT", None)
            self.assertEqual(config._env_float("TV_TEST_FLOAT", 0.01), 0.01)

    def test_env_positive_float_rejects_zero_and_negative(self):
        for raw in ("0", "-0.5"):
            with patch.dict(os.environ, {"TV_TEST_LOTS": raw}):
                with self.assertLogs("tradeview.core.config", level="WARNING"):
                    self.assertEqual(config._env_positive_float("TV_TEST_LOTS", 0.01), 0.01)
        with patch.dict(os.environ, {"TV_TEST_LOTS": "0.2"}):
            self.assertEqual(config._env_positive_float("TV_TEST_LOTS", 0.01), 0.2)

    def test_defaults_are_sane(self):
        self.assertGreater(config.QUICK_LOT_SIZE, 0)
        self.assertIn(config.PANEL_MODE, ("inline", "overlay"))
        self.assertFalse(config.API_BASE_URL.endswith("/"))
        self.assertGreaterEqual(config.SEARCH_DEBOUNCE_MS, 0)


if __name__ == "__main__":
    unittest.main()
