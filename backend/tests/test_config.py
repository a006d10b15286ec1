"""Unit tests for YAML settings loading."""

from pathlib import Path
import sys
import tempfile
import unittest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
BACKEND_ROOT = PROJECT_ROOT / "backend"
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from core.config import load_settings


class ConfigTests(unittest.TestCase):
    """Validate defaults and fallbacks of `load_settings`."""

    def _load(self, text: str):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yml"
            path.write_text(text, encoding="utf-8")
            return load_settings(path)

    def test_bundled_config(self) -> None:
        settings = load_settings()
        self.assertFalse(settings.firebase_enabled)
        self.assertEqual(settings.credit_default_model, "comprehensive")
        self.assertEqual(settings.credit_min_rate, 8.0)
        self.assertEqual(settings.credit_max_rate, 18.0)
        self.assertEqual(settings.firebase_kyc_collection, "kyc_submissions")

    def test_missing_file_uses_defaults(self) -> None:
        settings = load_settings(Path("/nonexistent/config.yml"))
        self.assertEqual(settings.port, 8000)
        self.assertEqual(settings.credit_score_cache_ttl_sec, 300)
        self.assertIn("http://localhost:5173", settings.cors_allowed_origins)

    def test_inverted_rate_band_falls_back(self) -> None:
        settings = self._load("credit:\n  min_rate: 30\n  max_rate: 10\n")
        self.assertEqual((settings.credit_min_rate, settings.credit_max_rate), (8.0, 18.0))

    def test_invalid_values_fall_back(self) -> None:
        settings = self._load(
            "app:\n  port: not-a-port\n  debug: 'yes'\ncredit:\n  score_cache_ttl_sec: soon\n"
            "  default_model: ' RAPID '\ncors:\n  allowed_origins: 'https://a.example, https://b.example'\n"
        )
        self.assertEqual(settings.port, 8000)
        self.assertTrue(settings.debug)
        self.assertEqual(settings.credit_score_cache_ttl_sec, 300)
        self.assertEqual(settings.credit_default_model, "rapid")
        self.assertEqual(settings.cors_allowed_origins, ["https://a.example", "https://b.example"])


if __name__ == "__main__":
    unittest.main()
