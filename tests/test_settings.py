from __future__ import annotations

from pathlib import Path
import sys
import unittest

from pydantic import ValidationError

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from skindex.settings import DEFAULT_MODELS, Settings


class TestSettings(unittest.TestCase):
    def test_defaults_from_empty_environment(self) -> None:
        settings = Settings.from_env({})
        self.assertEqual(settings.gemini_models, DEFAULT_MODELS)
        self.assertEqual(settings.cors_origins, ("https://skindexanalyzer.com",))
        self.assertEqual(settings.port, 4000)
        self.assertEqual(settings.email_transport, "smtp")
        self.assertEqual(settings.sender, "")

    def test_parses_lists_and_sender(self) -> None:
        settings = Settings.from_env(
            {
                "GEMINI_MODELS": "a, b,,a",
                "CORS_ORIGINS": "*",
                "EMAIL_USER": "me@gmail.com",
                "EMAIL_TRANSPORT": "API",
                "PORT": "8080",
                "CONFLICT_REASON_FIELDS": "why",
            }
        )
        self.assertEqual(settings.gemini_models, ("a", "b"))
        self.assertTrue(settings.allow_all_origins)
        self.assertEqual(settings.sender, "me@gmail.com")
        self.assertEqual(settings.email_transport, "api")
        self.assertEqual(settings.port, 8080)
        self.assertEqual(settings.conflict_reason_fields, ("why",))

    def test_is_immutable(self) -> None:
        settings = Settings()
        with self.assertRaises(ValidationError):
            settings.port = 1  # type: ignore[misc]

    def test_malformed_values_fail_at_startup(self) -> None:
        with self.assertRaises(ValueError):
            Settings.from_env({"PORT": "not-a-port"})
        with self.assertRaises(ValueError):
            Settings.from_env({"EMAIL_TRANSPORT": "pigeon"})


if __name__ == "__main__":
    unittest.main()
