from __future__ import annotations

from pathlib import Path
import sys
import unittest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from skindex.services.email_summary import format_analysis_text


class TestEmailSummary(unittest.TestCase):
    def test_full_layout(self) -> None:
        text = format_analysis_text(
            {
                "products": [
                    {
                        "name": "Retinol Serum",
                        "description": "Speeds up cell turnover.",
                        "usageTime": ["PM"],
                        "frequency": "2-3x/week",
                        "conflictsWith": ["Vitamin C"],
                    }
                ],
                "recommendedRoutine": {"AM": ["Cleanser", "Sunscreen"], "PM": ["Cleanser", "Retinol Serum"]},
                "conflicts": [{"products": ["Retinol", "Vitamin C"], "reason": "Irritation."}],
            }
        )

        self.assertEqual(
            text,
            "🧴 Your Skincare Analysis Results:\n"
            "\n"
            "📦 Products Analysis:\n"
            "- Retinol Serum Speeds up cell turnover.\n"
            "  Usage Time: PM\n"
            "  Frequency: 2-3x/week\n"
            "\n"
            "🌅 Recommended AM Routine:\n"
            "1. Cleanser\n"
            "2. Sunscreen\n"
            "\n"
            "🌙 Recommended PM Routine:\n"
            "1. Cleanser\n"
            "2. Retinol Serum\n"
            "\n"
            "⚠️ Conflicts:\n"
            "- Retinol & Vitamin C Irritation.\n",
        )

    def test_missing_sections_render_empty_headings(self) -> None:
        text = format_analysis_text({"products": [{"name": "Toner"}]})

        self.assertIn("🌅 Recommended AM Routine:\n\n🌙 Recommended PM Routine:\n", text)
        self.assertIn("  Usage Time: \n", text)
        self.assertNotIn("Conflicts", text)

    def test_no_products_goes_straight_to_routine(self) -> None:
        text = format_analysis_text({})
        self.assertEqual(
            text,
            "🧴 Your Skincare Analysis Results:\n"
            "\n"
            "📦 Products Analysis:\n"
            "🌅 Recommended AM Routine:\n"
            "\n"
            "🌙 Recommended PM Routine:\n",
        )

    def test_legacy_conflict_shape_renders(self) -> None:
        text = format_analysis_text({"conflicts": [{"productA": "AHA", "productB": "Retinol"}]})
        self.assertTrue(text.endswith("⚠️ Conflicts:\n- AHA & Retinol unspecified\n"))


if __name__ == "__main__":
    unittest.main()
