from __future__ import annotations

from typing import Any

from skindex.services.normalizer import DEFAULT_CONFLICT_RULES, ConflictRules, normalize_analysis


def format_analysis_text(result: Any, *, rules: ConflictRules = DEFAULT_CONFLICT_RULES) -> str:
    """Render an analysis result as the plain-text email body.

    The input is normalized first, so partial results render with empty
    sections instead of failing. The conflicts block only appears when
    there is at least one conflict.
    """
    normalized = normalize_analysis(result, rules=rules)
    lines: list[str] = ["🧴 Your Skincare Analysis Results:", ""]

    lines.append("📦 Products Analysis:")
    for product in normalized["products"]:
        lines.append(f"- {product['name']} {product['description']}".rstrip())
        lines.append(f"  Usage Time: {', '.join(product['usageTime'])}")
        lines.append(f"  Frequency: {product['frequency']}")
        lines.append("")

    routine = normalized["recommendedRoutine"]
    lines.append("🌅 Recommended AM Routine:")
    lines.extend(f"{i}. {step}" for i, step in enumerate(routine["AM"], start=1))
    lines.append("")
    lines.append("🌙 Recommended PM Routine:")
    lines.extend(f"{i}. {step}" for i, step in enumerate(routine["PM"], start=1))

    if normalized["conflicts"]:
        lines.append("")
        lines.append("⚠️ Conflicts:")
        for conflict in normalized["conflicts"]:
            lines.append(f"- {' & '.join(conflict['products'])} {conflict['reason']}")

    return "\n".join(lines) + "\n"
