from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Optional, Protocol, Sequence

from skindex.errors import InputValidationError, UpstreamFormatError, UpstreamInvocationError
from skindex.services.normalizer import DEFAULT_CONFLICT_RULES, ConflictRules, normalize_analysis

logger = logging.getLogger("skindex-relay.analysis")

PRODUCTS_REQUIRED = "Products array is required."

_FENCE_RE = re.compile(r"^```[\w+-]*[ \t]*\n?(.*?)\n?```$", re.DOTALL)

RESPONSE_SCHEMA_EXAMPLE = """{
  "products": [
    {
      "name": "CeraVe Cleanser",
      "description": "Gently cleanses without stripping skin barrier.",
      "usageTime": ["AM", "PM"],
      "frequency": "daily",
      "conflictsWith": []
    }
  ],
  "recommendedRoutine": {
    "AM": ["CeraVe Cleanser", "Vitamin C Serum", "Moisturizer", "Sunscreen"],
    "PM": ["CeraVe Cleanser", "BHA Exfoliant", "Niacinamide Serum", "Moisturizer"]
  },
  "conflicts": [
    {
      "products": ["Retinol", "Vitamin C"],
      "reason": "These ingredients can cause irritation when used together."
    }
  ]
}"""


class TextModel(Protocol):
    model_id: str

    async def generate(self, prompt: str) -> str: ...


ModelFactory = Callable[[str], TextModel]


class GeminiModel:
    def __init__(self, client: Any, model_id: str) -> None:
        self._client = client
        self.model_id = model_id

    async def generate(self, prompt: str) -> str:
        response = await self._client.aio.models.generate_content(model=self.model_id, contents=prompt)
        text = response.text
        if not text or not text.strip():
            raise RuntimeError(f"Gemini returned an empty response. model={self.model_id}")
        return text


class GeminiModelFactory:
    """Hands out model handles sharing one lazily built ``genai.Client``."""

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key
        self._client = None

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise ValueError("GEMINI_API_KEY not set.")
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def __call__(self, model_id: str) -> TextModel:
        if not model_id:
            raise ValueError("model id must be non-empty")
        return GeminiModel(self._get_client(), model_id)


def validate_products(products: Any) -> list[dict[str, str]]:
    if not isinstance(products, list) or not products:
        raise InputValidationError(PRODUCTS_REQUIRED)

    cleaned: list[dict[str, str]] = []
    for item in products:
        if not isinstance(item, dict):
            raise InputValidationError(PRODUCTS_REQUIRED, detail=f"product entry is not an object: {item!r}")
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            raise InputValidationError(PRODUCTS_REQUIRED, detail="product entry is missing a name")
        product_type = item.get("type")
        product_type = product_type.strip() if isinstance(product_type, str) else ""
        cleaned.append({"name": name.strip(), "type": product_type or "unspecified"})
    return cleaned


def build_prompt(products: Sequence[dict[str, str]]) -> str:
    listing = "\n".join(f"{i}. {p['name']} ({p['type']})" for i, p in enumerate(products, start=1))
    return (
        "You're a licensed esthetician and skincare formulator. "
        "A user entered the following skincare products:\n\n"
        + f"{listing}\n\n"
        + "Please return a JSON response that includes:\n\n"
        + "1. A description of what each product does.\n"
        + "2. Whether it should be used in the AM, PM, or both.\n"
        + "3. How often it should be used (e.g., daily, 2-3x/week).\n"
        + "4. Any ingredients or product types that should not be used together.\n"
        + "5. A recommended usage order for AM and PM routines, skipping products that should not be used at that time.\n\n"
        + "Return ONLY a valid JSON object (no markdown fences, no commentary) in this exact format:\n\n"
        + f"{RESPONSE_SCHEMA_EXAMPLE}\n"
    )


def strip_code_fence(text: str) -> str:
    stripped = (text or "").strip()
    match = _FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def parse_model_json(text: str) -> Any:
    cleaned = strip_code_fence(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise UpstreamFormatError(detail=f"invalid JSON from model: {exc}") from exc


class AnalysisRequester:
    def __init__(
        self,
        *,
        model_ids: Sequence[str],
        model_factory: ModelFactory,
        rules: ConflictRules = DEFAULT_CONFLICT_RULES,
    ) -> None:
        if not model_ids:
            raise ValueError("at least one model id is required")
        self.model_ids = tuple(model_ids)
        self._model_factory = model_factory
        self._rules = rules

    async def generate_text(self, prompt: str) -> str:
        """Try each candidate model in order; return the first non-empty reply."""
        last_error: Optional[BaseException] = None
        for model_id in self.model_ids:
            try:
                model = self._model_factory(model_id)
            except Exception as exc:
                logger.warning("Gemini model unavailable. model=%s err=%r", model_id, exc)
                last_error = exc
                continue

            try:
                text = await model.generate(prompt)
            except Exception as exc:
                logger.warning("Gemini generation failed. model=%s err=%r", model_id, exc)
                last_error = exc
                continue

            logger.info("Raw Gemini response. model=%s text=%s", model_id, text)
            return text

        raise UpstreamInvocationError(detail=f"all models failed: {last_error!r}")

    async def request_analysis(self, products: Any) -> dict[str, Any]:
        cleaned = validate_products(products)
        text = await self.generate_text(build_prompt(cleaned))
        return normalize_analysis(parse_model_json(text), rules=self._rules)
