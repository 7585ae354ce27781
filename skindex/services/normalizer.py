from __future__ import annotations

from dataclasses import dataclass
import json
import re
from typing import Any, Callable, Optional, Sequence

UNNAMED_PRODUCT = "Unnamed Product"
UNSPECIFIED_REASON = "unspecified"

USAGE_TIMES = ("AM", "PM")

_AM_KEYS = ("AM", "am", "morning")
_PM_KEYS = ("PM", "pm", "evening", "night")

_PARTICIPANT_NAME_FIELDS = ("name", "product", "title")

# "Retinol & Vitamin C", "AHA + BHA", "Retinol vs. Benzoyl Peroxide", ...
_PARTICIPANT_SPLIT_RE = re.compile(r"\s*(?:&|\+|,|/|;|\band\b|\bwith\b|\bvs\.?)\s*", re.IGNORECASE)


@dataclass(frozen=True)
class ConflictRules:
    """Field names accepted for conflict entries, in priority order.

    Models have used several shapes over time; new names can be appended
    without touching the matching code.
    """

    list_fields: tuple[str, ...] = ("products", "items")
    pair_fields: tuple[tuple[str, str], ...] = (("productA", "productB"), ("product1", "product2"))
    string_fields: tuple[str, ...] = ("products", "items", "pair", "conflict")
    reason_fields: tuple[str, ...] = ("reason", "explanation", "description", "details")

    def extended(
        self,
        *,
        list_fields: Sequence[str] = (),
        reason_fields: Sequence[str] = (),
    ) -> "ConflictRules":
        return ConflictRules(
            list_fields=_merge_names(self.list_fields, list_fields),
            pair_fields=self.pair_fields,
            string_fields=_merge_names(self.string_fields, list_fields),
            reason_fields=_merge_names(self.reason_fields, reason_fields),
        )


DEFAULT_CONFLICT_RULES = ConflictRules()


def _merge_names(base: tuple[str, ...], extra: Sequence[str]) -> tuple[str, ...]:
    merged = list(base)
    for name in extra:
        if name and name not in merged:
            merged.append(name)
    return tuple(merged)


def normalize_analysis(raw: Any, *, rules: ConflictRules = DEFAULT_CONFLICT_RULES) -> dict[str, Any]:
    """Coerce an arbitrary parsed model reply into the analysis result shape.

    Never raises: missing or malformed fields become safe defaults, and
    conflicts naming fewer than two products are dropped.
    """
    obj = raw if isinstance(raw, dict) else {}

    products: list[dict[str, Any]] = []
    raw_products = obj.get("products")
    if isinstance(raw_products, list):
        for item in raw_products:
            product = _normalize_product(item)
            if product is not None:
                products.append(product)

    conflicts: list[dict[str, Any]] = []
    raw_conflicts = obj.get("conflicts")
    if isinstance(raw_conflicts, list):
        for item in raw_conflicts:
            conflict = normalize_conflict(item, rules=rules)
            if conflict is not None:
                conflicts.append(conflict)

    return {
        "products": products,
        "recommendedRoutine": _normalize_routine(obj.get("recommendedRoutine")),
        "conflicts": conflicts,
    }


def _normalize_product(item: Any) -> Optional[dict[str, Any]]:
    if isinstance(item, str):
        item = {"name": item}
    if not isinstance(item, dict):
        return None

    raw_name = item.get("name")
    name = (_coerce_text(raw_name) if raw_name else "") or UNNAMED_PRODUCT
    usage_raw = item.get("usageTime")
    conflicts_raw = item.get("conflictsWith")

    return {
        "name": name,
        "description": _coerce_text(item.get("description")),
        "usageTime": _normalize_usage_time(usage_raw) if isinstance(usage_raw, list) else [],
        "frequency": _coerce_text(item.get("frequency")),
        "conflictsWith": _coerce_names(conflicts_raw) if isinstance(conflicts_raw, list) else [],
    }


def _coerce_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _normalize_usage_time(values: list[Any]) -> list[str]:
    out: list[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        token = value.strip().upper()
        expanded = USAGE_TIMES if token == "BOTH" else (token,)
        for slot in expanded:
            if slot in USAGE_TIMES and slot not in out:
                out.append(slot)
    return out


def coerce_participant(value: Any) -> str:
    """Return a display name for one conflict participant; never drops it."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        for field in _PARTICIPANT_NAME_FIELDS:
            name = value.get(field)
            if isinstance(name, str) and name.strip():
                return name.strip()
    try:
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    except (TypeError, ValueError):
        return str(value)


def _coerce_names(values: list[Any]) -> list[str]:
    return [coerce_participant(v) for v in values]


def _split_participants(text: str) -> list[str]:
    return [part for part in (p.strip() for p in _PARTICIPANT_SPLIT_RE.split(text)) if part]


def _from_list_field(entry: dict[str, Any], rules: ConflictRules) -> Optional[list[str]]:
    for field in rules.list_fields:
        value = entry.get(field)
        if isinstance(value, list) and value:
            return _coerce_names(value)
    return None


def _is_present(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


def _from_pair_fields(entry: dict[str, Any], rules: ConflictRules) -> Optional[list[str]]:
    for first, second in rules.pair_fields:
        present = [key for key in (first, second) if _is_present(entry.get(key))]
        if not present:
            continue
        return [coerce_participant(entry[key]) for key in present]
    return None


def _from_string_field(entry: dict[str, Any], rules: ConflictRules) -> Optional[list[str]]:
    for field in rules.string_fields:
        value = entry.get(field)
        if isinstance(value, str) and value.strip():
            return _split_participants(value)
    return None


_PARTICIPANT_RULES: tuple[Callable[[dict[str, Any], ConflictRules], Optional[list[str]]], ...] = (
    _from_list_field,
    _from_pair_fields,
    _from_string_field,
)


def _resolve_reason(entry: dict[str, Any], rules: ConflictRules) -> str:
    for field in rules.reason_fields:
        value = entry.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return UNSPECIFIED_REASON


def normalize_conflict(entry: Any, *, rules: ConflictRules = DEFAULT_CONFLICT_RULES) -> Optional[dict[str, Any]]:
    if isinstance(entry, str):
        participants = _split_participants(entry)
        reason = UNSPECIFIED_REASON
    elif isinstance(entry, dict):
        participants = []
        for rule in _PARTICIPANT_RULES:
            matched = rule(entry, rules)
            if matched is not None:
                participants = matched
                break
        reason = _resolve_reason(entry, rules)
    else:
        return None

    if len(participants) < 2:
        return None
    return {"products": participants, "reason": reason}


def _normalize_routine(raw: Any) -> dict[str, list[str]]:
    routine = raw if isinstance(raw, dict) else {}
    return {
        "AM": _routine_steps(routine, _AM_KEYS),
        "PM": _routine_steps(routine, _PM_KEYS),
    }


def _routine_steps(routine: dict[str, Any], keys: tuple[str, ...]) -> list[str]:
    for key in keys:
        if key in routine:
            steps = routine[key]
            return _coerce_names(steps) if isinstance(steps, list) else []
    return []
