from __future__ import annotations

"""
Deterministic missing-details rules for normalized log records.

Design intent:
- Decide follow-up prompts from the record itself, never from the model's list.
- Return None instead of an empty list so callers cannot emit [].
"""

from typing import Callable, Mapping, Optional

Details = Mapping[str, Optional[str]]


def _absent(details: Details, key: str) -> bool:
    value = details.get(key)
    return value is None or str(value).strip() == ""


def _value(details: Details, key: str) -> str:
    value = details.get(key)
    return "" if value is None else str(value).strip().lower()


def _diaper_change_rules(details: Details) -> list[str]:
    if "poop" in _value(details, "type") and (
        _absent(details, "consistency") or _absent(details, "color")
    ):
        return ["consistency", "color"]
    return []


def _feed_rules(details: Details) -> list[str]:
    feed_type = _value(details, "type")
    missing: list[str] = []
    if not feed_type or (feed_type == "bottle" and _absent(details, "amount")):
        missing.extend(["type", "amount"])
    if feed_type == "bottle" and _absent(details, "milkType"):
        missing.append("milkType")
    if feed_type == "breast" and _absent(details, "duration"):
        missing.append("duration")
    if feed_type == "solids" and _absent(details, "food"):
        missing.append("food")
    return missing


def _pump_rules(details: Details) -> list[str]:
    return ["amount"] if _absent(details, "amount") else []


def _temperature_rules(details: Details) -> list[str]:
    return ["value"] if _absent(details, "value") else []


_RULES: dict[str, Callable[[Details], list[str]]] = {
    "diaper change": _diaper_change_rules,
    "feed": _feed_rules,
    "pump": _pump_rules,
    "temperature": _temperature_rules,
}


def evaluate_missing_details(event: str | None, details: Details | None) -> list[str] | None:
    rule = _RULES.get(str(event or ""))
    if rule is None:
        return None
    missing = rule(details or {})
    unique = list(dict.fromkeys(missing))
    return unique or None
