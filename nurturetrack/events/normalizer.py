from __future__ import annotations

"""
Normalize raw extraction output into a StructuredLogRecord.

Design intent:
- Never trust model echoes: originalTranscription and promptForDetails are recomputed.
- Repair near-JSON output once, then fall back to a valid "note" record.
- Keep normalization idempotent so records can be re-normalized safely.
"""

import json
import logging
import re
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from nurturetrack.internal_core.contracts import (
    ALLOWED_EVENTS,
    DETAIL_FIELDS_BY_EVENT,
    FALLBACK_ERROR_MESSAGE,
    StructuredLogRecord,
)

from .details_policy import evaluate_missing_details
from .time_context import CurrentTimeContext, format_clock

logger = logging.getLogger(__name__)

_EVENT_ALIASES: dict[str, str] = {
    "diaper": "diaper change",
    "diaper_change": "diaper change",
    "diaperchange": "diaper change",
    "nappy change": "diaper change",
    "feeding": "feed",
    "bottle": "feed",
    "nursing": "feed",
    "nap": "sleep",
    "pumping": "pump",
    "medicine": "medication",
    "temp": "temperature",
}

_CLOCK_12H_RE = re.compile(
    r"^(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<meridiem>[ap])\.?\s*m\.?(?:\s+[a-z]{2,5})?$",
    re.IGNORECASE,
)
_CLOCK_24H_RE = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::\d{2})?$")
_NOW_RE = re.compile(r"^(?:right\s+|just\s+)?now$", re.IGNORECASE)
_HALF_HOUR_AGO_RE = re.compile(r"^half\s+an?\s+hour\s+ago$", re.IGNORECASE)
_AGO_RE = re.compile(
    r"^(?P<count>\d+(?:\.\d+)?|an?|one|two|three|four|five|six|seven|eight|nine|ten|eleven|twelve)"
    r"\s+(?P<unit>minutes?|mins?|hours?|hrs?)\s+ago$",
    re.IGNORECASE,
)
_WORD_NUMBERS: dict[str, float] = {
    "a": 1,
    "an": 1,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
}
_NULL_STRINGS = {"", "null", "none", "n/a", "unknown"}


def parse_json_object(raw: str) -> dict[str, Any] | None:
    if not raw:
        return None
    try:
        data = json.loads(raw)
        if isinstance(data, dict):
            return data
    except ValueError:
        pass

    extracted = _extract_first_json_object(raw)
    if not extracted:
        return None
    try:
        data = json.loads(extracted)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _extract_first_json_object(text: str) -> str:
    start = text.find("{")
    if start < 0:
        return ""
    depth = 0
    in_str = False
    escape = False
    for i, ch in enumerate(text[start:], start=start):
        if in_str:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return ""


def _coerce_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    if text.lower() in _NULL_STRINGS:
        return None
    return text


def normalize_event(value: Any) -> Optional[str]:
    text = _coerce_text(value)
    if text is None:
        return None
    key = re.sub(r"\s+", " ", text.lower().replace("_", " ")).strip()
    if key in ALLOWED_EVENTS:
        return key
    alias = _EVENT_ALIASES.get(key) or _EVENT_ALIASES.get(key.replace(" ", "_"))
    return alias or "note"


def normalize_time(value: Any, time_context: CurrentTimeContext | None = None) -> Optional[str]:
    """Return ``H:MM AM/PM`` for clock times and resolvable relative phrases, else None."""
    text = _coerce_text(value)
    if text is None:
        return None
    text = re.sub(r"\s+", " ", text)

    match = _CLOCK_12H_RE.match(text)
    if match:
        hour = int(match.group("hour"))
        minute = int(match.group("minute") or 0)
        if 1 <= hour <= 12 and minute < 60:
            return f"{hour}:{minute:02d} {match.group('meridiem').upper()}M"
        return None

    match = _CLOCK_24H_RE.match(text)
    if match:
        hour = int(match.group("hour"))
        minute = int(match.group("minute"))
        if hour < 24 and minute < 60:
            return format_clock(datetime(2000, 1, 1, hour, minute))
        return None

    if "T" in text:
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is not None and time_context is not None:
                parsed = parsed.astimezone(time_context.now.tzinfo)
            return format_clock(parsed)

    delta = _relative_delta(text)
    if delta is not None and time_context is not None:
        return format_clock(time_context.shifted(-delta))
    return None


def _relative_delta(text: str) -> Optional[timedelta]:
    if _NOW_RE.match(text):
        return timedelta(0)
    if _HALF_HOUR_AGO_RE.match(text):
        return timedelta(minutes=30)
    match = _AGO_RE.match(text)
    if not match:
        return None
    raw_count = match.group("count").lower()
    count = _WORD_NUMBERS.get(raw_count)
    if count is None:
        count = float(raw_count)
    if match.group("unit").lower().startswith("h"):
        return timedelta(hours=count)
    return timedelta(minutes=count)


def normalize_details(event: Optional[str], raw: Any) -> dict[str, Optional[str]]:
    fields = DETAIL_FIELDS_BY_EVENT.get(str(event or ""))
    if not fields:
        return {}
    source: Mapping[str, Any] = raw if isinstance(raw, dict) else {}
    details: dict[str, Optional[str]] = {}
    for field in fields:
        value = source.get(field)
        if value is None:
            value = source.get(_snake_case(field))
        details[field] = _coerce_text(value)
    return details


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)([A-Z])", r"_\1", name).lower()


def normalize_record(
    payload: Mapping[str, Any],
    transcript: str,
    time_context: CurrentTimeContext | None = None,
) -> StructuredLogRecord:
    event = normalize_event(payload.get("event"))
    details = normalize_details(event, payload.get("details"))
    error = _coerce_text(payload.get("error"))
    return StructuredLogRecord(
        babyName=_coerce_text(payload.get("babyName")),
        event=event,
        time=normalize_time(payload.get("time"), time_context),
        details=details,
        promptForDetails=evaluate_missing_details(event, details),
        originalTranscription=transcript,
        error=error,
    )


def build_fallback_record(transcript: str, error: str = FALLBACK_ERROR_MESSAGE) -> StructuredLogRecord:
    return StructuredLogRecord(
        babyName=None,
        event="note",
        time=None,
        details={},
        promptForDetails=None,
        originalTranscription=transcript,
        error=error,
    )


def normalize_extraction(
    raw: str,
    transcript: str,
    time_context: CurrentTimeContext | None = None,
) -> StructuredLogRecord:
    """Turn the extraction service's raw text into a record; never raises."""
    payload = parse_json_object(raw)
    if payload is None:
        logger.warning("Extraction output is not a JSON object; using fallback record.")
        return build_fallback_record(transcript)

    # "error" is reserved for the fallback record; only its exact shape keeps it.
    if not _is_fallback_shape(payload):
        payload = {key: value for key, value in payload.items() if key != "error"}
    try:
        return normalize_record(payload, transcript, time_context)
    except Exception as exc:
        logger.warning("Extraction output failed schema normalization: %s", exc)
        return build_fallback_record(transcript)


def _is_fallback_shape(payload: Mapping[str, Any]) -> bool:
    return payload.get("event") == "note" and payload.get("error") == FALLBACK_ERROR_MESSAGE
