import json
from datetime import datetime, timezone

from nurturetrack.events.normalizer import (
    normalize_event,
    normalize_extraction,
    normalize_time,
    parse_json_object,
)
from nurturetrack.events.time_context import resolve_time_context
from nurturetrack.internal_core.contracts import FALLBACK_ERROR_MESSAGE


def _context(hour_utc: int, minute: int = 0):
    return resolve_time_context(
        requested_timezone="America/Chicago",
        clock=lambda: datetime(2025, 4, 17, hour_utc, minute, tzinfo=timezone.utc),
    )


def test_overwrites_original_transcription_with_real_transcript() -> None:
    raw = json.dumps(
        {
            "babyName": "Emma",
            "event": "feed",
            "time": "3:00 PM",
            "details": {"type": "bottle", "milkType": "formula", "amount": "4", "unit": "oz"},
            "promptForDetails": None,
            "originalTranscription": "something the model made up",
        }
    )
    record = normalize_extraction(raw, "fed Emma 4 oz formula at 3", _context(22))
    assert record.originalTranscription == "fed Emma 4 oz formula at 3"
    assert record.error is None
    assert record.promptForDetails is None


def test_empty_prompt_list_becomes_none() -> None:
    raw = json.dumps({"event": "sleep", "details": {"type": "nap"}, "promptForDetails": []})
    record = normalize_extraction(raw, "nap in the crib", _context(22))
    assert record.promptForDetails is None
    assert "promptForDetails" in record.to_payload()
    assert record.to_payload()["promptForDetails"] is None


def test_model_prompt_list_is_replaced_by_rule_evaluator() -> None:
    raw = json.dumps(
        {
            "event": "pump",
            "details": {"amount": "150", "unit": "ml"},
            "promptForDetails": ["duration", "duration", 7],
        }
    )
    record = normalize_extraction(raw, "pumped 150 ml", _context(22))
    assert record.promptForDetails is None


def test_fed_two_hours_ago_at_five_pm_resolves_to_three_pm() -> None:
    raw = json.dumps({"babyName": "Emma", "event": "feed", "time": "2 hours ago", "details": {}})
    record = normalize_extraction(raw, "fed Emma 2 hours ago", _context(22))
    assert record.event == "feed"
    assert record.time == "3:00 PM"
    assert record.promptForDetails == ["type", "amount"]


def test_pooped_right_now_at_five_oh_five() -> None:
    raw = json.dumps(
        {
            "event": "diaper change",
            "time": "right now",
            "details": {"type": "poop", "consistency": None, "color": None},
        }
    )
    record = normalize_extraction(raw, "pooped right now", _context(22, 5))
    assert record.time == "5:05 PM"
    assert record.event == "diaper change"
    assert record.promptForDetails is not None
    assert {"consistency", "color"} <= set(record.promptForDetails)


def test_malformed_output_yields_fallback_note() -> None:
    record = normalize_extraction("Sure! Here is the log: event=feed", "fed the baby", _context(22))
    assert record.event == "note"
    assert record.error == FALLBACK_ERROR_MESSAGE
    assert record.originalTranscription == "fed the baby"
    assert record.promptForDetails is None
    assert record.details == {}
    assert record.babyName is None
    assert record.time is None


def test_non_object_json_yields_fallback() -> None:
    record = normalize_extraction('["feed"]', "fed the baby", _context(22))
    assert record.event == "note"
    assert record.error == FALLBACK_ERROR_MESSAGE


def test_json_wrapped_in_prose_is_repaired() -> None:
    raw = 'Here you go:\n```json\n{"event": "bath", "details": {"note": "{bubbles}"}}\n```'
    record = normalize_extraction(raw, "gave her a bath", _context(22))
    assert record.error is None
    assert record.event == "bath"
    assert record.details == {}


def test_model_supplied_error_field_is_dropped() -> None:
    raw = json.dumps({"event": "bath", "error": "model complained"})
    record = normalize_extraction(raw, "bath time", _context(22))
    assert record.error is None
    assert "error" not in record.to_payload()


def test_details_are_projected_onto_event_schema() -> None:
    raw = json.dumps(
        {
            "event": "Feed",
            "details": {"type": "bottle", "milk_type": "breast milk", "amount": 120, "unit": "ml", "extra": "x"},
        }
    )
    record = normalize_extraction(raw, "bottle of 120 ml breast milk", _context(22))
    assert record.event == "feed"
    assert record.details == {
        "type": "bottle",
        "milkType": "breast milk",
        "amount": "120",
        "unit": "ml",
        "food": None,
        "duration": None,
    }
    assert record.promptForDetails is None


def test_normalization_is_idempotent() -> None:
    context = _context(22, 5)
    raw = json.dumps(
        {"babyName": " Leo ", "event": "diaper change", "time": "right now", "details": {"type": "poop"}}
    )
    first = normalize_extraction(raw, "Leo pooped right now", context)
    second = normalize_extraction(json.dumps(first.to_payload()), "Leo pooped right now", context)
    assert second == first

    fallback = normalize_extraction("not json", "hmm", context)
    again = normalize_extraction(json.dumps(fallback.to_payload()), "hmm", context)
    assert again == fallback
    assert again.error == FALLBACK_ERROR_MESSAGE


def test_normalize_time_formats() -> None:
    context = _context(22)
    assert normalize_time("8 AM", context) == "8:00 AM"
    assert normalize_time("08:30pm", context) == "8:30 PM"
    assert normalize_time("4:05 PM CDT", context) == "4:05 PM"
    assert normalize_time("15:30", context) == "3:30 PM"
    assert normalize_time("00:15", context) == "12:15 AM"
    assert normalize_time("an hour ago", context) == "4:00 PM"
    assert normalize_time("half an hour ago", context) == "4:30 PM"
    assert normalize_time("45 minutes ago", context) == "4:15 PM"
    assert normalize_time("this morning", context) is None
    assert normalize_time("an hour ago", None) is None
    assert normalize_time(None, context) is None
    assert normalize_time("13:00 PM", context) is None


def test_normalize_event_aliases_and_unknowns() -> None:
    assert normalize_event("Diaper Change") == "diaper change"
    assert normalize_event("diaper_change") == "diaper change"
    assert normalize_event("feeding") == "feed"
    assert normalize_event("tummy time") == "note"
    assert normalize_event(None) is None
    assert normalize_event("null") is None


def test_parse_json_object_handles_braces_inside_strings() -> None:
    assert parse_json_object('noise {"a": "}{", "b": 1} trailing') == {"a": "}{", "b": 1}
    assert parse_json_object("") is None
    assert parse_json_object("{broken") is None
