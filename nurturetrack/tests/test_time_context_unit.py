from datetime import datetime, timedelta, timezone

from nurturetrack.events.prompt import build_messages, build_system_prompt
from nurturetrack.events.time_context import format_clock, resolve_time_context, resolve_timezone


def _clock():
    return datetime(2025, 4, 17, 15, 30, tzinfo=timezone.utc)


def test_display_matches_long_localized_layout() -> None:
    context = resolve_time_context(requested_timezone="America/Chicago", clock=_clock)
    assert context.display == "Thu, Apr 17, 2025 10:30 AM CDT"
    assert context.clock == "10:30 AM"
    assert context.timezone_name == "America/Chicago"


def test_requested_timezone_wins_over_configured() -> None:
    context = resolve_time_context(
        requested_timezone="Europe/London",
        configured_timezone="America/Chicago",
        clock=_clock,
    )
    assert context.timezone_name == "Europe/London"
    assert context.clock == "4:30 PM"


def test_unknown_requested_timezone_falls_through_to_configured() -> None:
    context = resolve_time_context(
        requested_timezone="Not/AZone",
        configured_timezone="America/New_York",
        clock=_clock,
    )
    assert context.timezone_name == "America/New_York"
    assert context.clock == "11:30 AM"


def test_fallback_timezone_used_when_local_zone_unavailable(monkeypatch) -> None:
    monkeypatch.setattr("nurturetrack.events.time_context._local_zone", lambda: None)
    zone, name = resolve_timezone(None, "", "America/Chicago")
    assert name == "America/Chicago"
    assert getattr(zone, "key", None) == "America/Chicago"


def test_naive_clock_is_treated_as_utc() -> None:
    context = resolve_time_context(
        requested_timezone="America/Chicago",
        clock=lambda: datetime(2025, 1, 10, 18, 0),
    )
    assert context.display == "Fri, Jan 10, 2025 12:00 PM CST"


def test_format_clock_edges() -> None:
    assert format_clock(datetime(2025, 1, 1, 0, 0)) == "12:00 AM"
    assert format_clock(datetime(2025, 1, 1, 12, 5)) == "12:05 PM"
    assert format_clock(datetime(2025, 1, 1, 23, 59)) == "11:59 PM"


def test_shifted_moves_relative_to_anchor() -> None:
    context = resolve_time_context(requested_timezone="America/Chicago", clock=_clock)
    assert format_clock(context.shifted(-timedelta(hours=2))) == "8:30 AM"


def test_system_prompt_anchors_time_and_demands_json() -> None:
    context = resolve_time_context(requested_timezone="America/Chicago", clock=_clock)
    prompt = build_system_prompt(context)
    assert "The current time is Thu, Apr 17, 2025 10:30 AM CDT." in prompt
    assert "Return ONLY the JSON object." in prompt
    assert "TIME RESOLUTION IS MANDATORY" in prompt
    assert '"diaper change": { "type"' in prompt

    messages = build_messages("fed Emma 2 hours ago", context)
    assert [m["role"] for m in messages] == ["system", "user"]
    assert messages[1]["content"] == "fed Emma 2 hours ago"
