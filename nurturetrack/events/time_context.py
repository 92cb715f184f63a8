from __future__ import annotations

"""
Anchored current time for resolving relative time phrases.

Design intent:
- Compute one timestamp per request and reuse it for the prompt and normalizer.
- Prefer the caller's zone; degrade to a documented fallback zone on any failure.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_TIMEZONE = "America/Chicago"


@dataclass(frozen=True)
class CurrentTimeContext:
    now: datetime
    timezone_name: str

    @property
    def display(self) -> str:
        # e.g. "Thu, Apr 17, 2025 10:30 AM CDT"
        now = self.now
        return f"{now:%a}, {now:%b} {now.day}, {now.year} {format_clock(now)} {now.tzname() or self.timezone_name}"

    @property
    def clock(self) -> str:
        return format_clock(self.now)

    def shifted(self, delta: timedelta) -> datetime:
        return self.now + delta


def format_clock(value: datetime) -> str:
    hour = value.hour % 12 or 12
    return f"{hour}:{value.minute:02d} {'AM' if value.hour < 12 else 'PM'}"


def _zone_from_name(name: str | None) -> Optional[tzinfo]:
    raw = str(name or "").strip()
    if not raw:
        return None
    try:
        return ZoneInfo(raw)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        logger.warning("Ignoring unknown timezone %r: %s", raw, exc)
        return None


def _local_zone() -> Optional[tzinfo]:
    zone = _zone_from_name(os.getenv("TZ"))
    if zone is not None:
        return zone
    try:
        return datetime.now().astimezone().tzinfo
    except (OSError, OverflowError, ValueError) as exc:
        logger.warning("Could not resolve host timezone: %s", exc)
        return None


def resolve_timezone(
    requested: str | None = None,
    configured: str | None = None,
    fallback: str = DEFAULT_FALLBACK_TIMEZONE,
) -> tuple[tzinfo, str]:
    """Return ``(zone, name)`` for the first resolvable candidate."""
    for candidate in (requested, configured):
        zone = _zone_from_name(candidate)
        if zone is not None:
            return zone, str(candidate).strip()

    zone = _local_zone()
    if zone is not None:
        return zone, getattr(zone, "key", None) or str(zone)

    fallback_zone = _zone_from_name(fallback)
    if fallback_zone is not None:
        return fallback_zone, fallback
    return timezone.utc, "UTC"


def resolve_time_context(
    *,
    requested_timezone: str | None = None,
    configured_timezone: str | None = None,
    fallback_timezone: str = DEFAULT_FALLBACK_TIMEZONE,
    clock: Callable[[], datetime] | None = None,
) -> CurrentTimeContext:
    zone, name = resolve_timezone(requested_timezone, configured_timezone, fallback_timezone)
    instant = clock() if clock is not None else datetime.now(timezone.utc)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return CurrentTimeContext(now=instant.astimezone(zone), timezone_name=name)
