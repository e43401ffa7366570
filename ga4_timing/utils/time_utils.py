"""
Time-zone aware calendar helpers for weekly posting slots.

Key concepts:
  - Weekday convention: GA4 reports ``dayOfWeek`` as 0..6 with Sunday = 0.
    Python's ``datetime.weekday()`` uses Monday = 0, so every conversion goes
    through ``_ga4_weekday()``.
  - Wall clock vs instant: all instants are tz-aware UTC ``datetime`` objects.
    Local calendar fields are only ever derived by rendering an instant in a
    named IANA zone (true zone rules, including DST), never by a fixed offset.
  - Explicit "now": functions that look forward in time take ``now`` as an
    argument. ``utcnow()`` is the only place the system clock is read.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import NamedTuple, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Short weekday labels indexed by GA4 weekday (Sunday = 0).
_WEEKDAY_LABELS: dict[str, tuple[str, ...]] = {
    "de": ("So.", "Mo.", "Di.", "Mi.", "Do.", "Fr.", "Sa."),
    "en": ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"),
}
SUPPORTED_LABEL_LOCALES: frozenset[str] = frozenset(_WEEKDAY_LABELS)

ISO_UTC_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class WallClock(NamedTuple):
    """Local calendar and clock fields of an instant as observed in a zone."""

    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int


def resolve_zone(time_zone: str) -> ZoneInfo:
    """Return the ``ZoneInfo`` for an IANA identifier.

    Args:
        time_zone: IANA zone name, e.g. ``"Europe/Berlin"``.

    Returns:
        The zone object.

    Raises:
        ValueError: If the identifier is empty, malformed or unknown.
    """
    if not time_zone or not time_zone.strip():
        raise ValueError("time_zone must be a non-empty IANA identifier, got ''.")
    try:
        return ZoneInfo(time_zone.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        # A region directory such as "Europe" surfaces as IsADirectoryError.
        raise ValueError(f"Unknown IANA time zone '{time_zone}'.") from exc


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def weekday_in_zone(instant: datetime, time_zone: str) -> int:
    """Return the GA4 weekday (Sunday = 0 .. Saturday = 6) of ``instant`` in a zone."""
    local = _require_aware(instant).astimezone(resolve_zone(time_zone))
    return _ga4_weekday(local)


def wall_clock_components_in_zone(instant: datetime, time_zone: str) -> WallClock:
    """Decompose a UTC instant into its local calendar/clock fields in ``time_zone``.

    Args:
        instant: Timezone-aware datetime.
        time_zone: IANA zone name.

    Returns:
        ``WallClock`` with year, month, day, hour, minute, second.
    """
    local = _require_aware(instant).astimezone(resolve_zone(time_zone))
    return WallClock(local.year, local.month, local.day, local.hour, local.minute, local.second)


def zoned_wall_time_to_utc(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    second: int,
    time_zone: str,
) -> datetime:
    """Return the UTC instant that renders as the given wall time in ``time_zone``.

    Single-correction conversion:
      1. Treat the desired wall-clock fields as if they were UTC (the guess).
      2. Render the guess in the target zone.
      3. Add ``desired_as_utc - rendered_as_utc`` to the guess.

    This is exact whenever no DST transition falls between the guess and the
    answer. When the desired wall time sits inside a transition gap or overlap
    the result can be off by the transition's offset delta; such wall times
    have no unique answer and are not resolved further.

    Args:
        year, month, day, hour, minute, second: Desired local wall-clock fields.
        time_zone: IANA zone name.

    Returns:
        Timezone-aware UTC datetime.
    """
    desired = datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
    rendered = wall_clock_components_in_zone(desired, time_zone)
    rendered_as_utc = datetime(*rendered, tzinfo=timezone.utc)
    return desired + (desired - rendered_as_utc)


def next_occurrence_within_horizon(
    weekday: int,
    hour: int,
    horizon_days: int,
    time_zone: str,
    now: datetime,
) -> Optional[datetime]:
    """Find the next instant falling on ``weekday`` at ``hour:00`` local time.

    Walks the local calendar dates that follow ``now``'s date in the target
    zone (``today + 1`` .. ``today + horizon_days``). The first date whose
    weekday matches is resolved to the wall time ``hour:00:00`` on that date
    and converted back to UTC. No weekday is skipped when a DST change
    falls near local midnight.

    Example: ``next_occurrence_within_horizon(1, 10, 14, "Europe/Berlin", now)``
    is the next Monday 10:00 Berlin time after today, as a UTC datetime.

    Args:
        weekday: GA4 weekday, Sunday = 0 .. Saturday = 6.
        hour: Local hour of day, 0..23.
        horizon_days: Number of days to scan forward.
        time_zone: IANA zone name.
        now: Reference instant (timezone-aware).

    Returns:
        UTC datetime, or ``None`` if the weekday does not occur in the horizon.
    """
    today = wall_clock_components_in_zone(_require_aware(now), time_zone)
    start = date(today.year, today.month, today.day)
    for offset in range(1, horizon_days + 1):
        candidate = start + timedelta(days=offset)
        if _ga4_weekday(candidate) != weekday:
            continue
        return zoned_wall_time_to_utc(
            candidate.year, candidate.month, candidate.day, hour, 0, 0, time_zone
        )
    return None


def human_label(instant: datetime, time_zone: str, locale: str = "de") -> str:
    """Render a short display label for ``instant`` in ``time_zone``.

    ``"de"`` follows the German short form, e.g. ``"Mo., 20.10., 10:00"``;
    ``"en"`` renders ``"Mon 20/10 10:00"``.
    """
    if locale not in _WEEKDAY_LABELS:
        raise ValueError(
            f"Unsupported label locale '{locale}'. "
            f"Must be one of {sorted(SUPPORTED_LABEL_LOCALES)}."
        )
    local = _require_aware(instant).astimezone(resolve_zone(time_zone))
    wd = _WEEKDAY_LABELS[locale][_ga4_weekday(local)]
    if locale == "de":
        return f"{wd}, {local:%d.%m.}, {local:%H:%M}"
    return f"{wd} {local:%d/%m %H:%M}"


def format_utc_iso(instant: datetime) -> str:
    """Format an instant as an ISO-8601 UTC string, e.g. ``2025-10-20T08:00:00Z``."""
    return _require_aware(instant).astimezone(timezone.utc).strftime(ISO_UTC_FORMAT)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _ga4_weekday(dt: date) -> int:
    # Python: Monday = 0 .. Sunday = 6  →  GA4: Sunday = 0 .. Saturday = 6
    return (dt.weekday() + 1) % 7


def _require_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None or dt.utcoffset() is None:
        raise ValueError(f"Expected a timezone-aware datetime, got naive {dt!r}.")
    return dt
