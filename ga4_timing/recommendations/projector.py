"""
Occurrence projector: maps a ranked (weekday, hour) bucket onto concrete
future instants.

Modes
-----
first  : at most one occurrence — the next matching slot within the horizon.
expand : the first occurrence, then fixed +7 day steps (604 800 s) until
         ``max_occurrences_per_bucket`` instants are collected or the next
         step passes ``now + horizon_days``.

The weekly step is a fixed duration, not a calendar week in the target zone.
Across a DST change the later occurrences therefore drift by the offset delta
on the wall clock (e.g. 10:00 CEST becomes 09:00 CET).
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable

from ga4_timing.models.timing import Bucket, Occurrence, ProjectionConfig
from ga4_timing.utils.time_utils import human_label, next_occurrence_within_horizon

logger = logging.getLogger(__name__)

WEEKLY_STEP = timedelta(days=7)


def project(bucket: Bucket, config: ProjectionConfig, now: datetime) -> list[Occurrence]:
    """Expand one bucket into future occurrences per ``config``.

    A bucket whose weekday never falls inside the horizon yields an empty
    list; the caller's batch is not failed.

    Args:
        bucket: Ranked bucket to project.
        config: Horizon, mode, cap and time zone.
        now:    Reference instant (timezone-aware).

    Returns:
        Occurrences in ascending order.
    """
    first = next_occurrence_within_horizon(
        bucket.weekday, bucket.hour, config.horizon_days, config.time_zone, now
    )
    if first is None:
        logger.debug(
            "No occurrence for weekday=%d hour=%d within %d days",
            bucket.weekday, bucket.hour, config.horizon_days,
        )
        return []

    instants = [first]
    if config.occurrence_mode == "expand":
        horizon_end = now + timedelta(days=config.horizon_days)
        cursor = first
        while len(instants) < config.max_occurrences_per_bucket:
            cursor = cursor + WEEKLY_STEP
            if cursor > horizon_end:
                break
            instants.append(cursor)

    return [
        Occurrence(
            instant=instant,
            label=human_label(instant, config.time_zone, config.label_locale),
        )
        for instant in instants
    ]


def merge_occurrences(groups: Iterable[list[Occurrence]]) -> list[Occurrence]:
    """Flatten per-bucket occurrences, drop duplicate instants, sort ascending."""
    by_instant: dict[datetime, Occurrence] = {}
    for group in groups:
        for occ in group:
            by_instant.setdefault(occ.instant, occ)
    return [by_instant[key] for key in sorted(by_instant)]
