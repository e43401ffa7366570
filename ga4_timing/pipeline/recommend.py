"""
Timing recommendation pipeline — fetch, resolve zone, assemble.

Flow
----
  1. ``fetcher(query)`` → ``TimingReport`` (live GA4 or fixture rows).
  2. Resolve the time zone: explicit ``settings.time_zone``, else the
     property's ``metadata.timeZone``, else ``Europe/Berlin``.
  3. ``build_recommendation`` → ``RecommendationResult``.
  4. Return the payload plus ``operation``, ``reportUsedMetric`` and
     ``propertyQuota``.

Fetcher errors (``Ga4ApiError``, ``Ga4AuthError``, ``httpx.HTTPError``) are
not caught here; the CLI turns them into ``[ERROR]`` lines.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

from ga4_timing.ingestion.ga4_client import TimingReport
from ga4_timing.ingestion.queries import TimingQuery
from ga4_timing.models.timing import ProjectionConfig
from ga4_timing.recommendations.assembler import build_recommendation

if TYPE_CHECKING:
    from ga4_timing.config import TimingConfig

logger = logging.getLogger(__name__)

DEFAULT_TIME_ZONE = "Europe/Berlin"

ReportFetcher = Callable[[TimingQuery], TimingReport]


def resolve_time_zone(explicit: str, property_time_zone: Optional[str]) -> str:
    """Pick the zone buckets are interpreted in."""
    if explicit and explicit.strip():
        return explicit.strip()
    if property_time_zone:
        return property_time_zone
    return DEFAULT_TIME_ZONE


def run_timing_recommendation(
    fetcher:  ReportFetcher,
    query:    TimingQuery,
    settings: "TimingConfig",
    now:      Optional[datetime] = None,
) -> dict[str, Any]:
    """Fetch an hour × weekday report and turn it into posting-time candidates.

    Args:
        fetcher:  Callable returning a ``TimingReport`` for ``query``
                  (``Ga4Client.fetch_metric_rows`` or ``get_fixture_report``).
        query:    Filter context of the report.
        settings: Top-K, horizon, occurrence mode/cap, zone and label locale.
        now:      Reference instant, forwarded to ``build_recommendation``.

    Returns:
        Recommendation payload dict.

    Raises:
        ValueError: If the resolved time zone is unknown or ``top_k < 1``.
        pydantic.ValidationError: If the projection settings are invalid.
    """
    report = fetcher(query)
    time_zone = resolve_time_zone(settings.time_zone, report.property_time_zone)
    logger.info(
        "Timing recommendation [%s]: %d row(s), tz=%s%s",
        query.operation, len(report.rows), time_zone,
        " (fixture)" if report.is_fixture else "",
        extra={
            "operation": query.operation,
            "time_zone": time_zone,
            "fixture": report.is_fixture,
        },
    )

    projection = ProjectionConfig(
        horizon_days=settings.horizon_days,
        occurrence_mode=settings.occurrence_mode,
        max_occurrences_per_bucket=settings.max_occurrences,
        time_zone=time_zone,
        label_locale=settings.label_locale,
    )
    result = build_recommendation(
        report.rows,
        projection,
        top_k=settings.top_k,
        now=now,
        lookback_days=query.lookback_days,
    )

    payload = result.to_payload()
    payload["operation"] = query.operation
    payload["reportUsedMetric"] = report.used_metric
    payload["propertyQuota"] = report.property_quota
    return payload
