"""
Report bodies for the GA4 ``runReport`` endpoint.

Timing helpers (hour × weekday):
  blog    — page traffic under a path (default ``/blog``), optional domain.
  page    — page traffic under any path (default ``/`` = homepage only).
  channel — sessions of one Default Channel Group (e.g. Organic Social).
  source  — sessions from listed session sources (linkedin, t.co, ...).

Top lists:
  landing pages — landingPage × hostName ranked by a session metric.
  referrers     — sessionSource × sessionMedium × defaultChannelGroup.

Metric compatibility
--------------------
``defaultChannelGroup`` and ``sessionSource(Medium)`` are session-scoped, so
the event-scoped ``screenPageViews`` cannot be combined with them.  For the
channel and source helpers it is switched to ``sessions``; the metric that
was actually used is reported back as ``reportUsedMetric``.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ga4_timing.ingestion.filters import (
    FieldFilter,
    FilterExpression,
    combine_and,
    exclude_localhost,
    host_filter,
    page_path_filter,
)

TimingOperation = Literal["blog", "page", "channel", "source"]
TimingMetric = Literal["screenPageViews", "sessions", "engagedSessions"]
LandingPageMetric = Literal["sessions", "engagedSessions"]

_DEFAULT_PATHS: dict[str, str] = {"blog": "/blog", "page": "/"}
_SESSION_SCOPED_OPERATIONS = frozenset({"channel", "source"})


class TimingQuery(BaseModel):
    """Filter context for one hour × weekday timing report.

    Attributes:
        operation: Which helper to run (``blog``, ``page``, ``channel``, ``source``).
        lookback_days: Days of history to aggregate (7..365).
        timing_metric: Metric summed per bucket.
        domain: Optional hostName filter (domain or URL) for blog/page.
        path_contains: pagePath substring for blog/page; operation default if empty.
        channel_group: Default Channel Group for ``channel``.
        session_sources: Session sources for ``source`` (case-insensitive).
        use_source_medium: Match ``sessionSourceMedium`` instead of ``sessionSource``.
        return_property_quota: Ask GA4 to include ``propertyQuota``.
    """

    model_config = ConfigDict(frozen=True)

    operation: TimingOperation
    lookback_days: int = Field(default=60, ge=7, le=365)
    timing_metric: TimingMetric = "screenPageViews"
    domain: str = ""
    path_contains: str = ""
    channel_group: str = "Organic Social"
    session_sources: tuple[str, ...] = ("linkedin", "t.co", "instagram", "facebook")
    use_source_medium: bool = False
    return_property_quota: bool = True

    @field_validator("session_sources", mode="before")
    @classmethod
    def split_sources(cls, v: Any) -> Any:
        if isinstance(v, str):
            return tuple(s.strip() for s in v.split(",") if s.strip())
        return v


def resolve_metric(query: TimingQuery) -> str:
    """Return the metric actually requested, after scope compatibility."""
    if query.operation in _SESSION_SCOPED_OPERATIONS and query.timing_metric == "screenPageViews":
        return "sessions"
    return query.timing_metric


def build_dimension_filter(query: TimingQuery) -> Optional[FilterExpression]:
    """Build the ``dimensionFilter`` expression for a timing query.

    Raises:
        ValueError: If a ``source`` query lists no session sources.
    """
    if query.operation in _DEFAULT_PATHS:
        expressions: list[FilterExpression] = []
        hosts = host_filter(query.domain)
        if hosts is not None:
            expressions.append(hosts)
        expressions.append(page_path_filter(query.path_contains or _DEFAULT_PATHS[query.operation]))
        return combine_and(expressions)

    if query.operation == "channel":
        return FieldFilter("defaultChannelGroup", value=query.channel_group, match_type="EXACT")

    sources = tuple(s for s in query.session_sources if s)
    if not sources:
        raise ValueError("Please provide at least one session source.")
    field_name = "sessionSourceMedium" if query.use_source_medium else "sessionSource"
    return FieldFilter(field_name, values=sources, case_sensitive=False)


def build_timing_report_body(query: TimingQuery) -> dict[str, Any]:
    """Full ``runReport`` body for an hour × weekday timing query."""
    body: dict[str, Any] = {
        "dateRanges": [_lookback_range(query.lookback_days)],
        "dimensions": [{"name": "hour"}, {"name": "dayOfWeek"}],
        "metrics": [{"name": resolve_metric(query)}],
        "returnPropertyQuota": query.return_property_quota,
    }
    expression = build_dimension_filter(query)
    if expression is not None:
        body["dimensionFilter"] = expression.to_dict()
    return body


def build_landing_pages_body(
    lookback_days:         int = 60,
    limit:                 int = 10,
    metric_name:           LandingPageMetric = "sessions",
    domain:                str = "",
    path_contains:         str = "",
    exclude_local:         bool = True,
    return_property_quota: bool = True,
) -> dict[str, Any]:
    """``runReport`` body for the top landing pages by a session metric.

    When no domain is given, ``localhost`` traffic is excluded unless
    ``exclude_local`` is False.
    """
    expressions: list[FilterExpression] = []
    hosts = host_filter(domain)
    if hosts is not None:
        expressions.append(hosts)
    elif exclude_local:
        expressions.append(exclude_localhost())
    if path_contains:
        expressions.append(page_path_filter(path_contains))

    body: dict[str, Any] = {
        "dateRanges": [_lookback_range(lookback_days)],
        "dimensions": [{"name": "landingPage"}, {"name": "hostName"}],
        "metrics": [{"name": metric_name}],
        "orderBys": [{"metric": {"metricName": metric_name}, "desc": True}],
        "limit": limit,
        "returnPropertyQuota": return_property_quota,
    }
    expression = combine_and(expressions)
    if expression is not None:
        body["dimensionFilter"] = expression.to_dict()
    return body


def build_referrers_body(
    lookback_days:         int = 60,
    limit:                 int = 10,
    return_property_quota: bool = True,
) -> dict[str, Any]:
    """``runReport`` body for the top referrers (source / medium / channel) by sessions."""
    return {
        "dateRanges": [_lookback_range(lookback_days)],
        "dimensions": [
            {"name": "sessionSource"},
            {"name": "sessionMedium"},
            {"name": "defaultChannelGroup"},
        ],
        "metrics": [{"name": "sessions"}],
        "orderBys": [{"metric": {"metricName": "sessions"}, "desc": True}],
        "limit": limit,
        "returnPropertyQuota": return_property_quota,
    }


def _lookback_range(lookback_days: int) -> dict[str, str]:
    return {"startDate": f"{lookback_days}daysAgo", "endDate": "today"}
