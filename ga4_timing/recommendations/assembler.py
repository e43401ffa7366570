"""
Recommendation assembler: the single entry point of the timing engine.

Usage flow
----------
1. aggregate(rows, top_k)             -> ranked buckets (top-K)
2. project(bucket, config, now)       -> occurrences per bucket
3. merge_occurrences(...)             -> deduplicated, ascending
4. RecommendationResult(...)          -> buckets + occurrences + echoed config

``build_recommendation`` is pure: no I/O and no clock reads apart from the
single ``utcnow()`` snapshot taken when the caller does not pass ``now``.
The same snapshot is shared by every bucket in the batch.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from ga4_timing.models.timing import ProjectionConfig, RecommendationResult
from ga4_timing.recommendations.aggregator import RowLike, aggregate
from ga4_timing.recommendations.projector import merge_occurrences, project
from ga4_timing.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


def build_recommendation(
    rows:              Iterable[RowLike],
    projection_config: ProjectionConfig,
    top_k:             int,
    now:               Optional[datetime] = None,
    lookback_days:     Optional[int] = None,
) -> RecommendationResult:
    """Rank buckets from ``rows`` and project the top ``top_k`` into the future.

    Args:
        rows:              MetricRow objects or (hour, weekday, value) mappings.
        projection_config: Horizon / mode / cap / time zone.
        top_k:             Number of buckets to keep (>= 1).
        now:               Reference instant. Defaults to ``utcnow()``.
        lookback_days:     Echoed into the result for traceability only.

    Returns:
        RecommendationResult.

    Raises:
        ValueError: If ``top_k < 1`` or ``now`` is naive.
        pydantic.ValidationError: If a row is malformed.
    """
    if top_k < 1:
        raise ValueError(f"top_k must be >= 1, got {top_k}.")
    if now is None:
        now = utcnow()
    elif now.tzinfo is None or now.utcoffset() is None:
        raise ValueError(f"now must be timezone-aware, got {now!r}.")

    buckets = aggregate(rows, top_k)
    occurrences = merge_occurrences(
        project(bucket, projection_config, now) for bucket in buckets
    )

    logger.info(
        "Built recommendation: %d bucket(s), %d candidate(s), tz=%s mode=%s",
        len(buckets), len(occurrences),
        projection_config.time_zone, projection_config.occurrence_mode,
    )

    return RecommendationResult(
        buckets=buckets,
        occurrences=occurrences,
        top_k=top_k,
        horizon_days=projection_config.horizon_days,
        time_zone=projection_config.time_zone,
        occurrence_mode=projection_config.occurrence_mode,
        max_occurrences_per_bucket=projection_config.max_occurrences_per_bucket,
        lookback_days=lookback_days,
    )
