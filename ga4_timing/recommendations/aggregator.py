"""
Bucket aggregator: turns raw (hour, weekday, value) rows into ranked
(weekday, hour) buckets with share-of-total.

Algorithm
---------
1. Group rows by (weekday, hour) and sum their values.  Duplicate keys merge
   additively — paginated or filtered GA4 sub-queries can legitimately return
   the same weekday/hour pair more than once.
2. ``total`` is the sum over ALL groups, computed before truncation.
3. Sort by score descending.  Ties break by weekday ascending, then hour
   ascending, so output is reproducible for equal scores.
4. Keep the first ``top_k`` groups, assign 1-based ``rank`` and
   ``share = score / total`` (0 when total is 0).

Empty input yields an empty bucket list; nothing here raises for data
reasons.  Malformed rows are rejected when they are coerced to ``MetricRow``.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable, Mapping, Union

from ga4_timing.models.timing import Bucket, MetricRow

RowLike = Union[MetricRow, Mapping[str, Any]]


def coerce_rows(rows: Iterable[RowLike]) -> list[MetricRow]:
    """Validate raw rows into ``MetricRow`` objects.

    Accepts ``MetricRow`` instances or mappings with ``hour``, ``weekday``
    and ``value`` keys.

    Raises:
        pydantic.ValidationError: If a row is out of range or malformed.
    """
    return [r if isinstance(r, MetricRow) else MetricRow(**r) for r in rows]


def score_buckets(rows: Iterable[RowLike]) -> list[Bucket]:
    """Return ALL buckets, ranked, without top-K truncation.

    Shares across the returned list sum to 1.0 whenever the total is > 0.
    """
    totals: dict[tuple[int, int], float] = defaultdict(float)
    for row in coerce_rows(rows):
        totals[(row.weekday, row.hour)] += row.value

    total_score = sum(totals.values())
    ordered = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0][0], kv[0][1]))

    return [
        Bucket(
            weekday=weekday,
            hour=hour,
            score=score,
            rank=rank,
            share=(score / total_score) if total_score else 0.0,
        )
        for rank, ((weekday, hour), score) in enumerate(ordered, start=1)
    ]


def aggregate(rows: Iterable[RowLike], top_k: int) -> list[Bucket]:
    """Aggregate rows into the ``top_k`` highest-scoring buckets.

    Args:
        rows:  MetricRow objects or mappings (hour, weekday, value).
        top_k: Maximum number of buckets to return (>= 1).

    Returns:
        Buckets ordered by rank (length <= top_k).

    Raises:
        ValueError: If ``top_k < 1``.
    """
    if top_k < 1:
        raise ValueError(f"top_k must be >= 1, got {top_k}.")
    return score_buckets(rows)[:top_k]
