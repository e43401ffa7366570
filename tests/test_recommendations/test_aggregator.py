"""
Tests for ga4_timing/recommendations/aggregator.py.

What we test
------------
aggregate():
  - Duplicate (weekday, hour) rows merge additively.
  - share is relative to the total over ALL buckets, not just the top-K.
  - Ties break by weekday ascending, then hour ascending.
  - Empty input -> empty list; top_k < 1 raises ValueError.
  - Mappings are accepted alongside MetricRow; malformed rows raise.

score_buckets():
  - Score conservation: bucket scores sum to the row total.
  - Shares sum to 1.0 when the total is positive, and are 0 when it is 0.
  - Ranks are contiguous and 1-based.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ga4_timing.models.timing import MetricRow
from ga4_timing.recommendations.aggregator import aggregate, score_buckets


def _row(hour: int, weekday: int, value: float) -> MetricRow:
    return MetricRow(hour=hour, weekday=weekday, value=value)


class TestAggregate:
    def test_merges_duplicates_and_ranks(self, sample_rows):
        buckets = aggregate(sample_rows, top_k=2)

        assert [(b.weekday, b.hour, b.score, b.rank) for b in buckets] == [
            (1, 10, 80.0, 1),
            (2, 9, 40.0, 2),
        ]
        assert buckets[0].share == pytest.approx(2 / 3)
        assert buckets[1].share == pytest.approx(1 / 3)

    def test_share_uses_total_before_truncation(self, sample_rows):
        buckets = aggregate(sample_rows, top_k=1)
        assert len(buckets) == 1
        assert buckets[0].share == pytest.approx(80 / 120)

    def test_top_k_larger_than_bucket_count(self, sample_rows):
        assert len(aggregate(sample_rows, top_k=10)) == 2

    def test_tie_breaks_by_weekday_then_hour(self):
        rows = [_row(14, 3, 10), _row(9, 3, 10), _row(20, 1, 10), _row(8, 5, 99)]
        buckets = aggregate(rows, top_k=4)
        assert [(b.weekday, b.hour) for b in buckets] == [(5, 8), (1, 20), (3, 9), (3, 14)]

    def test_empty_input(self):
        assert aggregate([], top_k=3) == []

    @pytest.mark.parametrize("top_k", [0, -1])
    def test_invalid_top_k(self, sample_rows, top_k):
        with pytest.raises(ValueError, match=f"top_k must be >= 1, got {top_k}"):
            aggregate(sample_rows, top_k=top_k)

    def test_accepts_mappings(self):
        rows = [{"hour": 10, "weekday": 1, "value": 5}, _row(10, 1, 5)]
        (bucket,) = aggregate(rows, top_k=1)
        assert bucket.score == 10.0
        assert bucket.share == 1.0

    def test_malformed_mapping_raises(self):
        with pytest.raises(ValidationError):
            aggregate([{"hour": 25, "weekday": 1, "value": 5}], top_k=1)


class TestScoreBuckets:
    def test_score_conservation(self):
        rows = [_row(h % 24, d, (h * 7 + d) % 13) for h in range(30) for d in range(7)]
        buckets = score_buckets(rows)
        assert sum(b.score for b in buckets) == pytest.approx(sum(r.value for r in rows))

    def test_shares_sum_to_one(self):
        rows = [_row(9, 1, 3), _row(10, 2, 5), _row(11, 3, 7), _row(9, 1, 1)]
        buckets = score_buckets(rows)
        assert sum(b.share for b in buckets) == pytest.approx(1.0)

    def test_zero_total_gives_zero_shares(self):
        buckets = score_buckets([_row(9, 1, 0), _row(10, 2, 0)])
        assert [b.share for b in buckets] == [0.0, 0.0]
        assert [(b.weekday, b.hour) for b in buckets] == [(1, 9), (2, 10)]

    def test_ranks_contiguous(self):
        rows = [_row(h, d, h + d) for h in (8, 12, 18) for d in (0, 3, 6)]
        assert [b.rank for b in score_buckets(rows)] == list(range(1, 10))
