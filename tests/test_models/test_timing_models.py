"""
Tests for ga4_timing/models/timing.py.

What we test
------------
MetricRow:
  - Valid construction; GA4 string values are coerced.
  - hour, weekday and value bounds are enforced.

Bucket / Occurrence:
  - Bucket payload keys; share bounded to [0, 1].
  - Occurrence normalises to UTC and rejects naive datetimes.

ProjectionConfig:
  - Defaults (14 days, first, 9, Europe/Berlin, de).
  - Invalid horizon, cap, mode, zone and locale are rejected.

RecommendationResult:
  - candidates/labels are parallel; to_payload() echoes the configuration.
  - Models are frozen.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from ga4_timing.models.timing import (
    Bucket,
    MetricRow,
    Occurrence,
    ProjectionConfig,
    RecommendationResult,
)


# ── MetricRow ─────────────────────────────────────────────────────────────────

class TestMetricRow:
    def test_valid(self):
        row = MetricRow(hour=23, weekday=6, value=12.5)
        assert (row.hour, row.weekday, row.value) == (23, 6, 12.5)

    def test_string_values_are_coerced(self):
        row = MetricRow(hour="10", weekday="1", value="42")
        assert (row.hour, row.weekday, row.value) == (10, 1, 42.0)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"hour": 24, "weekday": 1, "value": 1},
            {"hour": -1, "weekday": 1, "value": 1},
            {"hour": 10, "weekday": 7, "value": 1},
            {"hour": 10, "weekday": 1, "value": -0.5},
        ],
    )
    def test_out_of_range_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            MetricRow(**kwargs)

    def test_frozen(self):
        row = MetricRow(hour=1, weekday=1, value=1)
        with pytest.raises(ValidationError):
            row.hour = 2


# ── Bucket / Occurrence ───────────────────────────────────────────────────────

class TestBucket:
    def test_payload(self):
        bucket = Bucket(weekday=1, hour=10, score=80, rank=1, share=0.5)
        assert bucket.to_payload() == {
            "rank": 1, "weekday": 1, "hour": 10, "score": 80.0, "share": 0.5,
        }

    def test_share_above_one_rejected(self):
        with pytest.raises(ValidationError):
            Bucket(weekday=1, hour=10, score=80, rank=1, share=1.5)

    def test_rank_is_one_based(self):
        with pytest.raises(ValidationError):
            Bucket(weekday=1, hour=10, score=80, rank=0, share=0.5)


class TestOccurrence:
    def test_normalised_to_utc(self):
        cest = timezone(timedelta(hours=2))
        occ = Occurrence(instant=datetime(2025, 10, 20, 10, tzinfo=cest), label="x")
        assert occ.instant == datetime(2025, 10, 20, 8, tzinfo=timezone.utc)
        assert occ.instant.utcoffset() == timedelta(0)
        assert occ.iso == "2025-10-20T08:00:00Z"

    def test_naive_rejected(self):
        with pytest.raises(ValidationError, match="timezone-aware"):
            Occurrence(instant=datetime(2025, 10, 20, 8), label="x")


# ── ProjectionConfig ──────────────────────────────────────────────────────────

class TestProjectionConfig:
    def test_defaults(self):
        cfg = ProjectionConfig()
        assert cfg.horizon_days == 14
        assert cfg.occurrence_mode == "first"
        assert cfg.max_occurrences_per_bucket == 9
        assert cfg.time_zone == "Europe/Berlin"
        assert cfg.label_locale == "de"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"horizon_days": 0},
            {"horizon_days": -3},
            {"max_occurrences_per_bucket": 0},
            {"occurrence_mode": "weekly"},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            ProjectionConfig(**kwargs)

    @pytest.mark.parametrize("zone", ["Mars/Olympus", "Europe"])
    def test_unknown_zone_rejected(self, zone):
        with pytest.raises(ValidationError, match="Unknown IANA time zone"):
            ProjectionConfig(time_zone=zone)

    def test_empty_zone_rejected(self):
        with pytest.raises(ValidationError, match="non-empty"):
            ProjectionConfig(time_zone="")

    def test_unknown_locale_rejected(self):
        with pytest.raises(ValidationError, match="label_locale"):
            ProjectionConfig(label_locale="fr")


# ── RecommendationResult ──────────────────────────────────────────────────────

class TestRecommendationResult:
    def _result(self) -> RecommendationResult:
        occurrences = [
            Occurrence(
                instant=datetime(2025, 10, 20, 8, tzinfo=timezone.utc),
                label="Mo., 20.10., 10:00",
            ),
            Occurrence(
                instant=datetime(2025, 10, 21, 7, tzinfo=timezone.utc),
                label="Di., 21.10., 09:00",
            ),
        ]
        return RecommendationResult(
            buckets=[
                Bucket(weekday=1, hour=10, score=80, rank=1, share=2 / 3),
                Bucket(weekday=2, hour=9, score=40, rank=2, share=1 / 3),
            ],
            occurrences=occurrences,
            top_k=2,
            horizon_days=14,
            time_zone="Europe/Berlin",
            occurrence_mode="first",
            max_occurrences_per_bucket=9,
            lookback_days=60,
        )

    def test_candidates_and_labels_parallel(self):
        result = self._result()
        assert result.candidates == ["2025-10-20T08:00:00Z", "2025-10-21T07:00:00Z"]
        assert result.labels == ["Mo., 20.10., 10:00", "Di., 21.10., 09:00"]

    def test_payload_echoes_config(self):
        payload = self._result().to_payload()
        assert set(payload) == {
            "buckets", "candidates", "labels", "lookbackDays", "horizonDays",
            "timeZone", "occurrenceMode", "topK", "maxOccurrences",
        }
        assert payload["timeZone"] == "Europe/Berlin"
        assert payload["topK"] == 2
        assert payload["lookbackDays"] == 60
        assert [b["rank"] for b in payload["buckets"]] == [1, 2]
