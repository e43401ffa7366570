"""
Value objects for best-time-to-post recommendations.

``MetricRow`` is one (hour, weekday, value) cell of a GA4 report.
``Bucket`` is a ranked, aggregated (weekday, hour) slot.
``Occurrence`` is a concrete future instant derived from a bucket.
``ProjectionConfig`` governs how many occurrences a bucket yields.
``RecommendationResult`` is the top-level output of one computation.

All models are frozen — they are built and consumed within a single
synchronous computation and never mutated or persisted.

Weekdays follow the GA4 ``dayOfWeek`` convention: Sunday = 0 .. Saturday = 6.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ga4_timing.utils.time_utils import (
    SUPPORTED_LABEL_LOCALES,
    format_utc_iso,
    resolve_zone,
)

OccurrenceMode = Literal["first", "expand"]


class MetricRow(BaseModel):
    """One aggregation unit returned by the analytics backend.

    Attributes:
        hour: Hour of day, 0..23 (property-local, as reported by GA4).
        weekday: Day of week, 0..6 with Sunday = 0.
        value: Non-negative metric value (sessions, page views, ...).
    """

    model_config = ConfigDict(frozen=True)

    hour: int = Field(ge=0, le=23)
    weekday: int = Field(ge=0, le=6)
    value: float = Field(ge=0)


class Bucket(BaseModel):
    """An aggregated, ranked (weekday, hour) slot.

    Attributes:
        weekday: Day of week, 0..6 with Sunday = 0.
        hour: Hour of day, 0..23.
        score: Sum of all contributing row values.
        rank: 1-based position after descending sort by score.
        share: ``score / total`` over all buckets (0 when the total is 0).
    """

    model_config = ConfigDict(frozen=True)

    weekday: int = Field(ge=0, le=6)
    hour: int = Field(ge=0, le=23)
    score: float = Field(ge=0)
    rank: int = Field(ge=1)
    share: float = Field(ge=0, le=1)

    def to_payload(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "weekday": self.weekday,
            "hour": self.hour,
            "score": self.score,
            "share": self.share,
        }


class Occurrence(BaseModel):
    """A concrete future instant for a bucket, with its display label."""

    model_config = ConfigDict(frozen=True)

    instant: datetime
    label: str

    @field_validator("instant")
    @classmethod
    def validate_instant_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError(f"instant must be timezone-aware, got {v!r}.")
        return v.astimezone(timezone.utc)

    @property
    def iso(self) -> str:
        return format_utc_iso(self.instant)


class ProjectionConfig(BaseModel):
    """Controls how ranked buckets are mapped onto future instants.

    Attributes:
        horizon_days: Forward-looking window in days (> 0).
        occurrence_mode: ``"first"`` — next slot only; ``"expand"`` — repeat
            weekly within the horizon.
        max_occurrences_per_bucket: Cap on weekly repeats in ``"expand"`` mode.
        time_zone: IANA zone the buckets are interpreted in.
        label_locale: Display locale for labels (``"de"`` or ``"en"``).
    """

    model_config = ConfigDict(frozen=True)

    horizon_days: int = Field(default=14, gt=0)
    occurrence_mode: OccurrenceMode = "first"
    max_occurrences_per_bucket: int = Field(default=9, gt=0)
    time_zone: str = "Europe/Berlin"
    label_locale: str = "de"

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, v: str) -> str:
        resolve_zone(v)
        return v.strip()

    @field_validator("label_locale")
    @classmethod
    def validate_label_locale(cls, v: str) -> str:
        if v not in SUPPORTED_LABEL_LOCALES:
            raise ValueError(
                f"Unknown label_locale '{v}'. Must be one of {sorted(SUPPORTED_LABEL_LOCALES)}."
            )
        return v


class RecommendationResult(BaseModel):
    """Output of ``build_recommendation``: ranked buckets + projected instants.

    ``occurrences`` is deduplicated by instant and sorted ascending; the
    configuration used to produce it is echoed for traceability.
    """

    model_config = ConfigDict(frozen=True)

    buckets: list[Bucket]
    occurrences: list[Occurrence]
    top_k: int
    horizon_days: int
    time_zone: str
    occurrence_mode: OccurrenceMode
    max_occurrences_per_bucket: int
    lookback_days: Optional[int] = None

    @property
    def candidates(self) -> list[str]:
        """ISO-8601 UTC strings of all occurrences, ascending."""
        return [occ.iso for occ in self.occurrences]

    @property
    def labels(self) -> list[str]:
        """Display labels, parallel to ``candidates``."""
        return [occ.label for occ in self.occurrences]

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the structured payload consumed by the CLI/report writer."""
        return {
            "buckets": [b.to_payload() for b in self.buckets],
            "candidates": self.candidates,
            "labels": self.labels,
            "lookbackDays": self.lookback_days,
            "horizonDays": self.horizon_days,
            "timeZone": self.time_zone,
            "occurrenceMode": self.occurrence_mode,
            "topK": self.top_k,
            "maxOccurrences": self.max_occurrences_per_bucket,
        }
