"""
Shared pytest fixtures for the GA4 post-timing test suite.

Provides:
  - ``frozen_now``: the fixed reference instant 2025-10-15T12:00:00Z
    (a Wednesday; Berlin is on CEST, UTC+2, until 2025-10-26).
  - ``berlin_config``: default ``ProjectionConfig`` in Europe/Berlin.
  - ``sample_rows``: a small hour × weekday report with a duplicate cell.
  - ``clean_env``: removes GA4 credential / override variables for the test.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from ga4_timing.models.timing import MetricRow, ProjectionConfig

_GA4_ENV_VARS = (
    "GA4_TIMING_PROPERTY_ID",
    "GA4_TIMING_CREDENTIALS_FILE",
    "GA4_TIMING_TIME_ZONE",
    "GA4_TIMING_LOG_LEVEL",
    "GA4_TIMING_DEBUG",
    "GOOGLE_SERVICE_ACCOUNT_JSON",
    "GA4_CLIENT_EMAIL",
    "GA4_PRIVATE_KEY",
)


# ── Time fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture
def frozen_now() -> datetime:
    """Wednesday 2025-10-15 12:00 UTC."""
    return datetime(2025, 10, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def berlin_config() -> ProjectionConfig:
    """First-mode projection over 14 days in Europe/Berlin with German labels."""
    return ProjectionConfig(
        horizon_days=14,
        occurrence_mode="first",
        max_occurrences_per_bucket=9,
        time_zone="Europe/Berlin",
        label_locale="de",
    )


# ── Report fixtures ───────────────────────────────────────────────────────────

@pytest.fixture
def sample_rows() -> list[MetricRow]:
    """Monday 10:00 appears twice (50 + 30); Tuesday 09:00 once (40)."""
    return [
        MetricRow(hour=10, weekday=1, value=50),
        MetricRow(hour=10, weekday=1, value=30),
        MetricRow(hour=9, weekday=2, value=40),
    ]


# ── Environment fixtures ──────────────────────────────────────────────────────

@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Unset every GA4_* / service-account variable for the duration of a test."""
    for name in _GA4_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
