"""
GA4 Data API client — report fetcher for the timing engine.

API:   https://analyticsdata.googleapis.com/v1beta/properties/{propertyId}
Docs:  https://developers.google.com/analytics/devguides/reporting/data/v1

The property id is the numeric GA4 Property ID (Admin → Property Settings),
not the Measurement ID (``G-XXXX``).

Usage (real API — requires service-account credentials)::

    provider = ServiceAccountTokenProvider(load_service_account_file(path))
    client = Ga4Client("412345678", token_provider=provider)
    report = client.fetch_metric_rows(TimingQuery(operation="blog"))

Usage (fixture / stub mode — no credentials required)::

    report = Ga4Client("412345678").get_fixture_report(TimingQuery(operation="blog"))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Optional

import httpx

from ga4_timing.ingestion.queries import (
    LandingPageMetric,
    TimingQuery,
    build_landing_pages_body,
    build_referrers_body,
    build_timing_report_body,
    resolve_metric,
)
from ga4_timing.models.timing import MetricRow

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], str]


class Ga4ApiError(RuntimeError):
    """Non-2xx response from the GA4 Data API."""

    def __init__(self, status_code: int, message: str, text: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.text = text


# ── Response types ─────────────────────────────────────────────────────────────

@dataclass
class TimingReport:
    """Parsed hour × weekday report plus the metadata the pipeline echoes."""

    rows: list[MetricRow] = field(default_factory=list)
    used_metric: str = "sessions"
    property_time_zone: Optional[str] = None
    property_quota: Optional[dict[str, Any]] = None
    is_fixture: bool = False


def parse_metric_rows(payload: dict[str, Any]) -> list[MetricRow]:
    """Parse ``runReport`` rows of dimensions (hour, dayOfWeek) and one metric.

    Raises:
        pydantic.ValidationError: If a row carries out-of-range values.
        ValueError: If a row is missing its dimension or metric values.
    """
    rows: list[MetricRow] = []
    for i, raw in enumerate(payload.get("rows") or []):
        dims = raw.get("dimensionValues") or []
        mets = raw.get("metricValues") or []
        if len(dims) < 2 or not mets:
            raise ValueError(
                f"GA4 row #{i} must have 2 dimension values and 1 metric value, got {raw!r}."
            )
        rows.append(
            MetricRow(
                hour=dims[0].get("value"),
                weekday=dims[1].get("value"),
                value=mets[0].get("value") or 0,
            )
        )
    return rows


# ── Client ─────────────────────────────────────────────────────────────────────

class Ga4Client:
    """Thin GA4 Data API client for timing and top-list reports.

    Attributes:
        property_id: Numeric GA4 property id.
        client_email: Service-account email, used in permission-denied errors.
    """

    BASE_URL: ClassVar[str] = "https://analyticsdata.googleapis.com/v1beta"

    # Synthetic (hour, dayOfWeek, value) cells for fixture mode: weekday
    # mornings peak, Tuesday 10:00 is the strongest slot.
    FIXTURE_CELLS: ClassVar[list[tuple[int, int, int]]] = [
        (10, 2, 420), (9, 2, 310), (10, 1, 380), (8, 1, 150),
        (11, 3, 360), (10, 3, 290), (9, 4, 330), (14, 4, 180),
        (10, 5, 210), (20, 0, 120), (19, 6, 90), (10, 2, 40),
    ]

    def __init__(
        self,
        property_id: str,
        token_provider: Optional[TokenProvider] = None,
        http_client: Optional[httpx.Client] = None,
        timeout_s: float = 30.0,
        client_email: str = "",
    ) -> None:
        """Initialise the GA4 client.

        Args:
            property_id:    Numeric GA4 property id.
            token_provider: Callable returning a bearer token. ``None`` → fixture only.
            http_client:    Optional pre-configured ``httpx.Client`` (tests inject
                            one backed by ``httpx.MockTransport``).
            timeout_s:      Request timeout in seconds.
            client_email:   Service-account email for error messages.

        Raises:
            ValueError: If ``property_id`` is empty.
        """
        if not property_id or not str(property_id).strip():
            raise ValueError("Property ID is required.")
        self.property_id = str(property_id).strip()
        self.client_email = client_email or getattr(token_provider, "client_email", "")
        self._token_provider = token_provider
        self._http = http_client or httpx.Client(timeout=timeout_s)

    @property
    def base_url(self) -> str:
        return f"{self.BASE_URL}/properties/{self.property_id}"

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "Ga4Client":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ── Real API methods ───────────────────────────────────────────────────────

    def run_report(self, body: dict[str, Any]) -> dict[str, Any]:
        """POST a ``runReport`` request and return the decoded JSON.

        Raises:
            RuntimeError: If the client has no token provider.
            Ga4ApiError:  On non-2xx API response.
            httpx.HTTPError: On transport failure.
        """
        if self._token_provider is None:
            raise RuntimeError(
                "GA4 credentials are not configured. Set GA4_TIMING_CREDENTIALS_FILE "
                "or GOOGLE_SERVICE_ACCOUNT_JSON in .env, or use fixture mode."
            )
        resp = self._http.post(
            f"{self.base_url}:runReport",
            json=body,
            headers={"Authorization": f"Bearer {self._token_provider()}"},
        )
        if resp.status_code == 403:
            sa = self.client_email or "(unknown SA)"
            raise Ga4ApiError(
                403,
                f"403 PERMISSION_DENIED for property {self.property_id} using SA {sa}. "
                f"Ensure the SA has Viewer/Analyst on that property. Raw: {resp.text}",
                resp.text,
            )
        if resp.is_error:
            raise Ga4ApiError(resp.status_code, f"{resp.status_code} {resp.text}", resp.text)
        logger.debug("runReport ok for property=%s", self.property_id)
        return resp.json()

    def fetch_metric_rows(self, query: TimingQuery) -> TimingReport:
        """Run an hour × weekday timing report and parse it into ``MetricRow``s."""
        body = build_timing_report_body(query)
        data = self.run_report(body)
        rows = parse_metric_rows(data)
        logger.info(
            "GA4 %s report: %d row(s), metric=%s, lookback=%dd",
            query.operation, len(rows), body["metrics"][0]["name"], query.lookback_days,
            extra={
                "property_id": self.property_id,
                "operation": query.operation,
                "row_count": len(rows),
            },
        )
        return TimingReport(
            rows=rows,
            used_metric=body["metrics"][0]["name"],
            property_time_zone=(data.get("metadata") or {}).get("timeZone"),
            property_quota=data.get("propertyQuota"),
        )

    def fetch_landing_pages(
        self,
        lookback_days: int = 60,
        limit: int = 10,
        metric_name: LandingPageMetric = "sessions",
        domain: str = "",
        path_contains: str = "",
        exclude_local: bool = True,
        return_property_quota: bool = True,
    ) -> dict[str, Any]:
        """Top landing pages by ``metric_name``: ``{"list": [...], "propertyQuota": ...}``."""
        data = self.run_report(
            build_landing_pages_body(
                lookback_days=lookback_days,
                limit=limit,
                metric_name=metric_name,
                domain=domain,
                path_contains=path_contains,
                exclude_local=exclude_local,
                return_property_quota=return_property_quota,
            )
        )
        items = [
            {
                "host": _dim(row, 1),
                "path": _dim(row, 0),
                metric_name: _metric(row),
            }
            for row in data.get("rows") or []
        ]
        return {"list": items, "propertyQuota": data.get("propertyQuota")}

    def fetch_referrers(
        self,
        lookback_days: int = 60,
        limit: int = 10,
        return_property_quota: bool = True,
    ) -> dict[str, Any]:
        """Top referrers by sessions: ``{"list": [...], "propertyQuota": ...}``."""
        data = self.run_report(
            build_referrers_body(
                lookback_days=lookback_days,
                limit=limit,
                return_property_quota=return_property_quota,
            )
        )
        items = [
            {
                "source": _dim(row, 0),
                "medium": _dim(row, 1),
                "channelGroup": _dim(row, 2),
                "sessions": _metric(row),
            }
            for row in data.get("rows") or []
        ]
        return {"list": items, "propertyQuota": data.get("propertyQuota")}

    # ── Fixture / stub mode ────────────────────────────────────────────────────

    def get_fixture_report(self, query: TimingQuery) -> TimingReport:
        """Return synthetic timing rows for offline runs and demos.

        Rows are structurally identical to a parsed GA4 response (including one
        duplicate (weekday, hour) cell) but carry no real traffic.
        """
        rows = [MetricRow(hour=h, weekday=d, value=v) for h, d, v in self.FIXTURE_CELLS]
        logger.debug(
            "Ga4Client: returning %d fixture rows for %s/%s",
            len(rows), self.property_id, query.operation,
        )
        return TimingReport(
            rows=rows,
            used_metric=resolve_metric(query),
            property_time_zone=None,
            property_quota=None,
            is_fixture=True,
        )


# ── Helpers ───────────────────────────────────────────────────────────────────

def _dim(row: dict[str, Any], idx: int) -> str:
    dims = row.get("dimensionValues") or []
    return (dims[idx].get("value") or "") if idx < len(dims) else ""


def _metric(row: dict[str, Any]) -> float:
    mets = row.get("metricValues") or []
    return float(mets[0].get("value") or 0) if mets else 0.0
