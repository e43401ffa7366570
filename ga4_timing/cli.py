"""
GA4 Post Timing — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs (CLI overrides are re-validated through the config models).
  4. Execute action (timing recommendation, top-list report).
  5. Report result: JSON on stdout, status lines on stderr.

Install and run::

    pip install -e .
    ga4-timing --help
    ga4-timing validate-config
    ga4-timing recommend-times --operation blog --domain example.com
    ga4-timing recommend-times --operation source --sources linkedin,t.co --fixture
    ga4-timing landing-pages --limit 20
    ga4-timing referrers
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, get_args

import typer

app = typer.Typer(
    name="ga4-timing",
    help="GA4 best-posting-time recommendations from hour × weekday traffic.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from ga4_timing.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from ga4_timing.utils.logging import configure_logging
    configure_logging(config.logging)


def _fail(message: str) -> typer.Exit:
    typer.echo(f"[ERROR] {message}", err=True)
    return typer.Exit(code=1)


def _token_provider_or_exit(config):
    """Token provider from config/env; ``None`` when no credentials are configured."""
    from ga4_timing.ingestion.credentials import Ga4AuthError, token_provider_from_environment

    try:
        return token_provider_from_environment(
            credentials_file=config.ga4.credentials_file,
            scopes=config.ga4.scopes,
            subject=config.ga4.subject or None,
        )
    except Ga4AuthError as exc:
        raise _fail(str(exc))


def _live_client_or_exit(config, property_id: Optional[str]):
    """Ga4Client for commands that have no fixture mode."""
    from ga4_timing.ingestion.ga4_client import Ga4Client

    pid = property_id or config.ga4.property_id
    if not pid:
        raise _fail("Property ID is required (set [ga4].property_id or --property-id).")
    provider = _token_provider_or_exit(config)
    if provider is None:
        raise _fail(
            "GA4 credentials are not configured. Set GA4_TIMING_CREDENTIALS_FILE, "
            "GOOGLE_SERVICE_ACCOUNT_JSON or GA4_CLIENT_EMAIL + GA4_PRIVATE_KEY in .env."
        )
    return Ga4Client(pid, token_provider=provider, timeout_s=config.ga4.timeout_s)


def _echo_json(payload: dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  GA4 property:     {config.ga4.property_id or '(not set)'}")
    typer.echo(f"  Credentials file: {config.ga4.credentials_file or '(env / not set)'}")
    typer.echo(f"  Lookback days:    {config.timing.lookback_days}")
    typer.echo(f"  Top-K:            {config.timing.top_k}")
    typer.echo(f"  Horizon days:     {config.timing.horizon_days}")
    typer.echo(
        f"  Occurrence mode:  {config.timing.occurrence_mode} "
        f"(max {config.timing.max_occurrences})"
    )
    typer.echo(f"  Time zone:        {config.timing.time_zone or '(property time zone)'}")
    typer.echo(f"  Output dir:       {config.data.output_dir}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("recommend-times")
def recommend_times(
    operation: str = typer.Option(
        ...,
        "--operation",
        help="Timing helper: blog, page, channel or source.",
    ),
    property_id: Optional[str] = typer.Option(
        None, "--property-id", help="Override [ga4].property_id.",
    ),
    lookback_days: Optional[int] = typer.Option(
        None, "--lookback-days", help="Days of history to aggregate (7..365).",
    ),
    top_k: Optional[int] = typer.Option(
        None, "--top-k", help="Number of hour × weekday buckets to keep.",
    ),
    horizon_days: Optional[int] = typer.Option(
        None, "--horizon-days", help="Forward-looking window in days.",
    ),
    time_zone: Optional[str] = typer.Option(
        None, "--time-zone", help="IANA zone, e.g. Europe/Berlin (default: property zone).",
    ),
    occurrence_mode: Optional[str] = typer.Option(
        None, "--occurrence-mode", help="'first' or 'expand'.",
    ),
    max_occurrences: Optional[int] = typer.Option(
        None, "--max-occurrences", help="Per-bucket cap in expand mode (1..50).",
    ),
    metric: Optional[str] = typer.Option(
        None, "--metric", help="screenPageViews, sessions or engagedSessions.",
    ),
    domain: str = typer.Option(
        "", "--domain", help="Domain or URL filter (blog/page).",
    ),
    path_contains: str = typer.Option(
        "", "--path", help="pagePath substring (blog default '/blog', page default '/').",
    ),
    channel_group: str = typer.Option(
        "Organic Social", "--channel-group", help="Default Channel Group (channel).",
    ),
    sources: Optional[str] = typer.Option(
        None, "--sources", help="Comma-separated session sources (source).",
    ),
    use_source_medium: bool = typer.Option(
        False, "--use-source-medium", help="Match sessionSourceMedium instead of sessionSource.",
    ),
    fixture: bool = typer.Option(
        False, "--fixture", help="Use synthetic rows instead of the GA4 API.",
    ),
    save: bool = typer.Option(
        False, "--save", help="Also write the payload as JSON to the output directory.",
    ),
    output_dir: Optional[str] = typer.Option(
        None, "--output-dir", help="Override [data].output_dir (implies --save).",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file.",
    ),
) -> None:
    """Recommend the next best posting times from GA4 hour × weekday traffic.

    Without credentials (or with --fixture) the command runs in fixture mode
    on synthetic sample data.
    """
    import httpx
    from pydantic import ValidationError

    from ga4_timing.config import TimingConfig
    from ga4_timing.ingestion.credentials import Ga4AuthError
    from ga4_timing.ingestion.ga4_client import Ga4ApiError, Ga4Client
    from ga4_timing.ingestion.queries import TimingQuery
    from ga4_timing.pipeline.recommend import run_timing_recommendation
    from ga4_timing.recommendations.reporter import write_recommendation_json

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    overrides = {
        "lookback_days": lookback_days,
        "top_k": top_k,
        "horizon_days": horizon_days,
        "time_zone": time_zone,
        "occurrence_mode": occurrence_mode,
        "max_occurrences": max_occurrences,
        "timing_metric": metric,
    }
    try:
        settings = TimingConfig(
            **{
                **config.timing.model_dump(),
                **{k: v for k, v in overrides.items() if v is not None},
            }
        )
        query_kwargs: dict[str, Any] = {
            "operation": operation,
            "lookback_days": settings.lookback_days,
            "timing_metric": settings.timing_metric,
            "domain": domain,
            "path_contains": path_contains,
            "channel_group": channel_group,
            "use_source_medium": use_source_medium,
            "return_property_quota": config.ga4.return_property_quota,
        }
        if sources is not None:
            query_kwargs["session_sources"] = sources
        query = TimingQuery(**query_kwargs)
    except ValidationError as exc:
        raise _fail(f"Invalid options: {exc}")

    provider = None if fixture else _token_provider_or_exit(config)
    pid = property_id or config.ga4.property_id

    if provider is None:
        client = Ga4Client(pid or "fixture")
        fetcher = client.get_fixture_report
    else:
        if not pid:
            raise _fail("Property ID is required (set [ga4].property_id or --property-id).")
        client = Ga4Client(pid, token_provider=provider, timeout_s=config.ga4.timeout_s)
        fetcher = client.fetch_metric_rows

    typer.echo(
        f"Recommending post times | operation={query.operation} | "
        f"property={pid or '-'} | {'fixture' if provider is None else 'live'}",
        err=True,
    )

    try:
        with client:
            payload = run_timing_recommendation(fetcher, query, settings)
    except (Ga4ApiError, Ga4AuthError, httpx.HTTPError, ValueError) as exc:
        raise _fail(str(exc))

    _echo_json(payload)

    if save or output_dir:
        target = Path(output_dir or config.data.output_dir)
        path = write_recommendation_json(payload, target, query.operation)
        typer.echo(f"  Written: {path}", err=True)

    if provider is None:
        typer.echo(
            "[OK] Recommendation complete (fixture mode — configure GA4 credentials for live data).",
            err=True,
        )
    else:
        typer.echo(
            f"[OK] Recommendation complete: {len(payload['candidates'])} candidate(s).",
            err=True,
        )


@app.command("landing-pages")
def landing_pages(
    property_id: Optional[str] = typer.Option(
        None, "--property-id", help="Override [ga4].property_id.",
    ),
    lookback_days: int = typer.Option(60, "--lookback-days", min=1, max=365),
    limit: int = typer.Option(10, "--limit", min=1, max=250),
    metric: str = typer.Option(
        "sessions", "--metric", help="sessions or engagedSessions.",
    ),
    domain: str = typer.Option("", "--domain", help="Domain or URL filter."),
    path_contains: str = typer.Option("", "--path", help="pagePath substring filter."),
    include_localhost: bool = typer.Option(
        False, "--include-localhost", help="Keep hostName == localhost traffic.",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file.",
    ),
) -> None:
    """List the top landing pages by sessions or engaged sessions."""
    import httpx

    from ga4_timing.ingestion.credentials import Ga4AuthError
    from ga4_timing.ingestion.ga4_client import Ga4ApiError
    from ga4_timing.ingestion.queries import LandingPageMetric

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if metric not in get_args(LandingPageMetric):
        raise _fail(f"--metric must be one of {list(get_args(LandingPageMetric))}, got '{metric}'.")

    client = _live_client_or_exit(config, property_id)
    try:
        with client:
            result = client.fetch_landing_pages(
                lookback_days=lookback_days,
                limit=limit,
                metric_name=metric,
                domain=domain,
                path_contains=path_contains,
                exclude_local=not include_localhost,
                return_property_quota=config.ga4.return_property_quota,
            )
    except (Ga4ApiError, Ga4AuthError, httpx.HTTPError) as exc:
        raise _fail(str(exc))

    _echo_json(result)
    typer.echo(f"[OK] {len(result['list'])} landing page(s).", err=True)


@app.command("referrers")
def referrers(
    property_id: Optional[str] = typer.Option(
        None, "--property-id", help="Override [ga4].property_id.",
    ),
    lookback_days: int = typer.Option(60, "--lookback-days", min=1, max=365),
    limit: int = typer.Option(10, "--limit", min=1, max=250),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file.",
    ),
) -> None:
    """List the top referrers (source / medium / channel group) by sessions."""
    import httpx

    from ga4_timing.ingestion.credentials import Ga4AuthError
    from ga4_timing.ingestion.ga4_client import Ga4ApiError

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    client = _live_client_or_exit(config, property_id)
    try:
        with client:
            result = client.fetch_referrers(
                lookback_days=lookback_days,
                limit=limit,
                return_property_quota=config.ga4.return_property_quota,
            )
    except (Ga4ApiError, Ga4AuthError, httpx.HTTPError) as exc:
        raise _fail(str(exc))

    _echo_json(result)
    typer.echo(f"[OK] {len(result['list'])} referrer(s).", err=True)


if __name__ == "__main__":
    app()
