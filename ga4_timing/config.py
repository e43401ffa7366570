"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``GA4_TIMING_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Service-account secrets (``GOOGLE_SERVICE_ACCOUNT_JSON``, ``GA4_CLIENT_EMAIL``,
``GA4_PRIVATE_KEY``) are never stored in ``AppConfig``; they are read from the
environment by ``ingestion.credentials.token_provider_from_environment``.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ga4_timing.ingestion.credentials import DEFAULT_SCOPES
from ga4_timing.ingestion.queries import TimingMetric
from ga4_timing.models.timing import OccurrenceMode
from ga4_timing.utils.time_utils import SUPPORTED_LABEL_LOCALES, resolve_zone

# ── Sub-config models ─────────────────────────────────────────────────────────


class Ga4Config(BaseModel):
    """GA4 Data API connection settings."""

    model_config = ConfigDict(frozen=True)

    property_id: str = ""
    credentials_file: str = ""
    scopes: list[str] = list(DEFAULT_SCOPES)
    subject: str = ""
    timeout_s: float = Field(default=30.0, gt=0)
    return_property_quota: bool = True

    @field_validator("property_id")
    @classmethod
    def validate_property_id(cls, v: str) -> str:
        v = v.strip()
        if v and not v.isdigit():
            raise ValueError(
                f"property_id must be the numeric GA4 Property ID, got '{v}'."
            )
        return v


class TimingConfig(BaseModel):
    """Defaults for the best-posting-time recommendation."""

    model_config = ConfigDict(frozen=True)

    lookback_days: int = Field(default=60, ge=7, le=365)
    top_k: int = Field(default=3, ge=1)
    horizon_days: int = Field(default=14, gt=0)
    occurrence_mode: OccurrenceMode = "first"
    max_occurrences: int = Field(default=9, ge=1, le=50)
    time_zone: str = ""                   # empty → property time zone
    timing_metric: TimingMetric = "screenPageViews"
    label_locale: str = "de"

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, v: str) -> str:
        v = v.strip()
        if v:
            resolve_zone(v)
        return v

    @field_validator("label_locale")
    @classmethod
    def validate_label_locale(cls, v: str) -> str:
        if v not in SUPPORTED_LABEL_LOCALES:
            raise ValueError(
                f"label_locale must be one of {sorted(SUPPORTED_LABEL_LOCALES)}, got '{v}'."
            )
        return v


class DataConfig(BaseModel):
    """Filesystem paths for written reports."""

    model_config = ConfigDict(frozen=True)

    output_dir: str = "data/outputs/recommendations"


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    ga4: Ga4Config = Ga4Config()
    timing: TimingConfig = TimingConfig()
    data: DataConfig = DataConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply GA4_TIMING_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply GA4_TIMING_* env vars to the raw config dict.

    Supported overrides:
      GA4_TIMING_PROPERTY_ID       → raw["ga4"]["property_id"]
      GA4_TIMING_CREDENTIALS_FILE  → raw["ga4"]["credentials_file"]
      GA4_TIMING_TIME_ZONE         → raw["timing"]["time_zone"]
      GA4_TIMING_LOG_LEVEL         → raw["logging"]["level"]
      GA4_TIMING_DEBUG             → raw["debug"]
    """
    if property_id := os.environ.get("GA4_TIMING_PROPERTY_ID"):
        raw.setdefault("ga4", {})["property_id"] = property_id

    if credentials_file := os.environ.get("GA4_TIMING_CREDENTIALS_FILE"):
        raw.setdefault("ga4", {})["credentials_file"] = credentials_file

    if time_zone := os.environ.get("GA4_TIMING_TIME_ZONE"):
        raw.setdefault("timing", {})["time_zone"] = time_zone

    if log_level := os.environ.get("GA4_TIMING_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("GA4_TIMING_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        ga4=Ga4Config(**raw.get("ga4", {})),
        timing=TimingConfig(**raw.get("timing", {})),
        data=DataConfig(**raw.get("data", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
