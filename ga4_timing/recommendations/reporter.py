"""
Recommendation report writer: JSON output for best-time payloads.

All functions are pure I/O — they consume an already-built payload dict
(``RecommendationResult.to_payload()`` plus pipeline metadata) and write it.

Output files
------------
  data/outputs/recommendations/
    post_times_{operation}_{date}.json
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "v1"


def write_recommendation_json(
    payload:    dict[str, Any],
    output_dir: Path,
    operation:  str,
    run_date:   date | None = None,
) -> Path:
    """Write a recommendation payload to a structured JSON file.

    Args:
        payload:    Payload dict (buckets, candidates, labels, echoed config).
        output_dir: Target directory (created if missing).
        operation:  Helper operation name, used in the filename.
        run_date:   Date label for the filename. Defaults to today.

    Returns:
        Path to the written JSON file.
    """
    if run_date is None:
        run_date = date.today()

    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / f"post_times_{operation}_{run_date}.json"

    document = {
        "schema_version": SCHEMA_VERSION,
        "generated_at":   run_date.isoformat(),
        **payload,
    }
    json_path.write_text(json.dumps(document, indent=2, default=str), encoding="utf-8")
    logger.info(
        "Recommendation JSON written: %s (%d candidates)",
        json_path, len(payload.get("candidates", [])),
    )
    return json_path
