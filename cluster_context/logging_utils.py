"""
cluster_context/logging_utils.py

Structured progress events for aggregation runs (source started, completed,
failed, skipped).
"""

from __future__ import annotations

import json
import logging
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Log `event` with `fields` as one sorted JSON object, e.g.
    `{"event": "source_fetch_failed", "kind": "auth", "source": "jira_issues"}`.

    Serialization is skipped when `level` is disabled for `logger`.
    """

    if not logger.isEnabledFor(level):
        return
    logger.log(level, json.dumps({"event": event, **fields}, default=str, sort_keys=True))
