"""
ISO-8601 timestamp helpers shared by connectors and the incident summarizer.
"""

from __future__ import annotations

from datetime import datetime, timezone


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse an ISO datetime string into a timezone-aware datetime.

    Naive values are assumed to be UTC. Raises ValueError on malformed input.
    """

    if not isinstance(value, str):
        raise ValueError(f"expected an ISO-8601 string, got {type(value).__name__}")
    stripped = value.strip()
    normalized = stripped[:-1] + "+00:00" if stripped.endswith(("Z", "z")) else stripped
    parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def as_utc(value: datetime | None) -> datetime | None:
    """
    Attach UTC to a naive datetime; aware values and None pass through.
    """

    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
