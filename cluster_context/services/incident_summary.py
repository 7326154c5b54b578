"""
cluster_context/services/incident_summary.py

Incident history summarization: groups raw incidents by incident type and
ranks the types by how often they fired.

Incident type is the first whitespace-delimited token of the title, so
"NodeDown worker-1" and "NodeDown worker-2" count as the same type.

Groups are returned in ascending order of count, with ties kept in the order
the type was first seen. The most frequent type therefore comes last.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from cluster_context.domain.snapshot import IncidentOccurrence
from cluster_context.timestamps import parse_iso_datetime


class IncidentSummaryError(ValueError):
    """
    Raised when an incident timestamp cannot be parsed. No partial summary is
    produced.
    """

    def __init__(self, *, scope: str, title: str, value: object, reason: str) -> None:
        self.scope = scope
        self.title = title
        self.value = value
        super().__init__(
            f"scope={scope}: cannot parse created_at {value!r} of incident {title!r}: {reason}"
        )


class RawIncident(Protocol):
    title: str
    created_at: str


@dataclass
class _OccurrenceTracker:
    name: str
    count: int
    last_occurrence: datetime


def canonical_incident_key(title: str) -> str:
    """
    Return the first whitespace-delimited token of a title, or "" when blank.
    """

    tokens = title.split(maxsplit=1)
    return tokens[0] if tokens else ""


def summarize_scope(
    scope: str,
    incidents: Sequence[RawIncident],
    since: datetime | None = None,
) -> tuple[IncidentOccurrence, ...]:
    """
    Summarize one scope. Incidents created at or before `since` are ignored.
    """

    trackers: dict[str, _OccurrenceTracker] = {}
    for incident in incidents:
        try:
            created_at = parse_iso_datetime(incident.created_at)
        except ValueError as exc:
            raise IncidentSummaryError(
                scope=scope,
                title=incident.title,
                value=incident.created_at,
                reason=str(exc),
            ) from exc

        if since is not None and created_at <= since:
            continue
        key = canonical_incident_key(incident.title)
        tracker = trackers.get(key)
        if tracker is None:
            trackers[key] = _OccurrenceTracker(name=key, count=1, last_occurrence=created_at)
            continue

        tracker.count += 1
        if created_at > tracker.last_occurrence:
            tracker.last_occurrence = created_at

    # sorted() is stable, so equal counts keep first-seen order.
    ranked = sorted(trackers.values(), key=lambda tracker: tracker.count)
    return tuple(
        IncidentOccurrence(
            name=tracker.name,
            count=tracker.count,
            last_occurrence=tracker.last_occurrence,
        )
        for tracker in ranked
    )


def summarize_incidents(
    scoped_incidents: Mapping[str, Sequence[RawIncident]],
    since: datetime | None = None,
) -> dict[str, tuple[IncidentOccurrence, ...]]:
    """
    Summarize incidents for every scope (e.g. one incident tracker service).

    Only incidents created strictly after `since` are counted when it is
    given. Raises IncidentSummaryError if any timestamp in any scope is
    unparseable, including ones that would fall outside the window.
    """

    return {
        scope: summarize_scope(scope, incidents, since)
        for scope, incidents in scoped_incidents.items()
    }
