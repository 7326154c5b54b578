"""
cluster_context/domain/snapshot.py

Aggregation inputs and the assembled context snapshot.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping

from cluster_context.domain.identity import Identity
from cluster_context.domain.outcome import FetchOutcome, SourceError

SUPPORT_STATUS = "support_status"
SERVICE_LOGS = "service_logs"
JIRA_ISSUES = "jira_issues"
SUPPORT_EXCEPTIONS = "support_exceptions"
PAGERDUTY_SERVICES = "pagerduty_services"
PAGERDUTY_ALERTS = "pagerduty_alerts"
PAGERDUTY_HISTORY = "pagerduty_history"
AUDIT_LOG = "audit_log"


@dataclass(frozen=True)
class IncidentOccurrence:
    """
    How often one incident type fired within a scope, and when it last did.
    """

    name: str
    count: int
    last_occurrence: datetime


@dataclass(frozen=True)
class ScopeParams:
    """
    Per-fetch parameters handed to every connector.
    """

    since: datetime
    max_pages: int
    service_ids: tuple[str, ...] = ()
    team_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class AggregateOptions:
    """
    Caller options for one aggregation run.

    `full` opts into expensive sources (incident history, audit log).
    `max_workers` above 1 fetches sources concurrently.
    """

    days: int = 30
    pages: int = 40
    full: bool = False
    team_ids: tuple[str, ...] = ()
    max_workers: int = 1

    def validation_errors(self) -> list[str]:
        errors: list[str] = []
        if self.days < 1:
            errors.append(f"days must be at least 1, got {self.days}")
        if self.pages < 1:
            errors.append(f"pages must be at least 1, got {self.pages}")
        if self.max_workers < 1:
            errors.append(f"max_workers must be at least 1, got {self.max_workers}")
        return errors


@dataclass(frozen=True)
class Snapshot:
    """
    Everything gathered about one cluster in one run.

    `sources` only holds successful outcomes; a failed source is absent and
    described in `errors`, a skipped source is absent and listed in
    `skipped_sources`. `incident_history` is None when history was skipped or
    could not be summarized.
    """

    identity: Identity
    sources: Mapping[str, FetchOutcome[Any]]
    errors: tuple[SourceError, ...] = ()
    incident_history: Mapping[str, tuple[IncidentOccurrence, ...]] | None = None
    skipped_sources: tuple[str, ...] = ()
    generated_at: datetime | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        # Read-only views over private copies.
        object.__setattr__(self, "sources", MappingProxyType(dict(self.sources)))
        if self.incident_history is not None:
            object.__setattr__(
                self,
                "incident_history",
                MappingProxyType(dict(self.incident_history)),
            )

    def to_dict(self) -> dict[str, Any]:
        """
        Plain, JSON-friendly view of the snapshot (datetimes left as-is).
        """

        history = None
        if self.incident_history is not None:
            history = {
                scope: [asdict(occurrence) for occurrence in occurrences]
                for scope, occurrences in self.incident_history.items()
            }
        return {
            "identity": asdict(self.identity),
            "sources": {name: asdict(outcome) for name, outcome in self.sources.items()},
            "errors": [asdict(error) for error in self.errors],
            "incident_history": history,
            "skipped_sources": list(self.skipped_sources),
            "generated_at": self.generated_at,
        }

    def records(self, source: str) -> tuple[Any, ...] | None:
        outcome = self.sources.get(source)
        if outcome is None:
            return None
        return outcome.records

    def has_source(self, source: str) -> bool:
        return source in self.sources

    @property
    def service_ids(self) -> tuple[str, ...]:
        services = self.records(PAGERDUTY_SERVICES) or ()
        return tuple(service.id for service in services)

    @property
    def is_fully_supported(self) -> bool | None:
        """
        True when no limited support reasons exist, None when unknown.
        """

        reasons = self.records(SUPPORT_STATUS)
        if reasons is None:
            return None
        return len(reasons) == 0

    def alert_counts(self) -> tuple[int, int]:
        """
        Return (high, low) urgency counts of currently open alerts.
        """

        high = 0
        low = 0
        for incident in self.records(PAGERDUTY_ALERTS) or ():
            if incident.urgency.lower() == "high":
                high += 1
            else:
                low += 1
        return high, low

    def historical_incident_total(self) -> int | None:
        if self.incident_history is None:
            return None
        return sum(
            occurrence.count
            for occurrences in self.incident_history.values()
            for occurrence in occurrences
        )
