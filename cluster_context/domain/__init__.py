"""
cluster_context/domain package marker.
"""

from cluster_context.domain.identity import Identity
from cluster_context.domain.outcome import FetchOutcome, Page, SourceError, SourceErrorKind
from cluster_context.domain.records import (
    AuditEvent,
    Incident,
    IncidentService,
    LimitedSupportReason,
    ServiceLog,
    TicketIssue,
)
from cluster_context.domain.snapshot import (
    AggregateOptions,
    IncidentOccurrence,
    ScopeParams,
    Snapshot,
)

__all__ = [
    "AggregateOptions",
    "AuditEvent",
    "FetchOutcome",
    "Identity",
    "Incident",
    "IncidentOccurrence",
    "IncidentService",
    "LimitedSupportReason",
    "Page",
    "ScopeParams",
    "ServiceLog",
    "Snapshot",
    "SourceError",
    "SourceErrorKind",
    "TicketIssue",
]
