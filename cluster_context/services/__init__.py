"""
cluster_context/services package marker.
"""

from cluster_context.services.context_aggregator import (
    ContextAggregator,
    build_context_aggregator,
    get_context_aggregator,
)
from cluster_context.services.incident_summary import (
    IncidentSummaryError,
    canonical_incident_key,
    summarize_incidents,
)

__all__ = [
    "ContextAggregator",
    "IncidentSummaryError",
    "build_context_aggregator",
    "canonical_incident_key",
    "get_context_aggregator",
    "summarize_incidents",
]
