"""
cluster_context/schemas package marker.
"""

from cluster_context.schemas.audit_log import AuditLogEvent, AuditLogLookupResponse
from cluster_context.schemas.jira import JiraIssue, JiraSearchResult
from cluster_context.schemas.ocm import (
    OCMCluster,
    OCMClusterList,
    OCMLimitedSupportReasonList,
    OCMOrganization,
    OCMServiceLogList,
    OCMSubscription,
)
from cluster_context.schemas.pagerduty import (
    PagerDutyIncident,
    PagerDutyIncidentList,
    PagerDutyService,
    PagerDutyServiceList,
)

__all__ = [
    "AuditLogEvent",
    "AuditLogLookupResponse",
    "JiraIssue",
    "JiraSearchResult",
    "OCMCluster",
    "OCMClusterList",
    "OCMLimitedSupportReasonList",
    "OCMOrganization",
    "OCMServiceLogList",
    "OCMSubscription",
    "PagerDutyIncident",
    "PagerDutyIncidentList",
    "PagerDutyService",
    "PagerDutyServiceList",
]
