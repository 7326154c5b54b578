"""
cluster_context/connectors package marker.
"""

from cluster_context.connectors.audit_log import AuditLogConnector
from cluster_context.connectors.base import (
    BaseConnector,
    ConnectorAuthError,
    ConnectorConfigError,
    ConnectorError,
    ConnectorPaginationError,
    ConnectorPayloadError,
    ConnectorRateLimitError,
    ConnectorRequestError,
)
from cluster_context.connectors.jira import JiraIssueConnector, SupportExceptionConnector
from cluster_context.connectors.ocm import (
    IdentityNotFoundError,
    LimitedSupportConnector,
    OCMClusterResolver,
    ServiceLogConnector,
)
from cluster_context.connectors.pagerduty import (
    PagerDutyAlertConnector,
    PagerDutyHistoryConnector,
    PagerDutyServiceConnector,
)

__all__ = [
    "AuditLogConnector",
    "BaseConnector",
    "ConnectorAuthError",
    "ConnectorConfigError",
    "ConnectorError",
    "ConnectorPaginationError",
    "ConnectorPayloadError",
    "ConnectorRateLimitError",
    "ConnectorRequestError",
    "IdentityNotFoundError",
    "JiraIssueConnector",
    "LimitedSupportConnector",
    "OCMClusterResolver",
    "PagerDutyAlertConnector",
    "PagerDutyHistoryConnector",
    "PagerDutyServiceConnector",
    "ServiceLogConnector",
    "SupportExceptionConnector",
]
