"""
cluster_context/domain/records.py

Typed records produced by source connectors.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class LimitedSupportReason:
    """
    One reason the cluster is in limited support.
    """

    id: str
    summary: str
    details: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class ServiceLog:
    """
    One service log entry sent to the cluster owner.
    """

    id: str
    summary: str
    severity: str
    service_name: str
    created_at: datetime
    description: str = ""


@dataclass(frozen=True)
class TicketIssue:
    """
    One ticket tracker issue.
    """

    key: str
    summary: str
    issue_type: str
    priority: str
    status: str
    link: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class IncidentService:
    """
    One incident tracker service matched to the cluster.
    """

    id: str
    name: str
    html_url: str | None = None


@dataclass(frozen=True)
class Incident:
    """
    One incident tracker incident.

    `created_at` is kept as the raw ISO-8601 string reported by the tracker.
    """

    id: str
    service_id: str
    title: str
    urgency: str
    status: str
    created_at: str


@dataclass(frozen=True)
class AuditEvent:
    """
    One audit log event recorded against the cluster's account.
    """

    event_id: str
    event_name: str
    username: str | None
    event_time: datetime | None
