"""
cluster_context/schemas/audit_log.py

Response schemas for the audit log gateway (CloudTrail LookupEvents shape).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _AuditModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class AuditLogEvent(_AuditModel):
    event_id: str = Field(alias="EventId")
    event_name: str = Field(alias="EventName")
    username: str | None = Field(default=None, alias="Username")
    event_time: datetime | None = Field(default=None, alias="EventTime")


class AuditLogLookupResponse(_AuditModel):
    events: list[AuditLogEvent] = Field(default_factory=list, alias="Events")
    next_token: str | None = Field(default=None, alias="NextToken")
