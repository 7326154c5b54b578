"""
cluster_context/schemas/pagerduty.py

Response schemas for the incident tracker API.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _PagerDutyModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class PagerDutyReference(_PagerDutyModel):
    id: str


class PagerDutyService(_PagerDutyModel):
    id: str
    name: str = ""
    html_url: str | None = None


class PagerDutyIncident(_PagerDutyModel):
    id: str
    title: str = ""
    urgency: str = ""
    status: str = ""
    # Kept as text; the incident summarizer owns timestamp parsing.
    created_at: str = ""
    service: PagerDutyReference | None = None


class _PagerDutyPage(_PagerDutyModel):
    limit: int = 0
    offset: int = 0
    more: bool = False


class PagerDutyServiceList(_PagerDutyPage):
    services: list[PagerDutyService] = Field(default_factory=list)


class PagerDutyIncidentList(_PagerDutyPage):
    incidents: list[PagerDutyIncident] = Field(default_factory=list)
