"""
cluster_context/schemas/ocm.py

Response schemas for the cluster manager API.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _OCMModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class OCMReference(_OCMModel):
    id: str


class OCMVersion(_OCMModel):
    raw_id: str = ""


class OCMDNS(_OCMModel):
    base_domain: str = ""


class OCMCluster(_OCMModel):
    id: str
    name: str = ""
    external_id: str = ""
    infra_id: str = ""
    version: OCMVersion = Field(default_factory=OCMVersion)
    dns: OCMDNS = Field(default_factory=OCMDNS)
    subscription: OCMReference | None = None


class OCMClusterList(_OCMModel):
    items: list[OCMCluster] = Field(default_factory=list)


class OCMSubscription(_OCMModel):
    organization_id: str | None = None


class OCMOrganization(_OCMModel):
    external_id: str | None = None


class _OCMPage(_OCMModel):
    page: int = 1
    size: int = 0
    total: int = 0


class OCMLimitedSupportReason(_OCMModel):
    id: str
    summary: str = ""
    details: str = ""
    creation_timestamp: datetime | None = None


class OCMLimitedSupportReasonList(_OCMPage):
    items: list[OCMLimitedSupportReason] = Field(default_factory=list)


class OCMServiceLog(_OCMModel):
    id: str
    summary: str = ""
    description: str = ""
    severity: str = ""
    service_name: str = ""
    created_at: datetime


class OCMServiceLogList(_OCMPage):
    items: list[OCMServiceLog] = Field(default_factory=list)
