"""
cluster_context/connectors/audit_log.py

Audit log connector reading CloudTrail-shaped events through an HTTP gateway.
"""

from __future__ import annotations

from typing import Any

import requests

from cluster_context.config import AuditLogSettings, ExternalHTTPSettings
from cluster_context.connectors.base import BaseConnector, ConnectorConfigError
from cluster_context.domain.identity import Identity
from cluster_context.domain.outcome import Page
from cluster_context.domain.records import AuditEvent
from cluster_context.domain.snapshot import AUDIT_LOG, ScopeParams
from cluster_context.schemas.audit_log import AuditLogEvent, AuditLogLookupResponse
from cluster_context.timestamps import as_utc

# Event names containing any of these never indicate a customer-side change.
SKIPPABLE_EVENT_MARKERS = (
    "Get",
    "List",
    "Describe",
    "AssumeRole",
    "Encrypt",
    "Decrypt",
    "LookupEvents",
    "GenerateDataKey",
)


def is_skippable_event(event_name: str) -> bool:
    return any(marker in event_name for marker in SKIPPABLE_EVENT_MARKERS)


class AuditLogConnector(BaseConnector[AuditEvent]):
    """
    Fetches potentially interesting audit events for the cluster's account.

    Read-only events and events performed by SRE automation are dropped.
    """

    expensive = True

    def __init__(
        self,
        *,
        settings: AuditLogSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source=AUDIT_LOG, http_settings=http_settings, session=session)
        self._settings = settings

    def _auth_headers(self) -> dict[str, str]:
        if not self._settings.token:
            return {}
        return {"Authorization": f"Bearer {self._settings.token}"}

    def fetch_page(
        self,
        identity: Identity,
        scope: ScopeParams,
        token: Any | None,
    ) -> Page[AuditEvent]:
        if not self._settings.base_url:
            raise ConnectorConfigError(f"{self.source}: AUDIT_LOG_BASE_URL is not configured.")

        body: dict[str, Any] = {"ClusterId": identity.cluster_id}
        if token is not None:
            body["NextToken"] = token
        response = self._validate(
            AuditLogLookupResponse,
            self._request_json(
                method="POST",
                url=f"{self._settings.base_url.rstrip('/')}/lookup-events",
                json_body=body,
            ),
        )
        records = [
            AuditEvent(
                event_id=event.event_id,
                event_name=event.event_name,
                username=event.username,
                event_time=as_utc(event.event_time),
            )
            for event in response.events
            if self._is_interesting(event)
        ]
        return Page(records=records, next_token=response.next_token or None)

    def _is_interesting(self, event: AuditLogEvent) -> bool:
        if is_skippable_event(event.event_name):
            return False
        marker = self._settings.ignored_user_marker
        if marker and event.username and marker in event.username:
            return False
        return True
