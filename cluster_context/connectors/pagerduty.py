"""
cluster_context/connectors/pagerduty.py

Incident tracker connectors: services matching the cluster, currently open
alerts and incident history.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import replace
from functools import partial
from typing import Any

import requests

from cluster_context.config import ExternalHTTPSettings, PagerDutySettings
from cluster_context.connectors.base import BaseConnector, ConnectorConfigError
from cluster_context.domain.identity import Identity
from cluster_context.domain.outcome import Page
from cluster_context.domain.records import Incident, IncidentService
from cluster_context.domain.snapshot import (
    PAGERDUTY_ALERTS,
    PAGERDUTY_HISTORY,
    PAGERDUTY_SERVICES,
    ScopeParams,
)
from cluster_context.schemas.pagerduty import PagerDutyIncidentList, PagerDutyServiceList

SERVICE_PAGE_SIZE = 100


class _PagerDutyConnector(BaseConnector[Any]):
    def __init__(
        self,
        *,
        source: str,
        settings: PagerDutySettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source=source, http_settings=http_settings, session=session)
        self._settings = settings

    def _auth_headers(self) -> dict[str, str]:
        """
        Prefer the user token, fall back to the OAuth token.
        """

        if self._settings.user_token:
            authorization = f"Token token={self._settings.user_token}"
        elif self._settings.oauth_token:
            authorization = f"Bearer {self._settings.oauth_token}"
        else:
            raise ConnectorConfigError(
                f"{self.source}: neither PD_USER_TOKEN nor PD_OAUTH_TOKEN is configured."
            )
        return {
            "Accept": "application/vnd.pagerduty+json;version=2",
            "Authorization": authorization,
        }

    def _url(self, path: str) -> str:
        return f"{self._settings.base_url.rstrip('/')}{path}"


class PagerDutyServiceConnector(_PagerDutyConnector):
    """
    Finds the incident tracker services whose name matches the cluster's base
    domain, optionally limited to the configured teams.
    """

    def __init__(
        self,
        *,
        settings: PagerDutySettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            source=PAGERDUTY_SERVICES,
            settings=settings,
            http_settings=http_settings,
            session=session,
        )

    def fetch_page(
        self,
        identity: Identity,
        scope: ScopeParams,
        token: Any | None,
    ) -> Page[IncidentService]:
        if not identity.base_domain:
            raise ConnectorConfigError(
                f"{self.source}: cluster {identity.cluster_id} has no base domain to search by."
            )

        offset = token or 0
        params: dict[str, Any] = {
            "query": identity.base_domain,
            "offset": offset,
            "limit": SERVICE_PAGE_SIZE,
        }
        team_ids = scope.team_ids or self._settings.team_ids
        if team_ids:
            params["team_ids[]"] = list(team_ids)

        listing = self._validate(
            PagerDutyServiceList,
            self._request_json(method="GET", url=self._url("/services"), params=params),
        )
        records = [
            IncidentService(id=service.id, name=service.name, html_url=service.html_url)
            for service in listing.services
        ]
        return Page(
            records=records,
            next_token=offset + SERVICE_PAGE_SIZE if listing.more else None,
        )


class _PagerDutyIncidentConnector(_PagerDutyConnector):
    """
    Lists incidents per service. Each service is paginated separately, with
    its own page ceiling.
    """

    statuses: tuple[str, ...] = ()
    sort_by: str = ""

    @abstractmethod
    def _page_size(self) -> int:
        """
        Return the number of incidents requested per page.
        """

    def _extra_params(self, scope: ScopeParams) -> dict[str, Any]:
        return {}

    def _fetch_all(self, identity: Identity, scope: ScopeParams) -> tuple[list[Incident], bool]:
        records: list[Incident] = []
        truncated = False
        for service_id in scope.service_ids:
            service_scope = replace(scope, service_ids=(service_id,))
            service_records, service_truncated = self._paginate(
                partial(self.fetch_page, identity, service_scope),
                max_pages=scope.max_pages,
            )
            records.extend(service_records)
            truncated = truncated or service_truncated
        return records, truncated

    def fetch_page(
        self,
        identity: Identity,
        scope: ScopeParams,
        token: Any | None,
    ) -> Page[Incident]:
        service_id = scope.service_ids[0]
        offset = token or 0
        limit = self._page_size()
        params: dict[str, Any] = {
            "service_ids[]": [service_id],
            "statuses[]": list(self.statuses),
            "sort_by": self.sort_by,
            "offset": offset,
            "limit": limit,
            **self._extra_params(scope),
        }
        listing = self._validate(
            PagerDutyIncidentList,
            self._request_json(method="GET", url=self._url("/incidents"), params=params),
        )
        records = [
            Incident(
                id=incident.id,
                service_id=incident.service.id if incident.service else service_id,
                title=incident.title,
                urgency=incident.urgency,
                status=incident.status,
                created_at=incident.created_at,
            )
            for incident in listing.incidents
        ]
        has_more = listing.more and bool(listing.incidents)
        return Page(records=records, next_token=offset + limit if has_more else None)


class PagerDutyAlertConnector(_PagerDutyIncidentConnector):
    """
    Currently triggered or acknowledged incidents, most urgent first.
    """

    statuses = ("triggered", "acknowledged")
    sort_by = "urgency:desc"

    def __init__(
        self,
        *,
        settings: PagerDutySettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            source=PAGERDUTY_ALERTS,
            settings=settings,
            http_settings=http_settings,
            session=session,
        )

    def _page_size(self) -> int:
        return self._settings.current_page_size


class PagerDutyHistoryConnector(_PagerDutyIncidentConnector):
    """
    Every incident created inside the time window, newest first. Raw output
    feeds the incident history summary.
    """

    expensive = True
    statuses = ("resolved", "triggered", "acknowledged")
    sort_by = "created_at:desc"

    def __init__(
        self,
        *,
        settings: PagerDutySettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            source=PAGERDUTY_HISTORY,
            settings=settings,
            http_settings=http_settings,
            session=session,
        )

    def _page_size(self) -> int:
        return self._settings.history_page_size

    def _extra_params(self, scope: ScopeParams) -> dict[str, Any]:
        return {"since": scope.since.isoformat()}
