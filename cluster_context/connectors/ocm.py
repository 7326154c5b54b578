"""
cluster_context/connectors/ocm.py

Cluster manager connectors: identity resolution, limited support status and
service logs.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from cluster_context.config import ExternalHTTPSettings, OCMSettings
from cluster_context.connectors.base import (
    BaseConnector,
    ConnectorConfigError,
    ConnectorError,
    HTTPSource,
)
from cluster_context.domain.identity import Identity
from cluster_context.domain.outcome import Page, SourceErrorKind
from cluster_context.domain.records import LimitedSupportReason, ServiceLog
from cluster_context.domain.snapshot import SERVICE_LOGS, SUPPORT_STATUS, ScopeParams
from cluster_context.schemas.ocm import (
    OCMCluster,
    OCMClusterList,
    OCMLimitedSupportReasonList,
    OCMOrganization,
    OCMServiceLogList,
    OCMSubscription,
)
from cluster_context.timestamps import as_utc

logger = logging.getLogger(__name__)


class IdentityNotFoundError(ConnectorError):
    """
    Raised when a cluster key does not match exactly one cluster.
    """

    kind = SourceErrorKind.IDENTITY


def ocm_environment(base_url: str) -> str:
    """
    Derive the OCM environment name from the API URL.
    """

    lowered = base_url.lower()
    if "integration" in lowered:
        return "integration"
    if "stage" in lowered:
        return "stage"
    return "production"


class _OCMMixin:
    _settings: OCMSettings
    source: str

    def _auth_headers(self) -> dict[str, str]:
        if not self._settings.token:
            raise ConnectorConfigError(f"{self.source}: OCM_TOKEN is not configured.")
        return {"Authorization": f"Bearer {self._settings.token}"}

    def _url(self, path: str) -> str:
        return f"{self._settings.base_url.rstrip('/')}{path}"


class OCMClusterResolver(_OCMMixin, HTTPSource):
    """
    Resolves a cluster ID, external ID or name into an Identity.
    """

    def __init__(
        self,
        *,
        settings: OCMSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source="identity", http_settings=http_settings, session=session)
        self._settings = settings

    def resolve(self, key: str) -> Identity:
        normalized = key.strip()
        if not normalized:
            raise IdentityNotFoundError("identity: cluster key must not be empty.")

        escaped = normalized.replace("'", "''")
        payload = self._request_json(
            method="GET",
            url=self._url("/api/clusters_mgmt/v1/clusters"),
            params={
                "search": f"id = '{escaped}' or external_id = '{escaped}' or name = '{escaped}'",
                "size": 2,
            },
        )
        clusters = self._validate(OCMClusterList, payload).items
        if len(clusters) != 1:
            raise IdentityNotFoundError(
                f"identity: expected 1 cluster matching '{normalized}', got {len(clusters)}."
            )

        cluster = clusters[0]
        return Identity(
            cluster_id=cluster.id,
            name=cluster.name,
            version=cluster.version.raw_id,
            external_id=cluster.external_id,
            base_domain=cluster.dns.base_domain,
            infra_id=cluster.infra_id,
            organization_id=self._organization_id(cluster),
            ocm_env=ocm_environment(self._settings.base_url),
        )

    def _organization_id(self, cluster: OCMCluster) -> str | None:
        """
        Look up the owning organization's external ID. Failure is not fatal.
        """

        if cluster.subscription is None:
            return None
        try:
            subscription = self._validate(
                OCMSubscription,
                self._request_json(
                    method="GET",
                    url=self._url(f"/api/accounts_mgmt/v1/subscriptions/{cluster.subscription.id}"),
                ),
            )
            if not subscription.organization_id:
                return None
            organization = self._validate(
                OCMOrganization,
                self._request_json(
                    method="GET",
                    url=self._url(f"/api/accounts_mgmt/v1/organizations/{subscription.organization_id}"),
                ),
            )
        except ConnectorError as exc:
            logger.warning(
                "Failed to resolve organization cluster_id=%s error=%s",
                cluster.id,
                exc,
            )
            return None
        return organization.external_id


class _OCMPagedConnector(_OCMMixin, BaseConnector[Any]):
    def __init__(
        self,
        *,
        source: str,
        settings: OCMSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source=source, http_settings=http_settings, session=session)
        self._settings = settings

    def _next_page(self, page: int, item_count: int, total: int) -> int | None:
        # `size` in the response is the item count of this page, not the page size.
        if item_count == 0 or page * self._settings.page_size >= total:
            return None
        return page + 1

    def _page_params(self, token: Any | None) -> dict[str, Any]:
        return {"page": token or 1, "size": self._settings.page_size}


class LimitedSupportConnector(_OCMPagedConnector):
    """
    Fetches the reasons a cluster is in limited support. No records means the
    cluster is fully supported.
    """

    def __init__(
        self,
        *,
        settings: OCMSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            source=SUPPORT_STATUS,
            settings=settings,
            http_settings=http_settings,
            session=session,
        )

    def fetch_page(
        self,
        identity: Identity,
        scope: ScopeParams,
        token: Any | None,
    ) -> Page[LimitedSupportReason]:
        payload = self._request_json(
            method="GET",
            url=self._url(f"/api/clusters_mgmt/v1/clusters/{identity.cluster_id}/limited_support_reasons"),
            params=self._page_params(token),
        )
        listing = self._validate(OCMLimitedSupportReasonList, payload)
        records = [
            LimitedSupportReason(
                id=item.id,
                summary=item.summary,
                details=item.details,
                created_at=as_utc(item.creation_timestamp),
            )
            for item in listing.items
        ]
        return Page(
            records=records,
            next_token=self._next_page(listing.page, len(listing.items), listing.total),
        )


class ServiceLogConnector(_OCMPagedConnector):
    """
    Fetches service logs sent for the cluster. The aggregator keeps only the
    ones inside the requested time window.
    """

    windowed = True

    def __init__(
        self,
        *,
        settings: OCMSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            source=SERVICE_LOGS,
            settings=settings,
            http_settings=http_settings,
            session=session,
        )

    def fetch_page(
        self,
        identity: Identity,
        scope: ScopeParams,
        token: Any | None,
    ) -> Page[ServiceLog]:
        cluster_uuid = identity.external_id or identity.cluster_id
        params = self._page_params(token)
        params["orderBy"] = "created_at desc"
        payload = self._request_json(
            method="GET",
            url=self._url(f"/api/service_logs/v1/clusters/{cluster_uuid}/cluster_logs"),
            params=params,
        )
        listing = self._validate(OCMServiceLogList, payload)
        records = [
            ServiceLog(
                id=item.id,
                summary=item.summary,
                severity=item.severity,
                service_name=item.service_name,
                created_at=as_utc(item.created_at),
                description=item.description,
            )
            for item in listing.items
        ]
        return Page(
            records=records,
            next_token=self._next_page(listing.page, len(listing.items), listing.total),
        )
