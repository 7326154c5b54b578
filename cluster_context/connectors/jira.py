"""
cluster_context/connectors/jira.py

Ticket tracker connectors for cluster support cards and organization support
exceptions.
"""

from __future__ import annotations

import logging
import re
from abc import abstractmethod
from datetime import datetime
from typing import Any

import requests

from cluster_context.config import ExternalHTTPSettings, JiraSettings
from cluster_context.connectors.base import BaseConnector, ConnectorConfigError
from cluster_context.domain.identity import Identity
from cluster_context.domain.outcome import Page
from cluster_context.domain.records import TicketIssue
from cluster_context.domain.snapshot import JIRA_ISSUES, SUPPORT_EXCEPTIONS, ScopeParams
from cluster_context.schemas.jira import JiraIssue, JiraSearchResult
from cluster_context.timestamps import parse_iso_datetime

logger = logging.getLogger(__name__)

_BASIC_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


def _quote_jql(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _parse_jira_datetime(value: str | None) -> datetime | None:
    """
    Parse Jira's `2024-01-02T03:04:05.000+0000` style timestamps.
    """

    if not value:
        return None
    try:
        return parse_iso_datetime(_BASIC_OFFSET.sub(r"\1:\2", value.strip()))
    except ValueError:
        logger.warning("Unparseable Jira timestamp value=%s", value)
        return None


class _JiraSearchConnector(BaseConnector[TicketIssue]):
    def __init__(
        self,
        *,
        source: str,
        settings: JiraSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source=source, http_settings=http_settings, session=session)
        self._settings = settings

    @abstractmethod
    def build_jql(self, identity: Identity) -> str:
        """
        Return the JQL query selecting this source's issues.
        """

    def _auth_headers(self) -> dict[str, str]:
        if not self._settings.token:
            raise ConnectorConfigError(f"{self.source}: JIRA_TOKEN is not configured.")
        return {"Authorization": f"Bearer {self._settings.token}"}

    def fetch_page(
        self,
        identity: Identity,
        scope: ScopeParams,
        token: Any | None,
    ) -> Page[TicketIssue]:
        start_at = token or 0
        payload = self._request_json(
            method="GET",
            url=f"{self._settings.base_url.rstrip('/')}/rest/api/2/search",
            params={
                "jql": self.build_jql(identity),
                "startAt": start_at,
                "maxResults": self._settings.page_size,
            },
        )
        result = self._validate(JiraSearchResult, payload)
        next_start = start_at + len(result.issues)
        has_more = bool(result.issues) and next_start < result.total
        return Page(
            records=[self._to_record(issue) for issue in result.issues],
            next_token=next_start if has_more else None,
        )

    def _to_record(self, issue: JiraIssue) -> TicketIssue:
        fields = issue.fields
        return TicketIssue(
            key=issue.key,
            summary=fields.summary,
            issue_type=fields.issue_type.name if fields.issue_type else "",
            priority=fields.priority.name if fields.priority else "",
            status=fields.status.name if fields.status else "",
            link=f"{self._settings.base_url.rstrip('/')}/browse/{issue.key}",
            created_at=_parse_jira_datetime(fields.created),
        )


class JiraIssueConnector(_JiraSearchConnector):
    """
    Support cards filed against the cluster's internal or external ID.
    """

    def __init__(
        self,
        *,
        settings: JiraSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            source=JIRA_ISSUES,
            settings=settings,
            http_settings=http_settings,
            session=session,
        )

    def build_jql(self, identity: Identity) -> str:
        project = _quote_jql(self._settings.support_project)
        cluster_ids = [identity.external_id, identity.cluster_id]
        clauses = " OR ".join(
            f'(project = "{project}" AND "Cluster ID" ~ "{_quote_jql(cluster_id)}")'
            for cluster_id in cluster_ids
            if cluster_id
        )
        return f"{clauses} ORDER BY created DESC"


class SupportExceptionConnector(_JiraSearchConnector):
    """
    Approved, unresolved support exceptions for the cluster's organization.
    """

    def __init__(
        self,
        *,
        settings: JiraSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            source=SUPPORT_EXCEPTIONS,
            settings=settings,
            http_settings=http_settings,
            session=session,
        )

    def fetch_page(
        self,
        identity: Identity,
        scope: ScopeParams,
        token: Any | None,
    ) -> Page[TicketIssue]:
        if not identity.organization_id:
            raise ConnectorConfigError(
                f"{self.source}: organization ID unknown for cluster {identity.cluster_id}."
            )
        return super().fetch_page(identity, scope, token)

    def build_jql(self, identity: Identity) -> str:
        project = _quote_jql(self._settings.exceptions_project)
        organization = _quote_jql(identity.organization_id or "")
        return (
            f'project = "{project}" AND type = Story AND Status = Approved AND '
            f'Resolution = Unresolved AND "Customer Name" ~ "{organization}"'
        )
