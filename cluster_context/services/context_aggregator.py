"""
cluster_context/services/context_aggregator.py

Builds one cluster context snapshot from many independent sources.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Protocol

from cluster_context.config import (
    AuditLogSettings,
    ExternalHTTPSettings,
    JiraSettings,
    OCMSettings,
    PagerDutySettings,
    get_audit_log_settings,
    get_external_http_settings,
    get_jira_settings,
    get_ocm_settings,
    get_pagerduty_settings,
)
from cluster_context.connectors import (
    AuditLogConnector,
    ConnectorError,
    JiraIssueConnector,
    LimitedSupportConnector,
    OCMClusterResolver,
    PagerDutyAlertConnector,
    PagerDutyHistoryConnector,
    PagerDutyServiceConnector,
    ServiceLogConnector,
    SupportExceptionConnector,
)
from cluster_context.domain.identity import Identity
from cluster_context.domain.outcome import FetchOutcome, SourceError, SourceErrorKind
from cluster_context.domain.records import Incident
from cluster_context.domain.snapshot import (
    PAGERDUTY_HISTORY,
    AggregateOptions,
    IncidentOccurrence,
    ScopeParams,
    Snapshot,
)
from cluster_context.logging_utils import log_event
from cluster_context.services.incident_summary import IncidentSummaryError, summarize_incidents

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IdentityResolver(Protocol):
    def resolve(self, key: str) -> Identity:
        ...


class SourceConnector(Protocol):
    source: str
    expensive: bool
    windowed: bool

    def fetch(self, identity: Identity, scope: ScopeParams) -> FetchOutcome[Any]:
        ...


class ContextAggregator:
    """
    Resolves the cluster identity, then fetches every source independently.

    Only identity resolution and invalid options are fatal. Every other
    failure is collected into the returned error list and the failing source
    is left out of the snapshot.
    """

    def __init__(
        self,
        *,
        resolver: IdentityResolver,
        connectors: Sequence[SourceConnector],
        scope_connector: SourceConnector | None = None,
        history_source: str = PAGERDUTY_HISTORY,
        clock: Clock = utc_now,
    ) -> None:
        self._resolver = resolver
        self._connectors = list(connectors)
        self._scope_connector = scope_connector
        self._history_source = history_source
        self._clock = clock

    def aggregate(
        self,
        key: str,
        options: AggregateOptions | None = None,
    ) -> tuple[Snapshot | None, list[SourceError]]:
        """
        Return the snapshot for `key` and every error met while building it.

        The snapshot is None only when the options are invalid or the
        identity could not be resolved; nothing else is fetched in that case.
        """

        options = options or AggregateOptions()
        problems = options.validation_errors()
        if problems:
            error = SourceError(
                source="options",
                kind=SourceErrorKind.INVALID_OPTIONS,
                message="; ".join(problems),
            )
            log_event(logger, logging.ERROR, "invalid_options", error=error.message)
            return None, [error]

        identity, identity_error = self._resolve_identity(key)
        if identity is None:
            return None, [identity_error]

        now = self._clock()
        scope = ScopeParams(
            since=now - timedelta(days=options.days),
            max_pages=options.pages,
            team_ids=tuple(options.team_ids),
        )
        sources: dict[str, FetchOutcome[Any]] = {}
        errors: list[SourceError] = []

        if self._scope_connector is not None:
            scope_outcome = self._run_connector(self._scope_connector, identity, scope)
            self._record(scope_outcome, sources, errors)
            if scope_outcome.ok:
                scope = replace(
                    scope,
                    service_ids=tuple(record.id for record in scope_outcome.records),
                )

        selected = [
            connector for connector in self._connectors if options.full or not connector.expensive
        ]
        skipped = tuple(
            connector.source
            for connector in self._connectors
            if connector.expensive and not options.full
        )
        for source in skipped:
            log_event(logger, logging.INFO, "source_skipped", source=source, reason="expensive")

        outcomes = self._fetch_sources(selected, identity, scope, options.max_workers)
        for connector, outcome in zip(selected, outcomes):
            if connector.windowed and outcome.ok:
                outcome = _filter_since(outcome, scope.since)
            self._record(outcome, sources, errors)

        incident_history = self._summarize_history(sources, scope, errors)

        snapshot = Snapshot(
            identity=identity,
            sources=sources,
            errors=tuple(errors),
            incident_history=incident_history,
            skipped_sources=skipped,
            generated_at=now,
        )
        return snapshot, errors

    def _resolve_identity(self, key: str) -> tuple[Identity | None, SourceError | None]:
        try:
            return self._resolver.resolve(key), None
        except ConnectorError as exc:
            message = str(exc)
        except Exception as exc:
            logger.exception("Unhandled identity resolution failure key=%s", key)
            message = f"unexpected failure: {exc}"

        log_event(logger, logging.ERROR, "identity_resolution_failed", key=key, error=message)
        return None, SourceError(source="identity", kind=SourceErrorKind.IDENTITY, message=message)

    def _fetch_sources(
        self,
        connectors: Sequence[SourceConnector],
        identity: Identity,
        scope: ScopeParams,
        max_workers: int,
    ) -> list[FetchOutcome[Any]]:
        """
        Fetch every connector, sequentially or on a worker pool. Results come
        back in connector order either way.
        """

        if max_workers <= 1 or len(connectors) <= 1:
            return [self._run_connector(connector, identity, scope) for connector in connectors]

        executor = ThreadPoolExecutor(
            max_workers=min(max_workers, len(connectors)),
            thread_name_prefix="context-source",
        )
        try:
            futures = [
                executor.submit(self._run_connector, connector, identity, scope)
                for connector in connectors
            ]
            wait(futures)
            results = [future.result() for future in futures]
        except BaseException:
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)
        return results

    @staticmethod
    def _run_connector(
        connector: SourceConnector,
        identity: Identity,
        scope: ScopeParams,
    ) -> FetchOutcome[Any]:
        log_event(logger, logging.INFO, "source_fetch_started", source=connector.source)
        try:
            outcome = connector.fetch(identity, scope)
        except Exception as exc:
            logger.exception("Unhandled connector failure source=%s", connector.source)
            outcome = FetchOutcome.failure(
                SourceError(
                    source=connector.source,
                    kind=SourceErrorKind.UNEXPECTED,
                    message=str(exc) or exc.__class__.__name__,
                )
            )

        if outcome.ok:
            log_event(
                logger,
                logging.INFO,
                "source_fetch_completed",
                source=connector.source,
                records=len(outcome.records),
                truncated=outcome.truncated,
            )
        else:
            log_event(
                logger,
                logging.WARNING,
                "source_fetch_failed",
                source=connector.source,
                kind=outcome.error.kind.value,
                error=outcome.error.message,
            )
        return outcome

    @staticmethod
    def _record(
        outcome: FetchOutcome[Any],
        sources: dict[str, FetchOutcome[Any]],
        errors: list[SourceError],
    ) -> None:
        if outcome.ok:
            sources[outcome.source] = outcome
        else:
            errors.append(outcome.error)

    def _summarize_history(
        self,
        sources: dict[str, FetchOutcome[Any]],
        scope: ScopeParams,
        errors: list[SourceError],
    ) -> dict[str, tuple[IncidentOccurrence, ...]] | None:
        history = sources.get(self._history_source)
        if history is None:
            return None

        by_service: dict[str, list[Incident]] = {service_id: [] for service_id in scope.service_ids}
        for incident in history.records:
            by_service.setdefault(incident.service_id, []).append(incident)

        try:
            return summarize_incidents(by_service, since=scope.since)
        except IncidentSummaryError as exc:
            log_event(
                logger,
                logging.WARNING,
                "incident_summary_failed",
                source=self._history_source,
                error=str(exc),
            )
            errors.append(
                SourceError(
                    source=self._history_source,
                    kind=SourceErrorKind.SUMMARY,
                    message=str(exc),
                )
            )
            return None


def _filter_since(outcome: FetchOutcome[Any], since: datetime) -> FetchOutcome[Any]:
    """
    Keep records created strictly after `since`.

    A timestamp that cannot be compared with `since` fails the source instead
    of the whole aggregation.
    """

    try:
        kept = [
            record
            for record in outcome.records
            if getattr(record, "created_at", None) is not None and record.created_at > since
        ]
    except TypeError as exc:
        log_event(
            logger,
            logging.WARNING,
            "source_window_failed",
            source=outcome.source,
            error=str(exc),
        )
        return FetchOutcome.failure(
            SourceError(
                source=outcome.source,
                kind=SourceErrorKind.PAYLOAD,
                message=f"cannot apply time window: {exc}",
            )
        )
    return FetchOutcome.success(outcome.source, kept, truncated=outcome.truncated)


def build_context_aggregator(
    *,
    http_settings: ExternalHTTPSettings | None = None,
    ocm_settings: OCMSettings | None = None,
    jira_settings: JiraSettings | None = None,
    pagerduty_settings: PagerDutySettings | None = None,
    audit_log_settings: AuditLogSettings | None = None,
    clock: Clock = utc_now,
) -> ContextAggregator:
    """
    Wire every connector from explicit settings, falling back to the
    environment for anything not given. Each connector gets its own session.
    """

    http = http_settings or get_external_http_settings()
    ocm = ocm_settings or get_ocm_settings()
    jira = jira_settings or get_jira_settings()
    pagerduty = pagerduty_settings or get_pagerduty_settings()
    audit_log = audit_log_settings or get_audit_log_settings()

    return ContextAggregator(
        resolver=OCMClusterResolver(settings=ocm, http_settings=http),
        scope_connector=PagerDutyServiceConnector(settings=pagerduty, http_settings=http),
        connectors=[
            LimitedSupportConnector(settings=ocm, http_settings=http),
            ServiceLogConnector(settings=ocm, http_settings=http),
            JiraIssueConnector(settings=jira, http_settings=http),
            SupportExceptionConnector(settings=jira, http_settings=http),
            PagerDutyAlertConnector(settings=pagerduty, http_settings=http),
            PagerDutyHistoryConnector(settings=pagerduty, http_settings=http),
            AuditLogConnector(settings=audit_log, http_settings=http),
        ],
        clock=clock,
    )


@lru_cache(maxsize=1)
def get_context_aggregator() -> ContextAggregator:
    """
    Build and cache the aggregator from environment settings.
    """

    return build_context_aggregator()
