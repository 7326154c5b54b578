"""
cluster_context/connectors/base.py

Base connector abstraction, shared HTTP mechanics and pagination.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from cluster_context.config import ExternalHTTPSettings
from cluster_context.domain.identity import Identity
from cluster_context.domain.outcome import FetchOutcome, Page, SourceError, SourceErrorKind
from cluster_context.domain.snapshot import ScopeParams

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
AUTH_STATUS_CODES = {401, 403}

RecordT = TypeVar("RecordT")
ModelT = TypeVar("ModelT", bound=BaseModel)


class ConnectorError(RuntimeError):
    """
    Base class for every failure a connector reports instead of records.
    """

    kind = SourceErrorKind.REQUEST


class ConnectorRequestError(ConnectorError):
    """
    Raised when a connector cannot fetch data after retries.
    """


class ConnectorAuthError(ConnectorRequestError):
    kind = SourceErrorKind.AUTH


class ConnectorRateLimitError(ConnectorRequestError):
    kind = SourceErrorKind.RATE_LIMIT


class ConnectorConfigError(ConnectorError):
    """
    Raised before any request when credentials or required scope are missing.
    """

    kind = SourceErrorKind.CONFIG


class ConnectorPayloadError(ConnectorError):
    kind = SourceErrorKind.PAYLOAD


class ConnectorPaginationError(ConnectorError):
    """
    Raised when a page after the first fails. Records from earlier pages are
    discarded.
    """

    kind = SourceErrorKind.PAGINATION


class HTTPSource:
    """
    Shared HTTP mechanics for anything that talks to an external system.
    """

    source: str

    def __init__(
        self,
        *,
        source: str,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.source = source
        self._session = session or requests.Session()
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = http_settings.max_retries
        self._backoff_initial_seconds = http_settings.backoff_initial_seconds
        self._backoff_multiplier = http_settings.backoff_multiplier
        self._min_request_interval_seconds = (
            1.0 / http_settings.rate_limit_per_second if http_settings.rate_limit_per_second > 0 else 0.0
        )
        self._last_request_monotonic: float = 0.0

    def _auth_headers(self) -> dict[str, str]:
        return {}

    def _validate(self, model: type[ModelT], payload: Any) -> ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise ConnectorPayloadError(
                f"{self.source}: unexpected response shape ({exc.error_count()} errors)."
            ) from exc

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """
        Execute an HTTP request and return parsed JSON with retry support.
        """

        response = self._request(method=method, url=url, params=params, json_body=json_body)
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectorPayloadError(f"{self.source}: response was not valid JSON.") from exc

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> requests.Response:
        """
        Execute an HTTP request with rate limiting and exponential backoff.
        """

        headers = {"Accept": "application/json", **self._auth_headers()}
        last_error: Exception | None = None
        last_status: int | None = None
        for attempt in range(self._max_retries + 1):
            self._apply_rate_limit()
            try:
                response = self._session.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json_body,
                    headers=headers,
                    timeout=self._timeout_seconds,
                )
                last_status = response.status_code
                if response.status_code in AUTH_STATUS_CODES:
                    raise ConnectorAuthError(
                        f"{self.source}: credentials rejected (HTTP {response.status_code})."
                    )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable HTTP status code: {response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error(
                        "Connector request failed source=%s status=%s url=%s error=%s",
                        self.source,
                        status_code,
                        url,
                        exc,
                    )
                    raise ConnectorRequestError(
                        f"{self.source}: non-retryable request failure (HTTP {status_code})."
                    ) from exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc
                last_status = None

            if attempt >= self._max_retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            logger.warning(
                "Connector request retry source=%s attempt=%s/%s wait_seconds=%.2f url=%s",
                self.source,
                attempt + 1,
                self._max_retries,
                backoff_seconds,
                url,
            )
            time.sleep(backoff_seconds)

        logger.error(
            "Connector request exhausted retries source=%s url=%s error=%s",
            self.source,
            url,
            last_error,
        )
        if last_status == 429:
            raise ConnectorRateLimitError(
                f"{self.source}: rate limited after {self._max_retries + 1} attempts."
            ) from last_error
        raise ConnectorRequestError(f"{self.source}: request failed after retries.") from last_error

    def _apply_rate_limit(self) -> None:
        """
        Enforce minimum interval between outbound requests.
        """

        if self._min_request_interval_seconds <= 0:
            return

        now = time.monotonic()
        elapsed = now - self._last_request_monotonic
        remaining = self._min_request_interval_seconds - elapsed
        if remaining > 0:
            time.sleep(remaining)
        self._last_request_monotonic = time.monotonic()


class BaseConnector(HTTPSource, ABC, Generic[RecordT]):
    """
    Connector interface for fetching one source's records for a cluster.

    Subclasses implement `fetch_page`; `fetch` drives pagination up to the
    caller's page ceiling and turns connector errors into a failed outcome.
    """

    expensive: bool = False
    windowed: bool = False

    def fetch(self, identity: Identity, scope: ScopeParams) -> FetchOutcome[RecordT]:
        """
        Fetch every page of this source and return exactly one outcome.
        """

        try:
            records, truncated = self._fetch_all(identity, scope)
        except ConnectorError as exc:
            logger.error(
                "Connector fetch failed source=%s kind=%s error=%s",
                self.source,
                exc.kind.value,
                exc,
            )
            return FetchOutcome.failure(
                SourceError(source=self.source, kind=exc.kind, message=str(exc))
            )
        return FetchOutcome.success(self.source, records, truncated=truncated)

    @abstractmethod
    def fetch_page(
        self,
        identity: Identity,
        scope: ScopeParams,
        token: Any | None,
    ) -> Page[RecordT]:
        """
        Fetch one page. `token` is None for the first page.
        """

    def _fetch_all(self, identity: Identity, scope: ScopeParams) -> tuple[list[RecordT], bool]:
        return self._paginate(
            lambda token: self.fetch_page(identity, scope, token),
            max_pages=scope.max_pages,
        )

    def _paginate(
        self,
        fetch_page: Callable[[Any | None], Page[RecordT]],
        *,
        max_pages: int,
    ) -> tuple[list[RecordT], bool]:
        """
        Follow continuation tokens sequentially, stopping after `max_pages`.

        Returns the records and whether the ceiling cut off further pages.
        """

        records: list[RecordT] = []
        token: Any | None = None
        for page_number in range(1, max_pages + 1):
            try:
                page = fetch_page(token)
            except ConnectorError as exc:
                if page_number == 1:
                    raise
                raise ConnectorPaginationError(
                    f"{self.source}: page {page_number} failed, discarding "
                    f"{len(records)} records from earlier pages: {exc}"
                ) from exc

            records.extend(page.records)
            if page.next_token is None:
                return records, False
            token = page.next_token

        logger.warning(
            "Connector page ceiling reached source=%s max_pages=%s records=%s",
            self.source,
            max_pages,
            len(records),
        )
        return records, True

