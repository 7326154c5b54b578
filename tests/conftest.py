"""
Shared fixtures: an in-memory stand-in for `requests.Session` and fake
connectors for aggregator tests. No test touches the network.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import pytest
import requests

from cluster_context.config import ExternalHTTPSettings
from cluster_context.domain.identity import Identity
from cluster_context.domain.outcome import FetchOutcome, SourceError, SourceErrorKind
from cluster_context.domain.snapshot import ScopeParams

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def json(self) -> Any:
        if isinstance(self._payload, str):
            raise ValueError("not JSON")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


@dataclass
class RecordedRequest:
    method: str
    url: str
    params: dict[str, Any] | None
    json: dict[str, Any] | None
    headers: dict[str, str]


class FakeSession:
    """
    Answers requests from a handler `(method, url, params, json) -> payload`.
    The handler may return a FakeResponse to control the status code, or
    raise a requests exception to simulate transport failures.
    """

    def __init__(self, handler: Callable[..., Any]) -> None:
        self._handler = handler
        self.requests: list[RecordedRequest] = []

    def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> FakeResponse:
        self.requests.append(
            RecordedRequest(
                method=method,
                url=url,
                params=dict(params) if params else None,
                json=dict(json) if json else None,
                headers=dict(headers or {}),
            )
        )
        result = self._handler(method, url, params or {}, json or {})
        if isinstance(result, FakeResponse):
            return result
        return FakeResponse(result)


@pytest.fixture()
def http_settings() -> ExternalHTTPSettings:
    """No retries, no throttling."""
    return ExternalHTTPSettings(
        timeout_seconds=1.0,
        max_retries=0,
        backoff_initial_seconds=0.0,
        backoff_multiplier=1.0,
        rate_limit_per_second=0.0,
    )


@pytest.fixture()
def identity() -> Identity:
    return Identity(
        cluster_id="2abc",
        name="prod-east",
        version="4.15.3",
        external_id="ext-1111",
        base_domain="prod-east.example.org",
        infra_id="prod-east-x7k2p",
        organization_id="org-42",
        ocm_env="production",
    )


@pytest.fixture()
def scope() -> ScopeParams:
    return ScopeParams(since=datetime(2026, 9, 1, tzinfo=timezone.utc), max_pages=5)


# ---------------------------------------------------------------------------
# Aggregator fakes
# ---------------------------------------------------------------------------


@dataclass
class FakeConnector:
    source: str
    records: list[Any] = field(default_factory=list)
    error_kind: SourceErrorKind | None = None
    raises: Exception | None = None
    expensive: bool = False
    windowed: bool = False
    calls: list[ScopeParams] = field(default_factory=list)

    def fetch(self, identity: Identity, scope: ScopeParams) -> FetchOutcome[Any]:
        self.calls.append(scope)
        if self.raises is not None:
            raise self.raises
        if self.error_kind is not None:
            return FetchOutcome.failure(
                SourceError(source=self.source, kind=self.error_kind, message=f"{self.source} down")
            )
        return FetchOutcome.success(self.source, self.records)


class FakeResolver:
    def __init__(self, identity: Identity | None = None, error: Exception | None = None) -> None:
        self._identity = identity
        self._error = error
        self.calls: list[str] = []

    def resolve(self, key: str) -> Identity:
        self.calls.append(key)
        if self._error is not None:
            raise self._error
        assert self._identity is not None
        return self._identity
