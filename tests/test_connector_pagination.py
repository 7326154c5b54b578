"""
tests/test_connector_pagination.py

Pytest unit tests for the shared pagination loop in BaseConnector.

Coverage
--------
- Page ceiling truncates and still succeeds
- Failure on a later page discards earlier records
- Failure on the first page keeps its own kind
- Empty results are a success
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from cluster_context.config import ExternalHTTPSettings
from cluster_context.connectors.base import (
    BaseConnector,
    ConnectorAuthError,
    ConnectorError,
    ConnectorRequestError,
)
from cluster_context.domain.identity import Identity
from cluster_context.domain.outcome import Page, SourceErrorKind
from cluster_context.domain.snapshot import ScopeParams


class _ScriptedConnector(BaseConnector[int]):
    """
    Serves pages from a list; an exception entry is raised instead of returned.
    """

    def __init__(self, pages: list[Any], http_settings: ExternalHTTPSettings) -> None:
        super().__init__(source="scripted", http_settings=http_settings)
        self._pages = pages
        self.tokens: list[Any] = []

    def fetch_page(self, identity: Identity, scope: ScopeParams, token: Any | None) -> Page[int]:
        self.tokens.append(token)
        entry = self._pages[len(self.tokens) - 1]
        if isinstance(entry, ConnectorError):
            raise entry
        return entry


def _endless_pages(count: int) -> list[Page[int]]:
    return [Page(records=[index], next_token=index + 1) for index in range(count)]


def test_stops_at_page_ceiling_and_flags_truncation(http_settings, identity, scope) -> None:
    connector = _ScriptedConnector(_endless_pages(10), http_settings)

    outcome = connector.fetch(identity, scope)

    assert outcome.ok
    assert outcome.truncated is True
    assert outcome.records == (0, 1, 2, 3, 4)
    assert len(connector.tokens) == scope.max_pages


def test_follows_tokens_until_exhausted(http_settings, identity, scope) -> None:
    pages = [
        Page(records=[1, 2], next_token="b"),
        Page(records=[3], next_token="c"),
        Page(records=[4], next_token=None),
    ]
    connector = _ScriptedConnector(pages, http_settings)

    outcome = connector.fetch(identity, scope)

    assert outcome.ok
    assert outcome.truncated is False
    assert outcome.records == (1, 2, 3, 4)
    assert connector.tokens == [None, "b", "c"]


def test_later_page_failure_discards_everything(http_settings, identity, scope) -> None:
    pages = [
        Page(records=[1, 2], next_token="b"),
        Page(records=[3], next_token="c"),
        ConnectorRequestError("scripted: boom"),
    ]
    connector = _ScriptedConnector(pages, http_settings)

    outcome = connector.fetch(identity, scope)

    assert not outcome.ok
    assert outcome.records == ()
    assert outcome.error.kind is SourceErrorKind.PAGINATION
    assert "page 3" in outcome.error.message
    assert "discarding 3 records" in outcome.error.message


def test_first_page_failure_keeps_its_kind(http_settings, identity, scope) -> None:
    connector = _ScriptedConnector([ConnectorAuthError("scripted: denied")], http_settings)

    outcome = connector.fetch(identity, scope)

    assert outcome.error.kind is SourceErrorKind.AUTH
    assert outcome.error.source == "scripted"


def test_empty_result_is_success(http_settings, identity, scope) -> None:
    connector = _ScriptedConnector([Page(records=[], next_token=None)], http_settings)

    outcome = connector.fetch(identity, scope)

    assert outcome.ok
    assert outcome.records == ()
    assert outcome.truncated is False


def test_single_page_ceiling(http_settings, identity, scope) -> None:
    connector = _ScriptedConnector(_endless_pages(3), http_settings)
    scope = replace(scope, max_pages=1)

    outcome = connector.fetch(identity, scope)

    assert outcome.records == (0,)
    assert outcome.truncated is True
