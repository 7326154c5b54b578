"""
cluster_context/domain/outcome.py

Per-source fetch results and error descriptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Iterable, TypeVar

RecordT = TypeVar("RecordT")


class SourceErrorKind(str, Enum):
    INVALID_OPTIONS = "invalid_options"
    IDENTITY = "identity"
    CONFIG = "config"
    AUTH = "auth"
    REQUEST = "request"
    RATE_LIMIT = "rate_limit"
    PAGINATION = "pagination"
    PAYLOAD = "payload"
    SUMMARY = "summary"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class SourceError:
    """
    One error collected while building a snapshot.
    """

    source: str
    kind: SourceErrorKind
    message: str

    @property
    def is_configuration_problem(self) -> bool:
        return self.kind in {SourceErrorKind.CONFIG, SourceErrorKind.AUTH}

    def __str__(self) -> str:
        return f"{self.source} [{self.kind.value}]: {self.message}"


@dataclass(frozen=True)
class Page(Generic[RecordT]):
    """
    One page returned by a connector. `next_token` is None on the last page.
    """

    records: list[RecordT]
    next_token: Any | None = None


@dataclass(frozen=True)
class FetchOutcome(Generic[RecordT]):
    """
    Either the records fetched from one source or the error that prevented it.
    """

    source: str
    records: tuple[RecordT, ...] = ()
    error: SourceError | None = None
    truncated: bool = False

    @classmethod
    def success(
        cls,
        source: str,
        records: Iterable[RecordT],
        *,
        truncated: bool = False,
    ) -> "FetchOutcome[RecordT]":
        return cls(source=source, records=tuple(records), truncated=truncated)

    @classmethod
    def failure(cls, error: SourceError) -> "FetchOutcome[RecordT]":
        return cls(source=error.source, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None
