"""
tests/test_incident_summary.py

Pytest unit tests for the incident history summarizer.

Coverage
--------
- Grouping by first title token
- Last occurrence is the latest timestamp, not the first seen
- Ascending count ordering and stable ties
- Unparseable timestamps abort the whole call
- Independent scopes
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from cluster_context.domain.records import Incident
from cluster_context.domain.snapshot import IncidentOccurrence
from cluster_context.services.incident_summary import (
    IncidentSummaryError,
    canonical_incident_key,
    summarize_incidents,
    summarize_scope,
)


def _incident(title: str, created_at: str, service_id: str = "PSVC1") -> Incident:
    return Incident(
        id=f"{title}-{created_at}",
        service_id=service_id,
        title=title,
        urgency="high",
        status="resolved",
        created_at=created_at,
    )


# ---------------------------------------------------------------------------
# Canonical key
# ---------------------------------------------------------------------------


class TestCanonicalKey:
    @pytest.mark.parametrize(
        "title, expected",
        [
            ("NodeDown foo", "NodeDown"),
            ("  DiskFull   /var/lib", "DiskFull"),
            ("ClusterOperatorDegraded", "ClusterOperatorDegraded"),
            ("KubeAPIDown\tcritical", "KubeAPIDown"),
            ("", ""),
            ("   ", ""),
        ],
    )
    def test_first_whitespace_token(self, title: str, expected: str) -> None:
        assert canonical_incident_key(title) == expected


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


class TestGrouping:
    def test_titles_sharing_first_word_are_grouped(self) -> None:
        incidents = [
            _incident("NodeDown foo", "2026-09-20T10:00:00Z"),
            _incident("NodeDown bar", "2026-09-25T08:30:00Z"),
            _incident("DiskFull x", "2026-09-22T00:00:00Z"),
        ]

        result = summarize_scope("PSVC1", incidents)

        assert result == (
            IncidentOccurrence(
                name="DiskFull",
                count=1,
                last_occurrence=datetime(2026, 9, 22, tzinfo=timezone.utc),
            ),
            IncidentOccurrence(
                name="NodeDown",
                count=2,
                last_occurrence=datetime(2026, 9, 25, 8, 30, tzinfo=timezone.utc),
            ),
        )

    def test_last_occurrence_is_maximum_regardless_of_input_order(self) -> None:
        incidents = [
            _incident("NodeDown a", "2026-09-01T00:00:00Z"),
            _incident("NodeDown b", "2026-09-30T00:00:00Z"),
            _incident("NodeDown c", "2026-09-15T00:00:00Z"),
        ]

        (occurrence,) = summarize_scope("PSVC1", incidents)

        assert occurrence.count == 3
        assert occurrence.last_occurrence == datetime(2026, 9, 30, tzinfo=timezone.utc)

    def test_offsets_are_compared_as_instants(self) -> None:
        incidents = [
            _incident("NodeDown a", "2026-09-01T10:00:00+02:00"),
            _incident("NodeDown b", "2026-09-01T09:30:00Z"),
        ]

        (occurrence,) = summarize_scope("PSVC1", incidents)

        assert occurrence.last_occurrence == datetime(2026, 9, 1, 9, 30, tzinfo=timezone.utc)

    def test_empty_scope_yields_no_occurrences(self) -> None:
        assert summarize_scope("PSVC1", []) == ()


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_ascending_by_count(self) -> None:
        incidents = [_incident("Alpha x", "2026-09-01T00:00:00Z")]
        incidents += [_incident(f"Beta {i}", "2026-09-02T00:00:00Z") for i in range(5)]
        incidents += [_incident(f"Gamma {i}", "2026-09-03T00:00:00Z") for i in range(3)]

        result = summarize_scope("PSVC1", incidents)

        assert [occurrence.count for occurrence in result] == [1, 3, 5]
        assert [occurrence.name for occurrence in result] == ["Alpha", "Gamma", "Beta"]

    def test_equal_counts_keep_first_seen_order(self) -> None:
        incidents = [
            _incident("Zeta 1", "2026-09-01T00:00:00Z"),
            _incident("Alpha 1", "2026-09-02T00:00:00Z"),
            _incident("Mu 1", "2026-09-03T00:00:00Z"),
        ]

        result = summarize_scope("PSVC1", incidents)

        assert [occurrence.name for occurrence in result] == ["Zeta", "Alpha", "Mu"]


# ---------------------------------------------------------------------------
# Failure
# ---------------------------------------------------------------------------


class TestParseFailure:
    def test_unparseable_timestamp_raises(self) -> None:
        incidents = [
            _incident("NodeDown a", "2026-09-01T00:00:00Z"),
            _incident("NodeDown b", "yesterday"),
        ]

        with pytest.raises(IncidentSummaryError) as excinfo:
            summarize_scope("PSVC1", incidents)

        assert excinfo.value.scope == "PSVC1"
        assert excinfo.value.value == "yesterday"
        assert "NodeDown b" in str(excinfo.value)

    def test_first_record_failure_is_also_fatal(self) -> None:
        with pytest.raises(IncidentSummaryError):
            summarize_scope("PSVC1", [_incident("NodeDown a", "")])

    def test_one_bad_scope_fails_the_whole_call(self) -> None:
        scoped = {
            "PSVC1": [_incident("NodeDown a", "2026-09-01T00:00:00Z")],
            "PSVC2": [_incident("DiskFull a", "not-a-date", service_id="PSVC2")],
        }

        with pytest.raises(IncidentSummaryError) as excinfo:
            summarize_incidents(scoped)

        assert excinfo.value.scope == "PSVC2"

    def test_error_is_a_value_error(self) -> None:
        assert issubclass(IncidentSummaryError, ValueError)


# ---------------------------------------------------------------------------
# Scopes
# ---------------------------------------------------------------------------


def test_scopes_are_counted_independently() -> None:
    scoped = {
        "PSVC1": [
            _incident("NodeDown a", "2026-09-01T00:00:00Z"),
            _incident("NodeDown b", "2026-09-02T00:00:00Z"),
        ],
        "PSVC2": [_incident("NodeDown c", "2026-09-03T00:00:00Z", service_id="PSVC2")],
        "PSVC3": [],
    }

    result = summarize_incidents(scoped)

    assert list(result) == ["PSVC1", "PSVC2", "PSVC3"]
    assert result["PSVC1"][0].count == 2
    assert result["PSVC2"][0].count == 1
    assert result["PSVC2"][0].last_occurrence == datetime(2026, 9, 3, tzinfo=timezone.utc)
    assert result["PSVC3"] == ()


def test_since_keeps_only_strictly_later_incidents() -> None:
    since = datetime(2026, 9, 1, tzinfo=timezone.utc)
    scoped = {
        "PSVC1": [
            _incident("NodeDown a", "2026-09-01T00:00:00Z"),
            _incident("NodeDown b", "2026-09-01T00:00:01Z"),
            _incident("DiskFull a", "2026-08-31T23:59:59Z"),
        ],
    }

    result = summarize_incidents(scoped, since=since)

    assert result["PSVC1"] == (
        IncidentOccurrence(
            name="NodeDown",
            count=1,
            last_occurrence=datetime(2026, 9, 1, 0, 0, 1, tzinfo=timezone.utc),
        ),
    )


def test_since_does_not_hide_unparseable_timestamps() -> None:
    since = datetime(2026, 9, 1, tzinfo=timezone.utc)

    with pytest.raises(IncidentSummaryError):
        summarize_incidents({"PSVC1": [_incident("NodeDown a", "last week")]}, since=since)
