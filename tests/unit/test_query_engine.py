"""Tests for ``QueryEngine`` validation, predicates and envelopes."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from certadmin.datastore import ConnectionPool, PoolConfig, QueryCache
from certadmin.query import (
    EventStatus,
    FilterSpec,
    PaginationSpec,
    ParticipantStatus,
    Resource,
    SortDirection,
    SortSpec,
)
from certadmin.services import (
    QueryEngine,
    QueryExecutionError,
    QueryValidationError,
    derive_event_status,
)
from tests.factories.certificates import ActivityLogFactory, EventFactory, ParticipantFactory

TODAY = date(2024, 6, 15)


class UntouchablePool:
    """Pool double proving validation happens before any store access."""

    def execute_with_retry(self, operation):
        raise AssertionError("store must not be reached")


@pytest.fixture()
def engine(pool, database) -> QueryEngine:
    return QueryEngine(pool, QueryCache(default_ttl=0.0), today=lambda: TODAY)


def _names(envelope) -> list[str]:
    return [row["name"] for row in envelope.data]


class TestValidation:
    def test_all_problems_are_aggregated(self):
        engine = QueryEngine(UntouchablePool(), QueryCache())

        with pytest.raises(QueryValidationError) as info:
            engine.query(
                Resource.PARTICIPANTS,
                FilterSpec(date_from="not-a-date"),
                SortSpec(field="password", direction="sideways"),
                PaginationSpec(page=0, limit=1001),
            )

        errors = info.value.errors
        assert [(e.code, e.field) for e in errors] == [
            ("INVALID_PAGINATION", "page"),
            ("INVALID_PAGINATION", "limit"),
            ("INVALID_SORT", "sort.field"),
            ("INVALID_SORT", "sort.direction"),
            ("INVALID_FILTER", "date_from"),
        ]
        assert "Allowed fields: name, email" in errors[2].message
        assert str(info.value).startswith("Query validation failed:")

    @pytest.mark.parametrize("limit", [1, 1000])
    def test_limit_bounds_are_inclusive(self, limit):
        engine = QueryEngine(UntouchablePool(), QueryCache())
        problems = engine.validate(
            Resource.LOGS, FilterSpec(), SortSpec(), PaginationSpec(page=1, limit=limit)
        )
        assert problems == []

    def test_sort_whitelist_is_per_resource(self):
        engine = QueryEngine(UntouchablePool(), QueryCache())
        problems = engine.validate(
            Resource.LOGS, FilterSpec(), SortSpec(field="event_name"), PaginationSpec()
        )
        assert [p.code for p in problems] == ["INVALID_SORT"]


class TestParticipants:
    def test_search_ands_tokens_and_ors_fields(self, engine):
        ParticipantFactory(name="John Smith", email="js@example.com")
        ParticipantFactory(name="John Carter", email="carter@example.com")
        ParticipantFactory(name="Jane Doe", email="smith.jane@example.com")

        both = engine.query_participants(
            FilterSpec(search="john smith"), SortSpec(field="name"), PaginationSpec()
        )
        assert _names(both) == ["John Smith"]

        either_field = engine.query_participants(
            FilterSpec(search="smith"), SortSpec(field="name", direction=SortDirection.ASC), PaginationSpec()
        )
        assert _names(either_field) == ["Jane Doe", "John Smith"]

    def test_search_matches_certificate_id_case_insensitively(self, engine):
        ParticipantFactory(name="Ada", certificate_id="PYCON-0042")
        ParticipantFactory(name="Grace", certificate_id="PYCON-0043")

        result = engine.query_participants(
            FilterSpec(search="pycon-0042"), SortSpec(), PaginationSpec()
        )
        assert _names(result) == ["Ada"]

    def test_status_filter(self, engine):
        ParticipantFactory(name="Active")
        ParticipantFactory(name="Revoked", revoked=True, revoked_at=datetime(2024, 5, 1, tzinfo=UTC))

        active = engine.query_participants(
            FilterSpec(status=ParticipantStatus.ACTIVE), SortSpec(), PaginationSpec()
        )
        revoked = engine.query_participants(
            FilterSpec(status=ParticipantStatus.REVOKED), SortSpec(), PaginationSpec()
        )
        everyone = engine.query_participants(
            FilterSpec(status=ParticipantStatus.ALL), SortSpec(), PaginationSpec()
        )

        assert _names(active) == ["Active"]
        assert _names(revoked) == ["Revoked"]
        assert everyone.pagination.total == 2

    def test_event_filter_and_event_columns(self, engine):
        event = EventFactory(event_name="Security Bootcamp", event_code="SEC-BOOT")
        ParticipantFactory(name="Mine", event=event)
        ParticipantFactory(name="Other")

        result = engine.query_participants(
            FilterSpec(event_id=event.id), SortSpec(field="event_name"), PaginationSpec()
        )

        assert _names(result) == ["Mine"]
        row = result.data[0]
        assert row["event_name"] == "Security Bootcamp"
        assert row["event_code"] == "SEC-BOOT"


class TestEvents:
    def test_derived_status_and_counts(self, engine):
        past = EventFactory(event_code="PAST", date=date(2024, 6, 14))
        EventFactory(event_code="NOW", date=date(2024, 6, 15))
        EventFactory(event_code="SOON", date=date(2024, 6, 16))
        ParticipantFactory(event=past)
        ParticipantFactory(event=past)
        ParticipantFactory(event=past, revoked=True)

        result = engine.query_events(
            FilterSpec(), SortSpec(field="date", direction=SortDirection.ASC), PaginationSpec()
        )

        by_code = {row["event_code"]: row for row in result.data}
        assert by_code["PAST"]["status"] == "ended"
        assert by_code["NOW"]["status"] == "ongoing"
        assert by_code["SOON"]["status"] == "upcoming"
        assert (by_code["PAST"]["participant_count"], by_code["PAST"]["certificate_count"]) == (3, 2)
        assert (by_code["SOON"]["participant_count"], by_code["SOON"]["certificate_count"]) == (0, 0)

    def test_status_uses_the_real_current_day(self, pool, database, freeze_time):
        EventFactory(event_code="TODAY", date=date(2024, 6, 15))
        engine = QueryEngine(pool, QueryCache(default_ttl=0.0))

        with freeze_time("2024-06-15 10:00:00"):
            today = engine.query_events(FilterSpec(), SortSpec(), PaginationSpec())
        with freeze_time("2024-06-16 00:00:01"):
            tomorrow = engine.query_events(FilterSpec(), SortSpec(), PaginationSpec())

        assert today.data[0]["status"] == "ongoing"
        assert tomorrow.data[0]["status"] == "ended"

    def test_event_status_filter(self, engine):
        EventFactory(event_code="PAST", date=date(2024, 1, 1))
        EventFactory(event_code="SOON", date=date(2024, 12, 1))

        result = engine.query_events(
            FilterSpec(event_status=EventStatus.UPCOMING), SortSpec(), PaginationSpec()
        )
        assert [row["event_code"] for row in result.data] == ["SOON"]

    def test_sort_by_participant_count(self, engine):
        small = EventFactory(event_code="SMALL")
        big = EventFactory(event_code="BIG")
        EventFactory(event_code="EMPTY")
        ParticipantFactory(event=small)
        for _ in range(3):
            ParticipantFactory(event=big)

        result = engine.query_events(
            FilterSpec(), SortSpec(field="participant_count"), PaginationSpec()
        )
        assert [row["event_code"] for row in result.data] == ["BIG", "SMALL", "EMPTY"]

    def test_tag_and_date_range_filters(self, engine):
        EventFactory(event_code="A", tag="workshop", date=date(2024, 3, 10))
        EventFactory(event_code="B", tag="workshop", date=date(2024, 7, 10))
        EventFactory(event_code="C", tag="conference", date=date(2024, 3, 12))

        result = engine.query_events(
            FilterSpec(tag="workshop", date_from="2024-03-01", date_to="2024-03-31"),
            SortSpec(),
            PaginationSpec(),
        )
        assert [row["event_code"] for row in result.data] == ["A"]
        assert result.filters == {
            "tag": "workshop",
            "date_from": "2024-03-01",
            "date_to": "2024-03-31",
        }


class TestLogs:
    def test_envelope_pagination(self, engine):
        for _ in range(5):
            ActivityLogFactory()

        envelope = engine.query_logs(FilterSpec(), SortSpec(), PaginationSpec(page=2, limit=2))
        body = envelope.to_dict()

        assert len(body["data"]) == 2
        assert body["pagination"] == {
            "page": 2,
            "limit": 2,
            "total": 5,
            "totalPages": 3,
            "hasNext": True,
            "hasPrev": True,
        }
        assert body["meta"]["sort"] == {"field": "created_at", "direction": "desc"}
        assert body["meta"]["queryTime"] >= 0

    def test_empty_result(self, engine):
        body = engine.query_logs(FilterSpec(), SortSpec(), PaginationSpec()).to_dict()
        assert body["data"] == []
        assert body["pagination"]["totalPages"] == 0
        assert body["pagination"]["hasNext"] is False
        assert body["pagination"]["hasPrev"] is False

    def test_search_looks_into_metadata(self, engine):
        ActivityLogFactory(action="certificate.revoked", meta={"certificate_id": "ABC-123"})
        ActivityLogFactory(action="event.created", meta={"event_code": "XYZ"})

        result = engine.query_logs(FilterSpec(search="abc-123"), SortSpec(), PaginationSpec())
        assert [row["action"] for row in result.data] == ["certificate.revoked"]
        assert result.data[0]["metadata"] == {"certificate_id": "ABC-123"}

    def test_created_at_range(self, engine):
        ActivityLogFactory(action="early", created_at=datetime(2024, 1, 5, tzinfo=UTC))
        ActivityLogFactory(action="inside", created_at=datetime(2024, 2, 10, tzinfo=UTC))
        ActivityLogFactory(action="late", created_at=datetime(2024, 3, 20, tzinfo=UTC))

        result = engine.query_logs(
            FilterSpec(date_from="2024-02-01", date_to="2024-02-28T23:59:59Z"),
            SortSpec(),
            PaginationSpec(),
        )
        assert [row["action"] for row in result.data] == ["inside"]


class TestExecution:
    def test_store_failures_are_wrapped(self, database):
        class BrokenHandle:
            def execute(self, *_args, **_kwargs):
                raise RuntimeError("connection reset by peer")

        pool = ConnectionPool(BrokenHandle, PoolConfig(max_connections=1, retry_delay=0.0))
        engine = QueryEngine(pool, QueryCache(), today=lambda: TODAY)

        with pytest.raises(QueryExecutionError) as info:
            engine.query_logs(FilterSpec(), SortSpec(), PaginationSpec())

        assert str(info.value) == "Query execution failed: connection reset by peer"
        assert pool.available == 1

    def test_results_are_served_from_cache_within_ttl(self, pool, database):
        engine = QueryEngine(pool, QueryCache(default_ttl=60.0), today=lambda: TODAY)
        ActivityLogFactory()

        first = engine.query_logs(FilterSpec(), SortSpec(), PaginationSpec())
        ActivityLogFactory()
        second = engine.query_logs(FilterSpec(), SortSpec(), PaginationSpec())
        other_page = engine.query_logs(FilterSpec(), SortSpec(), PaginationSpec(limit=50))

        assert first.pagination.total == 1
        assert second.pagination.total == 1
        assert other_page.pagination.total == 2


@pytest.mark.parametrize(
    ("event_day", "expected"),
    [
        (date(2024, 6, 16), EventStatus.UPCOMING),
        (date(2024, 6, 15), EventStatus.ONGOING),
        (date(2024, 6, 14), EventStatus.ENDED),
    ],
)
def test_derive_event_status(event_day, expected):
    assert derive_event_status(event_day, TODAY) is expected
