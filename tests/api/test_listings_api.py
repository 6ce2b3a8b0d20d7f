"""HTTP tests for the admin listing endpoints."""

from __future__ import annotations

from datetime import date

import pytest

from tests.factories.certificates import ActivityLogFactory, EventFactory, ParticipantFactory
from tests.helpers.assertions import assert_envelope
from tests.helpers.auth import expired_token
from tests.helpers.http import build_url

PARTICIPANTS = "/api/v1/admin/participants"
EVENTS = "/api/v1/admin/events"
LOGS = "/api/v1/admin/logs"


class TestAuthorization:
    @pytest.mark.parametrize("path", [PARTICIPANTS, EVENTS, LOGS, f"{LOGS}/stats"])
    def test_missing_token_is_unauthorized(self, client, path):
        assert client.get(path).status_code == 401

    def test_non_admin_is_forbidden(self, client, non_admin_header):
        resp = client.get(PARTICIPANTS, headers=non_admin_header)

        assert resp.status_code == 403
        assert resp.mimetype == "application/problem+json"
        assert resp.get_json()["code"] == "forbidden"

    def test_expired_token_is_unauthorized(self, client):
        headers = {"Authorization": f"Bearer {expired_token('admin-1')}"}
        assert client.get(EVENTS, headers=headers).status_code == 401


class TestParticipantsEndpoint:
    def test_lists_with_envelope(self, client, admin_header):
        ParticipantFactory(name="John Smith")
        ParticipantFactory(name="Jane Doe")

        resp = client.get(
            build_url(PARTICIPANTS, search="john\tsmith", sort_by="name", sort_order="asc"),
            headers=admin_header,
        )

        assert resp.status_code == 200
        body = resp.get_json()
        assert_envelope(body)
        assert [row["name"] for row in body["data"]] == ["John Smith"]
        assert body["meta"]["filters"] == {"search": "john smith"}
        assert body["meta"]["sort"] == {"field": "name", "direction": "asc"}
        assert body["pagination"]["limit"] == 12

    def test_invalid_sort_field_returns_400_with_whitelist(self, client, admin_header):
        resp = client.get(build_url(PARTICIPANTS, sort_by="password"), headers=admin_header)

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["success"] is False
        assert body["message"] == "Invalid query parameters"
        assert body["errors"][0]["code"] == "INVALID_SORT"
        assert body["errors"][0]["field"] == "sort.field"
        assert "certificate_id" in body["allowedSortFields"]

    def test_malformed_date_returns_400(self, client, admin_header):
        resp = client.get(build_url(PARTICIPANTS, date_from="31/12/2024"), headers=admin_header)

        assert resp.status_code == 400
        errors = resp.get_json()["errors"]
        assert errors == [
            {
                "code": "INVALID_FILTER",
                "field": "date_from",
                "message": "Invalid date_from format. Use ISO 8601 format",
                "value": "31/12/2024",
            }
        ]

    def test_out_of_range_pagination_falls_back(self, client, admin_header):
        resp = client.get(build_url(PARTICIPANTS, page=0, limit=500), headers=admin_header)

        assert resp.status_code == 200
        pagination = resp.get_json()["pagination"]
        assert (pagination["page"], pagination["limit"]) == (1, 12)

    def test_request_id_header_is_echoed(self, client, admin_header):
        headers = {**admin_header, "X-Request-ID": "req-123"}
        resp = client.get(PARTICIPANTS, headers=headers)
        assert resp.headers["X-Request-ID"] == "req-123"


class TestEventsEndpoint:
    def test_events_carry_status_and_counts(self, client, admin_header):
        event = EventFactory(event_code="FAR", date=date(2999, 1, 1))
        ParticipantFactory(event=event)

        resp = client.get(build_url(EVENTS, event_status="upcoming"), headers=admin_header)

        assert resp.status_code == 200
        (row,) = resp.get_json()["data"]
        assert row["event_code"] == "FAR"
        assert row["status"] == "upcoming"
        assert row["participant_count"] == 1
        assert row["certificate_count"] == 1

    def test_execution_failure_is_problem_json(self, app, client, admin_header, monkeypatch):
        from certadmin.core.extensions import get_query_engine

        engine = get_query_engine()

        def broken(*_args, **_kwargs):
            from certadmin.services import QueryExecutionError

            raise QueryExecutionError("relation \"events\" does not exist")

        monkeypatch.setattr(engine, "query", broken)
        resp = client.get(EVENTS, headers=admin_header)

        assert resp.status_code == 500
        problem = resp.get_json()
        assert resp.mimetype == "application/problem+json"
        assert problem["code"] == "query_execution_failed"
        assert problem["detail"] == 'Query execution failed: relation "events" does not exist'


class TestLogsEndpoints:
    def test_list_logs(self, client, admin_header):
        ActivityLogFactory(action="event.created")

        resp = client.get(LOGS, headers=admin_header)

        assert resp.status_code == 200
        body = resp.get_json()
        assert_envelope(body)
        assert body["data"][0]["action"] == "event.created"

    def test_actions(self, client, admin_header):
        ActivityLogFactory(action="event.created")
        ActivityLogFactory(action="certificate.revoked")

        resp = client.get(f"{LOGS}/actions", headers=admin_header)

        assert resp.status_code == 200
        assert resp.get_json() == {
            "success": True,
            "data": ["certificate.revoked", "event.created"],
        }

    def test_stats(self, client, admin_header):
        ActivityLogFactory(action="event.created", user_email="a@x.io")

        resp = client.get(build_url(f"{LOGS}/stats", date_from="2000-01-01"), headers=admin_header)

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["totalLogs"] == 1
        assert data["topActions"] == [{"action": "event.created", "count": 1}]
        assert data["topUsers"] == [{"user": "a@x.io", "count": 1}]
        assert data["dateRange"] == {"from": "2000-01-01", "to": None}

    def test_stats_reject_bad_dates(self, client, admin_header):
        resp = client.get(build_url(f"{LOGS}/stats", date_from="soon"), headers=admin_header)
        assert resp.status_code == 400
        assert resp.get_json()["errors"][0]["field"] == "date_from"
