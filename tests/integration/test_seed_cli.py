"""End-to-end checks: seeded data served through the admin listings."""

from __future__ import annotations

from tests.helpers.http import build_url


def test_seed_run_is_idempotent(app, database):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["seed", "run"])
    second = runner.invoke(args=["seed", "run"])

    assert first.exit_code == 0, first.output
    assert "events: 3 created, 0 existing" in first.output
    assert "participants: 6 created, 0 existing" in first.output
    assert second.exit_code == 0, second.output
    assert "events: 0 created, 3 existing" in second.output
    assert "activity_logs: 0 created, 4 existing" in second.output


def test_seeded_listings(app, client, admin_header):
    assert app.test_cli_runner().invoke(args=["seed", "run"]).exit_code == 0

    participants = client.get(
        build_url("/api/v1/admin/participants", search="john", status="active", sort_by="name", sort_order="asc"),
        headers=admin_header,
    ).get_json()
    assert [p["name"] for p in participants["data"]] == ["John Carter", "John Smith"]

    events = client.get(
        build_url("/api/v1/admin/events", sort_by="date", sort_order="asc"),
        headers=admin_header,
    ).get_json()
    assert [e["status"] for e in events["data"]] == ["ended", "ongoing", "upcoming"]
    assert [e["certificate_count"] for e in events["data"]] == [2, 2, 1]
    assert events["pagination"]["total"] == 3


def test_fresh_requires_confirmation(app, database):
    result = app.test_cli_runner().invoke(args=["seed", "fresh"], input="n\n")

    assert result.exit_code != 0


def test_fresh_with_yes_replaces_existing_rows(app, database):
    from certadmin.models import Event
    from tests.factories.certificates import EventFactory

    EventFactory(event_code="STALE")

    result = app.test_cli_runner().invoke(args=["seed", "fresh", "--yes"])

    assert result.exit_code == 0, result.output
    assert "events: 3 created, 0 existing" in result.output
    codes = {e.event_code for e in database.session.query(Event).all()}
    assert codes == {"PYCON-WS", "SEC-BOOT", "ML-SUMMIT"}
