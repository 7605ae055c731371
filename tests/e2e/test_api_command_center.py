import datetime as dt
import sqlite3

from fastapi.testclient import TestClient

from api_server import app
from interviews import command_center
from storage import records


client = TestClient(app)


def _seed(now):
    records.insert_chapter(id="north", name="North")
    records.insert_user(id="lead", name="Lee Lead", chapter_id="north")
    records.insert_user(id="applicant", name="Alex Applicant", chapter_id="north")
    records.insert_position(id="pos", title="Math Tutor", chapter_id="north")
    records.insert_application(id="app", applicant_id="applicant", position_id="pos", submitted_at=now)
    records.insert_application_slot(
        application_id="app", status="POSTED", scheduled_at=now + dt.timedelta(days=1)
    )


def test_healthz():
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_command_center_for_reviewer():
    _seed(dt.datetime.now(dt.timezone.utc))
    resp = client.get(
        "/api/interviews/command-center",
        params={"scope": "hiring"},
        headers={"X-User-Id": "lead", "X-User-Roles": "CHAPTER_LEAD, unknown"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["filters"] == {"scope": "hiring", "view": "team", "state": "all"}
    assert body["viewer"]["roles"] == ["CHAPTER_LEAD"]
    assert [task["id"] for task in body["sections"]["blocked"]] == ["hiring-app"]
    assert body["next_action"]["id"] == "hiring-app"
    assert body["next_action"]["primary_action"]["kind"] == "open_details"
    assert set(body["filter_links"]) == {"scope", "view", "state"}


def test_command_center_for_applicant_has_confirm_action():
    _seed(dt.datetime.now(dt.timezone.utc))
    resp = client.get(
        "/api/interviews/command-center",
        params={"view": "team", "state": "NEEDS_ACTION"},
        headers={"X-User-Id": "applicant", "X-User-Roles": "STUDENT"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["filters"]["view"] == "mine"
    action = body["tasks"][0]["primary_action"]
    assert action["kind"] == "confirm_hiring_slot"
    assert "slot_id" in action


def test_missing_or_unknown_user_is_unauthorized():
    assert client.get("/api/interviews/command-center").status_code == 401
    resp = client.get(
        "/api/interviews/command-center", headers={"X-User-Id": "ghost", "X-User-Roles": "ADMIN"}
    )
    assert resp.status_code == 401


def test_store_failure_is_service_unavailable(monkeypatch):
    _seed(dt.datetime.now(dt.timezone.utc))

    def boom(*_args, **_kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(command_center, "list_reviewable_applications", boom)
    resp = client.get(
        "/api/interviews/command-center",
        headers={"X-User-Id": "lead", "X-User-Roles": "CHAPTER_LEAD"},
    )
    assert resp.status_code == 503
