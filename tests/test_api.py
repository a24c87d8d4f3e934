from __future__ import annotations

from fastapi.testclient import TestClient
from sample_statement import SAMPLE_STATEMENT_TEXT

from skystatus.main import create_app


def _client() -> TestClient:
    return TestClient(create_app())


def _login(client: TestClient) -> dict[str, str]:
    resp = client.post(
        "/api/auth/register",
        json={"email": "remco@flyer.nl", "password": "correct-horse", "display_name": "Remco"},
    )
    assert resp.status_code == 201
    assert resp.json()["currency"] == "EUR"

    resp = client.post("/api/auth/token", data={"username": "remco@flyer.nl", "password": "correct-horse"})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def test_healthz():
    with _client() as client:
        assert client.get("/healthz").json() == {"status": "ok"}
        storage = client.get("/healthz/storage", params={"write_test": True})
        assert storage.status_code == 200
        assert storage.json()["backend"] == "local"
        assert storage.json()["write_test"]["ok"] is True


def test_auth_is_required():
    with _client() as client:
        assert client.get("/api/flights").status_code == 401
        assert client.get("/api/flights", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_duplicate_registration_and_bad_password():
    with _client() as client:
        _login(client)
        resp = client.post("/api/auth/register", json={"email": "remco@flyer.nl", "password": "another-one"})
        assert resp.status_code == 409
        resp = client.post("/api/auth/token", data={"username": "remco@flyer.nl", "password": "wrong-pass"})
        assert resp.status_code == 401


def test_parse_text_preview_does_not_persist():
    with _client() as client:
        headers = _login(client)

        resp = client.post("/api/imports/parse-text", json={"text": SAMPLE_STATEMENT_TEXT}, headers=headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["meta"]["language"] == "nl"
        assert len(body["flights"]) == 10
        assert client.get("/api/flights", headers=headers).json() == []


def test_upload_commit_and_undo():
    with _client() as client:
        headers = _login(client)

        resp = client.post(
            "/api/imports",
            files={"upload": ("statement.txt", SAMPLE_STATEMENT_TEXT.encode("utf-8"), "text/plain")},
            headers=headers,
        )
        assert resp.status_code == 201
        run = resp.json()
        assert run["status"] == "PARSED"
        assert run["language"] == "nl"
        assert run["conflicts"] == []

        fetched = client.get(f"/api/imports/{run['id']}", headers=headers).json()
        assert fetched["result"]["summary"]["flights"]["new"] == 10

        resp = client.post(f"/api/imports/{run['id']}/commit", json={"resolutions": {}}, headers=headers)
        assert resp.status_code == 200
        committed = resp.json()
        assert committed["flights_added"] == 10
        assert committed["miles_updated"] == 3
        assert committed["qualification_updated"] is True
        assert committed["starting_status"] == "Platinum"
        assert committed["cycle_start_month"] == "2025-11"

        flights = client.get("/api/flights", headers=headers).json()
        assert len(flights) == 10
        assert flights[0]["external_id"] == "flight-2025-11-30-BER-AMS-KL1780"
        miles = client.get("/api/miles", headers=headers).json()
        assert [m["month"] for m in miles] == ["2025-12", "2025-11", "2025-10"]

        again = client.post(f"/api/imports/{run['id']}/commit", json={"resolutions": {}}, headers=headers)
        assert again.status_code == 409

        backup = client.get("/api/imports/backup", headers=headers).json()
        assert backup["exists"] is True
        assert backup["source"] == "statement.txt"
        assert backup["age"] == "just now"

        restored = client.post("/api/imports/backup/restore", headers=headers)
        assert restored.status_code == 200
        assert restored.json()["flights"] == 0
        assert client.get("/api/flights", headers=headers).json() == []
        assert client.get("/api/imports/backup", headers=headers).json()["exists"] is False
        assert client.get(f"/api/imports/{run['id']}", headers=headers).json()["status"] == "RESTORED"


def test_unknown_conflict_id_and_missing_import():
    with _client() as client:
        headers = _login(client)
        run = client.post(
            "/api/imports",
            files={"upload": ("statement.txt", SAMPLE_STATEMENT_TEXT.encode("utf-8"), "text/plain")},
            headers=headers,
        ).json()

        resp = client.post(
            f"/api/imports/{run['id']}/commit",
            json={"resolutions": {"conflict-flight-nope": "keep_both"}},
            headers=headers,
        )
        assert resp.status_code == 400

        missing = client.get("/api/imports/00000000-0000-0000-0000-000000000000", headers=headers)
        assert missing.status_code == 404


def test_discard_backup():
    with _client() as client:
        headers = _login(client)
        assert client.delete("/api/imports/backup", headers=headers).status_code == 204
        assert client.post("/api/imports/backup/restore", headers=headers).status_code == 404
