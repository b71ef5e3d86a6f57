import pytest
from fastapi.testclient import TestClient

from src.dependencies import get_competition_service
from src.main import app

from conftest import samples

ALICE = {"X-User-ID": "alice"}
BOB = {"X-User-ID": "bob"}

RACE = {
    "competition_name": "Marathon Month",
    "type": "race",
    "options": {"goal": 2.6, "unit": "miles"},
}


@pytest.fixture
def client(service):
    app.dependency_overrides[get_competition_service] = lambda: service
    # Lifespan is not entered; the service is fully overridden
    yield TestClient(app)
    app.dependency_overrides.clear()


def create(client, body=RACE, headers=ALICE):
    response = client.post("/competitions", json=body, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_missing_user_header(client):
    response = client.post("/competitions", json=RACE)
    assert response.status_code == 401


def test_request_id_is_echoed(client):
    response = client.get("/competitions", headers={**ALICE, "X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


def test_create_and_get(client):
    created = create(client)

    assert created["owner"] == "alice"
    assert created["users"] == [
        {"competition_id": created["id"], "user_id": "alice", "invite_status": "accepted"}
    ]

    response = client.get(f"/competitions/{created['id']}", headers=ALICE)
    assert response.status_code == 200
    assert response.json()["competition_name"] == "Marathon Month"


def test_configuration_error_lists_every_key(client):
    response = client.post(
        "/competitions",
        json={"competition_name": "Streak", "type": "streaks", "options": {"lives": 0}},
        headers=ALICE,
    )

    assert response.status_code == 400
    body = response.json()
    assert body["missing"] == ["goal", "unit", "interval"]
    assert body["invalid"] == ["lives"]


def test_unknown_competition(client):
    response = client.get("/competitions/nope", headers=ALICE)
    assert response.status_code == 404


def test_update_requires_owner(client):
    created = create(client)

    response = client.patch(
        f"/competitions/{created['id']}", json={"competition_name": "Mine"}, headers=BOB
    )

    assert response.status_code == 403


def test_invite_accept_and_list(client):
    created = create(client)

    response = client.post(
        f"/competitions/{created['id']}/invite",
        json={"invite_user": "bob"},
        headers=ALICE,
    )
    assert response.status_code == 200
    assert response.json()["invite_status"] == "pending"

    invites = client.get("/competitions/invites", headers=BOB).json()
    assert [competition["id"] for competition in invites] == [created["id"]]

    response = client.post(f"/competitions/{created['id']}/accept", headers=BOB)
    assert response.status_code == 200

    joined = client.get("/competitions", headers=BOB).json()
    assert [competition["id"] for competition in joined] == [created["id"]]


def test_delete(client):
    created = create(client)

    response = client.delete(f"/competitions/{created['id']}", headers=ALICE)

    assert response.status_code == 200
    assert response.json() == {"message": f"Deleted competition {created['id']}"}
    assert client.get(f"/competitions/{created['id']}", headers=ALICE).status_code == 404


def test_scores(client, provider):
    created = create(client, {**RACE, "start_date": "2026-10-18T08:00:00-04:00"})
    provider.data = {"alice": samples("alice", {"2026-10-18": 2.0, "2026-10-19": 1.0})}

    response = client.get(
        f"/competitions/{created['id']}/scores",
        params={"at": "2026-10-19T15:00:00-04:00"},
        headers=ALICE,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "active"
    assert body["current_interval"] == "2026-10-19"
    assert body["leaderboard"][0]["user_id"] == "alice"
    assert body["leaderboard"][0]["score"] == pytest.approx(3.0)
    assert body["winners"] == ["alice"]


def test_scores_invalid_reference_time(client):
    created = create(client)

    response = client.get(
        f"/competitions/{created['id']}/scores", params={"at": "yesterday"}, headers=ALICE
    )

    assert response.status_code == 400


def test_scores_upstream_failure(client, provider):
    created = create(client, {**RACE, "start_date": "2026-10-18T08:00:00-04:00"})
    provider.failing = {"alice"}

    response = client.get(
        f"/competitions/{created['id']}/scores",
        params={"at": "2026-10-19T15:00:00-04:00"},
        headers=ALICE,
    )

    assert response.status_code == 502
    assert "alice" in response.json()["detail"]


def test_update_merges_options(client):
    created = create(client)

    response = client.patch(
        f"/competitions/{created['id']}", json={"options": {"goal": 13.1}}, headers=ALICE
    )

    assert response.status_code == 200, response.text
    assert response.json()["options"]["goal"] == 13.1
    assert response.json()["options"]["unit"] == "miles"


def test_update_rejects_null_type(client):
    created = create(client)

    response = client.patch(
        f"/competitions/{created['id']}", json={"type": None}, headers=ALICE
    )

    assert response.status_code == 422
    assert client.get(f"/competitions/{created['id']}", headers=ALICE).json()["type"] == "race"


def test_update_rejects_malformed_option(client):
    created = create(client)

    response = client.patch(
        f"/competitions/{created['id']}", json={"options": {"lives": "many"}}, headers=ALICE
    )

    assert response.status_code == 422


def test_update_null_option_is_a_configuration_error(client):
    created = create(client)

    response = client.patch(
        f"/competitions/{created['id']}", json={"options": {"history": None}}, headers=ALICE
    )

    assert response.status_code == 400
    assert response.json()["missing"] == []
    assert response.json()["invalid"] == ["history"]
