from fastapi.testclient import TestClient

from web.backend.app import create_app

SNAPSHOT = {
    "trackers": [{"id": "tr_daily", "name": "Daily Life", "type": "daily"}],
    "tasks": [
        {"id": "t1", "title": "Laundry", "status": "YET_TO_START", "difficulty": "EASY", "tracker_id": "tr_daily"},
    ],
    "habits": [],
    "habit_logs": [],
    "user_stats": {"level": 2, "xp": 150, "next_level_xp": 200},
}


def _client():
    return TestClient(create_app())


def test_health():
    response = _client().get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "Elite65"}


def test_workspace_roundtrip():
    client = _client()
    put = client.put("/api/v1/workspace/u1", json=SNAPSHOT)
    assert put.status_code == 200
    assert [t["title"] for t in put.json()["tasks"]] == ["Laundry"]

    got = client.get("/api/v1/workspace/u1").json()
    assert got["user_stats"]["xp"] == 150
    assert got["trackers"][0]["name"] == "Daily Life"


def test_workspace_rejects_bad_enum():
    client = _client()
    bad = {"tasks": [{"id": "t1", "title": "x", "status": "SOMEDAY"}]}
    assert client.put("/api/v1/workspace/u1", json=bad).status_code == 400


def test_chat_turn_and_transcript():
    client = _client()
    client.put("/api/v1/workspace/u1", json=SNAPSHOT)

    response = client.post("/api/v1/chat/c1/messages", json={"user_id": "u1", "message": "how many tasks do I have"})
    assert response.status_code == 200
    body = response.json()
    assert body["text"] == "You have 1 pending missions in the queue."
    assert body["topic"] == "TASKS"

    transcript = client.get("/api/v1/chat/c1/messages").json()
    assert transcript["topic"] == "TASKS"
    assert [m["sender"] for m in transcript["messages"]] == ["bot", "user", "bot"]


def test_chat_action_updates_workspace():
    client = _client()
    client.put("/api/v1/workspace/u1", json=SNAPSHOT)

    body = client.post(
        "/api/v1/chat/c1/messages",
        json={"user_id": "u1", "message": "edit Laundry to done"},
    ).json()
    assert body["action"]["kind"] == "EDIT_TASK"
    assert body["action_status"] == "dispatched"

    tasks = client.get("/api/v1/workspace/u1").json()["tasks"]
    assert tasks[0]["status"] == "COMPLETED"


def test_unknown_conversation_is_404_and_reset():
    client = _client()
    assert client.get("/api/v1/chat/nope/messages").status_code == 404

    client.post("/api/v1/chat/c1/messages", json={"user_id": "u1", "message": "hello"})
    assert client.delete("/api/v1/chat/c1").json() == {"conversation_id": "c1", "reset": True}
    assert client.get("/api/v1/chat/c1/messages").status_code == 404


def test_chat_validates_payload():
    response = _client().post("/api/v1/chat/c1/messages", json={"message": "hello"})
    assert response.status_code == 422
