"""Integration tests for availability endpoints."""


def get_availability(client):
    return client.get("/api/availability").get_json()["availability"]


def test_default_availability(client):
    availability = get_availability(client)

    assert availability["weekly"]["0"] == {"enabled": False, "start": 8, "end": 18}
    assert availability["weekly"]["1"] == {"enabled": True, "start": 8, "end": 18}
    assert availability["blocks"] == {}


def test_set_accepts_wrapped_or_bare(client):
    wrapped = {"availability": {"weekly": {"6": {"enabled": True, "start": 9, "end": 13}}, "blocks": {}}}
    response = client.post("/api/availability/set", json=wrapped)
    assert response.status_code == 200
    assert get_availability(client)["weekly"]["6"] == {"enabled": True, "start": 9, "end": 13}

    bare = {"weekly": {}, "blocks": {"2025-03-04": ["8:00"]}}
    client.post("/api/availability/set", json=bare)
    availability = get_availability(client)
    assert availability["weekly"]["6"]["enabled"] is False
    assert availability["blocks"] == {"2025-03-04": ["08:00"]}


def test_weekly_keeps_blocks(client):
    client.post("/api/availability/block", json={"date": "2025-03-04", "time": "10:00"})

    response = client.post("/api/availability/weekly", json={"weekly": {"0": {"enabled": True}}})

    availability = response.get_json()["availability"]
    assert availability["weekly"]["0"]["enabled"] is True
    assert availability["blocks"] == {"2025-03-04": ["10:00"]}


def test_block_is_idempotent(client):
    """Blocking a slot twice leaves one entry."""
    for _ in range(2):
        response = client.post("/api/availability/block", json={"date": "2025-03-04", "time": "10:00"})
        assert response.get_json() == {"ok": True, "date": "2025-03-04", "blocks": ["10:00"]}

    assert get_availability(client)["blocks"] == {"2025-03-04": ["10:00"]}


def test_block_by_start_iso(client):
    """The calendar can block a slot by its UTC start time."""
    response = client.post("/api/availability/block", json={"startISO": "2025-03-04T16:00:00.000Z"})

    assert response.get_json()["blocks"] == ["10:00"]

    response = client.post("/api/availability/unblock", json={"startISO": "2025-03-04T16:00:00.000Z"})
    assert response.get_json()["blocks"] == []
    assert get_availability(client)["blocks"] == {}


def test_block_validation(client):
    response = client.post("/api/availability/block", json={"time": "10:00"})
    assert response.status_code == 400
    assert response.get_json()["error"] == "Missing date"

    response = client.post("/api/availability/block", json={"date": "2025-03-04", "time": "noon"})
    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid time"

    response = client.post("/api/availability/unblock", json={"startISO": "whenever"})
    assert response.status_code == 400


def test_block_day_and_clear_day(client):
    response = client.post("/api/availability/block-day", json={"date": "2025-03-05"})
    assert response.get_json()["blocks"] == ["08:00", "10:00", "12:00", "14:00", "16:00"]

    week = client.get("/api/calendar?start=2025-03-02").get_json()
    wednesday = next(d for d in week["days"] if d["date"] == "2025-03-05")
    assert {s["status"] for s in wednesday["slots"]} == {"blocked"}

    assert client.post("/api/availability/clear-day", json={"date": "2025-03-05"}).status_code == 200
    assert get_availability(client)["blocks"] == {}
