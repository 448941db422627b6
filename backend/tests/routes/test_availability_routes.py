"""HTTP contract of /api/v1/availability."""

from datetime import date, time

from fastapi.testclient import TestClient

BASE = "/api/v1/availability"


def test_weekly_windows(client: TestClient, trainer, window_factory):
    window_factory(trainer, 3, time(14), time(16))
    window_factory(trainer, 1, time(8), time(12))
    window_factory(trainer, 2, time(8), time(9), active=False)

    response = client.get(f"{BASE}/{trainer.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["trainerId"] == trainer.id
    assert body["available"] is True
    assert [(w["dayOfWeek"], w["startTime"], w["endTime"]) for w in body["windows"]] == [
        (1, "08:00", "12:00"),
        (3, "14:00", "16:00"),
    ]


def test_weekly_without_windows(client: TestClient, trainer):
    body = client.get(f"{BASE}/{trainer.id}").json()

    assert body["available"] is False
    assert body["windows"] == []


def test_day_slots(client: TestClient, trainer, client_user, monday_window, appointment_factory):
    appointment_factory(trainer, client_user, date(2030, 1, 7), time(9), time(10))

    response = client.get(f"{BASE}/{trainer.id}", params={"date": "2030-01-07"})

    assert response.status_code == 200
    body = response.json()
    assert body["dayOfWeek"] == 1
    assert body["available"] is True
    assert [s["startTime"] for s in body["availableSlots"]] == ["08:00", "10:00", "11:00"]
    assert body["bookedSlots"] == [{"startTime": "09:00", "endTime": "10:00"}]


def test_day_without_window(client: TestClient, trainer, monday_window):
    body = client.get(f"{BASE}/{trainer.id}", params={"date": "2030-01-08"}).json()

    assert body["available"] is False
    assert body["availableSlots"] == []
    assert body["message"]


def test_invalid_date(client: TestClient, trainer):
    response = client.get(f"{BASE}/{trainer.id}", params={"date": "07/01/2030"})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_DATE"
