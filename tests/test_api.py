from datetime import timedelta

from gym_booking import clock


def test_root_and_health(client):
    assert client.get("/").json()["ok"] is True
    assert client.get("/health").json() == {"status": "running"}


def test_register_and_cancel_flow(client, make_schedule):
    today = clock.today()
    schedule_id = make_schedule(on_date=today, capacity=1)

    r = client.post("/classes", json={"member_id": 1, "class_schedule_id": schedule_id})
    assert r.status_code == 201
    booking_id = r.json()["booking_id"]
    assert r.json()["status"] == "Active"

    listed = client.get("/classes/available", params={"date": today.isoformat()}).json()
    row = next(c for c in listed["classes"] if c["schedule_id"] == schedule_id)
    assert row["booked_count"] == 1
    assert row["is_full"] is True

    r2 = client.post("/classes", json={"member_id": 2, "class_schedule_id": schedule_id})
    assert r2.status_code == 409
    assert r2.json()["error"] == "CapacityExceeded"

    r3 = client.post("/classes/cancel", json={"booking_id": booking_id, "member_id": 2})
    assert r3.status_code == 403
    assert r3.json()["error"] == "Unauthorized"

    r4 = client.post("/classes/cancel", json={"booking_id": booking_id, "member_id": 1})
    assert r4.status_code == 200
    assert r4.json()["status"] == "Canceled"

    r5 = client.post("/classes/cancel", json={"booking_id": booking_id, "member_id": 1})
    assert r5.status_code == 409
    assert r5.json()["error"] == "AlreadyCanceled"


def test_register_ended_schedule_is_gone(client, make_schedule):
    schedule_id = make_schedule(valid_until=clock.today() - timedelta(days=1))
    r = client.post("/classes", json={"member_id": 1, "class_schedule_id": schedule_id})
    assert r.status_code == 410
    assert r.json()["error"] == "Ended"


def test_available_classes_bad_date(client):
    r = client.get("/classes/available", params={"date": "24-11-2025"})
    assert r.status_code == 400
    assert r.json()["error"] == "InvalidInput"


def test_trainer_request_confirm_flow(client, make_availability):
    day = clock.today() + timedelta(days=7)
    make_availability(trainer_id=5, on_date=day)

    slots = client.get("/trainers/5/availability", params={"date": day.isoformat()}).json()
    assert slots["slot_count"] == 1

    body = {
        "member_id": 9,
        "trainer_id": 5,
        "start_time": f"{day.isoformat()} 09:00:00",
        "duration_minutes": 60,
    }
    r = client.post("/trainers", json=body)
    assert r.status_code == 201
    booking_id = r.json()["booking_id"]
    assert r.json()["status"] == "Pending"

    # the only spot is taken by the pending request
    slots = client.get("/trainers/5/availability", params={"date": day.isoformat()}).json()
    assert slots["slot_count"] == 0

    r2 = client.post("/trainers", json={**body, "member_id": 10})
    assert r2.status_code == 409
    assert r2.json()["error"] == "SlotFull"

    r3 = client.post("/trainers/confirm", json={"booking_id": booking_id, "trainer_id": 6})
    assert r3.status_code == 403

    r4 = client.post("/trainers/confirm", json={"booking_id": booking_id, "trainer_id": 5})
    assert r4.status_code == 200
    assert r4.json()["status"] == "Confirmed"

    r5 = client.post(
        "/trainers/reject", json={"booking_id": booking_id, "trainer_id": 5, "reason": "late"}
    )
    assert r5.status_code == 409
    assert r5.json()["error"] == "InvalidStatusTransition"


def test_trainer_request_without_window(client):
    day = clock.today() + timedelta(days=7)
    r = client.post(
        "/trainers",
        json={
            "member_id": 9,
            "trainer_id": 5,
            "start_time": f"{day.isoformat()} 09:00:00",
            "duration_minutes": 30,
        },
    )
    assert r.status_code == 404
    assert r.json()["error"] == "NoAvailabilitySlot"


def test_trainer_request_duration_must_be_an_integer(client):
    day = clock.today() + timedelta(days=7)
    body = {
        "member_id": 9,
        "trainer_id": 5,
        "start_time": f"{day.isoformat()} 09:00:00",
    }
    for duration in ("30", 30.5, True):
        r = client.post("/trainers", json={**body, "duration_minutes": duration})
        assert r.status_code == 422
