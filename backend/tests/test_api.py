from datetime import date, timedelta

import pytest

BASE = "/rental-applications"


@pytest.fixture
def ids(customer, room, desks):
    return {"client": customer.id, "room": room.id, "desks": [d.id for d in desks]}


def hourly_payload(ids, start="10:00", end="13:00", **extra):
    return {
        "rental_type": "HOURLY",
        "room_id": ids["room"],
        "client_id": ids["client"],
        "period_type": "HOURLY",
        "start_date": "2024-05-10",
        "start_time": start,
        "end_time": end,
        **extra,
    }


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200


def test_create_and_get(client, ids):
    r = client.post(f"{BASE}/", json=hourly_payload(ids))
    assert r.status_code == 201
    body = r.json()
    assert body["application_number"] == "0000001"
    assert body["total_price"] == 3000
    assert body["effective_price"] == 1000
    assert body["client"]["first_name"] == "Anna"
    assert body["room"]["name"] == "Studio"
    assert len(body["rentals"]) == 1

    r = client.get(f"{BASE}/{body['id']}")
    assert r.status_code == 200
    assert r.json()["id"] == body["id"]


def test_conflict_returns_409_with_details(client, ids):
    client.post(f"{BASE}/", json=hourly_payload(ids))

    r = client.post(f"{BASE}/", json=hourly_payload(ids, "12:00", "14:00"))

    assert r.status_code == 409
    body = r.json()
    assert body["message"] == "Booking conflicts detected"
    assert body["conflicts"][0]["type"] == "rental"
    assert body["conflicts"][0]["date"] == "2024-05-10"


def test_unknown_application_is_404(client):
    r = client.get(f"{BASE}/999")
    assert r.status_code == 404
    assert "999" in r.json()["detail"]


def test_request_validation(client, ids):
    r = client.post(f"{BASE}/", json=hourly_payload(ids, adjusted_price=100))
    assert r.status_code == 422

    r = client.post(f"{BASE}/", json=hourly_payload(ids, "13:00", "10:00"))
    assert r.status_code == 422

    r = client.post(f"{BASE}/", json=hourly_payload(ids, "10:00", "25:00"))
    assert r.status_code == 422


def test_calculate_price(client, ids):
    r = client.post(f"{BASE}/calculate-price", json={
        "rental_type": "WORKSPACE_MONTHLY",
        "workspace_ids": ids["desks"],
        "period_type": "CALENDAR_MONTH",
        "start_date": "2024-02-01",
        "end_date": "2024-02-29",
    })
    assert r.status_code == 200
    assert r.json() == {
        "base_price": 19000,
        "quantity": 1,
        "price_unit": "MONTH",
        "total_price": 19000,
        "breakdown": [],
    }


def test_check_availability(client, ids):
    payload = {
        "rental_type": "HOURLY",
        "room_id": ids["room"],
        "period_type": "HOURLY",
        "start_date": "2024-05-10",
        "start_time": "11:00",
        "end_time": "12:00",
    }
    assert client.post(f"{BASE}/check-availability", json=payload).json() == {
        "available": True, "conflicts": [],
    }

    created = client.post(f"{BASE}/", json=hourly_payload(ids)).json()
    r = client.post(f"{BASE}/check-availability", json=payload)
    assert r.json()["available"] is False

    r = client.post(f"{BASE}/check-availability", json={**payload, "exclude_application_id": created["id"]})
    assert r.json()["available"] is True


def test_occupancy_endpoints(client, ids):
    client.post(f"{BASE}/", json=hourly_payload(ids))

    r = client.post(f"{BASE}/hourly-occupancy", json={"room_id": ids["room"], "dates": ["2024-05-10"]})
    assert r.status_code == 200
    assert r.json() == {"2024-05-10_10": True, "2024-05-10_11": True, "2024-05-10_12": True}

    r = client.post(f"{BASE}/room-monthly-occupancy", json={
        "room_id": ids["room"], "start_date": "2024-05-09", "end_date": "2024-05-11",
    })
    days = r.json()
    assert days["2024-05-09"] is None
    assert days["2024-05-10"]["type"] == "rental"
    assert days["2024-05-10"]["description"] == "Rental 0000001: Petrova Anna"
    assert days["2024-05-11"] is None


def test_lifecycle_over_http(client, ids):
    app_id = client.post(f"{BASE}/", json=hourly_payload(ids)).json()["id"]

    r = client.patch(f"{BASE}/{app_id}", json={"notes": "Projector needed"})
    assert r.status_code == 200
    assert r.json()["notes"] == "Projector needed"

    r = client.post(f"{BASE}/{app_id}/confirm")
    assert r.status_code == 200
    assert r.json()["status"] == "CONFIRMED"
    assert r.json()["invoices"][0]["status"] == "PENDING"

    r = client.get(f"{BASE}/{app_id}/edit-status")
    assert r.json()["can_edit"] is True

    r = client.post(f"{BASE}/batch/mark-invoices-paid", json={"application_ids": [app_id]})
    assert r.json()["succeeded"] == 1

    r = client.delete(f"{BASE}/{app_id}")
    assert r.status_code == 400
    assert "paid invoices" in r.json()["detail"]

    r = client.post(f"{BASE}/{app_id}/cancel", json={"reason": "No longer needed"})
    assert r.status_code == 200
    assert r.json()["status"] == "CANCELLED"

    r = client.post(f"{BASE}/{app_id}/cancel", json={})
    assert r.status_code == 400


def test_update_cannot_cancel(client, ids):
    app_id = client.post(f"{BASE}/", json=hourly_payload(ids)).json()["id"]

    r = client.patch(f"{BASE}/{app_id}", json={"status": "CANCELLED"})
    assert r.status_code == 422


def test_list_and_search(client, ids):
    client.post(f"{BASE}/", json=hourly_payload(ids, "09:00", "10:00"))
    client.post(f"{BASE}/", json=hourly_payload(ids, "10:00", "11:00"))

    assert len(client.get(f"{BASE}/").json()) == 2
    r = client.get(f"{BASE}/", params={"search": "0000002"})
    assert [a["application_number"] for a in r.json()] == ["0000002"]
    assert client.get(f"{BASE}/", params={"status": "CONFIRMED"}).json() == []

    r = client.get(f"{BASE}/", params={"start_date": "2024-05-10", "end_date": "2024-05-01"})
    assert r.status_code == 400


def test_extend_delete_and_remove_slot(client, ids):
    app_id = client.post(f"{BASE}/", json=hourly_payload(ids, hourly_slots=[
        {"date": "2024-05-10", "start_time": "10:00", "end_time": "11:00"},
        {"date": "2024-05-11", "start_time": "10:00", "end_time": "11:00"},
    ])).json()["id"]

    r = client.post(f"{BASE}/{app_id}/extend", json={"new_start_date": "2024-05-17"})
    assert r.status_code == 201
    extension = r.json()
    assert extension["start_date"] == "2024-05-17"

    slots = client.get(f"{BASE}/{app_id}").json()["rentals"]
    r = client.delete(f"{BASE}/{app_id}/slots/{slots[0]['id']}")
    assert r.status_code == 200
    assert r.json()["quantity"] == 1

    r = client.delete(f"{BASE}/{extension['id']}")
    assert r.status_code == 200
    assert r.json() == {"id": extension["id"], "application_number": "0000002"}
    assert client.get(f"{BASE}/{extension['id']}").status_code == 404


def test_batch_create_invoices(client, ids):
    app_id = client.post(f"{BASE}/", json=hourly_payload(ids)).json()["id"]

    r = client.post(f"{BASE}/batch/create-invoices", json={"application_ids": [app_id, 404]})

    body = r.json()
    assert (body["succeeded"], body["failed"]) == (1, 1)
    assert body["results"][0]["invoice_number"].startswith("INV-")
    assert body["results"][1]["detail"]


def test_calendar_hold_blocks_rental(client, ids):
    r = client.post("/calendar/reservations", json={
        "room_id": ids["room"], "date": "2024-05-10", "start_time": "12:00", "end_time": "12:30",
    })
    assert r.status_code == 201
    hold_id = r.json()["id"]

    r = client.post(f"{BASE}/", json=hourly_payload(ids))
    assert r.status_code == 409
    assert r.json()["conflicts"][0]["type"] == "reservation"

    assert client.post(f"/calendar/reservations/{hold_id}/cancel").json()["status"] == "CANCELLED"
    assert client.post(f"{BASE}/", json=hourly_payload(ids)).status_code == 201


def test_class_session_endpoints(client, ids):
    r = client.post("/calendar/class-sessions", json={
        "room_id": ids["room"], "date": "2024-05-10", "start_time": "18:00", "end_time": "19:00",
        "group_name": "Drawing",
    })
    assert r.status_code == 201
    session_id = r.json()["id"]

    r = client.patch(f"/calendar/class-sessions/{session_id}", json={"start_time": "17:00"})
    assert r.json()["start_time"] == "17:00"

    r = client.post("/calendar/class-sessions", json={
        "room_id": ids["room"], "date": "2024-05-10", "start_time": "18:30", "end_time": "19:30",
    })
    assert r.status_code == 409


def test_hourly_occupancy_date_cap(client, ids):
    dates = [(date(2024, 1, 1) + timedelta(days=i)).isoformat() for i in range(366)]

    r = client.post(f"{BASE}/hourly-occupancy", json={"room_id": ids["room"], "dates": dates})
    assert r.status_code == 422

    r = client.post(f"{BASE}/hourly-occupancy", json={"room_id": ids["room"], "dates": dates[:365]})
    assert r.status_code == 200


def test_extend_specific_days_without_days_is_400(client, ids):
    app_id = client.post(f"{BASE}/", json={
        "rental_type": "WORKSPACE_DAILY",
        "workspace_ids": ids["desks"][:1],
        "client_id": ids["client"],
        "period_type": "SPECIFIC_DAYS",
        "start_date": "2024-06-03",
        "selected_days": ["2024-06-03"],
    }).json()["id"]

    r = client.post(f"{BASE}/{app_id}/extend", json={"new_start_date": "2024-07-01"})
    assert r.status_code == 400
    assert "selected_days" in r.json()["detail"]
