from coworking.services.conflicts import (
    OccupancyAggregator,
    hourly_occupancy,
    invalidate_room_occupancy,
    room_monthly_occupancy,
)

DAY = "2024-05-10"


def test_hourly_occupancy_marks_overlapped_grid_hours(db, room, add_class_session):
    add_class_session(room.id, DAY, "10:30", "12:00")

    busy = hourly_occupancy(db, room.id, [DAY, "2024-05-11"])

    assert busy == {f"{DAY}_10": True, f"{DAY}_11": True}


def test_hourly_occupancy_merges_all_sources(db, room, add_event, add_hold, add_class_session):
    add_event(room.id, DAY, "09:00", "10:00")
    add_hold(room.id, DAY, "14:00", "14:30")
    add_class_session(room.id, DAY, "18:00", "19:00", status="CANCELLED")

    busy = hourly_occupancy(db, room.id, [DAY])

    assert set(busy) == {f"{DAY}_9", f"{DAY}_14"}


def test_hourly_occupancy_is_cached_until_invalidated(db, room, add_event, fake_redis):
    aggregator = OccupancyAggregator(redis=fake_redis)
    assert aggregator.hourly_occupancy(db, room.id, [DAY]) == {}
    assert f"occupancy:hours:{room.id}:{DAY}" in fake_redis.values

    add_event(room.id, DAY, "10:00", "11:00")
    assert aggregator.hourly_occupancy(db, room.id, [DAY]) == {}

    assert invalidate_room_occupancy(room.id, [DAY], redis=fake_redis) == 1
    assert aggregator.hourly_occupancy(db, room.id, [DAY]) == {f"{DAY}_10": True}


def test_monthly_occupancy_covers_every_date(db, room):
    days = room_monthly_occupancy(db, room.id, "2024-05-01", "2024-05-31")

    assert len(days) == 31
    assert all(value is None for value in days.values())


def test_monthly_occupancy_accepts_reversed_range(db, room):
    days = room_monthly_occupancy(db, room.id, "2024-05-03", "2024-05-01")

    assert list(days) == ["2024-05-01", "2024-05-02", "2024-05-03"]


def test_monthly_occupancy_prefers_events_over_holds(db, room, add_event, add_hold, add_class_session):
    add_hold(room.id, DAY, "08:00", "09:00", reserved_by="Maria")
    add_event(room.id, DAY, "18:00", "20:00", name="Meetup")
    add_class_session(room.id, "2024-05-11", "10:00", "11:00", group_name="Kids")
    add_hold(room.id, "2024-05-12", "10:00", "11:00", reserved_by="Maria")

    days = room_monthly_occupancy(db, room.id, "2024-05-09", "2024-05-13")

    assert days["2024-05-09"] is None
    assert days[DAY] == {"type": "event", "description": "Event: Meetup"}
    assert days["2024-05-11"] == {"type": "schedule", "description": "Class: Kids"}
    assert days["2024-05-12"] == {"type": "reservation", "description": "Hold: Maria"}
    assert days["2024-05-13"] is None


def test_occupancy_works_without_redis(db, room, add_event, monkeypatch):
    from coworking.services.conflicts import occupancy

    monkeypatch.setattr(occupancy, "redis_client", None)
    add_event(room.id, DAY, "10:00", "11:00")

    assert hourly_occupancy(db, room.id, [DAY]) == {f"{DAY}_10": True}
