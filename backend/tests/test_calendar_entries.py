import datetime as dt

import pytest

from coworking.errors import ConflictError, InvariantViolation, NotFoundError, ValidationFailure
from coworking.schemas.calendar import (
    ClassSessionCreate,
    ClassSessionUpdate,
    ReservationCreate,
    ReservationUpdate,
)
from coworking.services.calendar_entries import ClassSessionService, ReservationService

DAY = dt.date(2024, 5, 10)


def hold(room, start="10:00", end="11:00", day=DAY):
    return ReservationCreate(room_id=room.id, date=day, start_time=start, end_time=end, reserved_by="desk")


def test_create_hold(db, room, fake_redis):
    entry = ReservationService(db).create(hold(room))

    assert entry.status == "PLANNED"
    assert entry.date == "2024-05-10"
    assert entry.reserved_by == "desk"
    assert f"occupancy:hours:{room.id}:2024-05-10" in fake_redis.deleted


def test_overlapping_hold_rejected(db, room, add_event):
    add_event(room.id, "2024-05-10", "10:30", "12:00")

    with pytest.raises(ConflictError) as exc:
        ReservationService(db).create(hold(room))
    assert exc.value.conflicts[0]["type"] == "event"


def test_hold_for_unknown_room(db):
    with pytest.raises(NotFoundError):
        ReservationService(db).create(ReservationCreate(
            room_id=42, date=DAY, start_time="10:00", end_time="11:00"
        ))


def test_update_hold_excludes_itself(db, room):
    service = ReservationService(db)
    entry = service.create(hold(room))

    updated = service.update(entry.id, ReservationUpdate(start_time="10:30", end_time="11:30"))

    assert (updated.start_time, updated.end_time) == ("10:30", "11:30")


def test_update_hold_rejects_inverted_window(db, room):
    service = ReservationService(db)
    entry = service.create(hold(room))

    with pytest.raises(ValidationFailure):
        service.update(entry.id, ReservationUpdate(start_time="12:00"))


def test_cancelled_hold_frees_time(db, room):
    service = ReservationService(db)
    entry = service.create(hold(room))
    service.cancel(entry.id)

    assert service.create(hold(room)).status == "PLANNED"
    with pytest.raises(InvariantViolation):
        service.cancel(entry.id)


def test_class_session_blocks_busy_teacher(db, room, plain_room, teacher):
    service = ClassSessionService(db)
    service.create(ClassSessionCreate(
        room_id=plain_room.id, date=DAY, start_time="10:00", end_time="11:00", teacher_id=teacher.id
    ))

    with pytest.raises(ConflictError) as exc:
        service.create(ClassSessionCreate(
            room_id=room.id, date=DAY, start_time="10:30", end_time="11:30", teacher_id=teacher.id
        ))
    assert "Teacher" in exc.value.message


def test_class_session_move_keeps_teacher_check_off_itself(db, room, teacher):
    service = ClassSessionService(db)
    session = service.create(ClassSessionCreate(
        room_id=room.id, date=DAY, start_time="10:00", end_time="11:00",
        teacher_id=teacher.id, group_name="Yoga",
    ))

    moved = service.update(session.id, ClassSessionUpdate(start_time="10:30", end_time="11:30"))

    assert moved.start_time == "10:30"
    assert moved.group_name == "Yoga"


def test_class_session_unknown_teacher(db, room):
    with pytest.raises(NotFoundError):
        ClassSessionService(db).create(ClassSessionCreate(
            room_id=room.id, date=DAY, start_time="10:00", end_time="11:00", teacher_id=99
        ))
