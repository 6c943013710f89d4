import pytest

from coworking.errors import ConflictError
from coworking.services.conflicts import ConflictChecker

DAY = "2024-05-10"


def test_free_room_passes(db, room):
    ConflictChecker().check_conflicts(db, DAY, "10:00", "12:00", [room.id])


def test_class_session_blocks_room(db, room, add_class_session):
    add_class_session(room.id, DAY, "11:00", "12:30", group_name="Yoga")

    with pytest.raises(ConflictError) as exc:
        ConflictChecker().check_conflicts(db, DAY, "10:00", "11:30", [room.id])

    assert "Yoga" in exc.value.message
    [conflict] = exc.value.conflicts
    assert conflict["type"] == "schedule"
    assert conflict["date"] == DAY
    assert (conflict["start_time"], conflict["end_time"]) == ("11:00", "12:30")


@pytest.mark.parametrize("kind", ["event", "reservation"])
def test_every_source_blocks_room(db, room, add_event, add_hold, kind):
    add = add_event if kind == "event" else add_hold
    add(room.id, DAY, "09:00", "10:00")

    with pytest.raises(ConflictError) as exc:
        ConflictChecker().check_conflicts(db, DAY, "09:30", "09:45", [room.id])
    assert exc.value.conflicts[0]["type"] == kind


def test_touching_entries_do_not_conflict(db, room, add_event, add_hold):
    add_event(room.id, DAY, "09:00", "10:00")
    add_hold(room.id, DAY, "12:00", "13:00")

    ConflictChecker().check_conflicts(db, DAY, "10:00", "12:00", [room.id])


def test_cancelled_entries_are_ignored(db, room, add_event, add_class_session):
    add_event(room.id, DAY, "10:00", "12:00", status="CANCELLED")
    add_class_session(room.id, DAY, "10:00", "12:00", status="CANCELLED")

    ConflictChecker().check_conflicts(db, DAY, "10:00", "12:00", [room.id])


def test_other_rooms_and_dates_do_not_conflict(db, room, plain_room, add_hold):
    add_hold(plain_room.id, DAY, "10:00", "12:00")
    add_hold(room.id, "2024-05-11", "10:00", "12:00")

    ConflictChecker().check_conflicts(db, DAY, "10:00", "12:00", [room.id])


def test_entry_is_not_compared_with_itself(db, room, add_hold):
    hold = add_hold(room.id, DAY, "10:00", "11:00")

    ConflictChecker().check_conflicts(
        db, DAY, "10:30", "11:30", [room.id], exclude_ids={"reservation": hold.id}
    )
    with pytest.raises(ConflictError):
        ConflictChecker().check_conflicts(
            db, DAY, "10:30", "11:30", [room.id], exclude_ids={"schedule": hold.id}
        )


def test_teacher_busy_in_another_room(db, room, plain_room, teacher, add_class_session):
    add_class_session(plain_room.id, DAY, "10:00", "11:00", teacher_id=teacher.id)

    with pytest.raises(ConflictError) as exc:
        ConflictChecker().check_conflicts(
            db, DAY, "10:30", "11:30", [room.id], teacher_id=teacher.id
        )
    assert "Teacher" in exc.value.message
    assert exc.value.conflicts[0]["type"] == "schedule"


def test_multiple_rooms_checked_together(db, room, plain_room, add_event):
    add_event(plain_room.id, DAY, "10:00", "11:00")

    with pytest.raises(ConflictError):
        ConflictChecker().check_conflicts(db, DAY, "10:30", "11:30", [room.id, plain_room.id])


def test_seconds_in_window_are_accepted(db, room, add_event):
    add_event(room.id, DAY, "10:00", "11:00")

    with pytest.raises(ConflictError):
        ConflictChecker().check_conflicts(db, DAY, "10:59:00", "12:00:00", [room.id])
