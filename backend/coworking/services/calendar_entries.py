# backend/coworking/services/calendar_entries.py
"""
Manual holds and class sessions.

Both are plain calendar entries on a room. Every write goes through the
conflict checker; an update re-validates the entry against everything
but itself. Class sessions also block their teacher in any room.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..database import atomic
from ..errors import InvariantViolation, NotFoundError, ValidationFailure
from ..models.enums import CalendarStatus
from ..models.generated import (
    ClassSessions as DBClassSession,
    Reservations as DBReservation,
    Teachers as DBTeacher,
)
from .conflicts import ConflictChecker, invalidate_slots
from .pricing import load_room

logger = logging.getLogger(__name__)


class CalendarEntryService:
    """Create / update / cancel for one calendar table."""

    kind: str = ""
    model: type = None
    label: str = "Calendar entry"
    extra_fields: tuple[str, ...] = ()

    def __init__(self, db: Session, checker: Optional[ConflictChecker] = None):
        self.db = db
        self.checker = checker or ConflictChecker()

    def get(self, entry_id: int):
        entry = self.db.get(self.model, entry_id)
        if not entry:
            raise NotFoundError(f"{self.label} {entry_id} not found")
        return entry

    def _teacher_id(self, values: dict) -> Optional[int]:
        return None

    def _validate(self, values: dict) -> None:
        load_room(self.db, values["room_id"])

    def _check(self, values: dict, exclude_id: Optional[int] = None) -> None:
        self.checker.check_conflicts(
            self.db,
            values["date"],
            values["start_time"],
            values["end_time"],
            [values["room_id"]],
            teacher_id=self._teacher_id(values),
            exclude_ids={self.kind: exclude_id} if exclude_id is not None else None,
        )

    def create(self, data):
        values = data.model_dump()
        values["date"] = data.date.isoformat()

        with atomic(self.db):
            self._validate(values)
            self._check(values)
            entry = self.model(
                status=CalendarStatus.PLANNED.value,
                **{k: values[k] for k in ("room_id", "date", "start_time", "end_time", "notes")},
                **{k: values.get(k) for k in self.extra_fields},
            )
            self.db.add(entry)
            self.db.flush()

        logger.info(f"{self.label} {entry.id} created: room {entry.room_id} {entry.date} {entry.start_time}-{entry.end_time}")
        invalidate_slots([(entry.room_id, entry.date)])
        return entry

    def update(self, entry_id: int, data):
        entry = self.get(entry_id)
        if entry.status == CalendarStatus.CANCELLED.value:
            raise InvariantViolation(f"{self.label} {entry_id} is cancelled")

        old_key = (entry.room_id, entry.date)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("date") is not None:
            changes["date"] = data.date.isoformat()

        fields = ("room_id", "date", "start_time", "end_time", "notes") + self.extra_fields
        values = {name: getattr(entry, name) for name in fields}
        required = ("room_id", "date", "start_time", "end_time")
        values.update({
            k: v for k, v in changes.items()
            if k in fields and (v is not None or k not in required)
        })
        if values["end_time"] <= values["start_time"]:
            raise ValidationFailure("end_time must be after start_time")

        with atomic(self.db):
            self._validate(values)
            self._check(values, exclude_id=entry.id)
            for name in fields:
                setattr(entry, name, values[name])

        logger.info(f"{self.label} {entry.id} updated: {sorted(changes)}")
        invalidate_slots([old_key, (entry.room_id, entry.date)])
        return entry

    def cancel(self, entry_id: int):
        entry = self.get(entry_id)
        if entry.status == CalendarStatus.CANCELLED.value:
            raise InvariantViolation(f"{self.label} {entry_id} is already cancelled")

        with atomic(self.db):
            entry.status = CalendarStatus.CANCELLED.value

        logger.info(f"{self.label} {entry.id} cancelled")
        invalidate_slots([(entry.room_id, entry.date)])
        return entry


class ReservationService(CalendarEntryService):
    kind = "reservation"
    model = DBReservation
    label = "Hold"
    extra_fields = ("reserved_by",)


class ClassSessionService(CalendarEntryService):
    kind = "schedule"
    model = DBClassSession
    label = "Class session"
    extra_fields = ("teacher_id", "group_name")

    def _teacher_id(self, values: dict) -> Optional[int]:
        return values.get("teacher_id")

    def _validate(self, values: dict) -> None:
        super()._validate(values)
        teacher_id = values.get("teacher_id")
        if teacher_id is not None and not self.db.get(DBTeacher, teacher_id):
            raise NotFoundError(f"Teacher {teacher_id} not found")
