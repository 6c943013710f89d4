# backend/coworking/services/conflicts/sources.py
"""
Conflict candidate sources.

Every calendar table that can occupy a room (class sessions, rental slots,
events, manual holds) is exposed through the same projection:

    ConflictCandidate(source, id, resource_id, date, start_time, end_time,
                      is_cancelled, ...)

The checker and the occupancy aggregator only see CandidateSource objects;
adding a fifth kind of reservation means adding a source to the list.
"""

from dataclasses import dataclass, field, replace
from typing import Optional

from sqlalchemy.orm import Session

from ...models.enums import CalendarStatus
from ...models.generated import (
    ClassSessions as DBClassSession,
    Events as DBEvent,
    Rentals as DBRental,
    Reservations as DBReservation,
)


@dataclass(frozen=True)
class ConflictCandidate:
    """Read-only projection of one calendar entry."""
    source: str
    id: int
    resource_id: int
    date: str
    start_time: str
    end_time: str
    is_cancelled: bool = False
    room_name: Optional[str] = None
    title: Optional[str] = None
    subtitle: Optional[str] = None
    booking_id: Optional[int] = None
    booking_number: Optional[str] = None


@dataclass(frozen=True)
class CandidateQuery:
    """
    Filter for a source fetch.

    Either `dates` (exact days) or `date_from`/`date_to` (inclusive range).
    """
    room_ids: tuple[int, ...]
    dates: tuple[str, ...] = ()
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    exclude_id: Optional[int] = None
    exclude_booking_id: Optional[int] = None
    include_cancelled: bool = False


@dataclass
class CandidateSource:
    """
    Base source over a table with room_id/date/start_time/end_time/status.

    Subclasses set `kind` and `model` and implement the text hooks.
    """
    kind: str = ""
    model: type = field(default=None, repr=False)

    def fetch(self, db: Session, query: CandidateQuery) -> list[ConflictCandidate]:
        model = self.model
        q = db.query(model).filter(model.room_id.in_(query.room_ids))

        if query.dates:
            q = q.filter(model.date.in_(query.dates))
        if query.date_from:
            q = q.filter(model.date >= query.date_from)
        if query.date_to:
            q = q.filter(model.date <= query.date_to)
        if query.exclude_id is not None:
            q = q.filter(model.id != query.exclude_id)
        if not query.include_cancelled:
            q = q.filter(model.status != CalendarStatus.CANCELLED.value)

        q = self.refine(q, query)
        rows = q.order_by(model.date, model.start_time).all()
        return [self.project(row) for row in rows]

    def refine(self, q, query: CandidateQuery):
        return q

    def project(self, row) -> ConflictCandidate:
        return ConflictCandidate(
            source=self.kind,
            id=row.id,
            resource_id=row.room_id,
            date=row.date,
            start_time=row.start_time,
            end_time=row.end_time,
            is_cancelled=row.status == CalendarStatus.CANCELLED.value,
            room_name=row.room.name if row.room else None,
        )

    # ── Text hooks ───────────────────────────────────────────────────────

    def conflict_message(self, candidate: ConflictCandidate) -> str:
        raise NotImplementedError

    def day_description(self, candidate: ConflictCandidate) -> str:
        raise NotImplementedError

    @property
    def supports_teacher(self) -> bool:
        return False


def _room_info(candidate: ConflictCandidate) -> str:
    return f' "{candidate.room_name}"' if candidate.room_name else ""


def _time_range(candidate: ConflictCandidate) -> str:
    return f"{candidate.start_time} - {candidate.end_time}"


@dataclass
class ClassSessionSource(CandidateSource):
    kind: str = "schedule"
    model: type = field(default=DBClassSession, repr=False)

    def project(self, row) -> ConflictCandidate:
        base = super().project(row)
        teacher = row.teacher
        teacher_name = (
            " ".join(p for p in (teacher.first_name, teacher.last_name) if p)
            if teacher else None
        )
        return replace(base, title=row.group_name, subtitle=teacher_name)

    def conflict_message(self, candidate: ConflictCandidate) -> str:
        group_info = (
            f" (group: {candidate.title})" if candidate.title else " (individual session)"
        )
        return (
            f"Room{_room_info(candidate)} is already taken by a class{group_info} "
            f"at this time: {_time_range(candidate)}"
        )

    def day_description(self, candidate: ConflictCandidate) -> str:
        return f"Class: {candidate.title or 'No group'}"

    @property
    def supports_teacher(self) -> bool:
        return True

    def fetch_for_teacher(
        self,
        db: Session,
        teacher_id: int,
        date: str,
        exclude_id: Optional[int] = None,
    ) -> list[ConflictCandidate]:
        """Teacher's non-cancelled sessions on a date, in any room."""
        q = db.query(DBClassSession).filter(
            DBClassSession.teacher_id == teacher_id,
            DBClassSession.date == date,
            DBClassSession.status != CalendarStatus.CANCELLED.value,
        )
        if exclude_id is not None:
            q = q.filter(DBClassSession.id != exclude_id)
        return [self.project(row) for row in q.order_by(DBClassSession.start_time).all()]

    def teacher_message(self, candidate: ConflictCandidate) -> str:
        who = candidate.subtitle or "Teacher"
        return f"Teacher {who} is already busy at this time: {_time_range(candidate)}"


@dataclass
class RentalSlotSource(CandidateSource):
    kind: str = "rental"
    model: type = field(default=DBRental, repr=False)

    def refine(self, q, query: CandidateQuery):
        if query.exclude_booking_id is not None:
            q = q.filter(
                (DBRental.rental_application_id.is_(None))
                | (DBRental.rental_application_id != query.exclude_booking_id)
            )
        return q

    def project(self, row) -> ConflictCandidate:
        base = super().project(row)
        application = row.rental_application
        client_name = row.client_name
        if application is not None and application.client is not None:
            client_name = application.client.full_name
        return replace(
            base,
            title=client_name,
            subtitle=row.event_type,
            booking_id=row.rental_application_id,
            booking_number=application.application_number if application else None,
        )

    def conflict_message(self, candidate: ConflictCandidate) -> str:
        booking_info = (
            f" (application {candidate.booking_number})" if candidate.booking_number else ""
        )
        return (
            f"Room{_room_info(candidate)} is already rented{booking_info} "
            f"at this time: {_time_range(candidate)}"
        )

    def day_description(self, candidate: ConflictCandidate) -> str:
        if candidate.booking_number:
            return f"Rental {candidate.booking_number}: {candidate.title}"
        return f"Rental: {candidate.title or candidate.subtitle or 'No description'}"


@dataclass
class EventSource(CandidateSource):
    kind: str = "event"
    model: type = field(default=DBEvent, repr=False)

    def project(self, row) -> ConflictCandidate:
        base = super().project(row)
        return replace(base, title=row.name, subtitle=row.event_type)

    def conflict_message(self, candidate: ConflictCandidate) -> str:
        type_info = f" ({candidate.subtitle})" if candidate.subtitle else ""
        return (
            f'Room{_room_info(candidate)} is already taken by event "{candidate.title}"'
            f"{type_info} at this time: {_time_range(candidate)}"
        )

    def day_description(self, candidate: ConflictCandidate) -> str:
        return f"Event: {candidate.title}"


@dataclass
class ReservationSource(CandidateSource):
    kind: str = "reservation"
    model: type = field(default=DBReservation, repr=False)

    def project(self, row) -> ConflictCandidate:
        base = super().project(row)
        return replace(base, title=row.reserved_by, subtitle=row.notes)

    def conflict_message(self, candidate: ConflictCandidate) -> str:
        return (
            f"Room{_room_info(candidate)} is already reserved "
            f"at this time: {_time_range(candidate)}"
        )

    def day_description(self, candidate: ConflictCandidate) -> str:
        return f"Hold: {candidate.title or candidate.subtitle or 'No description'}"


def default_sources() -> list[CandidateSource]:
    """The four calendar tables, in conflict-check order."""
    return [
        ClassSessionSource(),
        RentalSlotSource(),
        EventSource(),
        ReservationSource(),
    ]
