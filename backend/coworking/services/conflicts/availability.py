# backend/coworking/services/conflicts/availability.py
"""
Bulk availability check for a whole rental period.

Room-based rentals (HOURLY, ROOM_*): run the conflict checker for every
date of the period and collect all conflicts instead of stopping at the
first one.

Workspace rentals: room-level overlap is skipped; instead other live
applications holding any of the same workspaces on a shared date are
reported. Two different desks in one room never conflict.
"""

import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from ...errors import ConflictError, NotFoundError, ValidationFailure
from ...models.enums import BLOCKING_APPLICATION_STATUSES, RentalPeriodType, RentalType
from ...models.generated import (
    RentalApplications as DBApplication,
    RentalApplicationWorkspaces as DBApplicationWorkspace,
    Rooms as DBRoom,
    Workspaces as DBWorkspace,
)
from ..periods import Period, dates_in_range, resolve_end_date
from ..rental_config import get_rental_config
from .checker import ConflictChecker

logger = logging.getLogger(__name__)


def resolve_room_id(
    db: Session,
    room_id: Optional[int],
    workspace_ids: Optional[Sequence[int]],
) -> int:
    """Room of the rental: given directly, or the room of the first workspace."""
    if room_id is not None:
        if not db.get(DBRoom, room_id):
            raise NotFoundError(f"Room {room_id} not found")
        return room_id
    if workspace_ids:
        workspace = db.get(DBWorkspace, workspace_ids[0])
        if not workspace:
            raise NotFoundError(f"Workspace {workspace_ids[0]} not found")
        return workspace.room_id
    raise ValidationFailure("Either room_id or workspace_ids is required")


def application_dates(application: DBApplication) -> set[str]:
    """Dates occupied by a stored application."""
    if application.period_type == RentalPeriodType.SPECIFIC_DAYS.value:
        return set(application.selected_dates)
    end = resolve_end_date(application.period_type, application.start_date, application.end_date)
    return set(dates_in_range(application.start_date, end))


def check_availability(
    db: Session,
    rental_type: RentalType | str,
    period: Period,
    room_id: Optional[int] = None,
    workspace_ids: Optional[Sequence[int]] = None,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    exclude_booking_id: Optional[int] = None,
    checker: Optional[ConflictChecker] = None,
) -> dict:
    """
    Collect every conflict of a prospective rental.

    Returns:
        {"available": bool, "conflicts": [conflict dicts]}
    """
    rental_type = RentalType(rental_type)
    room_id = resolve_room_id(db, room_id, workspace_ids)
    dates = period.dates()

    if rental_type.is_workspace:
        conflicts = _workspace_conflicts(db, workspace_ids or [], dates, exclude_booking_id)
    else:
        conflicts = _room_conflicts(
            db, checker or ConflictChecker(), room_id, dates,
            start_time, end_time, exclude_booking_id,
        )

    if conflicts:
        logger.info(f"Availability check for room {room_id}: {len(conflicts)} conflict(s)")
    return {"available": not conflicts, "conflicts": conflicts}


def _room_conflicts(
    db: Session,
    checker: ConflictChecker,
    room_id: int,
    dates: list[str],
    start_time: Optional[str],
    end_time: Optional[str],
    exclude_booking_id: Optional[int],
) -> list[dict]:
    config = get_rental_config()
    start = start_time or config.day_start
    end = end_time or config.day_end

    conflicts: list[dict] = []
    for day in dates:
        try:
            checker.check_conflicts(
                db, day, start, end, [room_id],
                exclude_booking_id=exclude_booking_id,
            )
        except ConflictError as e:
            conflicts.extend(e.conflicts)
    return conflicts


def _workspace_conflicts(
    db: Session,
    workspace_ids: Sequence[int],
    dates: list[str],
    exclude_booking_id: Optional[int],
) -> list[dict]:
    if not workspace_ids or not dates:
        return []

    q = (
        db.query(DBApplication)
        .join(DBApplicationWorkspace, DBApplicationWorkspace.rental_application_id == DBApplication.id)
        .filter(
            DBApplicationWorkspace.workspace_id.in_(list(workspace_ids)),
            DBApplication.status.in_(BLOCKING_APPLICATION_STATUSES),
            DBApplication.start_date <= max(dates),
        )
        .distinct()
    )
    if exclude_booking_id is not None:
        q = q.filter(DBApplication.id != exclude_booking_id)

    wanted = set(dates)
    conflicts: list[dict] = []
    for other in q.order_by(DBApplication.id).all():
        shared = sorted(application_dates(other) & wanted)
        if not shared:
            continue
        names = [
            link.workspace.name
            for link in other.workspaces
            if link.workspace_id in workspace_ids and link.workspace is not None
        ]
        message = (
            f"Workspaces ({', '.join(names)}) are already booked "
            f"by application {other.application_number}"
        )
        conflicts.append({
            "date": shared[0],
            "type": "rental",
            "description": message,
            "start_time": other.start_time or get_rental_config().day_start,
            "end_time": other.end_time or get_rental_config().day_end,
        })
    return conflicts
