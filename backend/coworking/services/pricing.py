# backend/coworking/services/pricing.py
"""
Rental price calculation.

calculate_price() is pure: it reads rate attributes of the room/workspace
objects it is given and does calendar arithmetic on the period.
calculate_price_for() loads and validates the resources first.

Unit price per rental type:
    HOURLY            room.hourly_rate
    ROOM_DAILY        room.daily_rate_coworking → room.daily_rate → 0
    ROOM_WEEKLY       room.weekly_rate_coworking → 7 × room daily
    ROOM_MONTHLY      room.monthly_rate_coworking → 0
    WORKSPACE_DAILY   Σ workspace.daily_rate
    WORKSPACE_WEEKLY  Σ (workspace.weekly_rate → 7 × workspace.daily_rate)
    WORKSPACE_MONTHLY Σ workspace.monthly_rate
"""

from dataclasses import dataclass, field
from math import ceil
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from ..errors import NotFoundError, ValidationFailure
from ..models.enums import PriceUnit, RentalType
from ..models.generated import Rooms as DBRoom, Workspaces as DBWorkspace
from .conflicts.overlap import time_str_to_minutes
from .periods import Period


@dataclass
class PriceCalculation:
    base_price: float
    quantity: int
    price_unit: PriceUnit
    total_price: float
    breakdown: list[dict] = field(default_factory=list)


def money(value: float) -> float:
    return round(float(value or 0), 2)


def hours_between(start_time: str, end_time: str) -> int:
    """Whole hours billed for a window, rounded up."""
    start_min = time_str_to_minutes(start_time)
    end_min = time_str_to_minutes(end_time)
    if end_min <= start_min:
        raise ValidationFailure(f"End time {end_time} must be after start time {start_time}")
    return ceil((end_min - start_min) / 60)


def room_daily_rate(room) -> float:
    return float(room.daily_rate_coworking or room.daily_rate or 0)


def room_weekly_rate(room) -> float:
    return float(room.weekly_rate_coworking or room_daily_rate(room) * 7)


def room_monthly_rate(room) -> float:
    return float(room.monthly_rate_coworking or 0)


def workspace_weekly_rate(workspace) -> float:
    return float(workspace.weekly_rate or float(workspace.daily_rate or 0) * 7)


def calculate_price(
    rental_type: RentalType | str,
    period: Period,
    room=None,
    workspaces: Sequence = (),
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    hourly_slots: Optional[Sequence[dict]] = None,
) -> PriceCalculation:
    """
    Unit price, quantity and total for a rental.

    Args:
        rental_type: RentalType
        period: Period description
        room: object with room rate attributes (room-based and hourly types)
        workspaces: objects with workspace rate attributes (workspace types)
        start_time, end_time: "HH:MM" window (hourly)
        hourly_slots: explicit [{"date", "start_time", "end_time"}] list (hourly);
                      quantity = number of slots, each priced at the unit rate
    """
    rental_type = RentalType(rental_type)
    breakdown: list[dict] = []

    if rental_type == RentalType.HOURLY:
        if room is None:
            raise ValidationFailure("room_id is required for hourly rental")
        unit = PriceUnit.HOUR
        base_price = float(room.hourly_rate or 0)
        if hourly_slots:
            quantity = len(hourly_slots)
            breakdown = [
                {
                    "date": slot["date"],
                    "start_time": slot["start_time"],
                    "end_time": slot["end_time"],
                    "price": money(base_price),
                }
                for slot in hourly_slots
            ]
        else:
            if not start_time or not end_time:
                raise ValidationFailure("start_time and end_time are required for hourly rental")
            quantity = hours_between(start_time, end_time)

    elif rental_type.is_workspace:
        if not workspaces:
            raise ValidationFailure("workspace_ids is required for workspace rental")
        if rental_type == RentalType.WORKSPACE_DAILY:
            unit = PriceUnit.DAY
            base_price = sum(float(w.daily_rate or 0) for w in workspaces)
            quantity = period.days
        elif rental_type == RentalType.WORKSPACE_WEEKLY:
            unit = PriceUnit.WEEK
            base_price = sum(workspace_weekly_rate(w) for w in workspaces)
            quantity = period.weeks
        else:
            unit = PriceUnit.MONTH
            base_price = sum(float(w.monthly_rate or 0) for w in workspaces)
            quantity = period.months

    else:
        if room is None:
            raise ValidationFailure("room_id is required for room rental")
        if not room.is_coworking:
            raise ValidationFailure(f"Room {room.name} is not a coworking room")
        if rental_type == RentalType.ROOM_DAILY:
            unit = PriceUnit.DAY
            base_price = room_daily_rate(room)
            quantity = period.days
        elif rental_type == RentalType.ROOM_WEEKLY:
            unit = PriceUnit.WEEK
            base_price = room_weekly_rate(room)
            quantity = period.weeks
        else:
            unit = PriceUnit.MONTH
            base_price = room_monthly_rate(room)
            quantity = period.months

    base_price = money(base_price)
    return PriceCalculation(
        base_price=base_price,
        quantity=quantity,
        price_unit=unit,
        total_price=money(base_price * quantity),
        breakdown=breakdown,
    )


# ── Database helpers ─────────────────────────────────────────────────────


def load_room(db: Session, room_id: Optional[int]) -> Optional[DBRoom]:
    if room_id is None:
        return None
    room = db.get(DBRoom, room_id)
    if not room:
        raise NotFoundError(f"Room {room_id} not found")
    return room


def load_workspaces(db: Session, workspace_ids: Optional[Sequence[int]]) -> list[DBWorkspace]:
    """Load workspaces in the requested order; every id must exist."""
    if not workspace_ids:
        return []
    ids = list(dict.fromkeys(workspace_ids))
    rows = db.query(DBWorkspace).filter(DBWorkspace.id.in_(ids)).all()
    by_id = {w.id: w for w in rows}
    missing = [wid for wid in ids if wid not in by_id]
    if missing:
        raise NotFoundError(f"Workspaces not found: {', '.join(map(str, missing))}")
    return [by_id[wid] for wid in ids]


def calculate_price_for(
    db: Session,
    rental_type: RentalType | str,
    period: Period,
    room_id: Optional[int] = None,
    workspace_ids: Optional[Sequence[int]] = None,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    hourly_slots: Optional[Sequence[dict]] = None,
) -> PriceCalculation:
    """Load resources and run calculate_price()."""
    rental_type = RentalType(rental_type)
    room = None
    workspaces: list[DBWorkspace] = []

    if rental_type.is_workspace:
        workspaces = load_workspaces(db, workspace_ids)
    else:
        room = load_room(db, room_id)

    return calculate_price(
        rental_type,
        period,
        room=room,
        workspaces=workspaces,
        start_time=start_time,
        end_time=end_time,
        hourly_slots=hourly_slots,
    )
