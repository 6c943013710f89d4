# backend/coworking/routers/rental_applications.py
"""
Rental applications API.

Domain errors raised by the service are translated to HTTP statuses by the
handlers registered in main.py (404 / 400 / 409).
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.enums import ApplicationStatus, RentalType
from ..schemas.rental_applications import (
    AvailabilityResponse,
    BatchRequest,
    BatchResponse,
    CalculatePriceRequest,
    CancelRequest,
    CheckAvailabilityRequest,
    DayOccupancy,
    EditStatusResponse,
    ExtendRequest,
    HourlyOccupancyRequest,
    PriceCalculationResponse,
    RentalApplicationCreate,
    RentalApplicationRead,
    RentalApplicationUpdate,
    RoomMonthlyOccupancyRequest,
)
from ..services.conflicts import check_availability, hourly_occupancy, room_monthly_occupancy
from ..services.periods import Period
from ..services.pricing import calculate_price_for
from ..services.rental_applications import RentalApplicationService

router = APIRouter(prefix="/rental-applications", tags=["rental-applications"])


def get_service(db: Session = Depends(get_db)) -> RentalApplicationService:
    return RentalApplicationService(db)


def _period(data) -> Period:
    return Period.build(data.period_type, data.start_date, data.end_date, data.selected_day_strs)


def _batch_response(results: list[dict]) -> dict:
    succeeded = sum(1 for r in results if r["ok"])
    return {"succeeded": succeeded, "failed": len(results) - succeeded, "results": results}


# ── Availability / occupancy / price ─────────────────────────────────────


@router.post("/check-availability", response_model=AvailabilityResponse)
def check_application_availability(
    data: CheckAvailabilityRequest,
    db: Session = Depends(get_db),
):
    return check_availability(
        db,
        data.rental_type,
        _period(data),
        room_id=data.room_id,
        workspace_ids=data.workspace_ids,
        start_time=data.start_time,
        end_time=data.end_time,
        exclude_booking_id=data.exclude_application_id,
    )


@router.post("/hourly-occupancy", response_model=dict[str, bool])
def get_hourly_occupancy(
    data: HourlyOccupancyRequest,
    db: Session = Depends(get_db),
):
    """Busy hours of a room: {"YYYY-MM-DD_H": true}."""
    return hourly_occupancy(db, data.room_id, [d.isoformat() for d in data.dates])


@router.post("/room-monthly-occupancy", response_model=dict[str, Optional[DayOccupancy]])
def get_room_monthly_occupancy(
    data: RoomMonthlyOccupancyRequest,
    db: Session = Depends(get_db),
):
    return room_monthly_occupancy(
        db, data.room_id, data.start_date.isoformat(), data.end_date.isoformat()
    )


@router.post("/calculate-price", response_model=PriceCalculationResponse)
def calculate_application_price(
    data: CalculatePriceRequest,
    db: Session = Depends(get_db),
):
    return calculate_price_for(
        db,
        data.rental_type,
        _period(data),
        room_id=data.room_id,
        workspace_ids=data.workspace_ids,
        start_time=data.start_time,
        end_time=data.end_time,
        hourly_slots=[s.as_dict() for s in data.hourly_slots] if data.hourly_slots else None,
    )


# ── Batch ────────────────────────────────────────────────────────────────


@router.post("/batch/create-invoices", response_model=BatchResponse)
def batch_create_invoices(
    data: BatchRequest,
    manager_id: Optional[int] = None,
    service: RentalApplicationService = Depends(get_service),
):
    return _batch_response(service.batch_create_invoices(data.application_ids, manager_id))


@router.post("/batch/mark-invoices-paid", response_model=BatchResponse)
def batch_mark_invoices_paid(
    data: BatchRequest,
    service: RentalApplicationService = Depends(get_service),
):
    return _batch_response(service.batch_mark_paid(data.application_ids))


# ── CRUD ─────────────────────────────────────────────────────────────────


@router.post("/", response_model=RentalApplicationRead, status_code=status.HTTP_201_CREATED)
def create_application(
    data: RentalApplicationCreate,
    service: RentalApplicationService = Depends(get_service),
):
    return service.create(data)


@router.get("/", response_model=list[RentalApplicationRead])
def list_applications(
    status: Optional[ApplicationStatus] = None,
    rental_type: Optional[RentalType] = None,
    client_id: Optional[int] = None,
    room_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = Query(None, min_length=1),
    service: RentalApplicationService = Depends(get_service),
):
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    return service.list_applications(
        status=status.value if status else None,
        rental_type=rental_type.value if rental_type else None,
        client_id=client_id,
        room_id=room_id,
        start_date=start_date.isoformat() if start_date else None,
        end_date=end_date.isoformat() if end_date else None,
        search=search,
    )


@router.get("/{id}/edit-status", response_model=EditStatusResponse)
def get_edit_status(id: int, service: RentalApplicationService = Depends(get_service)):
    return service.edit_status(id)


@router.get("/{id}", response_model=RentalApplicationRead)
def get_application(id: int, service: RentalApplicationService = Depends(get_service)):
    return service.get(id)


@router.patch("/{id}", response_model=RentalApplicationRead)
def update_application(
    id: int,
    data: RentalApplicationUpdate,
    service: RentalApplicationService = Depends(get_service),
):
    return service.update(id, data)


@router.post("/{id}/confirm", response_model=RentalApplicationRead)
def confirm_application(
    id: int,
    manager_id: Optional[int] = None,
    service: RentalApplicationService = Depends(get_service),
):
    return service.confirm(id, manager_id)


@router.post("/{id}/extend", response_model=RentalApplicationRead, status_code=status.HTTP_201_CREATED)
def extend_application(
    id: int,
    data: ExtendRequest,
    service: RentalApplicationService = Depends(get_service),
):
    return service.extend(id, data)


@router.post("/{id}/cancel", response_model=RentalApplicationRead)
def cancel_application(
    id: int,
    data: CancelRequest,
    service: RentalApplicationService = Depends(get_service),
):
    return service.cancel(id, data.reason)


@router.delete("/{id}")
def delete_application(id: int, service: RentalApplicationService = Depends(get_service)):
    return service.delete(id)


@router.delete("/{id}/slots/{slot_id}", response_model=RentalApplicationRead)
def remove_application_slot(
    id: int,
    slot_id: int,
    service: RentalApplicationService = Depends(get_service),
):
    return service.remove_slot(id, slot_id)
