# backend/coworking/schemas/rental_applications.py

import datetime as dt
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..config import settings
from ..models.enums import (
    ApplicationStatus,
    PaymentType,
    PriceUnit,
    RentalPeriodType,
    RentalType,
)
from .common import ConflictInfo, check_time, check_time_order
from .invoices import InvoiceSummary


# ── Building blocks ──────────────────────────────────────────────────────


class HourlySlot(BaseModel):
    date: dt.date
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_times(cls, value):
        return check_time(value)

    @model_validator(mode="after")
    def _check_order(self):
        check_time_order(self.start_time, self.end_time)
        return self

    def as_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


class PeriodFields(BaseModel):
    """Period description and resource selector shared by requests."""
    rental_type: RentalType
    room_id: Optional[int] = None
    workspace_ids: Optional[list[int]] = None

    period_type: RentalPeriodType
    start_date: date
    end_date: Optional[date] = None
    selected_days: Optional[list[date]] = None

    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_times(cls, value):
        return check_time(value)

    @model_validator(mode="after")
    def _check_period(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.period_type == RentalPeriodType.SPECIFIC_DAYS and not self.selected_days:
            raise ValueError("selected_days is required for SPECIFIC_DAYS periods")
        check_time_order(self.start_time, self.end_time)
        return self

    @property
    def selected_day_strs(self) -> list[str]:
        return [d.isoformat() for d in self.selected_days or []]


# ── Availability / occupancy / price ─────────────────────────────────────


class CheckAvailabilityRequest(PeriodFields):
    exclude_application_id: Optional[int] = None


class AvailabilityResponse(BaseModel):
    available: bool
    conflicts: list[ConflictInfo] = []


class HourlyOccupancyRequest(BaseModel):
    room_id: int
    dates: list[date] = Field(..., min_length=1, max_length=settings.max_rental_days)


class RoomMonthlyOccupancyRequest(BaseModel):
    room_id: int
    start_date: date
    end_date: date


class DayOccupancy(BaseModel):
    type: str
    description: str


class CalculatePriceRequest(PeriodFields):
    hourly_slots: Optional[list[HourlySlot]] = None


class PriceBreakdownItem(BaseModel):
    date: str
    start_time: str
    end_time: str
    price: float


class PriceCalculationResponse(BaseModel):
    base_price: float
    quantity: int
    price_unit: PriceUnit
    total_price: float
    breakdown: list[PriceBreakdownItem] = []

    model_config = {"from_attributes": True}


# ── Create / update ──────────────────────────────────────────────────────


class RentalApplicationCreate(PeriodFields):
    client_id: int
    hourly_slots: Optional[list[HourlySlot]] = None

    base_price: Optional[float] = Field(None, ge=0)
    adjusted_price: Optional[float] = Field(None, ge=0)
    adjustment_reason: Optional[str] = None
    price_unit: Optional[PriceUnit] = None
    quantity: Optional[int] = Field(None, ge=1)
    payment_type: PaymentType = PaymentType.PREPAYMENT

    notes: Optional[str] = None
    event_type: Optional[str] = None
    manager_id: Optional[int] = None
    ignore_conflicts: bool = False

    @model_validator(mode="after")
    def _check_adjustment(self):
        if self.adjusted_price is not None and not (self.adjustment_reason or "").strip():
            raise ValueError("adjustment_reason is required when adjusted_price is set")
        return self

    @model_validator(mode="after")
    def _check_resources(self):
        if self.rental_type.is_workspace and not self.workspace_ids:
            raise ValueError("workspace_ids is required for workspace rentals")
        if not self.rental_type.is_workspace and self.room_id is None:
            raise ValueError("room_id is required for room and hourly rentals")
        return self


class RentalApplicationUpdate(BaseModel):
    rental_type: Optional[RentalType] = None
    room_id: Optional[int] = None
    workspace_ids: Optional[list[int]] = None
    client_id: Optional[int] = None

    period_type: Optional[RentalPeriodType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    selected_days: Optional[list[date]] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    hourly_slots: Optional[list[HourlySlot]] = None

    base_price: Optional[float] = Field(None, ge=0)
    adjusted_price: Optional[float] = Field(None, ge=0)
    adjustment_reason: Optional[str] = None
    price_unit: Optional[PriceUnit] = None
    quantity: Optional[int] = Field(None, ge=1)
    payment_type: Optional[PaymentType] = None

    notes: Optional[str] = None
    event_type: Optional[str] = None
    status: Optional[ApplicationStatus] = None
    manager_id: Optional[int] = None
    ignore_conflicts: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_times(cls, value):
        return check_time(value)

    @field_validator("status")
    @classmethod
    def _status_not_cancelled(cls, value):
        if value == ApplicationStatus.CANCELLED:
            raise ValueError("use the cancel operation to cancel an application")
        return value

    @model_validator(mode="after")
    def _check_fields(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        check_time_order(self.start_time, self.end_time)
        return self


class ExtendRequest(BaseModel):
    new_start_date: date
    new_end_date: Optional[date] = None
    selected_days: Optional[list[date]] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    adjusted_price: Optional[float] = Field(None, ge=0)
    adjustment_reason: Optional[str] = None
    manager_id: Optional[int] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_times(cls, value):
        return check_time(value)

    @model_validator(mode="after")
    def _check_dates(self):
        if self.new_end_date and self.new_end_date < self.new_start_date:
            raise ValueError("new_end_date must not be before new_start_date")
        return self


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class EditStatusResponse(BaseModel):
    can_edit: bool
    reason: Optional[str] = None
    invoice_status: Optional[str] = None
    invoice_number: Optional[str] = None


# ── Read ─────────────────────────────────────────────────────────────────


class RoomRef(BaseModel):
    id: int
    name: str
    number: Optional[str] = None

    model_config = {"from_attributes": True}


class ClientRef(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    model_config = {"from_attributes": True}


class WorkspaceRef(BaseModel):
    id: int
    name: str
    room_id: int

    model_config = {"from_attributes": True}


class ApplicationWorkspaceRead(BaseModel):
    workspace_id: int
    workspace: Optional[WorkspaceRef] = None

    model_config = {"from_attributes": True}


class RentalSlotRead(BaseModel):
    id: int
    room_id: int
    date: str
    start_time: str
    end_time: str
    total_price: float
    status: str

    model_config = {"from_attributes": True}


class RentalApplicationRead(BaseModel):
    id: int
    application_number: str
    rental_type: str
    status: str

    client_id: int
    room_id: Optional[int] = None
    period_type: str
    start_date: str
    end_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    selected_dates: list[str] = []

    base_price: float
    adjusted_price: Optional[float] = None
    adjustment_reason: Optional[str] = None
    effective_price: float
    price_unit: str
    quantity: int
    total_price: float
    payment_type: str

    notes: Optional[str] = None
    event_type: Optional[str] = None
    manager_id: Optional[int] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    confirmed_at: Optional[str] = None

    room: Optional[RoomRef] = None
    client: Optional[ClientRef] = None
    workspaces: list[ApplicationWorkspaceRead] = []
    rentals: list[RentalSlotRead] = []
    invoices: list[InvoiceSummary] = []

    model_config = {"from_attributes": True}


# ── Batch ────────────────────────────────────────────────────────────────


class BatchRequest(BaseModel):
    application_ids: list[int] = Field(..., min_length=1)


class BatchResultItem(BaseModel):
    application_id: int
    ok: bool
    invoice_number: Optional[str] = None
    detail: Optional[str] = None


class BatchResponse(BaseModel):
    succeeded: int
    failed: int
    results: list[BatchResultItem]
