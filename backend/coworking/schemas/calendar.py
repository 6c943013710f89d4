# backend/coworking/schemas/calendar.py

import datetime as dt
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from .common import check_time, check_time_order


class CalendarEntryBase(BaseModel):
    room_id: int
    date: dt.date
    start_time: str
    end_time: str
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_times(cls, value):
        return check_time(value)

    @model_validator(mode="after")
    def _check_order(self):
        check_time_order(self.start_time, self.end_time)
        return self


class CalendarEntryUpdate(BaseModel):
    room_id: Optional[int] = None
    date: Optional[dt.date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_times(cls, value):
        return check_time(value)


# ── Manual holds ─────────────────────────────────────────────────────────


class ReservationCreate(CalendarEntryBase):
    reserved_by: Optional[str] = None


class ReservationUpdate(CalendarEntryUpdate):
    reserved_by: Optional[str] = None


class ReservationRead(BaseModel):
    id: int
    room_id: int
    date: str
    start_time: str
    end_time: str
    status: str
    reserved_by: Optional[str] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


# ── Class sessions ───────────────────────────────────────────────────────


class ClassSessionCreate(CalendarEntryBase):
    teacher_id: Optional[int] = None
    group_name: Optional[str] = None


class ClassSessionUpdate(CalendarEntryUpdate):
    teacher_id: Optional[int] = None
    group_name: Optional[str] = None


class ClassSessionRead(BaseModel):
    id: int
    room_id: int
    date: str
    start_time: str
    end_time: str
    status: str
    teacher_id: Optional[int] = None
    group_name: Optional[str] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}
