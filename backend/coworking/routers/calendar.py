# backend/coworking/routers/calendar.py
"""Manual holds and class sessions on room calendars."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.calendar import (
    ClassSessionCreate,
    ClassSessionRead,
    ClassSessionUpdate,
    ReservationCreate,
    ReservationRead,
    ReservationUpdate,
)
from ..services.calendar_entries import ClassSessionService, ReservationService

router = APIRouter(prefix="/calendar", tags=["calendar"])


# ── Manual holds ─────────────────────────────────────────────────────────


@router.post("/reservations", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
def create_reservation(data: ReservationCreate, db: Session = Depends(get_db)):
    return ReservationService(db).create(data)


@router.get("/reservations/{id}", response_model=ReservationRead)
def get_reservation(id: int, db: Session = Depends(get_db)):
    return ReservationService(db).get(id)


@router.patch("/reservations/{id}", response_model=ReservationRead)
def update_reservation(id: int, data: ReservationUpdate, db: Session = Depends(get_db)):
    return ReservationService(db).update(id, data)


@router.post("/reservations/{id}/cancel", response_model=ReservationRead)
def cancel_reservation(id: int, db: Session = Depends(get_db)):
    return ReservationService(db).cancel(id)


# ── Class sessions ───────────────────────────────────────────────────────


@router.post("/class-sessions", response_model=ClassSessionRead, status_code=status.HTTP_201_CREATED)
def create_class_session(data: ClassSessionCreate, db: Session = Depends(get_db)):
    return ClassSessionService(db).create(data)


@router.get("/class-sessions/{id}", response_model=ClassSessionRead)
def get_class_session(id: int, db: Session = Depends(get_db)):
    return ClassSessionService(db).get(id)


@router.patch("/class-sessions/{id}", response_model=ClassSessionRead)
def update_class_session(id: int, data: ClassSessionUpdate, db: Session = Depends(get_db)):
    return ClassSessionService(db).update(id, data)


@router.post("/class-sessions/{id}/cancel", response_model=ClassSessionRead)
def cancel_class_session(id: int, db: Session = Depends(get_db)):
    return ClassSessionService(db).cancel(id)
