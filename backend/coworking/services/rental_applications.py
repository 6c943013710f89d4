# backend/coworking/services/rental_applications.py
"""
Rental application lifecycle.

    DRAFT → PENDING → CONFIRMED → ACTIVE → COMPLETED
    any non-terminal state → CANCELLED

Every mutating operation runs in one atomic() block. Slots (rows of the
rentals table) are the calendar locks the conflict checker compares; they
are created with the application and replaced wholesale whenever a
schedule field changes.

After a commit the occupancy cache of touched room/dates is invalidated
and a lifecycle event is pushed for the notifier.
"""

import logging
from datetime import datetime
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..database import atomic
from ..errors import ConflictError, InvariantViolation, NotFoundError, ValidationFailure
from ..models.enums import (
    PAID_INVOICE_STATUSES,
    ApplicationStatus,
    CalendarStatus,
    InvoiceStatus,
    PriceUnit,
    RentalPeriodType,
    RentalType,
)
from ..models.generated import (
    Clients as DBClient,
    RentalApplicationDays as DBApplicationDay,
    RentalApplications as DBApplication,
    RentalApplicationWorkspaces as DBApplicationWorkspace,
    Rentals as DBRental,
)
from ..schemas.rental_applications import (
    ExtendRequest,
    RentalApplicationCreate,
    RentalApplicationUpdate,
)
from . import events
from .clients import ClientDirectory
from .conflicts import ConflictChecker, check_availability, invalidate_slots
from .conflicts.overlap import times_overlap
from .invoicing import InvoicingService, rental_line_item, rental_type_label
from .periods import Period
from .pricing import calculate_price, load_room, load_workspaces, money
from .rental_config import get_rental_config

logger = logging.getLogger(__name__)

NUMBER_RETRIES = 3

# Fields whose change replaces the application's slots
SCHEDULE_FIELDS = {
    "start_date",
    "end_date",
    "start_time",
    "end_time",
    "room_id",
    "period_type",
    "selected_days",
    "workspace_ids",
    "hourly_slots",
}
PRICE_FIELDS = {"base_price", "adjusted_price", "quantity"}

CONFIRMABLE_STATUSES = (ApplicationStatus.DRAFT.value, ApplicationStatus.PENDING.value)
SLOT_REMOVABLE_STATUSES = (ApplicationStatus.DRAFT.value, ApplicationStatus.CONFIRMED.value)


def _now() -> str:
    return datetime.now().isoformat(timespec="seconds")


def _slot_keys(application: DBApplication) -> list[tuple[int, str]]:
    return [(slot.room_id, slot.date) for slot in application.rentals]


def _check_slots_disjoint(hourly_slots: list[dict]) -> None:
    """Requested hourly slots must not overlap each other."""
    by_date: dict[str, list[dict]] = {}
    for slot in hourly_slots:
        for other in by_date.get(slot["date"], []):
            if times_overlap(slot["start_time"], slot["end_time"], other["start_time"], other["end_time"]):
                raise ValidationFailure(
                    f"Hourly slots overlap on {slot['date']}: "
                    f"{other['start_time']}-{other['end_time']} and {slot['start_time']}-{slot['end_time']}"
                )
        by_date.setdefault(slot["date"], []).append(slot)


def _slots_date_range(hourly_slots: list[dict]) -> tuple[str, Optional[str]]:
    dates = sorted(slot["date"] for slot in hourly_slots)
    return dates[0], (dates[-1] if dates[-1] != dates[0] else None)


class RentalApplicationService:
    """Lifecycle operations over rental applications."""

    def __init__(
        self,
        db: Session,
        checker: Optional[ConflictChecker] = None,
        invoicing: Optional[InvoicingService] = None,
        clients: Optional[ClientDirectory] = None,
    ):
        self.db = db
        self.checker = checker or ConflictChecker()
        self.invoicing = invoicing or InvoicingService(db)
        self.clients = clients or ClientDirectory(db)

    # ── Reads ────────────────────────────────────────────────────────────

    def get(self, application_id: int) -> DBApplication:
        application = self.db.get(DBApplication, application_id)
        if not application:
            raise NotFoundError(f"Rental application {application_id} not found")
        return application

    def list_applications(
        self,
        status: Optional[str] = None,
        rental_type: Optional[str] = None,
        client_id: Optional[int] = None,
        room_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[DBApplication]:
        """
        Filtered list, newest first.

        A date range matches applications whose start or end date lies
        inside it. Search is case-insensitive over the application number
        and the client's first/last name.
        """
        q = self.db.query(DBApplication)

        if status:
            q = q.filter(DBApplication.status == status)
        if rental_type:
            q = q.filter(DBApplication.rental_type == rental_type)
        if client_id is not None:
            q = q.filter(DBApplication.client_id == client_id)
        if room_id is not None:
            q = q.filter(DBApplication.room_id == room_id)

        if start_date and end_date:
            q = q.filter(or_(
                DBApplication.start_date.between(start_date, end_date),
                DBApplication.end_date.between(start_date, end_date),
            ))
        elif start_date:
            q = q.filter(or_(
                DBApplication.start_date >= start_date,
                DBApplication.end_date >= start_date,
            ))
        elif end_date:
            q = q.filter(DBApplication.start_date <= end_date)

        if search:
            pattern = f"%{search.strip().lower()}%"
            q = q.join(DBClient, DBClient.id == DBApplication.client_id).filter(or_(
                func.lower(DBApplication.application_number).like(pattern),
                func.lower(DBClient.first_name).like(pattern),
                func.lower(DBClient.last_name).like(pattern),
            ))

        return q.order_by(DBApplication.created_at.desc(), DBApplication.id.desc()).all()

    def edit_status(self, application_id: int) -> dict:
        """Whether the application can still be edited, and why not."""
        application = self.get(application_id)

        if application.status == ApplicationStatus.CANCELLED.value:
            return {"can_edit": False, "reason": "Application is cancelled"}
        if application.status == ApplicationStatus.COMPLETED.value:
            return {"can_edit": False, "reason": "Application is completed"}
        if application.status == ApplicationStatus.DRAFT.value:
            return {"can_edit": True}

        invoice = self.invoicing.latest_active(application.id)
        if invoice is None:
            return {"can_edit": True}

        result = {
            "can_edit": True,
            "invoice_status": invoice.status,
            "invoice_number": invoice.invoice_number,
        }
        if invoice.status in PAID_INVOICE_STATUSES:
            state = "paid" if invoice.status == InvoiceStatus.PAID.value else "partially paid"
            result["can_edit"] = False
            result["reason"] = f"Cannot edit: invoice {invoice.invoice_number} is {state}"
        return result

    # ── Helpers ──────────────────────────────────────────────────────────

    def _next_application_number(self) -> str:
        width = settings.application_number_width
        last = self.db.query(func.max(DBApplication.application_number)).scalar()
        try:
            current = int(last) if last else 0
        except ValueError:
            current = self.db.query(DBApplication).count()
        return str(current + 1).zfill(width)

    def _uses_hourly_slots(self, application: DBApplication) -> bool:
        """True when the slots differ from the plain expansion of the period."""
        if application.rental_type != RentalType.HOURLY.value or len(application.rentals) < 2:
            return False
        period = Period.build(
            application.period_type,
            application.start_date,
            application.end_date,
            application.selected_dates,
        )
        expected = sorted((day, application.start_time, application.end_time) for day in period.dates())
        actual = sorted((s.date, s.start_time, s.end_time) for s in application.rentals)
        return actual != expected

    def _slot_room_id(self, room_id: Optional[int], workspaces: list) -> Optional[int]:
        if room_id is not None:
            return room_id
        if workspaces:
            return workspaces[0].room_id
        return None

    def _hourly_slot_conflicts(
        self,
        room_id: int,
        hourly_slots: list[dict],
        exclude_booking_id: Optional[int] = None,
    ) -> list[dict]:
        conflicts: list[dict] = []
        for slot in hourly_slots:
            try:
                self.checker.check_conflicts(
                    self.db, slot["date"], slot["start_time"], slot["end_time"], [room_id],
                    exclude_booking_id=exclude_booking_id,
                )
            except ConflictError as e:
                conflicts.extend(e.conflicts)
        return conflicts

    def _ensure_available(
        self,
        rental_type: RentalType,
        period: Period,
        room_id: Optional[int],
        workspace_ids: list[int],
        start_time: Optional[str],
        end_time: Optional[str],
        hourly_slots: Optional[list[dict]] = None,
        exclude_booking_id: Optional[int] = None,
        message: str = "Booking conflicts detected",
    ) -> None:
        if rental_type == RentalType.HOURLY and hourly_slots and room_id is not None:
            conflicts = self._hourly_slot_conflicts(room_id, hourly_slots, exclude_booking_id)
        else:
            result = check_availability(
                self.db,
                rental_type,
                period,
                room_id=room_id,
                workspace_ids=workspace_ids,
                start_time=start_time,
                end_time=end_time,
                exclude_booking_id=exclude_booking_id,
                checker=self.checker,
            )
            conflicts = result["conflicts"]

        if conflicts:
            logger.warning(f"{message}: {len(conflicts)} conflict(s)")
            raise ConflictError(message, conflicts)

    def _materialize_slots(
        self,
        application: DBApplication,
        room_id: Optional[int],
        hourly_slots: Optional[list[dict]] = None,
    ) -> list[DBRental]:
        """Create the calendar slots of an application, each with a client contact snapshot."""
        if room_id is None:
            return []

        config = get_rental_config()
        client = self.clients.get_client(application.client_id)
        common = dict(
            room_id=room_id,
            client_id=client["id"],
            client_name=client["name"],
            client_phone=client["phone"],
            client_email=client["email"],
            event_type=application.event_type or rental_type_label(application.rental_type),
            manager_id=application.manager_id,
            notes=application.notes,
            status=CalendarStatus.PLANNED.value,
            rental_type=application.rental_type,
        )

        if hourly_slots:
            unit_price = money(application.effective_price)
            slots = [
                DBRental(
                    date=slot["date"],
                    start_time=slot["start_time"],
                    end_time=slot["end_time"],
                    total_price=unit_price,
                    **common,
                )
                for slot in hourly_slots
            ]
        else:
            period = Period.build(
                application.period_type,
                application.start_date,
                application.end_date,
                application.selected_dates,
            )
            dates = period.dates()
            share = money(application.total_price / len(dates)) if dates else 0
            slots = [
                DBRental(
                    date=day,
                    start_time=application.start_time or config.day_start,
                    end_time=application.end_time or config.day_end,
                    total_price=share,
                    **common,
                )
                for day in dates
            ]

        for slot in slots:
            application.rentals.append(slot)
        self.db.flush()
        return slots

    # ── Create ───────────────────────────────────────────────────────────

    def create(self, data: RentalApplicationCreate) -> DBApplication:
        """
        Validate, check conflicts, price and persist an application with its slots.

        The application number is taken inside the transaction; a collision
        on the unique number retries the whole transaction.
        """
        for attempt in range(1, NUMBER_RETRIES + 1):
            try:
                with atomic(self.db, settings.create_transaction_timeout):
                    application = self._create(data)
                break
            except IntegrityError as e:
                if attempt == NUMBER_RETRIES or "application_number" not in str(e.orig):
                    raise
                logger.warning(f"Application number collision, retrying ({attempt}/{NUMBER_RETRIES})")

        logger.info(
            f"Rental application {application.application_number} created "
            f"({application.rental_type}, {len(application.rentals)} slot(s))"
        )
        invalidate_slots(_slot_keys(application))
        events.emit_application_event(events.APPLICATION_CREATED, application)
        return application

    def _create(self, data: RentalApplicationCreate) -> DBApplication:
        client = self.clients.load(data.client_id)
        room = load_room(self.db, data.room_id)
        workspaces = load_workspaces(self.db, data.workspace_ids)
        workspace_ids = [w.id for w in workspaces]
        rental_type = RentalType(data.rental_type)

        hourly_slots = [s.as_dict() for s in data.hourly_slots or []]
        if rental_type != RentalType.HOURLY:
            hourly_slots = []
        if hourly_slots:
            _check_slots_disjoint(hourly_slots)

        period = Period.build(
            data.period_type, data.start_date, data.end_date, data.selected_day_strs
        )
        slot_room_id = self._slot_room_id(data.room_id, workspaces)

        if not data.ignore_conflicts:
            self._ensure_available(
                rental_type,
                period,
                data.room_id,
                workspace_ids,
                data.start_time,
                data.end_time,
                hourly_slots=hourly_slots,
            )

        # Pricing
        if hourly_slots:
            calc = None
            quantity = len(hourly_slots)
            base_price = data.base_price if data.base_price is not None else money(room.hourly_rate)
            start_date, end_date = _slots_date_range(hourly_slots)
            start_time, end_time = hourly_slots[0]["start_time"], hourly_slots[0]["end_time"]
        else:
            calc = calculate_price(
                rental_type,
                period,
                room=room,
                workspaces=workspaces,
                start_time=data.start_time,
                end_time=data.end_time,
            )
            quantity = data.quantity or calc.quantity
            base_price = data.base_price if data.base_price is not None else calc.base_price
            start_date, end_date = period.start_date, period.end_date
            start_time, end_time = data.start_time, data.end_time

        unit_price = data.adjusted_price if data.adjusted_price is not None else base_price
        price_unit = data.price_unit or (calc.price_unit if calc else PriceUnit.HOUR)

        now = _now()
        application = DBApplication(
            application_number=self._next_application_number(),
            rental_type=rental_type.value,
            client_id=client.id,
            room_id=data.room_id,
            period_type=RentalPeriodType(data.period_type).value,
            start_date=start_date,
            end_date=end_date,
            start_time=start_time,
            end_time=end_time,
            base_price=money(base_price),
            adjusted_price=data.adjusted_price,
            adjustment_reason=data.adjustment_reason,
            price_unit=getattr(price_unit, "value", price_unit),
            quantity=quantity,
            total_price=money(unit_price * quantity),
            payment_type=data.payment_type.value,
            status=ApplicationStatus.DRAFT.value,
            manager_id=data.manager_id,
            notes=data.notes,
            event_type=data.event_type,
            created_at=now,
            updated_at=now,
        )
        application.workspaces = [DBApplicationWorkspace(workspace_id=wid) for wid in workspace_ids]
        application.selected_days = [DBApplicationDay(date=d) for d in period.selected_days]
        self.db.add(application)
        self.db.flush()

        self._materialize_slots(application, slot_room_id, hourly_slots)
        return application

    # ── Update ───────────────────────────────────────────────────────────

    def update(self, application_id: int, data: RentalApplicationUpdate) -> DBApplication:
        """
        Edit an application.

        Terminal applications and applications whose latest invoice is
        (partially) paid reject. Schedule edits replace all slots; an
        unpaid linked invoice is re-billed after the commit.
        """
        application = self.get(application_id)
        if ApplicationStatus(application.status).is_terminal:
            logger.warning(f"Rejected edit of {application.status} application {application.application_number}")
            raise InvariantViolation("Cannot edit a cancelled or completed application")

        linked_invoice = None
        if application.status != ApplicationStatus.DRAFT.value:
            invoice = self.invoicing.latest_active(application.id)
            if invoice is not None and invoice.status in PAID_INVOICE_STATUSES:
                raise InvariantViolation(
                    self.edit_status(application.id).get("reason")
                    or f"Cannot edit: invoice {invoice.invoice_number} is paid"
                )
            linked_invoice = invoice

        fields = data.model_dump(exclude_unset=True)
        if (
            fields.keys() & SCHEDULE_FIELDS
            and not data.hourly_slots
            and self._uses_hourly_slots(application)
        ):
            raise ValidationFailure(
                f"Application {application.application_number} is booked as separate hourly slots: "
                "resend hourly_slots to reschedule it"
            )
        old_keys = _slot_keys(application)

        with atomic(self.db, settings.bulk_transaction_timeout):
            self._apply_update(application, data, fields)

        if linked_invoice is not None and fields.keys() & (PRICE_FIELDS | SCHEDULE_FIELDS):
            with atomic(self.db):
                self.invoicing.update_invoice_line_item(linked_invoice.id, rental_line_item(application))

        logger.info(f"Rental application {application.application_number} updated: {sorted(fields)}")
        invalidate_slots(old_keys + _slot_keys(application))
        events.emit_application_event(events.APPLICATION_UPDATED, application, fields=sorted(fields))
        return application

    def _apply_update(
        self,
        application: DBApplication,
        data: RentalApplicationUpdate,
        fields: dict,
    ) -> None:
        if "client_id" in fields:
            self.clients.load(data.client_id)
        if "room_id" in fields:
            load_room(self.db, data.room_id)
        workspaces = None
        if "workspace_ids" in fields:
            workspaces = load_workspaces(self.db, data.workspace_ids)

        scalar = {
            "rental_type", "room_id", "client_id", "period_type", "start_time", "end_time",
            "base_price", "adjusted_price", "adjustment_reason", "price_unit", "quantity",
            "payment_type", "notes", "event_type", "status", "manager_id",
        }
        for name in scalar & fields.keys():
            value = getattr(data, name)
            setattr(application, name, getattr(value, "value", value))
        if "start_date" in fields and data.start_date is not None:
            application.start_date = data.start_date.isoformat()
        if "end_date" in fields:
            application.end_date = data.end_date.isoformat() if data.end_date else None

        if application.adjusted_price is not None and not (application.adjustment_reason or "").strip():
            raise ValidationFailure("adjustment_reason is required when adjusted_price is set")
        if application.end_date and application.end_date < application.start_date:
            raise ValidationFailure("End date is before start date")

        if fields.keys() & PRICE_FIELDS:
            application.total_price = money(application.effective_price * application.quantity)

        if workspaces is not None:
            application.workspaces = [DBApplicationWorkspace(workspace_id=w.id) for w in workspaces]
        if "selected_days" in fields:
            days = sorted({d.isoformat() for d in data.selected_days or []})
            application.selected_days = [DBApplicationDay(date=d) for d in days]

        application.updated_at = _now()
        self.db.flush()

        if fields.keys() & SCHEDULE_FIELDS:
            self._replace_slots(application, data)

    def _replace_slots(self, application: DBApplication, data: RentalApplicationUpdate) -> None:
        for slot in list(application.rentals):
            self.db.delete(slot)
        self.db.flush()
        self.db.expire(application, ["rentals"])

        hourly_slots = [s.as_dict() for s in data.hourly_slots or []]
        if application.rental_type != RentalType.HOURLY.value:
            hourly_slots = []
        if hourly_slots:
            _check_slots_disjoint(hourly_slots)
            application.quantity = len(hourly_slots)
            application.total_price = money(application.effective_price * application.quantity)
            application.start_date, application.end_date = _slots_date_range(hourly_slots)
            application.start_time = hourly_slots[0]["start_time"]
            application.end_time = hourly_slots[0]["end_time"]

        workspaces = load_workspaces(self.db, application.workspace_ids)
        room_id = self._slot_room_id(application.room_id, workspaces)

        if not data.ignore_conflicts:
            period = Period.build(
                application.period_type,
                application.start_date,
                application.end_date,
                application.selected_dates,
            )
            self._ensure_available(
                RentalType(application.rental_type),
                period,
                application.room_id,
                [w.id for w in workspaces],
                application.start_time,
                application.end_time,
                hourly_slots=hourly_slots,
                exclude_booking_id=application.id,
            )

        self._materialize_slots(application, room_id, hourly_slots)

    # ── Confirm ──────────────────────────────────────────────────────────

    def confirm(self, application_id: int, manager_id: Optional[int] = None) -> DBApplication:
        """Re-check availability, issue the invoice and mark CONFIRMED."""
        application = self.get(application_id)
        if application.status not in CONFIRMABLE_STATUSES:
            logger.warning(
                f"Rejected confirm of {application.status} application {application.application_number}"
            )
            raise InvariantViolation("Only draft or pending applications can be confirmed")

        with atomic(self.db):
            conflicts = self._own_slot_conflicts(application)
            if conflicts:
                raise ConflictError("Conflicts detected on confirmation", conflicts)

            room = application.room
            if room is None and application.workspaces:
                room = application.workspaces[0].workspace.room

            handle = self.invoicing.create_invoice(
                application.client_id,
                [rental_line_item(application, room)],
                related_booking_id=application.id,
                notes=application.notes,
                created_by=manager_id or application.manager_id,
            )
            application.status = ApplicationStatus.CONFIRMED.value
            application.confirmed_at = _now()
            application.updated_at = application.confirmed_at

        logger.info(
            f"Rental application {application.application_number} confirmed, "
            f"invoice {handle.invoice_number}"
        )
        events.emit_application_event(
            events.APPLICATION_CONFIRMED, application, invoice_number=handle.invoice_number
        )
        return application

    def _own_slot_conflicts(self, application: DBApplication) -> list[dict]:
        """Conflicts of the application against everything but itself."""
        rental_type = RentalType(application.rental_type)
        if rental_type.is_workspace:
            period = Period.build(
                application.period_type,
                application.start_date,
                application.end_date,
                application.selected_dates,
            )
            return check_availability(
                self.db,
                rental_type,
                period,
                room_id=application.room_id,
                workspace_ids=application.workspace_ids,
                exclude_booking_id=application.id,
                checker=self.checker,
            )["conflicts"]

        live = [s for s in application.rentals if s.status != CalendarStatus.CANCELLED.value]
        if not live:
            return []
        return self._hourly_slot_conflicts(
            live[0].room_id,
            [{"date": s.date, "start_time": s.start_time, "end_time": s.end_time} for s in live],
            exclude_booking_id=application.id,
        )

    # ── Extend ───────────────────────────────────────────────────────────

    def extend(self, application_id: int, data: ExtendRequest) -> DBApplication:
        """New application continuing an existing one with new dates."""
        original = self.get(application_id)
        number = original.application_number

        if original.period_type == RentalPeriodType.SPECIFIC_DAYS.value and not data.selected_days:
            raise ValidationFailure(
                f"Application {number} is booked by specific days: selected_days is required to extend it"
            )

        try:
            payload = RentalApplicationCreate(
                rental_type=original.rental_type,
                room_id=original.room_id,
                workspace_ids=original.workspace_ids or None,
                client_id=original.client_id,
                period_type=original.period_type,
                start_date=data.new_start_date,
                end_date=data.new_end_date,
                selected_days=data.selected_days,
                start_time=data.start_time or original.start_time,
                end_time=data.end_time or original.end_time,
                base_price=original.effective_price,
                adjusted_price=data.adjusted_price,
                adjustment_reason=data.adjustment_reason or f"Extension of application {number}",
                price_unit=original.price_unit,
                payment_type=original.payment_type,
                event_type=original.event_type,
                manager_id=data.manager_id or original.manager_id,
                notes=f"Extension of application {number}. {original.notes or ''}".strip(),
            )
        except ValidationError as e:
            errors = "; ".join(err["msg"] for err in e.errors())
            raise ValidationFailure(f"Cannot extend application {number}: {errors}") from e

        extension = self.create(payload)
        events.emit_application_event(
            events.APPLICATION_EXTENDED, extension, extended_application_number=number
        )
        return extension

    # ── Cancel ───────────────────────────────────────────────────────────

    def cancel(self, application_id: int, reason: Optional[str] = None) -> DBApplication:
        """Cancel slots and unpaid invoices; the application is kept."""
        application = self.get(application_id)
        if application.status == ApplicationStatus.CANCELLED.value:
            raise InvariantViolation("Application is already cancelled")
        if application.status == ApplicationStatus.COMPLETED.value:
            raise InvariantViolation("A completed application cannot be cancelled")

        with atomic(self.db):
            for slot in application.rentals:
                slot.status = CalendarStatus.CANCELLED.value
            self.invoicing.cancel_unpaid(application.id)
            if reason:
                application.notes = f"{application.notes or ''}\n\nCancellation reason: {reason}".strip()
            application.status = ApplicationStatus.CANCELLED.value
            application.updated_at = _now()

        logger.info(f"Rental application {application.application_number} cancelled")
        invalidate_slots(_slot_keys(application))
        events.emit_application_event(events.APPLICATION_CANCELLED, application, reason=reason)
        return application

    # ── Delete ───────────────────────────────────────────────────────────

    def delete(self, application_id: int) -> dict:
        """Delete an application with its slots; paid invoices block."""
        application = self.get(application_id)

        with atomic(self.db):
            paid = self.invoicing.paid_for(application.id)
            if paid:
                numbers = ", ".join(i.invoice_number for i in paid)
                logger.warning(f"Rejected delete of {application.application_number}: paid invoices {numbers}")
                raise InvariantViolation(
                    f"Cannot delete application: it has paid invoices ({numbers}). Refund them first."
                )

            self.invoicing.cancel_unpaid(application.id)
            payload = events.application_payload(application)
            keys = _slot_keys(application)

            for slot in list(application.rentals):
                self.db.delete(slot)
            self.db.flush()
            self.db.expire(application, ["rentals"])
            self.db.delete(application)

        logger.info(f"Rental application {payload['application_number']} deleted")
        invalidate_slots(keys)
        events.emit_event(events.APPLICATION_DELETED, payload)
        return {"id": application_id, "application_number": payload["application_number"]}

    # ── Remove slot ──────────────────────────────────────────────────────

    def remove_slot(self, application_id: int, slot_id: int) -> DBApplication:
        """Drop one slot; quantity and total shrink by one unit."""
        application = self.get(application_id)
        if application.status not in SLOT_REMOVABLE_STATUSES:
            raise InvariantViolation(
                f'Cannot remove a slot: application is "{application.status}". '
                "Slots can be removed only from draft or confirmed applications."
            )

        slot = (
            self.db.query(DBRental)
            .filter(DBRental.id == slot_id, DBRental.rental_application_id == application.id)
            .first()
        )
        if not slot:
            raise NotFoundError("Slot not found or does not belong to this application")

        slot_count = len(application.rentals)
        if slot_count <= 1:
            raise InvariantViolation("Cannot remove the last slot. Delete the whole application instead.")

        key = (slot.room_id, slot.date)
        with atomic(self.db):
            application.rentals.remove(slot)
            self.db.delete(slot)
            application.quantity = slot_count - 1
            application.total_price = money(application.effective_price * application.quantity)
            application.updated_at = _now()

        logger.info(
            f"Slot {slot_id} removed from application {application.application_number}, "
            f"quantity {application.quantity}"
        )
        invalidate_slots([key])
        return application

    # ── Batch invoicing ──────────────────────────────────────────────────

    def batch_create_invoices(self, application_ids: list[int], manager_id: Optional[int] = None) -> list[dict]:
        """
        Issue an invoice for each application.

        Terminal applications and applications that already have a
        non-cancelled invoice are skipped. One failure does not stop the batch.
        """
        results = []
        for application_id in application_ids:
            try:
                application = self.get(application_id)
                if ApplicationStatus(application.status).is_terminal:
                    raise InvariantViolation(f"Application is {application.status.lower()}")
                existing = self.invoicing.latest_active(application.id)
                if existing is not None:
                    raise InvariantViolation(f"Already invoiced: {existing.invoice_number}")

                with atomic(self.db, settings.bulk_transaction_timeout):
                    handle = self.invoicing.create_invoice(
                        application.client_id,
                        [rental_line_item(application)],
                        related_booking_id=application.id,
                        notes=application.notes,
                        created_by=manager_id,
                    )
                results.append({
                    "application_id": application_id,
                    "ok": True,
                    "invoice_number": handle.invoice_number,
                })
            except (NotFoundError, InvariantViolation) as e:
                results.append({"application_id": application_id, "ok": False, "detail": e.message})

        logger.info(
            f"Batch invoicing: {sum(r['ok'] for r in results)}/{len(results)} invoices created"
        )
        return results

    def batch_mark_paid(self, application_ids: list[int]) -> list[dict]:
        """Mark the latest invoice of each application paid."""
        results = []
        for application_id in application_ids:
            try:
                application = self.get(application_id)
                invoice = self.invoicing.latest_active(application.id)
                if invoice is None:
                    raise NotFoundError("Application has no active invoice")

                with atomic(self.db, settings.bulk_transaction_timeout):
                    handle = self.invoicing.mark_paid(invoice.id)
                results.append({
                    "application_id": application_id,
                    "ok": True,
                    "invoice_number": handle.invoice_number,
                })
            except (NotFoundError, InvariantViolation) as e:
                results.append({"application_id": application_id, "ok": False, "detail": e.message})

        logger.info(f"Batch mark paid: {sum(r['ok'] for r in results)}/{len(results)} invoices")
        return results
