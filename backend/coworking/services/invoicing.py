# backend/coworking/services/invoicing.py
"""
Database-backed invoicing collaborator.

The booking lifecycle talks to invoices only through InvoicingService.
Methods flush but never commit: they run inside the caller's atomic()
block so an invoice lands together with the status change that needs it.

Invoice number format: INV-YYYYMMDD-XXXX (per-day sequence).
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import InvariantViolation, NotFoundError
from ..models.enums import PAID_INVOICE_STATUSES, RENTAL_TYPE_LABELS, InvoiceStatus, RentalType
from ..models.generated import InvoiceItems as DBInvoiceItem, Invoices as DBInvoice

logger = logging.getLogger(__name__)

SERVICE_TYPE_RENTAL = "RENTAL"

UNPAID_INVOICE_STATUSES = (
    InvoiceStatus.DRAFT.value,
    InvoiceStatus.PENDING.value,
    InvoiceStatus.OVERDUE.value,
)


@dataclass(frozen=True)
class InvoiceHandle:
    id: int
    invoice_number: str
    status: str
    total_amount: float


def _handle(invoice: DBInvoice) -> InvoiceHandle:
    return InvoiceHandle(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        status=invoice.status,
        total_amount=invoice.total_amount,
    )


def _now() -> str:
    return datetime.now().isoformat(timespec="seconds")


# ── Line item naming ─────────────────────────────────────────────────────


def rental_type_label(rental_type: str) -> str:
    try:
        return RENTAL_TYPE_LABELS[RentalType(rental_type)]
    except ValueError:
        return rental_type


def item_name(application, room=None) -> str:
    """Line item name: type label followed by workspace names or the room name."""
    label = rental_type_label(application.rental_type)
    workspace_names = [
        link.workspace.name for link in application.workspaces if link.workspace is not None
    ]
    if workspace_names:
        return f"{label}: {', '.join(workspace_names)}"

    room = room or application.room
    room_name = ""
    if room is not None:
        room_name = f"{room.name} №{room.number}" if room.number else room.name
    return f"{label}: {room_name}"


def item_description(application) -> str:
    period = application.start_date
    if application.end_date and application.end_date != application.start_date:
        period = f"{application.start_date} - {application.end_date}"
    if application.start_time and application.end_time:
        period += f" ({application.start_time}-{application.end_time})"
    return f"Application {application.application_number}. Period: {period}"


def rental_line_item(application, room=None) -> dict:
    """The single RENTAL line item billed for an application."""
    unit_price = float(application.effective_price or 0)
    return {
        "service_type": SERVICE_TYPE_RENTAL,
        "service_name": item_name(application, room),
        "service_description": item_description(application),
        "room_id": application.room_id or (room.id if room is not None else None),
        "quantity": application.quantity,
        "base_price": unit_price,
        "unit_price": unit_price,
        "is_price_adjusted": application.adjusted_price is not None,
        "adjustment_reason": application.adjustment_reason,
    }


def _line_total(line_item: dict) -> float:
    gross = float(line_item["unit_price"]) * float(line_item["quantity"])
    discount = gross * float(line_item.get("discount_percent") or 0) / 100
    net = gross - discount
    vat = net * float(line_item.get("vat_rate") or 0) / 100
    return round(net + vat, 2)


def _build_item(line_item: dict) -> DBInvoiceItem:
    gross = float(line_item["unit_price"]) * float(line_item["quantity"])
    discount_percent = float(line_item.get("discount_percent") or 0)
    vat_rate = float(line_item.get("vat_rate") or 0)
    discount_amount = round(gross * discount_percent / 100, 2)
    vat_amount = round((gross - discount_amount) * vat_rate / 100, 2)
    return DBInvoiceItem(
        service_type=line_item.get("service_type", SERVICE_TYPE_RENTAL),
        service_name=line_item["service_name"],
        service_description=line_item.get("service_description"),
        room_id=line_item.get("room_id"),
        quantity=line_item["quantity"],
        base_price=line_item.get("base_price", line_item["unit_price"]),
        unit_price=line_item["unit_price"],
        total_price=_line_total(line_item),
        vat_rate=vat_rate,
        vat_amount=vat_amount,
        discount_percent=discount_percent,
        discount_amount=discount_amount,
        is_price_adjusted=1 if line_item.get("is_price_adjusted") else 0,
        adjustment_reason=line_item.get("adjustment_reason"),
    )


# ── Service ──────────────────────────────────────────────────────────────


class InvoicingService:
    """Invoices stored next to the bookings they bill."""

    PREFIX = "INV"

    def __init__(self, db: Session):
        self.db = db

    def _next_number(self) -> str:
        day_prefix = f"{self.PREFIX}-{datetime.now():%Y%m%d}-"
        count = (
            self.db.query(DBInvoice)
            .filter(DBInvoice.invoice_number.like(f"{day_prefix}%"))
            .count()
        )
        return f"{day_prefix}{count + 1:04d}"

    def _get(self, invoice_id: int) -> DBInvoice:
        invoice = self.db.get(DBInvoice, invoice_id)
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def create_invoice(
        self,
        client_id: int,
        line_items: list[dict],
        related_booking_id: Optional[int] = None,
        notes: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> InvoiceHandle:
        items = [_build_item(li) for li in line_items]
        total = round(sum(item.total_price for item in items), 2)

        invoice = DBInvoice(
            invoice_number=self._next_number(),
            client_id=client_id,
            status=InvoiceStatus.PENDING.value,
            subtotal=total,
            total_amount=total,
            rental_application_id=related_booking_id,
            notes=notes,
            created_by=created_by,
            created_at=_now(),
            items=items,
        )
        self.db.add(invoice)
        self.db.flush()

        logger.info(
            f"Invoice {invoice.invoice_number} created for application {related_booking_id}: {total}"
        )
        return _handle(invoice)

    def update_invoice_line_item(self, invoice_id: int, line_item: dict) -> InvoiceHandle:
        """Replace every item of an unpaid invoice with one line item and recompute totals."""
        invoice = self._get(invoice_id)
        if invoice.status in PAID_INVOICE_STATUSES:
            raise InvariantViolation(f"Invoice {invoice.invoice_number} is already paid")

        invoice.items.clear()
        item = _build_item(line_item)
        invoice.items.append(item)
        invoice.subtotal = item.total_price
        invoice.total_amount = item.total_price
        self.db.flush()
        return _handle(invoice)

    def mark_paid(self, invoice_id: int) -> InvoiceHandle:
        invoice = self._get(invoice_id)
        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise InvariantViolation(f"Invoice {invoice.invoice_number} is cancelled")
        if invoice.status != InvoiceStatus.PAID.value:
            invoice.status = InvoiceStatus.PAID.value
            invoice.paid_at = _now()
            self.db.flush()
        return _handle(invoice)

    def cancel_unpaid(
        self,
        booking_id: int,
        statuses: tuple[str, ...] = UNPAID_INVOICE_STATUSES,
    ) -> list[InvoiceHandle]:
        """Cancel the application's invoices in the given statuses."""
        invoices = (
            self.db.query(DBInvoice)
            .filter(
                DBInvoice.rental_application_id == booking_id,
                DBInvoice.status.in_(statuses),
            )
            .all()
        )
        for invoice in invoices:
            invoice.status = InvoiceStatus.CANCELLED.value
        self.db.flush()
        return [_handle(i) for i in invoices]

    # ── Queries ──────────────────────────────────────────────────────────

    def latest_active(self, booking_id: int) -> Optional[DBInvoice]:
        """Most recent non-cancelled invoice of an application."""
        return (
            self.db.query(DBInvoice)
            .filter(
                DBInvoice.rental_application_id == booking_id,
                DBInvoice.status != InvoiceStatus.CANCELLED.value,
            )
            .order_by(DBInvoice.created_at.desc(), DBInvoice.id.desc())
            .first()
        )

    def paid_for(self, booking_id: int) -> list[DBInvoice]:
        return (
            self.db.query(DBInvoice)
            .filter(
                DBInvoice.rental_application_id == booking_id,
                DBInvoice.status.in_(PAID_INVOICE_STATUSES),
            )
            .order_by(DBInvoice.id)
            .all()
        )
