# backend/coworking/schemas/invoices.py

from typing import Optional
from pydantic import BaseModel


class InvoiceSummary(BaseModel):
    id: int
    invoice_number: str
    status: str
    total_amount: float
    paid_at: Optional[str] = None

    model_config = {"from_attributes": True}


class InvoiceItemRead(BaseModel):
    id: int
    service_type: str
    service_name: str
    service_description: Optional[str] = None
    room_id: Optional[int] = None
    quantity: float
    unit_price: float
    total_price: float
    is_price_adjusted: int
    adjustment_reason: Optional[str] = None

    model_config = {"from_attributes": True}


class InvoiceRead(InvoiceSummary):
    client_id: int
    rental_application_id: Optional[int] = None
    subtotal: float
    notes: Optional[str] = None
    created_at: Optional[str] = None
    items: list[InvoiceItemRead] = []
