# gstdesk/api/v1/schemas/einvoice.py
"""Request schemas for e-Invoice (IRN) endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from gstdesk.domain.models.actions import RawTimestamp
from gstdesk.domain.models.tax import LineItem, RawAmount


class InvoiceItem(LineItem):
    is_service: str = Field(default="N", description="Y for services, N for goods")
    batch: Optional[str] = None


class PartyDetails(BaseModel):
    legal_name: Optional[str] = None
    trade_name: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    location: Optional[str] = None
    pincode: Optional[str] = None
    state_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class InvoiceDocument(BaseModel):
    """Invoice as captured on the generation form."""

    gstin: Optional[str] = Field(default=None, description="Supplier GSTIN (defaults to configured GSTIN)")
    invoice_number: str
    invoice_date: str = Field(description="dd/MM/yyyy")
    receiver_gstin: str = ""
    supply_type: Optional[str] = None
    doc_type: Optional[str] = None
    pos: Optional[str] = Field(default=None, description="Place of supply state code")
    seller: Optional[PartyDetails] = None
    buyer: Optional[PartyDetails] = None
    items: list[InvoiceItem] = Field(default_factory=list)
    round_off: RawAmount = None
    total_cess: RawAmount = None


class IrnCancelBody(BaseModel):
    gstin: Optional[str] = None
    status: Optional[str] = Field(default=None, description="Current IRN status, e.g. GENERATED")
    ack_date: RawTimestamp = Field(default=None, description="IRN acknowledgement date")
    reason: Optional[str] = Field(default=None, description="Reason code 1-4 or its label")
    remark: Optional[str] = None
