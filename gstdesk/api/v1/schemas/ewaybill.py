# gstdesk/api/v1/schemas/ewaybill.py
"""Request schemas for e-WayBill endpoints."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field

from gstdesk.api.v1.schemas.einvoice import InvoiceDocument
from gstdesk.domain.models.actions import ConsolidatedBill, RawTimestamp


class TransportDetails(BaseModel):
    trans_mode: str = Field(default="1", description="1=Road, 2=Rail, 3=Air, 4=Ship")
    distance: Union[int, float, str] = 0
    vehicle_no: Optional[str] = None
    vehicle_type: Optional[str] = None
    transporter_id: Optional[str] = None
    transporter_name: Optional[str] = None
    trans_doc_no: Optional[str] = None
    trans_doc_date: Optional[str] = None


class GenerateEwbBody(InvoiceDocument):
    sub_supply_type: Optional[str] = None
    transport: TransportDetails = Field(default_factory=TransportDetails)


class EwbCancelBody(BaseModel):
    gstin: Optional[str] = None
    status: Optional[str] = None
    generated_at: RawTimestamp = None
    reason_code: Optional[str] = Field(default=None, description="Reason code 1-5 or its label")
    remark: Optional[str] = None
    vehicle_no: Optional[str] = None


class ExtendBody(BaseModel):
    gstin: Optional[str] = None
    status: Optional[str] = None
    reason: Optional[str] = None
    current_place: Optional[str] = None
    current_valid_until: RawTimestamp = None
    new_valid_until: RawTimestamp = Field(default=None, description="dd/MM/yyyy HH:mm")


class TransporterChangeBody(BaseModel):
    gstin: Optional[str] = None
    status: Optional[str] = None
    current_transporter_id: Optional[str] = None
    new_transporter_id: Optional[str] = None
    new_transporter_name: Optional[str] = None


class AcceptBody(BaseModel):
    gstin: Optional[str] = None
    status: Optional[str] = None
    received_at: RawTimestamp = None


class RejectBody(AcceptBody):
    reason: Optional[str] = None


class VehicleUpdateBody(BaseModel):
    gstin: Optional[str] = None
    status: Optional[str] = None
    trans_mode: Optional[str] = None
    distance: Optional[Union[int, float, str]] = None
    vehicle_no: Optional[str] = None
    trans_doc_no: Optional[str] = None
    trans_doc_date: Optional[str] = None
    from_place: Optional[str] = None
    from_state: Optional[str] = None
    reason_code: Optional[str] = None
    reason_remark: Optional[str] = None


class ConsolidateBody(BaseModel):
    gstin: Optional[str] = None
    bills: list[ConsolidatedBill] = Field(
        default_factory=list, description="E-Way Bills in the vehicle, with their current status",
    )
    trans_mode: str = Field(default="1", description="1=Road, 2=Rail, 3=Air, 4=Ship")
    vehicle_no: Optional[str] = None
    trans_doc_no: Optional[str] = None
    trans_doc_date: Optional[str] = None
    from_place: Optional[str] = None
    from_state: Optional[str] = None
