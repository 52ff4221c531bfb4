"""Inputs for e-Invoice / e-WayBill lifecycle actions.

These are plain value objects checked by ``validation_rules`` before the
aggregator is called. Timestamps stay raw (portal strings or datetimes); the
compliance window engine parses them.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field

RawTimestamp = Union[datetime, str, None]


class IrnCancelRequest(BaseModel):
    irn: str = ""
    status: Optional[str] = None
    ack_date: RawTimestamp = None
    reason: Optional[str] = None
    remark: Optional[str] = None


class EwbCancelRequest(BaseModel):
    ewb_no: str = ""
    status: Optional[str] = None
    generated_at: RawTimestamp = None
    reason_code: Optional[str] = None
    remark: Optional[str] = None
    vehicle_no: Optional[str] = None


class ExtendRequest(BaseModel):
    ewb_no: str = ""
    status: Optional[str] = None
    reason: Optional[str] = None
    current_place: Optional[str] = None
    current_valid_until: RawTimestamp = None
    new_valid_until: RawTimestamp = None


class TransporterChangeRequest(BaseModel):
    ewb_no: str = ""
    status: Optional[str] = None
    current_transporter_id: Optional[str] = None
    new_transporter_id: Optional[str] = None
    new_transporter_name: Optional[str] = None


class AcceptRequest(BaseModel):
    ewb_no: str = ""
    status: Optional[str] = None
    received_at: RawTimestamp = None


class RejectRequest(AcceptRequest):
    reason: Optional[str] = None


class VehicleUpdateRequest(BaseModel):
    ewb_no: str = ""
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


class ConsolidatedBill(BaseModel):
    ewb_no: str = ""
    status: Optional[str] = None


class ConsolidateRequest(BaseModel):
    """Several e-WayBills moving in one vehicle, merged into a trip sheet."""

    bills: list[ConsolidatedBill] = Field(default_factory=list)
    trans_mode: Optional[str] = "1"
    vehicle_no: Optional[str] = None
    trans_doc_no: Optional[str] = None
    trans_doc_date: Optional[str] = None
    from_place: Optional[str] = None
    from_state: Optional[str] = None
