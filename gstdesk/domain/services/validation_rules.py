# gstdesk/domain/services/validation_rules.py
"""
Pre-submission checks for e-Invoice / e-WayBill lifecycle actions.

Each validator returns a :class:`ValidationResult`; nothing here raises.
Checks run in a fixed order and the first failure wins, so the message the
user sees is always the most fundamental problem with the request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from gstdesk.domain.models.actions import (
    AcceptRequest,
    ConsolidateRequest,
    EwbCancelRequest,
    ExtendRequest,
    IrnCancelRequest,
    RejectRequest,
    TransporterChangeRequest,
    VehicleUpdateRequest,
)
from gstdesk.domain.models.master_codes import (
    EWB_CANCEL_REASON_OTHER,
    EWB_CANCEL_REASONS,
    EWB_STATUS_ACTIVE,
    EWB_STATUS_RECEIVED,
    IRN_CANCEL_REASON_OTHER,
    IRN_CANCEL_REASONS,
    IRN_STATUS_CANCELLED,
    IRN_STATUS_FAILED,
    IRN_STATUS_GENERATED,
    TRANSPORT_MODES,
    resolve_reason_code,
)
from gstdesk.domain.services.amounts import safe_decimal
from gstdesk.domain.services.compliance_window import (
    EWB_ACCEPT_REJECT,
    EWB_CANCELLATION,
    IRN_CANCELLATION,
    evaluate,
    max_extension_deadline,
    parse_timestamp,
)
from gstdesk.domain.services.gstin_validation import (
    is_valid_gstin,
    is_valid_hsn,
    is_valid_pincode,
    is_valid_vehicle_number,
    normalize_gstin,
)

logger = logging.getLogger("validation_rules")

MIN_EXTEND_REASON_LENGTH = 10
MIN_CURRENT_PLACE_LENGTH = 3
MIN_REJECT_REASON_LENGTH = 10
MIN_CONSOLIDATED_BILLS = 2

ROAD_MODE = "1"


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(valid=False, error=error)

    def __bool__(self) -> bool:
        return self.valid

    def as_dict(self) -> dict[str, Any]:
        if self.valid:
            return {"valid": True}
        return {"valid": False, "error": self.error}


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _text_len(value: Any) -> int:
    return len(value.strip()) if isinstance(value, str) else 0


def _status(value: Any) -> str:
    return value.strip().upper() if isinstance(value, str) else ""


def _reject(kind: str, error: str) -> ValidationResult:
    logger.info("%s rejected: %s", kind, error)
    return ValidationResult.fail(error)


# ---------------------------------------------------------------------------
# Invoice document
# ---------------------------------------------------------------------------

def validate_invoice_document(invoice: dict) -> ValidationResult:
    """Lines with HSN codes, and six-digit pincodes where parties give one."""
    items = invoice.get("items") or []
    if not items:
        return _reject("Invoice", "At least one line item is required")

    for index, item in enumerate(items, start=1):
        hsn = str(item.get("hsn_code") or "").strip()
        if not hsn:
            return _reject("Invoice", f"Line {index}: HSN code is required")
        if not is_valid_hsn(hsn):
            return _reject("Invoice", f"Line {index}: invalid HSN code {hsn} (4 to 8 digits)")

    for role in ("seller", "buyer"):
        pincode = str((invoice.get(role) or {}).get("pincode") or "").strip()
        if pincode and not is_valid_pincode(pincode):
            return _reject("Invoice", f"Invalid {role} pincode {pincode}. Pincode must be 6 digits")

    return ValidationResult.ok()


# ---------------------------------------------------------------------------
# e-Invoice
# ---------------------------------------------------------------------------

def validate_irn_cancel(request: IrnCancelRequest, now: datetime) -> ValidationResult:
    """IRN must be Active, inside the 24h window, with a government reason."""
    if _blank(request.irn):
        return _reject("IRN cancel", "IRN is required")

    status = _status(request.status)
    if status != IRN_STATUS_GENERATED:
        if status == IRN_STATUS_CANCELLED:
            return _reject("IRN cancel", "This IRN is already cancelled")
        if status == IRN_STATUS_FAILED:
            return _reject("IRN cancel", "Cannot cancel a failed IRN")
        return _reject("IRN cancel", "IRN must be in Active (Generated) status to cancel")

    window = evaluate(IRN_CANCELLATION, request.ack_date, now, status)
    if not window.permitted:
        return _reject(
            "IRN cancel",
            "IRN cancellation is allowed only within 24 hours of generation. "
            "The 24-hour period has expired.",
        )

    if _blank(request.reason):
        return _reject("IRN cancel", "Cancel reason is required")
    code = resolve_reason_code(request.reason, IRN_CANCEL_REASONS)
    if code is None:
        return _reject(
            "IRN cancel",
            "Cancel reason must be one of: " + ", ".join(IRN_CANCEL_REASONS.values()),
        )

    if code == IRN_CANCEL_REASON_OTHER and _blank(request.remark):
        return _reject("IRN cancel", "Cancel remarks are required when reason is 'Other'")

    return ValidationResult.ok()


# ---------------------------------------------------------------------------
# e-WayBill
# ---------------------------------------------------------------------------

def validate_ewb_cancel(request: EwbCancelRequest, now: datetime) -> ValidationResult:
    """Active, inside 24h of generation, goods not moved, valid reason."""
    if _blank(request.ewb_no):
        return _reject("EWB cancel", "E-Way Bill number is required")

    status = _status(request.status)
    if status != EWB_STATUS_ACTIVE:
        return _reject(
            "EWB cancel",
            f"Only Active E-Way Bills can be cancelled. Current status: {request.status or 'UNKNOWN'}",
        )

    window = evaluate(EWB_CANCELLATION, request.generated_at, now, status)
    if not window.permitted:
        return _reject(
            "EWB cancel",
            "E-Way Bill cancellation is allowed only within 24 hours of generation. "
            "The 24-hour period has expired.",
        )

    if not _blank(request.vehicle_no):
        return _reject(
            "EWB cancel",
            "Goods movement has started. E-Way Bill cannot be cancelled once vehicle details are updated.",
        )

    if _blank(request.reason_code):
        return _reject("EWB cancel", "Cancel reason code is mandatory")
    code = resolve_reason_code(request.reason_code, EWB_CANCEL_REASONS)
    if code is None:
        return _reject(
            "EWB cancel",
            "Cancel reason must be one of: " + ", ".join(EWB_CANCEL_REASONS.values()),
        )

    if code == EWB_CANCEL_REASON_OTHER and _blank(request.remark):
        return _reject("EWB cancel", "Cancel remarks are required when reason is 'Other'")

    return ValidationResult.ok()


def validate_extension(request: ExtendRequest, now: datetime) -> ValidationResult:
    """Reason, current place, and a new expiry inside the 72h ceiling."""
    if request.status is not None and _status(request.status) != EWB_STATUS_ACTIVE:
        return _reject(
            "EWB extend",
            f"Only Active E-Way Bills can be extended. Current status: {request.status}",
        )

    if _text_len(request.reason) < MIN_EXTEND_REASON_LENGTH:
        return _reject(
            "EWB extend",
            f"Reason is mandatory and must be at least {MIN_EXTEND_REASON_LENGTH} characters",
        )

    if _text_len(request.current_place) < MIN_CURRENT_PLACE_LENGTH:
        return _reject(
            "EWB extend",
            f"Current location is mandatory and must be at least {MIN_CURRENT_PLACE_LENGTH} characters",
        )

    if request.new_valid_until is None or (
        isinstance(request.new_valid_until, str) and not request.new_valid_until.strip()
    ):
        return _reject("EWB extend", "New validity date is mandatory")

    new_expiry = parse_timestamp(request.new_valid_until)
    current_time = parse_timestamp(now)
    if new_expiry is None or current_time is None:
        return _reject("EWB extend", "Invalid date format. Please use dd/MM/yyyy HH:mm format")

    current_expiry = parse_timestamp(request.current_valid_until)
    if current_expiry is not None and new_expiry <= current_expiry:
        return _reject("EWB extend", "New validity date must be after current validity date")

    if new_expiry <= current_time:
        return _reject("EWB extend", "New validity date must be in the future")

    deadline = max_extension_deadline(current_time)
    if deadline is None or new_expiry > deadline:
        return _reject(
            "EWB extend",
            "E-Way Bill validity can be extended only up to 72 hours from current time "
            "as per Government rules",
        )

    return ValidationResult.ok()


def validate_transporter_change(request: TransporterChangeRequest) -> ValidationResult:
    """New transporter must differ from the current one and be a valid GSTIN."""
    if request.status is not None and _status(request.status) != EWB_STATUS_ACTIVE:
        return _reject(
            "EWB transporter",
            f"Only Active E-Way Bills can change transporter. Current status: {request.status}",
        )

    new_id = normalize_gstin(request.new_transporter_id)
    if not new_id:
        return _reject("EWB transporter", "New Transporter ID is mandatory")

    # Same transporter is rejected before looking at the format
    if new_id == normalize_gstin(request.current_transporter_id):
        return _reject(
            "EWB transporter",
            "New transporter ID must be different from current transporter ID",
        )

    if not is_valid_gstin(new_id):
        return _reject(
            "EWB transporter",
            "Invalid GSTIN format. Must be 15 characters: 2 digits + 5 letters + 4 digits + "
            "1 letter + 1 alphanumeric + Z + 1 alphanumeric",
        )

    return ValidationResult.ok()


def validate_accept(request: AcceptRequest, now: datetime) -> ValidationResult:
    """Only RECEIVED bills, within 72h of receipt."""
    status = _status(request.status)
    if status != EWB_STATUS_RECEIVED:
        return _reject(
            "EWB accept",
            f"Only received E-Way Bills can be accepted. Current status: {request.status or 'UNKNOWN'}",
        )

    if not evaluate(EWB_ACCEPT_REJECT, request.received_at, now, status).permitted:
        return _reject(
            "EWB accept",
            "E-Way Bill acceptance is allowed only within 72 hours of receipt. "
            "The 72-hour period has expired.",
        )

    return ValidationResult.ok()


def validate_reject(request: RejectRequest, now: datetime) -> ValidationResult:
    """Only RECEIVED bills, within 72h of receipt, with a written reason."""
    status = _status(request.status)
    if status != EWB_STATUS_RECEIVED:
        return _reject(
            "EWB reject",
            f"Only received E-Way Bills can be rejected. Current status: {request.status or 'UNKNOWN'}",
        )

    if not evaluate(EWB_ACCEPT_REJECT, request.received_at, now, status).permitted:
        return _reject(
            "EWB reject",
            "E-Way Bill rejection is allowed only within 72 hours of receipt. "
            "The 72-hour period has expired.",
        )

    if _text_len(request.reason) < MIN_REJECT_REASON_LENGTH:
        return _reject(
            "EWB reject",
            f"Reject reason is mandatory and must be at least {MIN_REJECT_REASON_LENGTH} characters",
        )

    return ValidationResult.ok()


def validate_vehicle_update(request: VehicleUpdateRequest) -> ValidationResult:
    """Part-B update: mode, distance, and a vehicle number or transport document."""
    if request.status is not None and _status(request.status) != EWB_STATUS_ACTIVE:
        return _reject(
            "EWB vehicle",
            f"Only Active E-Way Bills can be updated. Current status: {request.status}",
        )

    if _blank(request.trans_mode) or request.distance is None or request.distance == "":
        return _reject(
            "EWB vehicle",
            "Missing required fields: transMode and distance are required",
        )

    if request.trans_mode.strip() not in TRANSPORT_MODES:
        return _reject(
            "EWB vehicle",
            "Transport mode must be one of: "
            + ", ".join(f"{code} ({name})" for code, name in TRANSPORT_MODES.items()),
        )

    if safe_decimal(request.distance, default=None) is None or safe_decimal(request.distance) < 0:
        return _reject("EWB vehicle", "Distance must be greater than or equal to 0")

    has_vehicle = not _blank(request.vehicle_no)
    has_trans_doc = not _blank(request.trans_doc_no) and not _blank(request.trans_doc_date)
    if not has_vehicle and not has_trans_doc:
        return _reject(
            "EWB vehicle",
            "Either Vehicle Number OR Transport Document No + Date must be provided",
        )

    if has_vehicle and not is_valid_vehicle_number(request.vehicle_no):
        return _reject(
            "EWB vehicle",
            "Vehicle number must be in format: XX##XX#### (e.g., MH12AB1234)",
        )

    return ValidationResult.ok()


def validate_consolidation(request: ConsolidateRequest) -> ValidationResult:
    """Two or more distinct Active bills, a transport mode, and where the trip starts."""
    if len(request.bills) < MIN_CONSOLIDATED_BILLS:
        return _reject(
            "EWB consolidate",
            "At least 2 Active E-Way Bills are required to generate Consolidated E-Way Bill",
        )

    numbers = [bill.ewb_no.strip() for bill in request.bills]
    if any(not number for number in numbers):
        return _reject("EWB consolidate", "E-Way Bill number is required for every bill")

    duplicates = sorted({number for number in numbers if numbers.count(number) > 1})
    if duplicates:
        return _reject("EWB consolidate", f"Duplicate E-Way Bills: {', '.join(duplicates)}")

    inactive = [
        bill.ewb_no.strip()
        for bill in request.bills
        if bill.status is not None and _status(bill.status) != EWB_STATUS_ACTIVE
    ]
    if inactive:
        return _reject(
            "EWB consolidate",
            f"Only Active E-Way Bills can be consolidated. Found inactive: {', '.join(inactive)}",
        )

    mode = (request.trans_mode or "").strip()
    if mode not in TRANSPORT_MODES:
        return _reject(
            "EWB consolidate",
            "Transport mode must be one of: "
            + ", ".join(f"{code} ({name})" for code, name in TRANSPORT_MODES.items()),
        )

    if mode == ROAD_MODE:
        if not is_valid_vehicle_number(request.vehicle_no):
            return _reject(
                "EWB consolidate",
                "Vehicle number must be in format: XX##XX#### (e.g., MH12AB1234)",
            )
    elif _blank(request.trans_doc_no) or _blank(request.trans_doc_date):
        return _reject(
            "EWB consolidate",
            "Transport Document No + Date are required for Rail, Air and Ship",
        )

    if _text_len(request.from_place) < MIN_CURRENT_PLACE_LENGTH:
        return _reject(
            "EWB consolidate",
            f"From place is mandatory and must be at least {MIN_CURRENT_PLACE_LENGTH} characters",
        )

    return ValidationResult.ok()
