# gstdesk/domain/models/master_codes.py
"""
Government master codes used by the IRP and e-WayBill portals.

Labels match the dropdowns on the NIC portals; codes are what the
Whitebooks API expects on the wire.
"""

from __future__ import annotations

# IRN cancellation (IRP CnlRsn)
IRN_CANCEL_REASONS: dict[str, str] = {
    "1": "Duplicate",
    "2": "Data Entry Mistake",
    "3": "Order Cancelled",
    "4": "Other",
}
IRN_CANCEL_REASON_OTHER = "4"

# e-WayBill cancellation
EWB_CANCEL_REASONS: dict[str, str] = {
    "1": "Duplicate E-Way Bill",
    "2": "Data Entry Mistake",
    "3": "Order Cancelled",
    "4": "Goods Not Moved",
    "5": "Other",
}
EWB_CANCEL_REASON_OTHER = "5"

# IRP document types (DocDtls.Typ)
DOCUMENT_TYPES: dict[str, str] = {
    "INV": "Tax Invoice",
    "CRN": "Credit Note",
    "DBN": "Debit Note",
}

TRANSPORT_MODES: dict[str, str] = {
    "1": "Road",
    "2": "Rail",
    "3": "Air",
    "4": "Ship",
}

# Whitebooks spells it "Sucess" on some endpoints
SUCCESS_STATUS_CODES = frozenset({"1", "Sucess", "Success"})

# Document statuses
IRN_STATUS_GENERATED = "GENERATED"
IRN_STATUS_CANCELLED = "CANCELLED"
IRN_STATUS_FAILED = "FAILED"
EWB_STATUS_ACTIVE = "ACTIVE"
EWB_STATUS_RECEIVED = "RECEIVED"


def resolve_reason_code(reason: str | None, reasons: dict[str, str]) -> str | None:
    """Map a reason given as code or label to its code; ``None`` if unknown."""
    if not reason:
        return None
    reason = reason.strip()
    if reason in reasons:
        return reason
    lowered = reason.lower()
    for code, label in reasons.items():
        if label.lower() == lowered:
            return code
    return None
