# gstdesk/domain/services/ewaybill_flow.py
"""
e-WayBill business logic.

Wraps the low-level ``EWayBillClient`` with helpers for EWB generation,
tracking, the post-generation lifecycle (cancel, extend, transporter
change, accept / reject, Part-B vehicle update) and consolidated trip
sheets. Every lifecycle action is checked locally by ``validation_rules``
before any call to the aggregator.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from gstdesk.domain.models.actions import (
    AcceptRequest,
    ConsolidateRequest,
    EwbCancelRequest,
    ExtendRequest,
    RejectRequest,
    TransporterChangeRequest,
    VehicleUpdateRequest,
)
from gstdesk.domain.models.master_codes import EWB_CANCEL_REASONS, resolve_reason_code
from gstdesk.domain.services.amounts import safe_decimal
from gstdesk.domain.services.compliance_window import IST, parse_timestamp
from gstdesk.domain.services.einvoice_flow import (
    ERROR_NOT_CONFIGURED,
    ERROR_UPSTREAM,
    ERROR_VALIDATION,
    failure,
)
from gstdesk.domain.services.gstin_validation import (
    URP,
    normalize_gstin,
    normalize_vehicle_number,
)
from gstdesk.domain.services.tax_engine import aggregate_totals
from gstdesk.domain.services.validation_rules import (
    validate_accept,
    validate_consolidation,
    validate_ewb_cancel,
    validate_extension,
    validate_invoice_document,
    validate_reject,
    validate_transporter_change,
    validate_vehicle_update,
)

logger = logging.getLogger("ewaybill_flow")

_NOT_CONFIGURED = "e-WayBill service not configured"
_PORTAL_DATETIME = "%d/%m/%Y %H:%M"

# Part-B update reason used when the vehicle is entered for the first time
FIRST_TIME_REASON = "4"


def _text(value: Any, default: str = "") -> str:
    return str(value if value is not None else default).strip()


def _number(value: Any) -> float:
    return float(safe_decimal(value))


def _party(prefix: str, gstin: str, details: dict | None) -> dict:
    details = details or {}
    return {
        f"{prefix}Gstin": normalize_gstin(gstin) or URP,
        f"{prefix}TrdName": _text(details.get("trade_name")),
        f"{prefix}Addr1": _text(details.get("address1")),
        f"{prefix}Addr2": _text(details.get("address2")),
        f"{prefix}Place": _text(details.get("location")),
        f"{prefix}Pincode": _text(details.get("pincode")),
        f"{prefix}StateCode": _text(details.get("state_code")),
    }


async def prepare_ewb_payload(
    invoice_dict: dict,
    gstin: str,
    transport: dict,
) -> dict:
    """Build the e-WayBill generation payload.

    Parameters
    ----------
    invoice_dict : dict
        Invoice form data: ``invoice_number``, ``invoice_date``,
        ``receiver_gstin``, ``items``, optional ``seller`` / ``buyer``
        address dicts, ``round_off`` and ``total_cess``.
    gstin : str
        Supplier GSTIN.
    transport : dict
        Part-B details: ``trans_mode``, ``distance``, ``vehicle_no``,
        ``transporter_id``, ``transporter_name``, ``trans_doc_no``,
        ``trans_doc_date``, ``vehicle_type``.
    """
    items = invoice_dict.get("items") or []
    totals = aggregate_totals(
        items, invoice_dict.get("round_off"), invoice_dict.get("total_cess"),
    )

    item_list = [
        {
            "productName": _text(item.get("description")),
            "productDesc": _text(item.get("description")),
            "hsnCode": _text(item.get("hsn_code")),
            "quantity": _number(item.get("quantity")),
            "qtyUnit": (_text(item.get("unit")) or "NOS").upper(),
            "taxableAmount": _number(item.get("value")),
            "cgstRate": _number(item.get("cgst")),
            "sgstRate": _number(item.get("sgst")),
            "igstRate": _number(item.get("igst")),
            "cessRate": _number(item.get("cess")),
        }
        for item in items
    ]

    payload = {
        "supplyType": invoice_dict.get("supply_type") or "O",  # Outward
        "subSupplyType": invoice_dict.get("sub_supply_type") or "1",
        "docType": invoice_dict.get("doc_type") or "INV",
        "docNo": _text(invoice_dict.get("invoice_number")),
        "docDate": _text(invoice_dict.get("invoice_date")),
        "transactionType": 1,
        **_party("from", gstin, invoice_dict.get("seller")),
        **_party("to", invoice_dict.get("receiver_gstin", ""), invoice_dict.get("buyer")),
        "itemList": item_list,
        "totalValue": _number(totals.total_ass_val),
        "cgstValue": _number(totals.total_cgst_amt),
        "sgstValue": _number(totals.total_sgst_amt),
        "igstValue": _number(totals.total_igst_amt),
        "cessValue": _number(totals.total_cess_amt),
        "totInvValue": _number(totals.final_inv_val),
        "transMode": _text(transport.get("trans_mode")) or "1",
        "transDistance": _text(transport.get("distance")) or "0",
        "transporterId": normalize_gstin(transport.get("transporter_id")),
        "transporterName": _text(transport.get("transporter_name")),
        "vehicleNo": normalize_vehicle_number(transport.get("vehicle_no")),
        "vehicleType": _text(transport.get("vehicle_type")) or "R",
    }
    if _text(transport.get("trans_doc_no")):
        payload["transDocNo"] = _text(transport.get("trans_doc_no"))
        payload["transDocDate"] = _text(transport.get("trans_doc_date"))
    return payload


async def generate_ewb(gstin: str, invoice_dict: dict, transport: dict) -> dict[str, Any]:
    """Generate an e-WayBill for a single invoice.

    Returns
    -------
    dict
        ``{"success": True, "ewb_no": "...", "valid_until": "..."}``
        or ``{"success": False, "code": "...", "error": "..."}``
    """
    from gstdesk.infrastructure.external.ewaybill_client import EWayBillClient, EWayBillError

    check = validate_invoice_document(invoice_dict)
    if not check:
        return failure(ERROR_VALIDATION, check.error)

    if not EWayBillClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    try:
        client = EWayBillClient()
        auth_token = await client.authenticate(gstin)
        payload = await prepare_ewb_payload(invoice_dict, gstin, transport)
        resp = await client.generate_ewaybill(gstin, auth_token, payload)

        data = resp.get("data", {}) or {}
        return {
            "success": True,
            "ewb_no": data.get("ewayBillNo", "N/A"),
            "ewb_date": data.get("ewayBillDate", "N/A"),
            "valid_until": data.get("validUpto", "N/A"),
        }
    except EWayBillError as e:
        logger.error("e-WayBill generation error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error generating e-WayBill")
        return failure(ERROR_UPSTREAM, "Unexpected error generating e-WayBill")


async def track_ewb(gstin: str, ewb_no: str) -> dict[str, Any]:
    """Track an existing e-WayBill.

    Returns
    -------
    dict
        ``{"success": True, "ewb_no": "...", "status": "...", ...}``
        or ``{"success": False, "code": "...", "error": "..."}``
    """
    from gstdesk.infrastructure.external.ewaybill_client import EWayBillClient, EWayBillError

    if not ewb_no or not str(ewb_no).strip():
        return failure(ERROR_VALIDATION, "E-Way Bill number is required")

    if not EWayBillClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    try:
        client = EWayBillClient()
        auth_token = await client.authenticate(gstin)
        resp = await client.get_ewaybill(gstin, auth_token, ewb_no)

        data = resp.get("data", {}) or {}
        return {
            "success": True,
            "ewb_no": ewb_no,
            "status": data.get("status", "Unknown"),
            "generated_date": data.get("ewayBillDate", "N/A"),
            "valid_until": data.get("validUpto", "N/A"),
            "details": data,
        }
    except EWayBillError as e:
        logger.error("e-WayBill tracking error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error tracking e-WayBill")
        return failure(ERROR_UPSTREAM, "Unexpected error tracking e-WayBill")


async def cancel_ewb(
    gstin: str,
    request: EwbCancelRequest,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Cancel an e-WayBill within 24 hours of generation.

    Returns
    -------
    dict
        ``{"success": True, "message": "...", "cancel_date": "..."}``
        or ``{"success": False, "code": "...", "error": "..."}``
    """
    from gstdesk.infrastructure.external.ewaybill_client import EWayBillClient, EWayBillError

    check = validate_ewb_cancel(request, now or datetime.now(IST))
    if not check:
        return failure(ERROR_VALIDATION, check.error)

    if not EWayBillClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    ewb_no = request.ewb_no.strip()
    reason_code = resolve_reason_code(request.reason_code, EWB_CANCEL_REASONS)
    try:
        client = EWayBillClient()
        auth_token = await client.authenticate(gstin)
        resp = await client.cancel_ewaybill(
            gstin, auth_token, ewb_no, reason_code, (request.remark or "").strip(),
        )
        data = resp.get("data", {}) or {}
        return {
            "success": True,
            "message": f"E-Way Bill {ewb_no} cancelled successfully",
            "cancel_date": data.get("cancelDate"),
        }
    except EWayBillError as e:
        logger.error("e-WayBill cancellation error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error cancelling e-WayBill")
        return failure(ERROR_UPSTREAM, "Unexpected error cancelling e-WayBill")


async def extend_ewb_validity(
    gstin: str,
    request: ExtendRequest,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Extend an e-WayBill's validity, at most 72 hours from now.

    Returns
    -------
    dict
        ``{"success": True, "message": "...", "valid_until": "..."}``
        or ``{"success": False, "code": "...", "error": "..."}``
    """
    from gstdesk.infrastructure.external.ewaybill_client import EWayBillClient, EWayBillError

    check = validate_extension(request, now or datetime.now(IST))
    if not check:
        return failure(ERROR_VALIDATION, check.error)

    if not EWayBillClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    try:
        new_valid_until = parse_timestamp(request.new_valid_until).astimezone(IST)
    except OverflowError:
        return failure(ERROR_VALIDATION, "New validity date is out of range")
    extend_data = {
        "ewbNo": request.ewb_no.strip(),
        "fromPlace": request.current_place.strip(),
        "extnRemarks": request.reason.strip(),
        "newValidUntil": new_valid_until.strftime(_PORTAL_DATETIME),
    }
    try:
        client = EWayBillClient()
        auth_token = await client.authenticate(gstin)
        resp = await client.extend_validity(gstin, auth_token, extend_data)
        data = resp.get("data", {}) or {}
        return {
            "success": True,
            "message": f"E-Way Bill {extend_data['ewbNo']} validity extended",
            "valid_until": data.get("validUpto") or extend_data["newValidUntil"],
        }
    except EWayBillError as e:
        logger.error("e-WayBill extension error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error extending e-WayBill validity")
        return failure(ERROR_UPSTREAM, "Unexpected error extending e-WayBill validity")


async def change_transporter(gstin: str, request: TransporterChangeRequest) -> dict[str, Any]:
    """Assign an e-WayBill to a different transporter.

    Returns
    -------
    dict
        ``{"success": True, "message": "...", "transporter_id": "..."}``
        or ``{"success": False, "code": "...", "error": "..."}``
    """
    from gstdesk.infrastructure.external.ewaybill_client import EWayBillClient, EWayBillError

    check = validate_transporter_change(request)
    if not check:
        return failure(ERROR_VALIDATION, check.error)

    if not EWayBillClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    ewb_no = request.ewb_no.strip()
    transporter_id = normalize_gstin(request.new_transporter_id)
    try:
        client = EWayBillClient()
        auth_token = await client.authenticate(gstin)
        await client.update_transporter(
            gstin, auth_token, ewb_no, transporter_id,
            (request.new_transporter_name or "").strip(),
        )
        return {
            "success": True,
            "message": f"Transporter updated for E-Way Bill {ewb_no}",
            "transporter_id": transporter_id,
            "old_transporter_id": normalize_gstin(request.current_transporter_id) or None,
        }
    except EWayBillError as e:
        logger.error("e-WayBill transporter change error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error changing e-WayBill transporter")
        return failure(ERROR_UPSTREAM, "Unexpected error changing e-WayBill transporter")


async def accept_ewb(
    gstin: str,
    request: AcceptRequest,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Accept an e-WayBill received from another party within 72 hours."""
    from gstdesk.infrastructure.external.ewaybill_client import EWayBillClient, EWayBillError

    check = validate_accept(request, now or datetime.now(IST))
    if not check:
        return failure(ERROR_VALIDATION, check.error)

    if not EWayBillClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    ewb_no = request.ewb_no.strip()
    try:
        client = EWayBillClient()
        auth_token = await client.authenticate(gstin)
        await client.accept_ewaybill(gstin, auth_token, ewb_no)
        return {"success": True, "message": f"E-Way Bill {ewb_no} accepted"}
    except EWayBillError as e:
        logger.error("e-WayBill accept error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error accepting e-WayBill")
        return failure(ERROR_UPSTREAM, "Unexpected error accepting e-WayBill")


async def reject_ewb(
    gstin: str,
    request: RejectRequest,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Reject an e-WayBill received from another party within 72 hours."""
    from gstdesk.infrastructure.external.ewaybill_client import EWayBillClient, EWayBillError

    check = validate_reject(request, now or datetime.now(IST))
    if not check:
        return failure(ERROR_VALIDATION, check.error)

    if not EWayBillClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    ewb_no = request.ewb_no.strip()
    try:
        client = EWayBillClient()
        auth_token = await client.authenticate(gstin)
        await client.reject_ewaybill(gstin, auth_token, ewb_no, request.reason.strip())
        return {"success": True, "message": f"E-Way Bill {ewb_no} rejected"}
    except EWayBillError as e:
        logger.error("e-WayBill reject error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error rejecting e-WayBill")
        return failure(ERROR_UPSTREAM, "Unexpected error rejecting e-WayBill")


async def update_vehicle(gstin: str, request: VehicleUpdateRequest) -> dict[str, Any]:
    """Update Part-B (vehicle or transport document) on an e-WayBill.

    Returns
    -------
    dict
        ``{"success": True, "message": "...", "valid_until": "..."}``
        or ``{"success": False, "code": "...", "error": "..."}``
    """
    from gstdesk.infrastructure.external.ewaybill_client import EWayBillClient, EWayBillError

    check = validate_vehicle_update(request)
    if not check:
        return failure(ERROR_VALIDATION, check.error)

    if not EWayBillClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    ewb_no = request.ewb_no.strip()
    vehicle_data: dict[str, Any] = {
        "ewbNo": ewb_no,
        "transMode": request.trans_mode.strip(),
        "transDistance": _text(request.distance),
        "fromPlace": _text(request.from_place),
        "fromState": _text(request.from_state),
        "reasonCode": _text(request.reason_code) or FIRST_TIME_REASON,
        "reasonRem": _text(request.reason_remark) or "First Time",
    }
    if _text(request.vehicle_no):
        vehicle_data["vehicleNo"] = normalize_vehicle_number(request.vehicle_no)
    if _text(request.trans_doc_no):
        vehicle_data["transDocNo"] = _text(request.trans_doc_no)
        vehicle_data["transDocDate"] = _text(request.trans_doc_date)

    try:
        client = EWayBillClient()
        auth_token = await client.authenticate(gstin)
        resp = await client.update_vehicle(gstin, auth_token, vehicle_data)
        data = resp.get("data", {}) or {}
        return {
            "success": True,
            "message": f"Part-B updated for E-Way Bill {ewb_no}",
            "valid_until": data.get("validUpto"),
        }
    except EWayBillError as e:
        logger.error("e-WayBill vehicle update error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error updating e-WayBill vehicle")
        return failure(ERROR_UPSTREAM, "Unexpected error updating e-WayBill vehicle")


async def generate_consolidated_ewb(gstin: str, request: ConsolidateRequest) -> dict[str, Any]:
    """Merge several Active e-WayBills travelling together into one trip sheet.

    Returns
    -------
    dict
        ``{"success": True, "consolidated_ewb_no": "...", "included_ewbs": [...]}``
        or ``{"success": False, "code": "...", "error": "..."}``
    """
    from gstdesk.infrastructure.external.ewaybill_client import (
        EWayBillClient,
        EWayBillError,
        ewb_number,
    )

    check = validate_consolidation(request)
    if not check:
        return failure(ERROR_VALIDATION, check.error)

    if not EWayBillClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    included = [bill.ewb_no.strip() for bill in request.bills]
    consolidated_data: dict[str, Any] = {
        "fromPlace": _text(request.from_place),
        "fromState": _text(request.from_state),
        "transMode": _text(request.trans_mode),
        "vehicleNo": normalize_vehicle_number(request.vehicle_no),
        "transDocNo": _text(request.trans_doc_no),
        "transDocDate": _text(request.trans_doc_date),
        "tripSheetEwbBills": [{"ewbNo": ewb_number(number)} for number in included],
    }

    try:
        client = EWayBillClient()
        auth_token = await client.authenticate(gstin)
        resp = await client.generate_consolidated(gstin, auth_token, consolidated_data)
        data = resp.get("data", {}) or {}
        consolidated_no = data.get("cEwbNo") or data.get("consolidatedEWBNo") or "N/A"
        logger.info("Consolidated e-WayBill %s covers %d bills", consolidated_no, len(included))
        return {
            "success": True,
            "message": "Consolidated E-Way Bill generated successfully",
            "consolidated_ewb_no": consolidated_no,
            "cewb_date": data.get("cEwbDate"),
            "included_ewbs": included,
        }
    except EWayBillError as e:
        logger.error("Consolidated e-WayBill error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error generating consolidated e-WayBill")
        return failure(ERROR_UPSTREAM, "Unexpected error generating consolidated e-WayBill")
