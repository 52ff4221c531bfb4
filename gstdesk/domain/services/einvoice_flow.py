# gstdesk/domain/services/einvoice_flow.py
"""
e-Invoice (IRN) business logic.

Wraps the low-level ``EInvoiceClient`` with helpers for IRN generation,
status check, lookup by document, GSTIN details and cancellation. Amounts
in the IRP payload always come from the tax engine so the server sees
exactly what the form showed.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from gstdesk.domain.models.actions import IrnCancelRequest
from gstdesk.domain.models.master_codes import DOCUMENT_TYPES, IRN_CANCEL_REASONS, resolve_reason_code
from gstdesk.domain.services.amounts import format_two_decimals
from gstdesk.domain.services.compliance_window import IST
from gstdesk.domain.services.gstin_validation import is_valid_gstin, normalize_gstin
from gstdesk.domain.services.tax_engine import (
    aggregate_totals,
    compute_item_tax,
    compute_unit_price,
)
from gstdesk.domain.services.validation_rules import validate_invoice_document, validate_irn_cancel

logger = logging.getLogger("einvoice_flow")

# Failure kinds carried in ``{"success": False, "code": ...}``
ERROR_VALIDATION = "validation"
ERROR_NOT_CONFIGURED = "not_configured"
ERROR_UPSTREAM = "upstream"

_NOT_CONFIGURED = "e-Invoice service not configured"
_DOC_DATE = "%d/%m/%Y"


def failure(code: str, error: str) -> dict[str, Any]:
    return {"success": False, "code": code, "error": error}


def _text(value: Any, default: str = "") -> str:
    return str(value if value is not None else default).strip()


def _party(details: dict | None, gstin: str, extra: dict | None = None) -> dict:
    """Map a seller/buyer dict onto IRP ``*Dtls`` keys, dropping blanks."""
    details = details or {}
    party = {
        "Gstin": _text(gstin).upper(),
        "LglNm": _text(details.get("legal_name")),
        "TrdNm": _text(details.get("trade_name")),
        "Addr1": _text(details.get("address1")),
        "Addr2": _text(details.get("address2")),
        "Loc": _text(details.get("location")),
        "Pin": _text(details.get("pincode")),
        "Stcd": _text(details.get("state_code")),
        "Ph": _text(details.get("phone")),
        "Em": _text(details.get("email")),
    }
    if extra:
        party.update(extra)
    return {k: v for k, v in party.items() if v or k == "Gstin"}


def build_item_list(items: list[dict]) -> list[dict]:
    """IRP ``ItemList`` entries, one per line item."""
    item_list = []
    for index, item in enumerate(items, start=1):
        tax = compute_item_tax(
            item.get("value"), item.get("cgst"), item.get("sgst"),
            item.get("igst"), item.get("cess"),
        )
        entry = {
            "SlNo": str(index),
            "IsServc": item.get("is_service") or "N",
            "PrdDesc": _text(item.get("description")),
            "HsnCd": _text(item.get("hsn_code")),
            "Qty": _text(item.get("quantity")) or "1",
            "Unit": (_text(item.get("unit")) or "NOS").upper(),
            "UnitPrice": compute_unit_price(item.get("value"), item.get("quantity")),
            "TotAmt": tax.ass_amt,
            "AssAmt": tax.ass_amt,
            "GstRt": tax.gst_rate,
            "CgstAmt": tax.cgst_amt,
            "SgstAmt": tax.sgst_amt,
            "IgstAmt": tax.igst_amt,
            "TotItemVal": tax.total_item_value,
        }
        if tax.cess_amt != "0.00":
            entry["CesAmt"] = tax.cess_amt
        if _text(item.get("batch")):
            entry["BchDtls"] = {"Nm": _text(item.get("batch"))}
        item_list.append(entry)
    return item_list


async def prepare_irn_payload(invoice_dict: dict, gstin: str) -> dict:
    """Build the IRN generation payload from an invoice dict.

    Parameters
    ----------
    invoice_dict : dict
        Invoice form data: ``invoice_number``, ``invoice_date``
        (``dd/MM/yyyy``), ``receiver_gstin``, ``items`` and optionally
        ``supply_type``, ``doc_type``, ``seller``, ``buyer``, ``pos``,
        ``round_off`` and ``total_cess``.
    gstin : str
        Supplier GSTIN.

    Returns
    -------
    dict
        Payload suitable for ``EInvoiceClient.generate_irn()``.
    """
    items = invoice_dict.get("items") or []
    round_off = invoice_dict.get("round_off")
    total_cess = invoice_dict.get("total_cess")
    totals = aggregate_totals(items, round_off, total_cess)

    val_dtls = {
        "AssVal": totals.total_ass_val,
        "CgstVal": totals.total_cgst_amt,
        "SgstVal": totals.total_sgst_amt,
        "IgstVal": totals.total_igst_amt,
        "TotInvVal": totals.final_inv_val,
    }
    if totals.total_cess_amt != "0.00":
        val_dtls["CesVal"] = totals.total_cess_amt
    if _text(round_off):
        val_dtls["RndOffAmt"] = format_two_decimals(round_off)
    if _text(total_cess):
        val_dtls["TotCess"] = format_two_decimals(total_cess)

    buyer_extra = {"Pos": _text(invoice_dict.get("pos"))}
    return {
        "Version": "1.1",
        "TranDtls": {
            "TaxSch": "GST",
            "SupTyp": invoice_dict.get("supply_type") or "B2B",
        },
        "DocDtls": {
            "Typ": invoice_dict.get("doc_type") or "INV",
            "No": _text(invoice_dict.get("invoice_number")),
            "Dt": _text(invoice_dict.get("invoice_date")),
        },
        "SellerDtls": _party(invoice_dict.get("seller"), gstin),
        "BuyerDtls": _party(
            invoice_dict.get("buyer"), invoice_dict.get("receiver_gstin", ""), buyer_extra,
        ),
        "ItemList": build_item_list(items),
        "ValDtls": val_dtls,
    }


async def generate_irn_for_invoice(gstin: str, invoice_dict: dict) -> dict[str, Any]:
    """Generate an IRN for a single invoice.

    Returns
    -------
    dict
        ``{"success": True, "irn": "...", "ack_no": "...", "ack_date": "..."}``
        or ``{"success": False, "code": "...", "error": "..."}``
    """
    from gstdesk.infrastructure.external.einvoice_client import EInvoiceClient, EInvoiceError

    check = validate_invoice_document(invoice_dict)
    if not check:
        return failure(ERROR_VALIDATION, check.error)

    if not EInvoiceClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    try:
        client = EInvoiceClient()
        auth_token = await client.authenticate(gstin)
        payload = await prepare_irn_payload(invoice_dict, gstin)
        resp = await client.generate_irn(gstin, auth_token, payload)

        data = resp.get("data", {}) or {}
        return {
            "success": True,
            "irn": data.get("Irn", "N/A"),
            "ack_no": data.get("AckNo", "N/A"),
            "ack_date": data.get("AckDt", "N/A"),
            "signed_qr_code": data.get("SignedQRCode"),
            "ewb_no": data.get("EwbNo"),
            "total_inv_val": payload["ValDtls"]["TotInvVal"],
        }
    except EInvoiceError as e:
        logger.error("e-Invoice generation error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error generating IRN")
        return failure(ERROR_UPSTREAM, "Unexpected error generating IRN")


async def get_irn_status(gstin: str, irn: str) -> dict[str, Any]:
    """Check the status of an existing IRN.

    Returns
    -------
    dict
        ``{"success": True, "status": "...", "details": {...}}``
        or ``{"success": False, "code": "...", "error": "..."}``
    """
    from gstdesk.infrastructure.external.einvoice_client import EInvoiceClient, EInvoiceError

    if not irn or not irn.strip():
        return failure(ERROR_VALIDATION, "IRN is required")

    if not EInvoiceClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    try:
        client = EInvoiceClient()
        auth_token = await client.authenticate(gstin)
        resp = await client.get_irn_details(gstin, auth_token, irn.strip())
        data = resp.get("data", {}) or {}
        return {
            "success": True,
            "status": data.get("Status", "Unknown"),
            "details": data,
        }
    except EInvoiceError as e:
        logger.error("e-Invoice status check error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error checking IRN status")
        return failure(ERROR_UPSTREAM, "Unexpected error checking IRN status")


async def get_irn_by_document(
    gstin: str,
    doc_type: str,
    doc_number: str,
    doc_date: str,
) -> dict[str, Any]:
    """Look up the IRN issued for an invoice / credit note / debit note.

    Returns
    -------
    dict
        ``{"success": True, "irn": "...", "status": "...", "details": {...}}``
        or ``{"success": False, "code": "...", "error": "..."}``
    """
    from gstdesk.infrastructure.external.einvoice_client import EInvoiceClient, EInvoiceError

    doc_type = _text(doc_type).upper() or "INV"
    doc_number = _text(doc_number)
    doc_date = _text(doc_date)
    if doc_type not in DOCUMENT_TYPES:
        return failure(ERROR_VALIDATION, "Document type must be one of: " + ", ".join(DOCUMENT_TYPES))
    if not doc_number:
        return failure(ERROR_VALIDATION, "Document number is required")
    try:
        datetime.strptime(doc_date, _DOC_DATE)
    except ValueError:
        return failure(ERROR_VALIDATION, "Document date must be in dd/MM/yyyy format")

    if not EInvoiceClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    try:
        client = EInvoiceClient()
        auth_token = await client.authenticate(gstin)
        resp = await client.get_irn_by_doc(gstin, auth_token, doc_type, doc_number, doc_date)
        data = resp.get("data", {}) or {}
        return {
            "success": True,
            "irn": data.get("Irn", "N/A"),
            "status": data.get("Status", "Unknown"),
            "details": data,
        }
    except EInvoiceError as e:
        logger.error("e-Invoice document lookup error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error looking up IRN by document")
        return failure(ERROR_UPSTREAM, "Unexpected error looking up IRN by document")


async def lookup_gstin(gstin: str, target_gstin: str) -> dict[str, Any]:
    """Taxpayer details (legal name, address, status) for ``target_gstin``."""
    from gstdesk.infrastructure.external.einvoice_client import EInvoiceClient, EInvoiceError

    target = normalize_gstin(target_gstin)
    if not is_valid_gstin(target):
        return failure(ERROR_VALIDATION, f"Invalid GSTIN format: {target or '(blank)'}")

    if not EInvoiceClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    try:
        client = EInvoiceClient()
        auth_token = await client.authenticate(gstin)
        resp = await client.get_gstn_details(gstin, auth_token, target)
        data = resp.get("data", {}) or {}
        return {
            "success": True,
            "gstin": target,
            "legal_name": data.get("LegalName"),
            "trade_name": data.get("TradeName"),
            "status": data.get("Status"),
            "details": data,
        }
    except EInvoiceError as e:
        logger.error("GSTIN lookup error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error looking up GSTIN")
        return failure(ERROR_UPSTREAM, "Unexpected error looking up GSTIN")


async def cancel_irn(
    gstin: str,
    request: IrnCancelRequest,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Cancel an existing IRN after the local pre-checks pass.

    Returns
    -------
    dict
        ``{"success": True, "message": "...", "cancel_date": "..."}``
        or ``{"success": False, "code": "...", "error": "..."}``
    """
    from gstdesk.infrastructure.external.einvoice_client import EInvoiceClient, EInvoiceError

    check = validate_irn_cancel(request, now or datetime.now(IST))
    if not check:
        return failure(ERROR_VALIDATION, check.error)

    if not EInvoiceClient.is_configured():
        return failure(ERROR_NOT_CONFIGURED, _NOT_CONFIGURED)

    irn = request.irn.strip()
    reason_code = resolve_reason_code(request.reason, IRN_CANCEL_REASONS)
    try:
        client = EInvoiceClient()
        auth_token = await client.authenticate(gstin)
        resp = await client.cancel_irn(
            gstin, auth_token, irn, reason_code, (request.remark or "").strip(),
        )
        data = resp.get("data", {}) or {}
        logger.info("IRN %s cancelled (reason %s)", irn, reason_code)
        return {
            "success": True,
            "message": f"IRN {irn} cancelled successfully",
            "cancel_date": data.get("CancelDate"),
        }
    except EInvoiceError as e:
        logger.error("e-Invoice cancellation error: %s", e)
        return failure(ERROR_UPSTREAM, str(e))
    except Exception:
        logger.exception("Unexpected error cancelling IRN")
        return failure(ERROR_UPSTREAM, "Unexpected error cancelling IRN")
