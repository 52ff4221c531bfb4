# tests/test_einvoice_flow.py
"""Tests for e-Invoice flow service."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from gstdesk.domain.models.actions import IrnCancelRequest
from gstdesk.domain.services.einvoice_flow import (
    cancel_irn,
    generate_irn_for_invoice,
    get_irn_by_document,
    get_irn_status,
    lookup_gstin,
    prepare_irn_payload,
)
from gstdesk.infrastructure.external.einvoice_client import EInvoiceError

# The functions use deferred imports, so we patch at the source module
_EINVOICE_CLIENT_PATH = "gstdesk.infrastructure.external.einvoice_client.EInvoiceClient"

SUPPLIER = "36AABCU9603R1ZM"
IRN = "a5c12dca80e743321740b001fd70953e8738d109865d28ba4013750f2046f229"


def _mock_client(mock_cls):
    mock_cls.is_configured.return_value = True
    mock_client = AsyncMock()
    mock_cls.return_value = mock_client
    mock_client.authenticate.return_value = "test_token"
    return mock_client


# ---------------------------------------------------------------------------
# payload
# ---------------------------------------------------------------------------

def test_prepare_irn_payload(event_loop, sample_invoice):
    payload = event_loop.run_until_complete(prepare_irn_payload(sample_invoice, SUPPLIER))

    assert payload["Version"] == "1.1"
    assert payload["TranDtls"] == {"TaxSch": "GST", "SupTyp": "B2B"}
    assert payload["DocDtls"] == {"Typ": "INV", "No": "INV-2025-001", "Dt": "15/01/2025"}
    assert payload["SellerDtls"]["Gstin"] == SUPPLIER
    assert payload["SellerDtls"]["LglNm"] == "ABC Traders Pvt Ltd"
    assert "Addr2" not in payload["SellerDtls"]
    assert payload["BuyerDtls"]["Gstin"] == "29AAECC1206D1ZM"
    assert payload["BuyerDtls"]["Pos"] == "29"


def test_prepare_irn_payload_items_use_tax_engine(event_loop, sample_invoice):
    payload = event_loop.run_until_complete(prepare_irn_payload(sample_invoice, SUPPLIER))
    first, second = payload["ItemList"]

    assert first["SlNo"] == "1"
    assert first["IsServc"] == "N"
    assert first["HsnCd"] == "84715000"
    assert first["Qty"] == "2"
    assert first["Unit"] == "NOS"
    assert first["UnitPrice"] == "500.00"
    assert first["AssAmt"] == "1000.00"
    assert first["GstRt"] == "18.00"
    assert first["CgstAmt"] == "90.00"
    assert first["SgstAmt"] == "90.00"
    assert first["TotItemVal"] == "1180.00"
    assert "CesAmt" not in first

    assert second["SlNo"] == "2"
    assert second["IgstAmt"] == "90.00"
    assert second["UnitPrice"] == "125.00"
    assert second["TotItemVal"] == "590.00"

    assert payload["ValDtls"] == {
        "AssVal": "1500.00",
        "CgstVal": "90.00",
        "SgstVal": "90.00",
        "IgstVal": "90.00",
        "TotInvVal": "1770.00",
    }


def test_prepare_irn_payload_round_off_and_cess(event_loop, sample_invoice):
    sample_invoice.update(round_off="-0.50", total_cess="10")
    payload = event_loop.run_until_complete(prepare_irn_payload(sample_invoice, SUPPLIER))
    assert payload["ValDtls"]["RndOffAmt"] == "-0.50"
    assert payload["ValDtls"]["TotCess"] == "10.00"
    assert payload["ValDtls"]["TotInvVal"] == "1779.50"


def test_prepare_irn_payload_missing_fields(event_loop):
    """Missing fields should default to empty/zero."""
    payload = event_loop.run_until_complete(prepare_irn_payload({}, SUPPLIER))
    assert payload["DocDtls"]["No"] == ""
    assert payload["ItemList"] == []
    assert payload["BuyerDtls"] == {"Gstin": ""}
    assert payload["ValDtls"]["TotInvVal"] == "0.00"


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------

def test_generate_irn_not_configured(event_loop, sample_invoice):
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        mock_cls.is_configured.return_value = False
        result = event_loop.run_until_complete(generate_irn_for_invoice(SUPPLIER, sample_invoice))
        assert result["success"] is False
        assert result["code"] == "not_configured"
        assert "not configured" in result["error"]


def test_generate_irn_requires_items(event_loop):
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        result = event_loop.run_until_complete(generate_irn_for_invoice(SUPPLIER, {"items": []}))
        assert result["code"] == "validation"
        mock_cls.assert_not_called()


def test_generate_irn_rejects_invalid_hsn(event_loop, sample_invoice):
    sample_invoice["items"][1]["hsn_code"] = "84A7"
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        result = event_loop.run_until_complete(generate_irn_for_invoice(SUPPLIER, sample_invoice))
        assert result["code"] == "validation"
        assert "Line 2: invalid HSN code" in result["error"]
        mock_cls.assert_not_called()


def test_generate_irn_rejects_short_buyer_pincode(event_loop, sample_invoice):
    sample_invoice["buyer"]["pincode"] = "5600"
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        result = event_loop.run_until_complete(generate_irn_for_invoice(SUPPLIER, sample_invoice))
        assert result["code"] == "validation"
        assert "buyer pincode" in result["error"]
        mock_cls.assert_not_called()


def test_generate_irn_success(event_loop, sample_invoice):
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        mock_client = _mock_client(mock_cls)
        mock_client.generate_irn.return_value = {
            "status_cd": "1",
            "data": {"Irn": IRN, "AckNo": 112010036563310, "AckDt": "2025-01-15 10:00:00"},
        }
        result = event_loop.run_until_complete(generate_irn_for_invoice(SUPPLIER, sample_invoice))

        assert result["success"] is True
        assert result["irn"] == IRN
        assert result["ack_no"] == 112010036563310
        assert result["total_inv_val"] == "1770.00"
        mock_client.authenticate.assert_awaited_once_with(SUPPLIER)
        sent = mock_client.generate_irn.call_args[0][2]
        assert sent["ValDtls"]["TotInvVal"] == "1770.00"


def test_generate_irn_api_error(event_loop, sample_invoice):
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        mock_client = _mock_client(mock_cls)
        mock_client.generate_irn.side_effect = EInvoiceError("2150: Duplicate IRN")
        result = event_loop.run_until_complete(generate_irn_for_invoice(SUPPLIER, sample_invoice))
        assert result == {"success": False, "code": "upstream", "error": "2150: Duplicate IRN"}


def test_generate_irn_unexpected_error(event_loop, sample_invoice):
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        mock_client = _mock_client(mock_cls)
        mock_client.authenticate.side_effect = RuntimeError("boom")
        result = event_loop.run_until_complete(generate_irn_for_invoice(SUPPLIER, sample_invoice))
        assert result["success"] is False
        assert result["error"] == "Unexpected error generating IRN"


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------

def test_get_irn_status_success(event_loop):
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        mock_client = _mock_client(mock_cls)
        mock_client.get_irn_details.return_value = {"data": {"Irn": IRN, "Status": "ACT"}}
        result = event_loop.run_until_complete(get_irn_status(SUPPLIER, IRN))
        assert result["success"] is True
        assert result["status"] == "ACT"
        mock_client.get_irn_details.assert_awaited_once_with(SUPPLIER, "test_token", IRN)


def test_get_irn_status_blank_irn(event_loop):
    result = event_loop.run_until_complete(get_irn_status(SUPPLIER, "  "))
    assert result["code"] == "validation"


# ---------------------------------------------------------------------------
# lookups
# ---------------------------------------------------------------------------

def test_get_irn_by_document_success(event_loop):
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        mock_client = _mock_client(mock_cls)
        mock_client.get_irn_by_doc.return_value = {"data": {"Irn": IRN, "Status": "ACT"}}
        result = event_loop.run_until_complete(
            get_irn_by_document(SUPPLIER, "crn", " CN-42 ", "15/01/2025")
        )
        assert result["success"] is True
        assert result["irn"] == IRN
        assert result["status"] == "ACT"
        mock_client.get_irn_by_doc.assert_awaited_once_with(
            SUPPLIER, "test_token", "CRN", "CN-42", "15/01/2025",
        )


@pytest.mark.parametrize(
    "doc_type,doc_number,doc_date,message",
    [
        ("BILL", "INV-1", "15/01/2025", "Document type must be one of"),
        ("INV", "  ", "15/01/2025", "Document number is required"),
        ("INV", "INV-1", "2025-01-15", "dd/MM/yyyy"),
        ("INV", "INV-1", "31/02/2025", "dd/MM/yyyy"),
    ],
)
def test_get_irn_by_document_rejections(event_loop, doc_type, doc_number, doc_date, message):
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        result = event_loop.run_until_complete(
            get_irn_by_document(SUPPLIER, doc_type, doc_number, doc_date)
        )
        assert result["code"] == "validation"
        assert message in result["error"]
        mock_cls.assert_not_called()


def test_get_irn_by_document_upstream_error(event_loop):
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        mock_client = _mock_client(mock_cls)
        mock_client.get_irn_by_doc.side_effect = EInvoiceError("2283: IRN details not found")
        result = event_loop.run_until_complete(
            get_irn_by_document(SUPPLIER, "INV", "INV-1", "15/01/2025")
        )
        assert result == {"success": False, "code": "upstream", "error": "2283: IRN details not found"}


def test_lookup_gstin_success(event_loop):
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        mock_client = _mock_client(mock_cls)
        mock_client.get_gstn_details.return_value = {
            "data": {"Gstin": "29AAECC1206D1ZM", "LegalName": "XYZ Enterprises", "Status": "ACT"},
        }
        result = event_loop.run_until_complete(lookup_gstin(SUPPLIER, " 29aaecc1206d1zm "))
        assert result["success"] is True
        assert result["gstin"] == "29AAECC1206D1ZM"
        assert result["legal_name"] == "XYZ Enterprises"
        assert result["status"] == "ACT"
        mock_client.get_gstn_details.assert_awaited_once_with(SUPPLIER, "test_token", "29AAECC1206D1ZM")


def test_lookup_gstin_invalid_format(event_loop):
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        result = event_loop.run_until_complete(lookup_gstin(SUPPLIER, "29AAECC1206"))
        assert result["code"] == "validation"
        assert "Invalid GSTIN format" in result["error"]
        mock_cls.assert_not_called()


def test_lookup_gstin_not_configured(event_loop):
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        mock_cls.is_configured.return_value = False
        result = event_loop.run_until_complete(lookup_gstin(SUPPLIER, "29AAECC1206D1ZM"))
        assert result["code"] == "not_configured"


# ---------------------------------------------------------------------------
# cancel
# ---------------------------------------------------------------------------

def test_cancel_irn_rejected_after_24_hours(event_loop, ack_time):
    request = IrnCancelRequest(irn=IRN, status="GENERATED", ack_date=ack_time, reason="1")
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        result = event_loop.run_until_complete(
            cancel_irn(SUPPLIER, request, now=ack_time + timedelta(hours=25))
        )
        assert result["success"] is False
        assert result["code"] == "validation"
        assert "24 hours" in result["error"]
        mock_cls.assert_not_called()


def test_cancel_irn_success(event_loop, ack_time):
    request = IrnCancelRequest(
        irn=IRN, status="Generated", ack_date=ack_time, reason="Other", remark=" Wrong buyer ",
    )
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        mock_client = _mock_client(mock_cls)
        mock_client.cancel_irn.return_value = {"data": {"Irn": IRN, "CancelDate": "2025-01-15 12:00:00"}}
        result = event_loop.run_until_complete(
            cancel_irn(SUPPLIER, request, now=ack_time + timedelta(hours=2))
        )
        assert result["success"] is True
        assert result["cancel_date"] == "2025-01-15 12:00:00"
        mock_client.cancel_irn.assert_awaited_once_with(SUPPLIER, "test_token", IRN, "4", "Wrong buyer")


def test_cancel_irn_api_error(event_loop, ack_time):
    request = IrnCancelRequest(irn=IRN, status="GENERATED", ack_date=ack_time, reason="2")
    with patch(_EINVOICE_CLIENT_PATH) as mock_cls:
        mock_client = _mock_client(mock_cls)
        mock_client.cancel_irn.side_effect = EInvoiceError("9999: Invalid IRN")
        result = event_loop.run_until_complete(
            cancel_irn(SUPPLIER, request, now=ack_time + timedelta(hours=1))
        )
        assert result["code"] == "upstream"
        assert result["error"] == "9999: Invalid IRN"
