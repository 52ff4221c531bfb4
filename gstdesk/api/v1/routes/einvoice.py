# gstdesk/api/v1/routes/einvoice.py
"""e-Invoice (IRN) API: generate, look up, cancel and GSTIN details."""

from __future__ import annotations

from fastapi import APIRouter, Query

from gstdesk.api.v1.deps import gstin_error, supplier_gstin
from gstdesk.api.v1.envelope import from_flow
from gstdesk.api.v1.schemas.einvoice import InvoiceDocument, IrnCancelBody
from gstdesk.domain.models.actions import IrnCancelRequest

router = APIRouter(prefix="/einvoice", tags=["e-Invoice"])


@router.post("/irn")
async def generate_irn(body: InvoiceDocument):
    """Generate an IRN for the submitted invoice."""
    from gstdesk.domain.services.einvoice_flow import generate_irn_for_invoice

    gstin = supplier_gstin(body.gstin)
    err = gstin_error(gstin)
    if err is not None:
        return err

    result = await generate_irn_for_invoice(gstin, body.model_dump(exclude={"gstin"}))
    return from_flow(result, message="IRN generated")


# Declared before /irn/{irn} so "by-doc" is not read as an IRN
@router.get("/irn/by-doc")
async def irn_by_document(
    doc_number: str = Query(..., description="Invoice / note number"),
    doc_date: str = Query(..., description="dd/MM/yyyy"),
    doc_type: str = Query("INV", description="INV, CRN or DBN"),
    gstin: str | None = Query(None),
):
    """IRN issued for a document, found by type, number and date."""
    from gstdesk.domain.services.einvoice_flow import get_irn_by_document

    supplier = supplier_gstin(gstin)
    err = gstin_error(supplier)
    if err is not None:
        return err

    return from_flow(await get_irn_by_document(supplier, doc_type, doc_number, doc_date))


@router.get("/gstn/{target_gstin}")
async def gstn_details(target_gstin: str, gstin: str | None = Query(None)):
    """Registered name, address and status of any GSTIN."""
    from gstdesk.domain.services.einvoice_flow import lookup_gstin

    supplier = supplier_gstin(gstin)
    err = gstin_error(supplier)
    if err is not None:
        return err

    return from_flow(await lookup_gstin(supplier, target_gstin))


@router.get("/irn/{irn}")
async def irn_details(irn: str, gstin: str | None = Query(None)):
    """Current status and details of an IRN."""
    from gstdesk.domain.services.einvoice_flow import get_irn_status

    supplier = supplier_gstin(gstin)
    err = gstin_error(supplier)
    if err is not None:
        return err

    return from_flow(await get_irn_status(supplier, irn))


@router.post("/irn/{irn}/cancel")
async def cancel_irn(irn: str, body: IrnCancelBody):
    """Cancel an IRN (24 hours from acknowledgement)."""
    from gstdesk.domain.services.einvoice_flow import cancel_irn as cancel_irn_flow

    gstin = supplier_gstin(body.gstin)
    err = gstin_error(gstin)
    if err is not None:
        return err

    request = IrnCancelRequest(irn=irn, **body.model_dump(exclude={"gstin"}))
    return from_flow(await cancel_irn_flow(gstin, request))
