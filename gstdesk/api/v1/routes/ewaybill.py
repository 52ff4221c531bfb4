# gstdesk/api/v1/routes/ewaybill.py
"""e-WayBill API: generation, tracking and lifecycle actions."""

from __future__ import annotations

from fastapi import APIRouter, Query

from gstdesk.api.v1.deps import gstin_error, supplier_gstin
from gstdesk.api.v1.envelope import from_flow
from gstdesk.api.v1.schemas.ewaybill import (
    AcceptBody,
    ConsolidateBody,
    EwbCancelBody,
    ExtendBody,
    GenerateEwbBody,
    RejectBody,
    TransporterChangeBody,
    VehicleUpdateBody,
)
from gstdesk.domain.models.actions import (
    AcceptRequest,
    ConsolidateRequest,
    EwbCancelRequest,
    ExtendRequest,
    RejectRequest,
    TransporterChangeRequest,
    VehicleUpdateRequest,
)

router = APIRouter(prefix="/eway-bills", tags=["e-WayBill"])


@router.post("")
async def generate_ewaybill(body: GenerateEwbBody):
    """Generate an e-WayBill (Part-A and Part-B) for an invoice."""
    from gstdesk.domain.services.ewaybill_flow import generate_ewb

    gstin = supplier_gstin(body.gstin)
    err = gstin_error(gstin)
    if err is not None:
        return err

    invoice = body.model_dump(exclude={"gstin", "transport"})
    result = await generate_ewb(gstin, invoice, body.transport.model_dump())
    return from_flow(result, message="E-Way Bill generated")


@router.post("/consolidated")
async def generate_consolidated(body: ConsolidateBody):
    """Consolidated e-WayBill for two or more Active bills in one vehicle."""
    from gstdesk.domain.services.ewaybill_flow import generate_consolidated_ewb

    gstin = supplier_gstin(body.gstin)
    err = gstin_error(gstin)
    if err is not None:
        return err

    request = ConsolidateRequest(**body.model_dump(exclude={"gstin"}))
    return from_flow(await generate_consolidated_ewb(gstin, request))


@router.get("/{ewb_no}")
async def ewaybill_details(ewb_no: str, gstin: str | None = Query(None)):
    from gstdesk.domain.services.ewaybill_flow import track_ewb

    supplier = supplier_gstin(gstin)
    err = gstin_error(supplier)
    if err is not None:
        return err

    return from_flow(await track_ewb(supplier, ewb_no))


@router.post("/{ewb_no}/cancel")
async def cancel_ewaybill(ewb_no: str, body: EwbCancelBody):
    """Cancel within 24 hours of generation, before the vehicle is assigned."""
    from gstdesk.domain.services.ewaybill_flow import cancel_ewb

    gstin = supplier_gstin(body.gstin)
    err = gstin_error(gstin)
    if err is not None:
        return err

    request = EwbCancelRequest(ewb_no=ewb_no, **body.model_dump(exclude={"gstin"}))
    return from_flow(await cancel_ewb(gstin, request))


@router.post("/{ewb_no}/extend-validity")
async def extend_validity(ewb_no: str, body: ExtendBody):
    """Extend validity to at most 72 hours from now."""
    from gstdesk.domain.services.ewaybill_flow import extend_ewb_validity

    gstin = supplier_gstin(body.gstin)
    err = gstin_error(gstin)
    if err is not None:
        return err

    request = ExtendRequest(ewb_no=ewb_no, **body.model_dump(exclude={"gstin"}))
    return from_flow(await extend_ewb_validity(gstin, request))


@router.post("/{ewb_no}/change-transporter")
async def change_transporter(ewb_no: str, body: TransporterChangeBody):
    from gstdesk.domain.services.ewaybill_flow import change_transporter as change_transporter_flow

    gstin = supplier_gstin(body.gstin)
    err = gstin_error(gstin)
    if err is not None:
        return err

    request = TransporterChangeRequest(ewb_no=ewb_no, **body.model_dump(exclude={"gstin"}))
    return from_flow(await change_transporter_flow(gstin, request))


@router.post("/{ewb_no}/accept")
async def accept_ewaybill(ewb_no: str, body: AcceptBody):
    """Accept a received e-WayBill within 72 hours."""
    from gstdesk.domain.services.ewaybill_flow import accept_ewb

    gstin = supplier_gstin(body.gstin)
    err = gstin_error(gstin)
    if err is not None:
        return err

    request = AcceptRequest(ewb_no=ewb_no, **body.model_dump(exclude={"gstin"}))
    return from_flow(await accept_ewb(gstin, request))


@router.post("/{ewb_no}/reject")
async def reject_ewaybill(ewb_no: str, body: RejectBody):
    """Reject a received e-WayBill within 72 hours, with a reason."""
    from gstdesk.domain.services.ewaybill_flow import reject_ewb

    gstin = supplier_gstin(body.gstin)
    err = gstin_error(gstin)
    if err is not None:
        return err

    request = RejectRequest(ewb_no=ewb_no, **body.model_dump(exclude={"gstin"}))
    return from_flow(await reject_ewb(gstin, request))


@router.post("/{ewb_no}/update-vehicle")
async def update_vehicle(ewb_no: str, body: VehicleUpdateBody):
    """Update Part-B: vehicle number or transport document."""
    from gstdesk.domain.services.ewaybill_flow import update_vehicle as update_vehicle_flow

    gstin = supplier_gstin(body.gstin)
    err = gstin_error(gstin)
    if err is not None:
        return err

    request = VehicleUpdateRequest(ewb_no=ewb_no, **body.model_dump(exclude={"gstin"}))
    return from_flow(await update_vehicle_flow(gstin, request))
