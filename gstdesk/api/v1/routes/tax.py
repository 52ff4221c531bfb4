# gstdesk/api/v1/routes/tax.py
"""GST calculator API: line items, invoice totals, unit price."""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter

from gstdesk.api.v1.envelope import ok
from gstdesk.api.v1.schemas.tax import (
    ItemTaxRequest,
    ItemTaxResponse,
    TotalsRequest,
    TotalsResponse,
    UnitPriceRequest,
)
from gstdesk.domain.services.tax_engine import (
    aggregate_totals,
    compute_item_tax,
    compute_unit_price,
)

logger = logging.getLogger("api.v1.tax")

router = APIRouter(prefix="/tax", tags=["Tax Calculator"])


@router.post("/item")
async def item_tax(body: ItemTaxRequest):
    """Tax heads and line total for one item."""
    result = compute_item_tax(
        body.taxable_value, body.cgst_rate, body.sgst_rate, body.igst_rate, body.cess_rate,
    )
    return ok(data=ItemTaxResponse(**asdict(result)).model_dump())


@router.post("/totals")
async def invoice_totals(body: TotalsRequest):
    """Invoice-level totals for a list of line items."""
    totals = aggregate_totals(body.items, body.round_off, body.total_cess)
    data = TotalsResponse(**asdict(totals), total_tax=totals.total_tax)
    logger.debug("Totals for %d item(s): %s", len(body.items), totals.final_inv_val)
    return ok(data=data.model_dump())


@router.post("/unit-price")
async def unit_price(body: UnitPriceRequest):
    return ok(data={"unit_price": compute_unit_price(body.value, body.quantity)})
