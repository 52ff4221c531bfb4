# gstdesk/api/v1/schemas/tax.py
"""Request and response schemas for the tax calculator endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from gstdesk.domain.models.tax import LineItem, RawAmount


class ItemTaxRequest(BaseModel):
    taxable_value: RawAmount = None
    cgst_rate: RawAmount = None
    sgst_rate: RawAmount = None
    igst_rate: RawAmount = None
    cess_rate: RawAmount = None


class ItemTaxResponse(BaseModel):
    ass_amt: str
    cgst_amt: str
    sgst_amt: str
    igst_amt: str
    cess_amt: str
    total_item_value: str
    gst_rate: str


class TotalsRequest(BaseModel):
    items: list[LineItem] = Field(default_factory=list)
    round_off: RawAmount = Field(default=None, description="Round-off, may be negative")
    total_cess: RawAmount = Field(default=None, description="Additional invoice-level cess")


class TotalsResponse(BaseModel):
    total_ass_val: str
    total_cgst_amt: str
    total_sgst_amt: str
    total_igst_amt: str
    total_cess_amt: str
    total_inv_val: str
    round_off_amt: str
    additional_cess: str
    final_inv_val: str
    total_tax: str


class UnitPriceRequest(BaseModel):
    value: RawAmount = None
    quantity: RawAmount = None
