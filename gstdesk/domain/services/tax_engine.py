# gstdesk/domain/services/tax_engine.py
"""
Line-item and invoice-level GST computation.

Rounding rule (used by every caller, including the IRP payload builder):
each tax head is rounded half-up to 2 places on its own, and the item
total is the taxable value rounded to 2 places plus those rounded heads.
Invoice totals are sums of the rounded item amounts, so the printed
invoice always adds up line by line.

Every function here is total: malformed input is treated as zero and
results are 2-decimal strings ready for display or the API payload.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping

from gstdesk.domain.models.tax import LineItem
from gstdesk.domain.services.amounts import (
    ZERO,
    format_two_decimals,
    percent_of,
    round2,
    safe_decimal,
)


# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ItemTax:
    """Computed amounts for a single line item."""
    ass_amt: str
    cgst_amt: str
    sgst_amt: str
    igst_amt: str
    cess_amt: str
    total_item_value: str
    gst_rate: str


@dataclass(frozen=True)
class InvoiceTotals:
    """Invoice-level totals, all 2-decimal strings."""
    total_ass_val: str = "0.00"
    total_cgst_amt: str = "0.00"
    total_sgst_amt: str = "0.00"
    total_igst_amt: str = "0.00"
    total_cess_amt: str = "0.00"
    total_inv_val: str = "0.00"
    round_off_amt: str = "0.00"
    additional_cess: str = "0.00"
    final_inv_val: str = "0.00"

    @property
    def total_tax(self) -> str:
        return format_two_decimals(
            Decimal(self.total_cgst_amt)
            + Decimal(self.total_sgst_amt)
            + Decimal(self.total_igst_amt)
            + Decimal(self.total_cess_amt)
        )


# ---------------------------------------------------------------------------
# Item level
# ---------------------------------------------------------------------------

def _item_amounts(
    taxable_value: Any,
    cgst_rate: Any,
    sgst_rate: Any,
    igst_rate: Any,
    cess_rate: Any = None,
) -> tuple[Decimal, Decimal, Decimal, Decimal, Decimal]:
    taxable = safe_decimal(taxable_value)
    cgst = round2(percent_of(taxable, safe_decimal(cgst_rate)))
    sgst = round2(percent_of(taxable, safe_decimal(sgst_rate)))
    igst = round2(percent_of(taxable, safe_decimal(igst_rate)))
    cess = round2(percent_of(taxable, safe_decimal(cess_rate)))
    # Heads are computed on the value as entered; the line carries it rounded
    return round2(taxable), cgst, sgst, igst, cess


def combined_gst_rate(cgst_rate: Any, sgst_rate: Any, igst_rate: Any) -> str:
    """GST rate reported to the IRP: IGST if charged, else CGST + SGST."""
    igst = safe_decimal(igst_rate)
    if igst > ZERO:
        return format_two_decimals(igst)
    intra = safe_decimal(cgst_rate) + safe_decimal(sgst_rate)
    if intra > ZERO:
        return format_two_decimals(intra)
    return "0"


def compute_item_tax(
    taxable_value: Any,
    cgst_rate: Any,
    sgst_rate: Any,
    igst_rate: Any,
    cess_rate: Any = None,
) -> ItemTax:
    """Compute CGST/SGST/IGST/cess amounts and the line total.

    >>> compute_item_tax("1000", "9", "9", "0").total_item_value
    '1180.00'
    """
    taxable, cgst, sgst, igst, cess = _item_amounts(
        taxable_value, cgst_rate, sgst_rate, igst_rate, cess_rate,
    )
    return ItemTax(
        ass_amt=format_two_decimals(taxable),
        cgst_amt=format_two_decimals(cgst),
        sgst_amt=format_two_decimals(sgst),
        igst_amt=format_two_decimals(igst),
        cess_amt=format_two_decimals(cess),
        total_item_value=format_two_decimals(taxable + cgst + sgst + igst + cess),
        gst_rate=combined_gst_rate(cgst_rate, sgst_rate, igst_rate),
    )


def compute_unit_price(value: Any, quantity: Any) -> str:
    """Unit price = value / quantity; ``"0.00"`` if quantity is zero or unusable."""
    qty = safe_decimal(quantity)
    if qty == ZERO:
        return "0.00"
    try:
        return format_two_decimals(safe_decimal(value) / qty)
    except ArithmeticError:
        # quotient beyond the decimal context, e.g. quantity "1e-999999"
        return "0.00"


# ---------------------------------------------------------------------------
# Invoice level
# ---------------------------------------------------------------------------

def _get(item: LineItem | Mapping[str, Any], name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def aggregate_totals(
    items: Iterable[LineItem | Mapping[str, Any]],
    round_off: Any = None,
    total_cess: Any = None,
) -> InvoiceTotals:
    """Fold line items into invoice totals.

    ``items`` may be :class:`LineItem` models or plain dicts with the same
    keys (``value``, ``cgst``, ``sgst``, ``igst``, ``cess``), which is what
    the form state looks like.
    """
    total_ass = total_cgst = total_sgst = total_igst = total_cess_amt = ZERO

    for item in items:
        taxable, cgst, sgst, igst, cess = _item_amounts(
            _get(item, "value"),
            _get(item, "cgst"),
            _get(item, "sgst"),
            _get(item, "igst"),
            _get(item, "cess"),
        )
        total_ass += taxable
        total_cgst += cgst
        total_sgst += sgst
        total_igst += igst
        total_cess_amt += cess

    total_inv = total_ass + total_cgst + total_sgst + total_igst + total_cess_amt

    return InvoiceTotals(
        total_ass_val=format_two_decimals(total_ass),
        total_cgst_amt=format_two_decimals(total_cgst),
        total_sgst_amt=format_two_decimals(total_sgst),
        total_igst_amt=format_two_decimals(total_igst),
        total_cess_amt=format_two_decimals(total_cess_amt),
        total_inv_val=format_two_decimals(total_inv),
        round_off_amt=format_two_decimals(round_off),
        additional_cess=format_two_decimals(total_cess),
        final_inv_val=compute_final_invoice_value(total_inv, round_off, total_cess),
    )


def compute_final_invoice_value(
    total_inv_value: Any,
    round_off: Any = None,
    total_cess: Any = None,
) -> str:
    """Add optional round-off (may be negative) and additional cess."""
    final = safe_decimal(total_inv_value) + safe_decimal(round_off) + safe_decimal(total_cess)
    return format_two_decimals(final)
