# tests/test_tax_engine.py
"""Tests for line-item / invoice GST computation."""

from decimal import ROUND_HALF_UP, Decimal

import pytest

from gstdesk.domain.models.tax import LineItem
from gstdesk.domain.services.amounts import format_two_decimals, round2, safe_decimal
from gstdesk.domain.services.tax_engine import (
    InvoiceTotals,
    aggregate_totals,
    combined_gst_rate,
    compute_final_invoice_value,
    compute_item_tax,
    compute_unit_price,
)


def _r2(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# safe parsing
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "raw", [None, "", "   ", "abc", "12abc", "NaN", "Infinity", "-inf", "1e400", True, float("nan")],
)
def test_safe_decimal_garbage_is_zero(raw):
    assert safe_decimal(raw) == Decimal("0")


def test_safe_decimal_accepts_indian_formatting():
    assert safe_decimal("₹1,18,000.50") == Decimal("118000.50")
    assert safe_decimal(" 42 ") == Decimal("42")
    assert safe_decimal(12.5) == Decimal("12.5")


def test_round2_half_up_and_no_negative_zero():
    assert round2("2.345") == Decimal("2.35")
    assert round2("2.344") == Decimal("2.34")
    assert format_two_decimals("-0.001") == "0.00"
    assert format_two_decimals("oops") == "0.00"


# ---------------------------------------------------------------------------
# item level
# ---------------------------------------------------------------------------

def test_intra_state_item():
    result = compute_item_tax("1000", "9", "9", "0")
    assert result.cgst_amt == "90.00"
    assert result.sgst_amt == "90.00"
    assert result.igst_amt == "0.00"
    assert result.total_item_value == "1180.00"
    assert result.gst_rate == "18.00"


def test_inter_state_item_reports_igst_rate():
    result = compute_item_tax(2500, 0, 0, 12)
    assert result.igst_amt == "300.00"
    assert result.total_item_value == "2800.00"
    assert result.gst_rate == "12.00"


def test_each_head_is_rounded_half_up():
    # 10.05 * 50% = 5.025 exactly -> 5.03 (binary floats would give 5.02)
    result = compute_item_tax("10.05", "50", "0", "0")
    assert result.cgst_amt == "5.03"
    assert result.total_item_value == "15.08"


@pytest.mark.parametrize(
    "value,r1,r2,r3",
    [
        ("1000", "9", "9", "0"),
        ("333.33", "2.5", "2.5", "0"),
        ("99.99", "0", "0", "28"),
        ("0.07", "9", "9", "0"),
        ("123456.789", "6", "6", "0"),
        ("1", "0.25", "0.25", "0"),
    ],
)
def test_total_is_rounded_sum_of_rounded_heads(value, r1, r2, r3):
    v = Decimal(value)
    heads = [_r2(v * Decimal(r) / 100) for r in (r1, r2, r3)]
    expected = _r2(v + sum(heads))
    assert compute_item_tax(value, r1, r2, r3).total_item_value == f"{expected:f}"


def test_item_with_cess():
    result = compute_item_tax(1000, 9, 9, 0, 1)
    assert result.cess_amt == "10.00"
    assert result.total_item_value == "1190.00"


def test_half_typed_row_never_raises():
    result = compute_item_tax("abc", None, "", "x")
    assert result.ass_amt == "0.00"
    assert result.total_item_value == "0.00"
    assert result.gst_rate == "0"


def test_combined_rate_prefers_igst():
    assert combined_gst_rate("9", "9", "18") == "18.00"
    assert combined_gst_rate("2.5", "2.5", "") == "5.00"
    assert combined_gst_rate("", "", "") == "0"


@pytest.mark.parametrize("value", ["1000", "0", "abc", None])
@pytest.mark.parametrize("quantity", [0, "0", "", None, "abc", "1e-999999", "1e-20"])
def test_unit_price_guards_quantity(value, quantity):
    assert compute_unit_price(value, quantity) == "0.00"


def test_unit_price():
    assert compute_unit_price("1000", "3") == "333.33"
    assert compute_unit_price("100", 8) == "12.50"


# ---------------------------------------------------------------------------
# invoice level
# ---------------------------------------------------------------------------

def test_aggregate_empty_is_all_zero():
    totals = aggregate_totals([])
    assert totals == InvoiceTotals()
    assert totals.final_inv_val == "0.00"
    assert totals.total_tax == "0.00"


def test_aggregate_totals(sample_items):
    totals = aggregate_totals(sample_items)
    assert totals.total_ass_val == "1500.00"
    assert totals.total_cgst_amt == "90.00"
    assert totals.total_sgst_amt == "90.00"
    assert totals.total_igst_amt == "90.00"
    assert totals.total_cess_amt == "0.00"
    assert totals.total_inv_val == "1770.00"
    assert totals.final_inv_val == "1770.00"
    assert totals.total_tax == "270.00"


def test_aggregate_is_order_independent():
    items = [
        {"value": "333.33", "cgst": "9", "sgst": "9"},
        {"value": "10.05", "igst": "50"},
        {"value": "0.07", "cgst": "2.5", "sgst": "2.5"},
        {"value": "99.99", "igst": "28", "cess": "12"},
    ]
    baseline = aggregate_totals(items)
    assert aggregate_totals(list(reversed(items))) == baseline
    assert aggregate_totals([items[2], items[0], items[3], items[1]]) == baseline


def test_aggregate_matches_sum_of_line_totals():
    items = [
        {"value": "333.33", "cgst": "9", "sgst": "9"},
        {"value": "10.05", "igst": "50"},
    ]
    line_sum = sum(
        Decimal(compute_item_tax(i.get("value"), i.get("cgst"), i.get("sgst"), i.get("igst")).total_item_value)
        for i in items
    )
    assert aggregate_totals(items).total_inv_val == f"{line_sum:f}"


def test_aggregate_matches_line_totals_for_sub_paisa_values():
    items = [{"value": "0.005"}, {"value": "0.005"}]
    lines = [compute_item_tax(i["value"], None, None, None) for i in items]
    assert [line.total_item_value for line in lines] == ["0.01", "0.01"]

    totals = aggregate_totals(items)
    assert totals.total_ass_val == "0.02"
    assert totals.total_inv_val == "0.02"


def test_aggregate_accepts_models_and_dicts():
    items = [
        LineItem(value="1000", cgst="9", sgst="9"),
        {"value": "500", "igst": "18"},
    ]
    assert aggregate_totals(items).total_inv_val == "1770.00"


def test_aggregate_with_round_off_and_cess(sample_items):
    totals = aggregate_totals(sample_items, round_off="-0.50", total_cess="10")
    assert totals.round_off_amt == "-0.50"
    assert totals.additional_cess == "10.00"
    assert totals.total_inv_val == "1770.00"
    assert totals.final_inv_val == "1779.50"


def test_final_invoice_value_blank_adjustments():
    assert compute_final_invoice_value("1770.00") == "1770.00"
    assert compute_final_invoice_value("1770.00", "", None) == "1770.00"
    assert compute_final_invoice_value("1770", "-0.5", "2.25") == "1771.75"
    assert compute_final_invoice_value("bad", "bad", "bad") == "0.00"
