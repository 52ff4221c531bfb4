# tests/test_gstin_validation.py

import pytest

from gstdesk.domain.services.gstin_validation import (
    is_valid_gstin,
    is_valid_hsn,
    is_valid_pan,
    is_valid_pincode,
    is_valid_vehicle_number,
    normalize_gstin,
    normalize_vehicle_number,
)


@pytest.mark.parametrize(
    "gstin", ["36AABCU9603R1ZM", "29AAECC1206D1ZM", "27aadcb2230m1zp", " 07AAACB2230MZZ1 "],
)
def test_valid_gstins(gstin):
    assert is_valid_gstin(gstin) is True


@pytest.mark.parametrize(
    "gstin",
    [
        None,
        "",
        "36AABCU9603R1Z",      # 14 chars
        "36AABCU9603R1ZMX",    # 16 chars
        "36AABCU9603R1XM",     # 14th char must be Z
        "36AABCU9603R0ZM",     # entity number cannot be 0
        "3AAABCU9603R1ZM",     # state code must be 2 digits
        "36AABC19603R1ZM",     # PAN part malformed
    ],
)
def test_invalid_gstins(gstin):
    assert is_valid_gstin(gstin) is False


def test_normalize_gstin():
    assert normalize_gstin(" 36aabcu9603r1zm ") == "36AABCU9603R1ZM"
    assert normalize_gstin(None) == ""


def test_pan():
    assert is_valid_pan("aabcu9603r") is True
    assert is_valid_pan("AABCU9603") is False
    assert is_valid_pan(None) is False


def test_vehicle_number():
    assert normalize_vehicle_number("ka 01 ab 1234") == "KA01AB1234"
    assert is_valid_vehicle_number("KA01AB1234") is True
    assert is_valid_vehicle_number("DL1C1234") is True
    assert is_valid_vehicle_number("KA01AB123") is False
    assert is_valid_vehicle_number(None) is False


def test_pincode_and_hsn():
    assert is_valid_pincode("500081") is True
    assert is_valid_pincode(560001) is True
    assert is_valid_pincode("5000") is False
    assert is_valid_hsn("8471") is True
    assert is_valid_hsn("84715000") is True
    assert is_valid_hsn("847") is False
