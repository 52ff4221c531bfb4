# gstdesk/domain/services/gstin_validation.py

import re

PAN_REGEX = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
GSTIN_REGEX = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")
VEHICLE_NO_REGEX = re.compile(r"^[A-Z]{2}[0-9]{1,2}[A-Z]{1,2}[0-9]{4}$")
PINCODE_REGEX = re.compile(r"^[0-9]{6}$")
HSN_REGEX = re.compile(r"^[0-9]{4,8}$")

# Unregistered person, accepted in place of a buyer GSTIN for B2C supplies
URP = "URP"


def normalize_gstin(gstin: str | None) -> str:
    return (gstin or "").strip().upper()


def is_valid_pan(pan: str | None) -> bool:
    if not pan:
        return False
    pan = pan.strip().upper()
    return bool(PAN_REGEX.match(pan))


def is_valid_gstin(gstin: str | None) -> bool:
    """15 chars: state code, PAN, entity number, literal ``Z``, check char."""
    gstin = normalize_gstin(gstin)
    if not GSTIN_REGEX.match(gstin):
        return False
    return is_valid_pan(gstin[2:12])


def normalize_vehicle_number(vehicle_no: str | None) -> str:
    """``"mh 12 ab 1234"`` -> ``"MH12AB1234"``."""
    return re.sub(r"\s", "", vehicle_no or "").upper()


def is_valid_vehicle_number(vehicle_no: str | None) -> bool:
    return bool(VEHICLE_NO_REGEX.match(normalize_vehicle_number(vehicle_no)))


def is_valid_pincode(pincode: str | int | None) -> bool:
    return bool(PINCODE_REGEX.match(str(pincode or "").strip()))


def is_valid_hsn(hsn: str | None) -> bool:
    return bool(HSN_REGEX.match((hsn or "").strip()))
