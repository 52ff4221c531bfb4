"""Shared test fixtures for the gstdesk test suite."""

import asyncio
from datetime import datetime

import pytest

from gstdesk.domain.services.compliance_window import IST


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def ack_time() -> datetime:
    """Acknowledgement / generation / receipt instant used as the window anchor."""
    return datetime(2025, 1, 15, 10, 0, tzinfo=IST)


@pytest.fixture
def sample_items() -> list[dict]:
    """Two lines as they sit in the invoice form: one intra-state, one inter-state."""
    return [
        {
            "description": "Laptop Computer",
            "hsn_code": "84715000",
            "quantity": "2",
            "unit": "nos",
            "value": "1000",
            "cgst": "9",
            "sgst": "9",
            "igst": "",
        },
        {
            "description": "Wireless Mouse",
            "hsn_code": "84716060",
            "quantity": "4",
            "unit": "NOS",
            "value": "500",
            "cgst": "",
            "sgst": "",
            "igst": "18",
        },
    ]


@pytest.fixture
def sample_invoice(sample_items) -> dict:
    """Invoice dict in the shape the flows and the HTTP schemas use."""
    return {
        "invoice_number": "INV-2025-001",
        "invoice_date": "15/01/2025",
        "receiver_gstin": "29AAECC1206D1ZM",
        "pos": "29",
        "seller": {
            "legal_name": "ABC Traders Pvt Ltd",
            "address1": "Plot 12, HITEC City",
            "location": "Hyderabad",
            "pincode": "500081",
            "state_code": "36",
        },
        "buyer": {
            "legal_name": "XYZ Enterprises",
            "address1": "MG Road",
            "location": "Bengaluru",
            "pincode": "560001",
            "state_code": "29",
        },
        "items": sample_items,
    }
