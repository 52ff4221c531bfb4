# gstdesk/api/v1/__init__.py
"""
Versioned API v1: aggregates all sub-routers under ``/api/v1``.

Usage in ``main.py``::

    from gstdesk.api.v1 import v1_router
    app.include_router(v1_router)
"""

from fastapi import APIRouter

from gstdesk.api.v1.routes.tax import router as tax_router
from gstdesk.api.v1.routes.compliance import router as compliance_router
from gstdesk.api.v1.routes.einvoice import router as einvoice_router
from gstdesk.api.v1.routes.ewaybill import router as ewaybill_router

v1_router = APIRouter(prefix="/api/v1")

# Pure calculators (no aggregator calls)
v1_router.include_router(tax_router)
v1_router.include_router(compliance_router)

# Whitebooks-backed e-Invoice / e-WayBill
v1_router.include_router(einvoice_router)
v1_router.include_router(ewaybill_router)

__all__ = ["v1_router"]
