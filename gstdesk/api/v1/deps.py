# gstdesk/api/v1/deps.py
"""
Shared helpers for the v1 API layer.

``supplier_gstin`` picks the GSTIN an aggregator call is made for: the one in
the request body, else the configured ``WHITEBOOKS_GSTIN``.
"""

from __future__ import annotations

from fastapi import status

from gstdesk.api.v1.envelope import error_response
from gstdesk.config.settings import settings
from gstdesk.domain.services.gstin_validation import is_valid_gstin, normalize_gstin


def supplier_gstin(gstin: str | None) -> str:
    """Normalized supplier GSTIN, or ``""`` when none is available."""
    return normalize_gstin(gstin) or normalize_gstin(settings.WHITEBOOKS_GSTIN)


def gstin_error(gstin: str):
    """Error response for an unusable supplier GSTIN, else ``None``."""
    if not gstin:
        return error_response(status.HTTP_400_BAD_REQUEST, "Supplier GSTIN is required")
    if not is_valid_gstin(gstin):
        return error_response(status.HTTP_400_BAD_REQUEST, f"Invalid supplier GSTIN: {gstin}")
    return None
