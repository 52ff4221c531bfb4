# gstdesk/api/v1/routes/compliance.py
"""Compliance window checks (cancel / accept / reject deadlines)."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, status

from gstdesk.api.v1.envelope import error_response, ok
from gstdesk.api.v1.schemas.compliance import WindowRequest, WindowResponse
from gstdesk.domain.services.compliance_window import IST, POLICIES, evaluate

router = APIRouter(prefix="/compliance", tags=["Compliance Windows"])


@router.post("/window")
async def compliance_window(body: WindowRequest):
    """Is the action still permitted, and how many hours are left?"""
    policy = POLICIES.get(body.policy.strip().lower())
    if policy is None:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Unknown policy. Expected one of: " + ", ".join(POLICIES),
        )

    now = body.now if body.now is not None else datetime.now(IST)
    entity_status = body.status if body.status is not None else policy.permitted_status
    result = evaluate(policy, body.reference, now, entity_status)
    return ok(data=WindowResponse(**asdict(result)).model_dump(mode="json"))
