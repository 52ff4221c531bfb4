# gstdesk/api/v1/schemas/compliance.py
"""Schemas for compliance window checks."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from gstdesk.domain.models.actions import RawTimestamp


class WindowRequest(BaseModel):
    policy: str = Field(
        description="irn_cancellation | ewb_cancellation | ewb_accept_reject | ewb_transporter_change",
    )
    reference: RawTimestamp = Field(default=None, description="Generation / acknowledgement / receipt time")
    now: RawTimestamp = Field(default=None, description="Evaluation instant (defaults to server time)")
    status: Optional[str] = Field(default=None, description="Current entity status (defaults to the permitted one)")


class WindowResponse(BaseModel):
    policy: str
    permitted: bool
    hours_remaining: float
    expires_at: datetime | None = None
    status_ok: bool = True
